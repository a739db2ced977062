#!/usr/bin/env python3
"""
Talk Tally - Participant Directory
固定順序の参加者一覧（名前変更のみ可能）
"""

from collections.abc import Iterable, Iterator

from .models import UNKNOWN_PARTICIPANT_NAME, Participant


class ParticipantDirectory:
    """
    参加者ディレクトリ

    責務:
    - セットアップ順の参加者一覧の保持
    - IDによる参加者の検索（未知のIDは "Unknown" として扱う）
    - 参加者の名前変更
    """

    def __init__(self, participants: Iterable[Participant]) -> None:
        self._participants: list[Participant] = list(participants)
        ids = [p.id for p in self._participants]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate participant ids: {ids}")

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._participants)

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        return any(p.id == participant_id for p in self._participants)

    def ids(self) -> list[int]:
        """セットアップ順の参加者ID一覧"""
        return [p.id for p in self._participants]

    def get(self, participant_id: int) -> Participant | None:
        for participant in self._participants:
            if participant.id == participant_id:
                return participant
        return None

    def name_for(self, participant_id: int | None) -> str:
        """表示名を取得（見つからない場合は "Unknown"）"""
        if participant_id is None:
            return UNKNOWN_PARTICIPANT_NAME
        participant = self.get(participant_id)
        return participant.name if participant else UNKNOWN_PARTICIPANT_NAME

    def rename(self, participant_id: int, name: str) -> bool:
        """
        参加者の名前を変更

        Args:
            participant_id: 参加者ID
            name: 新しい表示名（前後の空白は除去）

        Returns:
            bool: 変更した場合True（未知のIDまたは空の名前ならFalse）
        """
        name = name.strip()
        participant = self.get(participant_id)
        if participant is None or not name:
            return False
        participant.name = name
        return True
