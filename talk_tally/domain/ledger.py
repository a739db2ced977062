#!/usr/bin/env python3
"""
Talk Tally - Log Ledger
確定した発話区間の追記専用ログ（新しい順）
"""

from collections.abc import Iterable, Iterator
from datetime import datetime

from .models import LogEntry, elapsed_seconds


class LogLedger:
    """
    発話ログ台帳

    責務:
    - 確定区間の先頭への追記（新しい順）
    - 一意で単調増加するIDの採番

    Note: 更新・削除の操作は存在しない。消去はセッションリセット（clear）のみ
    """

    def __init__(self, entries: Iterable[LogEntry] = ()) -> None:
        self._entries: list[LogEntry] = list(entries)
        self._last_id = max((e.id for e in self._entries), default=0)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    def for_participant(self, participant_id: int) -> list[LogEntry]:
        """指定参加者のエントリ（台帳順）"""
        return [e for e in self._entries if e.participant_id == participant_id]

    def append(
        self, participant_id: int, start_time: datetime, end_time: datetime
    ) -> LogEntry:
        """
        区間を確定して先頭に追加

        Args:
            participant_id: 発話していた参加者ID
            start_time: 区間開始時刻
            end_time: 区間終了時刻（start_time以上）

        Returns:
            LogEntry: 追加されたエントリ
        """
        entry = LogEntry(
            id=self._next_id(end_time),
            participant_id=participant_id,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=elapsed_seconds(start_time, end_time),
        )
        self._entries.insert(0, entry)
        return entry

    def clear(self) -> None:
        """全エントリを消去（セッションリセット専用）"""
        self._entries.clear()
        self._last_id = 0

    def _next_id(self, created_at: datetime) -> int:
        # 作成時刻のエポックミリ秒。同一ミリ秒内の連続作成は+1して一意性を保つ
        token = max(int(created_at.timestamp() * 1000), self._last_id + 1)
        self._last_id = token
        return token
