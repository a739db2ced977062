#!/usr/bin/env python3
"""
Talk Tally - Timer Engine
発話者の状態遷移（待機中 / 発話中）を管理するステートマシン
"""

from collections.abc import Callable
from datetime import datetime

from .events import (
    MessageLevel,
    SpeakerChangedEvent,
    post_message,
    speaker_changed,
)
from .ledger import LogLedger
from .models import ActiveSpeakerState, LogEntry, utc_now


class TimerEngine:
    """
    発話タイマーのステートマシン

    状態:
    - Idle: 誰も発話していない
    - Speaking(id, since): id の参加者が since から発話中

    toggle() 1回の呼び出しで「前の区間を閉じる」と「次の区間を開く」を
    同じ時刻 now で行うため、区間の重複や隙間が生じない。
    """

    def __init__(
        self,
        active: ActiveSpeakerState,
        ledger: LogLedger,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.active = active
        self.ledger = ledger
        self.clock = clock
        # 開始時刻なしで発話中だった遷移の回数（診断用）
        self.inconsistent_transitions = 0

    def toggle(self, participant_id: int) -> SpeakerChangedEvent:
        """
        参加者の発話状態を切り替える

        - 待機中: participant_id を発話中にする（ログなし）
        - 発話中（同じID）: 区間を閉じて待機中に戻る
        - 発話中（別のID）: 区間を閉じて participant_id を発話中にする

        Args:
            participant_id: 切り替える参加者ID

        Returns:
            SpeakerChangedEvent: 発生した遷移
        """
        now = self.clock()
        previous_id = self.active.active_participant_id
        closed_entry: LogEntry | None = None

        if previous_id is not None:
            since = self.active.active_since
            if since is None:
                self._flag_inconsistent(previous_id)
            else:
                if now < since:
                    # 時計の巻き戻り: 長さ0の区間として閉じ、次の区間も同時刻から開始
                    now = since
                closed_entry = self.ledger.append(previous_id, since, now)

        if previous_id == participant_id:
            self.active.set_idle()
        else:
            self.active.set_speaking(participant_id, now)

        event = SpeakerChangedEvent(
            previous_participant_id=previous_id,
            active_participant_id=self.active.active_participant_id,
            closed_entry=closed_entry,
            timestamp=now,
        )
        speaker_changed.send(self, event=event)
        return event

    def reset(self) -> int | None:
        """
        セッションリセット（進行中の区間は確定せずに破棄）

        Returns:
            int | None: 破棄された区間の参加者ID
        """
        discarded = self.active.active_participant_id
        self.active.set_idle()
        self.ledger.clear()
        return discarded

    def _flag_inconsistent(self, participant_id: int) -> None:
        """開始時刻のない発話状態を検出（ログは作らず継続）"""
        self.inconsistent_transitions += 1
        post_message(
            f"Participant {participant_id} was active without a start time; "
            "interval not recorded",
            MessageLevel.WARNING,
        )
