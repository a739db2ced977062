#!/usr/bin/env python3
"""
Talk Tally - Domain Models
ドメイン層：ビジネスエンティティとルール（外部依存なし）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ledger import LogLedger
    from .participants import ParticipantDirectory

# 参加者IDが見つからない場合の表示名
UNKNOWN_PARTICIPANT_NAME = "Unknown"

_ONE_SECOND = timedelta(seconds=1)


def utc_now() -> datetime:
    """現在時刻（UTC, timezone-aware）"""
    return datetime.now(timezone.utc)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """start→end の経過秒数（切り捨て）"""
    return (end - start) // _ONE_SECOND


@dataclass
class Participant:
    """セッション参加者"""

    id: int
    name: str
    role: str = "Participant"


@dataclass(frozen=True)
class LogEntry:
    """
    確定した発話区間（不変）

    TimerEngineが区間を閉じた時にのみ生成される。
    """

    id: int
    participant_id: int
    start_time: datetime
    end_time: datetime
    duration_seconds: int


@dataclass
class ActiveSpeakerState:
    """
    発話中の参加者と開始時刻

    不変条件: active_participant_id と active_since は両方None、または両方設定済み。
    永続化データの破損時のみ不整合な状態で復元されうる（is_consistentで判定）。
    """

    active_participant_id: int | None = None
    active_since: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.active_participant_id is not None

    @property
    def is_consistent(self) -> bool:
        return (self.active_participant_id is None) == (self.active_since is None)

    def set_idle(self) -> None:
        self.active_participant_id = None
        self.active_since = None

    def set_speaking(self, participant_id: int, since: datetime) -> None:
        self.active_participant_id = participant_id
        self.active_since = since


@dataclass
class SessionState:
    """
    セッション全体の状態（単一の所有オブジェクト）

    責務:
    - セットアップ状態・参加者・環境メモの保持
    - 発話状態（ActiveSpeakerState）とログ（LogLedger）の保持

    Note: active と ledger を変更できるのは TimerEngine のみ
    """

    directory: ParticipantDirectory
    ledger: LogLedger
    active: ActiveSpeakerState = field(default_factory=ActiveSpeakerState)
    setup_done: bool = False
    surroundings: str = ""
    dark_mode: bool = False  # UI専用（コアでは解釈しない）
