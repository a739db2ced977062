#!/usr/bin/env python3
"""
Talk Tally - Events (Pub/Sub)
ドメイン層: イベント駆動アーキテクチャの中核
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from blinker import Signal

from .models import LogEntry

# ========================================
# イベント名定数
# ========================================
EVENT_SPEAKER_CHANGED = "speaker_changed"
EVENT_SESSION_TICKED = "session_ticked"
EVENT_SESSION_RESET = "session_reset"
EVENT_MESSAGE_POSTED = "message_posted"


# ========================================
# イベント型定義
# ========================================


class MessageLevel(str, Enum):
    """メッセージレベル"""

    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class SpeakerChangedEvent:
    """
    発話者切り替えイベント

    TimerEngine.toggle の度に発行される。
    区間が閉じた場合は closed_entry に確定したログが入る。
    """

    previous_participant_id: int | None  # 切り替え前の発話者（Noneなら待機中だった）
    active_participant_id: int | None  # 切り替え後の発話者（Noneなら待機中）
    closed_entry: LogEntry | None  # この遷移で確定したログ
    timestamp: datetime  # 遷移時刻


@dataclass(frozen=True)
class SessionTickedEvent:
    """
    定期ティックイベント

    発話中のみ1秒ごとに発行される。再描画のためだけのもので状態は変えない。
    """

    timestamp: datetime


@dataclass(frozen=True)
class SessionResetEvent:
    """
    セッションリセットイベント

    discarded_participant_id: リセット時に発話中だった参加者（区間は破棄される）
    """

    discarded_participant_id: int | None


@dataclass(frozen=True)
class MessagePostedEvent:
    """
    メッセージ投稿イベント

    システム状態の変化やユーザーへの通知メッセージを表示する際に発行される。
    timestampは省略時に自動的に現在時刻が設定される。
    """

    message: str  # 表示するメッセージ
    level: MessageLevel  # メッセージレベル（DEBUG/INFO/SUCCESS/WARNING/ERROR）
    timestamp: datetime = field(
        default_factory=datetime.now
    )  # メッセージタイムスタンプ（省略時は自動設定）


# ========================================
# グローバルシグナル定義
# ========================================

# 各イベントに対応するシグナル
speaker_changed = Signal(EVENT_SPEAKER_CHANGED)  # SpeakerChangedEvent
session_ticked = Signal(EVENT_SESSION_TICKED)  # SessionTickedEvent
session_reset = Signal(EVENT_SESSION_RESET)  # SessionResetEvent
message_posted = Signal(EVENT_MESSAGE_POSTED)  # MessagePostedEvent


def post_message(message: str, level: MessageLevel = MessageLevel.INFO) -> None:
    """message_posted シグナルを発行するヘルパー"""
    message_posted.send(None, event=MessagePostedEvent(message=message, level=level))
