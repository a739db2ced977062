#!/usr/bin/env python3
"""
Talk Tally - Domain Layer
ドメイン層：ビジネスロジック、エンティティ、設定
"""

# モデルとデータ構造
from .models import (
    UNKNOWN_PARTICIPANT_NAME,
    ActiveSpeakerState,
    LogEntry,
    Participant,
    SessionState,
    elapsed_seconds,
    utc_now,
)

# 参加者・台帳・タイマー
from .ledger import LogLedger
from .participants import ParticipantDirectory
from .timer_engine import TimerEngine

# 集計
from .durations import combined_total, format_duration, live_accrual, total_for

# イベント（Pub/Sub）
from .events import (
    MessageLevel,
    MessagePostedEvent,
    SessionResetEvent,
    SessionTickedEvent,
    SpeakerChangedEvent,
    message_posted,
    post_message,
    session_reset,
    session_ticked,
    speaker_changed,
)

# 設定スキーマ（Pydantic）
from .settings import (
    AppSettings,
    ExportSettings,
    KeyboardSettings,
    ParticipantSettings,
    SessionSettings,
    Settings,
    StorageSettings,
)

__all__ = [
    # モデル
    "UNKNOWN_PARTICIPANT_NAME",
    "ActiveSpeakerState",
    "LogEntry",
    "Participant",
    "SessionState",
    "elapsed_seconds",
    "utc_now",
    # 参加者・台帳・タイマー
    "LogLedger",
    "ParticipantDirectory",
    "TimerEngine",
    # 集計
    "combined_total",
    "format_duration",
    "live_accrual",
    "total_for",
    # イベント
    "MessageLevel",
    "MessagePostedEvent",
    "SessionResetEvent",
    "SessionTickedEvent",
    "SpeakerChangedEvent",
    "message_posted",
    "post_message",
    "session_reset",
    "session_ticked",
    "speaker_changed",
    # 設定
    "AppSettings",
    "ExportSettings",
    "KeyboardSettings",
    "ParticipantSettings",
    "SessionSettings",
    "Settings",
    "StorageSettings",
]
