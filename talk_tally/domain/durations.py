#!/usr/bin/env python3
"""
Talk Tally - Duration Accumulator
発話時間の集計（純粋関数、毎回再計算）
"""

from datetime import datetime

from .ledger import LogLedger
from .models import ActiveSpeakerState, elapsed_seconds


def live_accrual(active: ActiveSpeakerState, now: datetime) -> int:
    """発話中の区間の経過秒数（未確定分）。待機中・不整合時は0"""
    if active.active_participant_id is None or active.active_since is None:
        return 0
    return max(0, elapsed_seconds(active.active_since, now))


def total_for(
    ledger: LogLedger, active: ActiveSpeakerState, participant_id: int, now: datetime
) -> int:
    """
    参加者ごとの合計発話秒数

    確定ログの合計 + （発話中であれば）現在の区間の経過秒数
    """
    total = sum(e.duration_seconds for e in ledger.for_participant(participant_id))
    if active.active_participant_id == participant_id:
        total += live_accrual(active, now)
    return total


def combined_total(ledger: LogLedger, active: ActiveSpeakerState, now: datetime) -> int:
    """全参加者の合計発話秒数"""
    return sum(e.duration_seconds for e in ledger) + live_accrual(active, now)


def format_duration(seconds: int) -> str:
    """秒数を HH:MM:SS 形式に整形"""
    hours, remainder = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
