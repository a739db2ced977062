#!/usr/bin/env python3
"""
Talk Tally - Infrastructure Layer
インフラストラクチャ層: 永続化、スケジューリング、設定読み込み
"""

from .config import load_settings
from .scheduling import PollingScheduler, RefreshTicker, Scheduler

__all__ = [
    "load_settings",
    "PollingScheduler",
    "RefreshTicker",
    "Scheduler",
]
