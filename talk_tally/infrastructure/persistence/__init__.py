#!/usr/bin/env python3
"""
Talk Tally - Persistence Infrastructure
永続化層のインフラストラクチャ（状態保存・JSON出力）
"""

# キー/値ストア
from .kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

# セッション状態の保存・復元
from .state_store import SessionStateStore

# JSONエクスポート
from .json_exporter import SessionJsonExporter

__all__ = [
    # キー/値ストア
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    # セッション状態
    "SessionStateStore",
    # JSONエクスポート
    "SessionJsonExporter",
]
