#!/usr/bin/env python3
"""
Talk Tally - Key/Value Store
インフラ層：名前付きキーと文字列値の永続ストア
"""

import json
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol


class KeyValueStore(Protocol):
    """キー/値ストアのインターフェース（値はJSON文字列）"""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def set_many(self, values: Mapping[str, str]) -> None:
        """複数キーを1回の書き込みでまとめて保存"""
        ...

    def clear(self) -> None: ...


class InMemoryKeyValueStore:
    """メモリ上のキー/値ストア（テスト・非永続モード用）"""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, str]) -> None:
        self.data.update(values)
        self.write_count += 1

    def clear(self) -> None:
        self.data.clear()
        self.write_count += 1


class JsonFileKeyValueStore:
    """
    JSONファイルをバックエンドとするキー/値ストア

    責務:
    - ファイル全体を1つのJSONオブジェクトとして読み書き
    - 一時ファイル + os.replace によるアトミックな書き込み

    Note: 読み込めない・オブジェクトでないファイルは空として扱う
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, str] = self._read()

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, str]) -> None:
        self._data.update(values)
        self._write()

    def clear(self) -> None:
        self._data = {}
        self.path.unlink(missing_ok=True)

    def _read(self) -> dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError):
            return {}
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if isinstance(v, str)}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
