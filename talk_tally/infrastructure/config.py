#!/usr/bin/env python3
"""
Talk Tally - Configuration Loader
設定の読み込み（TOML）
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from talk_tally.domain import Settings


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    2つの辞書を深くマージする（overrideが優先）

    Args:
        base: ベースとなる辞書
        override: 上書きする辞書

    Returns:
        マージされた辞書
    """
    result = base.copy()
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], Mapping)
            and isinstance(value, Mapping)
        ):
            result[key] = _deep_merge(dict(result[key]), dict(value))
        else:
            result[key] = value
    return result


def load_settings(config_dir: Path | None = None) -> Settings:
    """
    TOMLファイルから設定を読み込む

    読み込み順序（後勝ち）:
    1. デフォルト値（domain/settings.py内）
    2. {config_dir}/config.toml（存在する場合）
    3. {config_dir}/config.local.toml（存在する場合）

    Args:
        config_dir: 設定ファイルのディレクトリ（Noneの場合はカレントディレクトリ）

    Returns:
        Settingsインスタンス

    Raises:
        tomllib.TOMLDecodeError: TOMLの構文エラー
        pydantic.ValidationError: 設定値が不正な場合
    """
    config_dir = config_dir or Path.cwd()
    config_path = config_dir / "config.toml"
    local_config_path = config_dir / "config.local.toml"

    # config.tomlを読み込み
    config_data: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            config_data = tomllib.load(f)

    # config.local.tomlを読み込んでマージ（存在する場合）
    if local_config_path.exists():
        with local_config_path.open("rb") as f:
            config_data = _deep_merge(config_data, tomllib.load(f))

    return Settings(**config_data) if config_data else Settings()
