#!/usr/bin/env python3
"""
Talk Tally - JSON Exporter
インフラ層：セッションデータのJSONエクスポート
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from talk_tally.domain import (
    UNKNOWN_PARTICIPANT_NAME,
    LogLedger,
    ParticipantDirectory,
    utc_now,
)


def format_timestamp(value: datetime) -> str:
    """UTC・ミリ秒精度・Z表記のISO-8601文字列（例: 2024-01-01T10:00:00.000Z）"""
    utc_value = value.astimezone(timezone.utc)
    millis = utc_value.microsecond // 1000
    return f"{utc_value.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}Z"


def split_environment(environment_text: str) -> list[str]:
    """環境メモを行ごとに分割（前後の空白除去、空行は除外）"""
    return [line.strip() for line in environment_text.splitlines() if line.strip()]


class SessionJsonExporter:
    """
    セッションデータをJSON形式でエクスポート

    責務:
    - 参加者・ログ・環境メモからエクスポート文書を構築
    - ファイルシステムへの保存
    """

    @staticmethod
    def build_export(
        directory: ParticipantDirectory,
        ledger: LogLedger,
        environment_text: str,
    ) -> dict[str, Any]:
        """
        エクスポート文書を構築

        Args:
            directory: 参加者ディレクトリ
            ledger: 発話ログ台帳（新しい順）
            environment_text: 改行区切りの環境メモ

        Returns:
            dict: {"env_objs": [...], "participant_logs": {名前: [[開始, 終了], ...]}}
        """
        participant_logs: dict[str, list[list[str]]] = {}
        for participant in directory:
            participant_logs.setdefault(participant.name, [])

        # 未知のIDのログは参加者名と衝突しないキーにまとめる（例: "Unknown (2)"）
        unknown_name = UNKNOWN_PARTICIPANT_NAME
        suffix = 1
        while unknown_name in participant_logs:
            suffix += 1
            unknown_name = f"{UNKNOWN_PARTICIPANT_NAME} ({suffix})"

        for entry in ledger:
            participant = directory.get(entry.participant_id)
            name = participant.name if participant else unknown_name
            participant_logs.setdefault(name, []).append(
                [format_timestamp(entry.start_time), format_timestamp(entry.end_time)]
            )

        return {
            "env_objs": split_environment(environment_text),
            "participant_logs": participant_logs,
        }

    @staticmethod
    def save_to_file(
        document: dict[str, Any],
        output_dir: Path,
        exported_at: datetime | None = None,
        indent: int = 2,
    ) -> Path:
        """
        エクスポート文書をJSONファイルに保存

        Args:
            document: build_export() で構築した文書
            output_dir: 出力ディレクトリ
            exported_at: ファイル名に使う時刻（Noneの場合は現在時刻）
            indent: JSONインデント幅

        Returns:
            Path: 保存されたファイルのパス
        """
        exported_at = exported_at or utc_now()
        # ファイル名: session_data_<エポックミリ秒>.json
        epoch_ms = int(exported_at.timestamp() * 1000)
        output_path = output_dir / f"session_data_{epoch_ms}.json"

        output_dir.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=indent)

        return output_path
