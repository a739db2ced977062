#!/usr/bin/env python3
"""
Talk Tally - Settings Schema
設定のスキーマ定義（Pydanticモデル）
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from typing_extensions import Self

from .models import Participant


# ========================================
# Helper Functions
# ========================================
def _default_participants() -> list["ParticipantSettings"]:
    """初期参加者のデフォルト値を生成"""
    return [
        ParticipantSettings(name="Participant A"),
        ParticipantSettings(name="Participant B"),
        ParticipantSettings(name="Participant C"),
    ]


# ========================================
# Session Configuration
# ========================================
class ParticipantSettings(BaseModel):
    """初期参加者（IDは並び順で1から採番）"""

    name: str = Field(description="表示名")
    role: str = Field(default="Participant", description="役割（表示のみ）")


class SessionSettings(BaseSettings):
    """セッション設定"""

    participants: list[ParticipantSettings] = Field(
        default_factory=_default_participants,
        min_length=1,
        description="初期参加者リスト - リセット時・初回起動時に使用",
    )
    tick_interval_sec: float = Field(
        default=1.0,
        gt=0,
        description="発話中の再描画間隔（秒）",
    )

    def build_participants(self) -> list[Participant]:
        """設定から参加者エンティティを生成（ID=1..n）"""
        return [
            Participant(id=index, name=p.name, role=p.role)
            for index, p in enumerate(self.participants, start=1)
        ]


# ========================================
# Keyboard Configuration
# ========================================
class KeyboardSettings(BaseSettings):
    """キー割り当て設定"""

    participant_keys: list[str] = Field(
        default=[str(n) for n in range(1, 10)],
        description="参加者の切り替えキー（参加者の並び順に対応）",
    )
    export_key: str = Field(default="e", description="エクスポートキー")
    reset_key: str = Field(default="r", description="リセットキー")
    quit_key: str = Field(default="q", description="終了キー")

    @field_validator("participant_keys")
    @classmethod
    def validate_participant_keys(cls, keys: list[str]) -> list[str]:
        """参加者キーは1文字かつ重複なし"""
        if any(len(k) != 1 for k in keys):
            raise ValueError("keyboard.participant_keys must be single characters")
        if len(keys) != len(set(keys)):
            raise ValueError("keyboard.participant_keys must be unique")
        return keys

    @model_validator(mode="after")
    def validate_no_collisions(self) -> Self:
        """コマンドキーと参加者キーの衝突を検証"""
        command_keys = [self.export_key, self.reset_key, self.quit_key]
        if any(len(k) != 1 for k in command_keys):
            raise ValueError("keyboard command keys must be single characters")
        if len(set(command_keys)) != len(command_keys):
            raise ValueError("keyboard command keys must be distinct")
        overlap = set(command_keys) & set(self.participant_keys)
        if overlap:
            raise ValueError(
                f"keyboard command keys collide with participant keys: {sorted(overlap)}"
            )
        return self


# ========================================
# Storage Configuration
# ========================================
class StorageSettings(BaseSettings):
    """永続化設定"""

    state_file: Path = Field(
        default=Path.home() / ".local" / "share" / "talk-tally" / "state.json",
        description="セッション状態の保存先（JSON）",
    )
    key_prefix: str = Field(
        default="session_",
        description="保存キーのプレフィックス",
    )


# ========================================
# Export Configuration
# ========================================
class ExportSettings(BaseSettings):
    """エクスポート設定"""

    output_dir: Path = Field(
        default=Path("."),
        description="エクスポートファイルの出力ディレクトリ",
    )
    indent: int = Field(
        default=2,
        ge=0,
        description="JSONインデント幅",
    )


# ========================================
# Application Configuration
# ========================================
class AppSettings(BaseSettings):
    """アプリケーション全体設定"""

    input_poll_interval_sec: float = Field(
        default=0.1,
        gt=0,
        description="入力ポーリング間隔（秒）",
    )
    max_recent_logs: int = Field(
        default=8,
        ge=0,
        description="ダッシュボードに表示する直近ログ数",
    )
    max_messages: int = Field(
        default=5,
        ge=0,
        description="ダッシュボードに表示する直近メッセージ数",
    )


# ========================================
# Main Settings Class
# ========================================
class Settings(BaseSettings):
    """
    Talk Tally全体設定

    設定の読み込み優先順位（後勝ち）:
    1. デフォルト値（各Settingsクラス内）
    2. config.toml（カレントディレクトリ）
    3. config.local.toml（カレントディレクトリ）
    """

    session: SessionSettings = Field(default_factory=SessionSettings)
    keyboard: KeyboardSettings = Field(default_factory=KeyboardSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    app: AppSettings = Field(default_factory=AppSettings)
