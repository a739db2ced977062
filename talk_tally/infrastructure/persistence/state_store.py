#!/usr/bin/env python3
"""
Talk Tally - Session State Store
インフラ層：セッション状態のスナップショット保存と復元
"""

from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from talk_tally.domain import (
    ActiveSpeakerState,
    LogLedger,
    MessageLevel,
    ParticipantDirectory,
    SessionSettings,
    SessionState,
    post_message,
)

from .kv_store import KeyValueStore
from .schema import (
    SCHEMA_VERSION,
    LogEntryRecord,
    ParticipantRecord,
    bool_adapter,
    log_entries_adapter,
    optional_datetime_adapter,
    optional_int_adapter,
    participants_adapter,
    schema_version_adapter,
    str_adapter,
)

T = TypeVar("T")

# ========================================
# 保存キー（プレフィックスなし）
# ========================================
KEY_SCHEMA_VERSION = "schemaVersion"
KEY_SETUP_DONE = "setupDone"
KEY_PARTICIPANTS = "participants"
KEY_SURROUNDINGS = "surroundings"
KEY_DARK_MODE = "darkMode"
KEY_ACTIVE_ID = "activeId"
KEY_CURRENT_START = "currentStart"
KEY_LOGS = "logs"


class SessionStateStore:
    """
    SessionStateをキー/値ストアに永続化

    責務:
    - 全フィールドを1つのスナップショットとしてまとめて書き込み
    - キーごとの検証付き復元（不正・欠損時はそのキーのデフォルト値）
    - リセット時のストア全消去

    Note: load() は例外を送出しない。復元に失敗したキーは recovered_keys に記録
    """

    def __init__(
        self,
        kv: KeyValueStore,
        session_settings: SessionSettings,
        key_prefix: str = "session_",
    ) -> None:
        self.kv = kv
        self.session_settings = session_settings
        self.key_prefix = key_prefix
        self.recovered_keys: list[str] = []

    def default_state(self) -> SessionState:
        """初期状態（設定の参加者、ログなし、待機中）"""
        return SessionState(
            directory=ParticipantDirectory(self.session_settings.build_participants()),
            ledger=LogLedger(),
        )

    def load(self) -> SessionState:
        """
        ストアからセッション状態を復元

        Returns:
            SessionState: 復元された状態（保存がなければ初期状態）
        """
        self.recovered_keys = []

        version = self._decode(
            KEY_SCHEMA_VERSION, schema_version_adapter, SCHEMA_VERSION
        )
        if version > SCHEMA_VERSION:
            self._recovered(
                KEY_SCHEMA_VERSION,
                f"unsupported schema version {version} (expected <= {SCHEMA_VERSION})",
            )
            return self.default_state()

        state = self.default_state()

        participants: list[ParticipantRecord] | None = self._decode(
            KEY_PARTICIPANTS, participants_adapter, None
        )
        if participants is not None:
            state.directory = ParticipantDirectory(p.to_domain() for p in participants)

        logs: list[LogEntryRecord] = self._decode(KEY_LOGS, log_entries_adapter, [])
        state.ledger = LogLedger(record.to_domain() for record in logs)

        state.active = ActiveSpeakerState(
            active_participant_id=self._decode(
                KEY_ACTIVE_ID, optional_int_adapter, None
            ),
            active_since=self._decode(
                KEY_CURRENT_START, optional_datetime_adapter, None
            ),
        )
        state.setup_done = self._decode(KEY_SETUP_DONE, bool_adapter, False)
        state.surroundings = self._decode(KEY_SURROUNDINGS, str_adapter, "")
        state.dark_mode = self._decode(KEY_DARK_MODE, bool_adapter, False)
        return state

    def save(self, state: SessionState) -> None:
        """
        セッション状態の全フィールドを1回の書き込みで保存

        Args:
            state: 保存するセッション状態
        """
        values: dict[str, bytes] = {
            KEY_SCHEMA_VERSION: schema_version_adapter.dump_json(SCHEMA_VERSION),
            KEY_SETUP_DONE: bool_adapter.dump_json(state.setup_done),
            KEY_PARTICIPANTS: participants_adapter.dump_json(
                [ParticipantRecord.from_domain(p) for p in state.directory]
            ),
            KEY_SURROUNDINGS: str_adapter.dump_json(state.surroundings),
            KEY_DARK_MODE: bool_adapter.dump_json(state.dark_mode),
            KEY_ACTIVE_ID: optional_int_adapter.dump_json(
                state.active.active_participant_id
            ),
            KEY_CURRENT_START: optional_datetime_adapter.dump_json(
                state.active.active_since
            ),
            KEY_LOGS: log_entries_adapter.dump_json(
                [LogEntryRecord.from_domain(e) for e in state.ledger], by_alias=True
            ),
        }
        self.kv.set_many(
            {self._key(key): raw.decode("utf-8") for key, raw in values.items()}
        )

    def clear(self) -> None:
        """保存済みの全状態を消去"""
        self.kv.clear()

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    def _decode(self, name: str, adapter: TypeAdapter[Any], default: T) -> Any | T:
        """1キー分の値を検証付きで復元（欠損・不正時はdefault）"""
        raw = self.kv.get(self._key(name))
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw, strict=True)
        except ValidationError as e:
            self._recovered(name, f"{e.error_count()} validation error(s)")
            return default

    def _recovered(self, name: str, reason: str) -> None:
        self.recovered_keys.append(name)
        post_message(
            f"Stored value '{self._key(name)}' discarded ({reason}); using default",
            MessageLevel.DEBUG,
        )
