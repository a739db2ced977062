"""SessionStateStore・キー/値ストアのテスト"""

import json
from datetime import timedelta
from pathlib import Path

import pytest

from talk_tally.domain import Settings, TimerEngine
from talk_tally.infrastructure.persistence import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    SessionStateStore,
)

from conftest import START, FakeClock


def _record_session(store: SessionStateStore, clock: FakeClock):
    """P1を5秒、P2を3秒発話させ、P3が発話中の状態を作って保存"""
    state = store.default_state()
    engine = TimerEngine(state.active, state.ledger, clock=clock)
    engine.toggle(1)
    clock.advance(5.123)
    engine.toggle(2)
    clock.advance(3)
    engine.toggle(3)
    state.setup_done = True
    state.surroundings = "Whiteboard\nLaptop"
    state.dark_mode = True
    state.directory.rename(2, "Bob")
    store.save(state)
    return state


class TestRoundTrip:
    """保存→復元のテスト"""

    def test_restores_all_fields(
        self, state_store: SessionStateStore, clock: FakeClock
    ) -> None:
        """全フィールドが保存時と同じ値で復元される"""
        saved = _record_session(state_store, clock)

        restored = state_store.load()

        assert restored.ledger.entries == saved.ledger.entries
        assert restored.active == saved.active
        assert restored.active.active_since == START + timedelta(seconds=8.123)
        assert [p.name for p in restored.directory] == [
            "Participant A",
            "Bob",
            "Participant C",
        ]
        assert restored.setup_done is True
        assert restored.surroundings == "Whiteboard\nLaptop"
        assert restored.dark_mode is True
        assert state_store.recovered_keys == []

    def test_save_writes_once(
        self,
        kv: InMemoryKeyValueStore,
        state_store: SessionStateStore,
        clock: FakeClock,
    ) -> None:
        """全キーを1回の書き込みで保存する"""
        _record_session(state_store, clock)

        assert kv.write_count == 1
        assert set(kv.data) == {
            "session_schemaVersion",
            "session_setupDone",
            "session_participants",
            "session_surroundings",
            "session_darkMode",
            "session_activeId",
            "session_currentStart",
            "session_logs",
        }

    def test_logs_use_camel_case_keys(
        self,
        kv: InMemoryKeyValueStore,
        state_store: SessionStateStore,
        clock: FakeClock,
    ) -> None:
        """ログはcamelCaseのキーで保存される"""
        _record_session(state_store, clock)

        logs = json.loads(kv.data["session_logs"])
        assert set(logs[0]) == {
            "id",
            "participantId",
            "startTime",
            "endTime",
            "durationSeconds",
        }

    def test_empty_store_gives_defaults(
        self, state_store: SessionStateStore, settings: Settings
    ) -> None:
        """保存データがなければ初期状態"""
        state = state_store.load()

        assert len(state.directory) == len(settings.session.participants)
        assert len(state.ledger) == 0
        assert not state.active.is_active
        assert state.setup_done is False
        assert state.surroundings == ""
        assert state_store.recovered_keys == []


class TestRecovery:
    """不正データからの復元テスト"""

    def test_corrupt_logs_fall_back_to_empty(
        self,
        kv: InMemoryKeyValueStore,
        state_store: SessionStateStore,
        clock: FakeClock,
    ) -> None:
        """ログが不正なJSONなら空の台帳、他のキーは正常に復元"""
        _record_session(state_store, clock)
        kv.data["session_logs"] = "{not json"

        state = state_store.load()

        assert len(state.ledger) == 0
        assert state.directory.name_for(2) == "Bob"
        assert state.active.active_participant_id == 3
        assert state_store.recovered_keys == ["logs"]

    def test_only_corrupt_logs_stored(
        self, kv: InMemoryKeyValueStore, state_store: SessionStateStore
    ) -> None:
        """不正なログのみ保存されている場合も例外なく初期値で復元"""
        kv.data["session_logs"] = '[{"id": "broken"}]'

        state = state_store.load()

        assert len(state.ledger) == 0
        assert state.setup_done is False
        assert state_store.recovered_keys == ["logs"]

    def test_wrong_types_fall_back_per_key(
        self, kv: InMemoryKeyValueStore, state_store: SessionStateStore
    ) -> None:
        """型が異なる値はそのキーのみデフォルト"""
        kv.data.update(
            {
                "session_setupDone": '"yes"',
                "session_activeId": '"2"',
                "session_surroundings": '"Projector"',
            }
        )

        state = state_store.load()

        assert state.setup_done is False
        assert state.active.active_participant_id is None
        assert state.surroundings == "Projector"
        assert sorted(state_store.recovered_keys) == ["activeId", "setupDone"]

    def test_newer_schema_version_discards_everything(
        self,
        kv: InMemoryKeyValueStore,
        state_store: SessionStateStore,
        clock: FakeClock,
    ) -> None:
        """未対応の新しいスキーマバージョンは全て初期状態"""
        _record_session(state_store, clock)
        kv.data["session_schemaVersion"] = "2"

        state = state_store.load()

        assert len(state.ledger) == 0
        assert state.setup_done is False
        assert state.directory.name_for(2) == "Participant B"
        assert state_store.recovered_keys == ["schemaVersion"]

    def test_accepts_legacy_duration_key(
        self, kv: InMemoryKeyValueStore, state_store: SessionStateStore
    ) -> None:
        """旧形式の "duration" キーを受け付ける"""
        kv.data["session_logs"] = json.dumps(
            [
                {
                    "id": 1,
                    "participantId": 1,
                    "startTime": "2024-01-01T10:00:00.000Z",
                    "endTime": "2024-01-01T10:00:05.000Z",
                    "duration": 5,
                }
            ]
        )

        state = state_store.load()

        assert [e.duration_seconds for e in state.ledger] == [5]

    @pytest.mark.parametrize(
        "entry",
        [
            # 終了時刻が開始時刻より前
            {
                "id": 1,
                "participantId": 1,
                "startTime": "2024-01-01T10:00:05.000Z",
                "endTime": "2024-01-01T10:00:00.000Z",
                "durationSeconds": 0,
            },
            # 負の発話時間
            {
                "id": 1,
                "participantId": 1,
                "startTime": "2024-01-01T10:00:00.000Z",
                "endTime": "2024-01-01T10:00:05.000Z",
                "durationSeconds": -5,
            },
            # タイムゾーンなし
            {
                "id": 1,
                "participantId": 1,
                "startTime": "2024-01-01T10:00:00",
                "endTime": "2024-01-01T10:00:05",
                "durationSeconds": 5,
            },
            # 区間長と一致しない発話時間
            {
                "id": 1,
                "participantId": 1,
                "startTime": "2024-01-01T10:00:00.000Z",
                "endTime": "2024-01-01T10:00:05.000Z",
                "durationSeconds": 9999,
            },
        ],
    )
    def test_rejects_invalid_entries(
        self,
        kv: InMemoryKeyValueStore,
        state_store: SessionStateStore,
        entry: dict,
    ) -> None:
        """不正なエントリを含むログは破棄される"""
        kv.data["session_logs"] = json.dumps([entry])

        state = state_store.load()

        assert len(state.ledger) == 0
        assert state_store.recovered_keys == ["logs"]

    def test_duplicate_participant_ids_rejected(
        self, kv: InMemoryKeyValueStore, state_store: SessionStateStore
    ) -> None:
        """参加者ID重複はデフォルトの参加者に戻す"""
        kv.data["session_participants"] = json.dumps(
            [
                {"id": 1, "name": "A", "role": "Participant"},
                {"id": 1, "name": "B", "role": "Participant"},
            ]
        )

        state = state_store.load()

        assert state.directory.ids() == [1, 2, 3]
        assert state_store.recovered_keys == ["participants"]


class TestClear:
    """リセット時の消去テスト"""

    def test_clear_removes_everything(
        self,
        kv: InMemoryKeyValueStore,
        state_store: SessionStateStore,
        clock: FakeClock,
    ) -> None:
        _record_session(state_store, clock)
        state_store.clear()

        assert kv.data == {}
        assert len(state_store.load().ledger) == 0


class TestJsonFileKeyValueStore:
    """JSONファイルストアのテスト"""

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        """別インスタンスから読み戻せる"""
        path = tmp_path / "nested" / "state.json"
        JsonFileKeyValueStore(path).set_many({"a": "1", "b": '"x"'})

        store = JsonFileKeyValueStore(path)

        assert store.get("a") == "1"
        assert store.get("b") == '"x"'
        assert store.get("missing") is None

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """書き込み後に一時ファイルが残らない"""
        path = tmp_path / "state.json"
        store = JsonFileKeyValueStore(path)
        store.set("a", "1")
        store.set("b", "2")

        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_unreadable_file_is_empty(self, tmp_path: Path) -> None:
        """壊れたファイルは空として扱う"""
        path = tmp_path / "state.json"
        path.write_text("[1, 2, 3", encoding="utf-8")

        assert JsonFileKeyValueStore(path).get("a") is None

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        store = JsonFileKeyValueStore(path)
        store.set("a", "1")

        store.clear()

        assert not path.exists()
        assert store.get("a") is None

    def test_full_session_round_trip(
        self, tmp_path: Path, settings: Settings, clock: FakeClock
    ) -> None:
        """ファイル経由でもセッション状態が復元される"""
        path = tmp_path / "state.json"
        saved = _record_session(
            SessionStateStore(JsonFileKeyValueStore(path), settings.session), clock
        )

        restored = SessionStateStore(
            JsonFileKeyValueStore(path), settings.session
        ).load()

        assert restored.ledger.entries == saved.ledger.entries
        assert restored.active == saved.active
