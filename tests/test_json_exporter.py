"""SessionJsonExporterのテスト"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

from talk_tally.domain import (
    LogLedger,
    Participant,
    ParticipantDirectory,
)
from talk_tally.infrastructure.persistence import SessionJsonExporter
from talk_tally.infrastructure.persistence.json_exporter import (
    format_timestamp,
    split_environment,
)

from conftest import START


class TestFormatTimestamp:
    """タイムスタンプ整形のテスト"""

    def test_utc_millis_with_z(self) -> None:
        assert format_timestamp(START) == "2024-01-01T10:00:00.000Z"

    def test_truncates_to_millis(self) -> None:
        value = START + timedelta(microseconds=123_987)
        assert format_timestamp(value) == "2024-01-01T10:00:00.123Z"

    def test_converts_to_utc(self) -> None:
        """UTC以外のタイムゾーンはUTCに変換"""
        jst = timezone(timedelta(hours=9))
        value = datetime(2024, 1, 1, 19, 0, 0, tzinfo=jst)
        assert format_timestamp(value) == "2024-01-01T10:00:00.000Z"


class TestSplitEnvironment:
    """環境メモ分割のテスト"""

    def test_strips_and_drops_blank_lines(self) -> None:
        text = "  Whiteboard \n\n   \nLaptop\r\nProjector  "
        assert split_environment(text) == ["Whiteboard", "Laptop", "Projector"]

    def test_blank_line_dropped(self) -> None:
        assert split_environment("Table\n\nChair") == ["Table", "Chair"]

    def test_empty(self) -> None:
        assert split_environment("") == []


class TestBuildExport:
    """エクスポート文書構築のテスト"""

    def test_two_participants_example(self) -> None:
        """AliceとBobの発話ログ（新しい順）と環境メモを出力"""
        directory = ParticipantDirectory(
            [Participant(id=1, name="Alice"), Participant(id=2, name="Bob")]
        )
        ledger = LogLedger()
        ledger.append(1, START, START + timedelta(seconds=5))
        ledger.append(
            2, START + timedelta(seconds=5), START + timedelta(seconds=8)
        )

        document = SessionJsonExporter.build_export(
            directory, ledger, "Whiteboard\n\nLaptop"
        )

        assert document == {
            "env_objs": ["Whiteboard", "Laptop"],
            "participant_logs": {
                "Alice": [["2024-01-01T10:00:00.000Z", "2024-01-01T10:00:05.000Z"]],
                "Bob": [["2024-01-01T10:00:05.000Z", "2024-01-01T10:00:08.000Z"]],
            },
        }

    def test_participants_without_logs_are_listed(
        self, directory: ParticipantDirectory
    ) -> None:
        """ログのない参加者も空リストで出力"""
        document = SessionJsonExporter.build_export(directory, LogLedger(), "")

        assert document["participant_logs"] == {
            "Participant A": [],
            "Participant B": [],
            "Participant C": [],
        }
        assert document["env_objs"] == []

    def test_unknown_participant_grouped(
        self, directory: ParticipantDirectory
    ) -> None:
        """ディレクトリにないIDのログは "Unknown" にまとめる"""
        ledger = LogLedger()
        ledger.append(99, START, START + timedelta(seconds=1))

        document = SessionJsonExporter.build_export(directory, ledger, "")

        assert document["participant_logs"]["Unknown"] == [
            ["2024-01-01T10:00:00.000Z", "2024-01-01T10:00:01.000Z"]
        ]

    def test_unknown_group_kept_apart_from_participant_named_unknown(self) -> None:
        """名前が Unknown の参加者がいても未知のIDのログとは混ざらない"""
        directory = ParticipantDirectory(
            [Participant(id=1, name="Unknown"), Participant(id=2, name="B")]
        )
        ledger = LogLedger()
        ledger.append(1, START, START + timedelta(seconds=5))
        ledger.append(
            99, START + timedelta(seconds=5), START + timedelta(seconds=7)
        )

        document = SessionJsonExporter.build_export(directory, ledger, "")

        assert document["participant_logs"] == {
            "Unknown": [["2024-01-01T10:00:00.000Z", "2024-01-01T10:00:05.000Z"]],
            "B": [],
            "Unknown (2)": [
                ["2024-01-01T10:00:05.000Z", "2024-01-01T10:00:07.000Z"]
            ],
        }

    def test_logs_keep_ledger_order(self, directory: ParticipantDirectory) -> None:
        """参加者ごとのログは台帳順（新しい順）"""
        ledger = LogLedger()
        ledger.append(1, START, START + timedelta(seconds=1))
        ledger.append(1, START + timedelta(seconds=2), START + timedelta(seconds=3))

        document = SessionJsonExporter.build_export(directory, ledger, "")

        starts = [pair[0] for pair in document["participant_logs"]["Participant A"]]
        assert starts == ["2024-01-01T10:00:02.000Z", "2024-01-01T10:00:00.000Z"]


class TestSaveToFile:
    """ファイル保存のテスト"""

    def test_filename_uses_epoch_millis(self, tmp_path: Path) -> None:
        document = {"env_objs": ["Laptop"], "participant_logs": {"Alice": []}}
        exported_at = START + timedelta(milliseconds=250)

        path = SessionJsonExporter.save_to_file(
            document, tmp_path / "out", exported_at=exported_at
        )

        assert path.name == f"session_data_{int(exported_at.timestamp() * 1000)}.json"
        assert json.loads(path.read_text(encoding="utf-8")) == document

    def test_non_ascii_names_written_verbatim(self, tmp_path: Path) -> None:
        document = {"env_objs": [], "participant_logs": {"山田": []}}

        path = SessionJsonExporter.save_to_file(
            document, tmp_path, exported_at=START
        )

        assert "山田" in path.read_text(encoding="utf-8")
