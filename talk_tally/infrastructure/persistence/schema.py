#!/usr/bin/env python3
"""
Talk Tally - Persisted State Schema
永続化データのスキーマ定義（Pydanticモデル、バージョン付き）
"""

from typing import Annotated

from pydantic import (
    AfterValidator,
    AliasChoices,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    model_validator,
)
from typing_extensions import Self

from talk_tally.domain import LogEntry, Participant, elapsed_seconds

# スキーマバージョン（互換性のない変更時にインクリメント）
SCHEMA_VERSION = 1


class ParticipantRecord(BaseModel):
    """参加者の永続化形式"""

    id: int
    name: str
    role: str = "Participant"

    @classmethod
    def from_domain(cls, participant: Participant) -> Self:
        return cls(id=participant.id, name=participant.name, role=participant.role)

    def to_domain(self) -> Participant:
        return Participant(id=self.id, name=self.name, role=self.role)


class LogEntryRecord(BaseModel):
    """
    発話ログの永続化形式

    旧形式の "duration" キーも durationSeconds として受け付ける。
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    participant_id: int = Field(alias="participantId")
    start_time: AwareDatetime = Field(alias="startTime")
    end_time: AwareDatetime = Field(alias="endTime")
    duration_seconds: int = Field(
        ge=0,
        alias="durationSeconds",
        validation_alias=AliasChoices("durationSeconds", "duration"),
    )

    @model_validator(mode="after")
    def validate_interval(self) -> Self:
        """endTime >= startTime、durationSeconds は区間長（秒、切り捨て）と一致"""
        if self.end_time < self.start_time:
            raise ValueError("endTime must not precede startTime")
        expected = elapsed_seconds(self.start_time, self.end_time)
        if self.duration_seconds != expected:
            raise ValueError(
                f"durationSeconds {self.duration_seconds} does not match "
                f"interval length {expected}"
            )
        return self

    @classmethod
    def from_domain(cls, entry: LogEntry) -> Self:
        return cls(
            id=entry.id,
            participant_id=entry.participant_id,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration_seconds=entry.duration_seconds,
        )

    def to_domain(self) -> LogEntry:
        return LogEntry(
            id=self.id,
            participant_id=self.participant_id,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_seconds=self.duration_seconds,
        )


def _validate_unique_ids(items: list[ParticipantRecord]) -> list[ParticipantRecord]:
    """参加者IDの重複を禁止"""
    ids = [p.id for p in items]
    if len(ids) != len(set(ids)):
        raise ValueError(f"duplicate participant ids: {ids}")
    return items


# 参加者リスト（ID重複なし、1人以上）
ParticipantList = Annotated[
    list[ParticipantRecord], Field(min_length=1), AfterValidator(_validate_unique_ids)
]

# 各キーのバリデータ（JSON文字列を strict モードで検証する）
schema_version_adapter = TypeAdapter(int)
bool_adapter = TypeAdapter(bool)
str_adapter = TypeAdapter(str)
optional_int_adapter = TypeAdapter(int | None)
optional_datetime_adapter = TypeAdapter(AwareDatetime | None)
participants_adapter = TypeAdapter(ParticipantList)
log_entries_adapter = TypeAdapter(list[LogEntryRecord])
