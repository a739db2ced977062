"""共通フィクスチャ"""

from datetime import datetime, timedelta, timezone

import pytest

from talk_tally.domain import (
    ActiveSpeakerState,
    LogLedger,
    Participant,
    ParticipantDirectory,
    Settings,
)
from talk_tally.infrastructure.persistence import (
    InMemoryKeyValueStore,
    SessionStateStore,
)
from talk_tally.infrastructure.scheduling import PollingScheduler

START = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """手動で進める時計（UTC）"""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeMonotonic:
    """手動で進める単調時計（秒）"""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def scheduler(monotonic: FakeMonotonic) -> PollingScheduler:
    return PollingScheduler(monotonic=monotonic)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def directory() -> ParticipantDirectory:
    """3人の参加者（ID 1..3）"""
    return ParticipantDirectory(
        [
            Participant(id=1, name="Participant A"),
            Participant(id=2, name="Participant B"),
            Participant(id=3, name="Participant C", role="Moderator"),
        ]
    )


@pytest.fixture
def ledger() -> LogLedger:
    return LogLedger()


@pytest.fixture
def active() -> ActiveSpeakerState:
    return ActiveSpeakerState()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def state_store(kv: InMemoryKeyValueStore, settings: Settings) -> SessionStateStore:
    return SessionStateStore(kv=kv, session_settings=settings.session)
