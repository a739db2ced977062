#!/usr/bin/env python3
"""
Talk Tally - Scheduling Module
定期ティックのスケジューラ（シングルスレッド）
"""

import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


class Scheduler(Protocol):
    """定期実行スケジューラのインターフェース"""

    def schedule(self, callback: Callable[[], None], interval_sec: float) -> int:
        """callback を interval_sec ごとに実行するよう登録し、ハンドルを返す"""
        ...

    def cancel(self, handle: int) -> None:
        """登録を解除（未登録のハンドルは無視）"""
        ...


@dataclass
class _ScheduledCallback:
    """登録済みコールバック"""

    callback: Callable[[], None]
    interval_sec: float
    next_due: float


class PollingScheduler:
    """
    ポーリング型スケジューラ

    責務:
    - 登録されたコールバックの期限管理
    - run_pending() 呼び出し時に期限到来分を呼び出し元スレッドで実行

    Note: スレッドは作らない。CLIの入力ループから run_pending() を呼ぶ
    """

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        self._callbacks: dict[int, _ScheduledCallback] = {}
        self._handles = itertools.count(1)

    @property
    def pending(self) -> int:
        """登録中のコールバック数"""
        return len(self._callbacks)

    def schedule(self, callback: Callable[[], None], interval_sec: float) -> int:
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive: {interval_sec}")
        handle = next(self._handles)
        self._callbacks[handle] = _ScheduledCallback(
            callback=callback,
            interval_sec=interval_sec,
            next_due=self._monotonic() + interval_sec,
        )
        return handle

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def run_pending(self) -> int:
        """
        期限が到来したコールバックを実行

        遅延して複数周期分が経過していても1回だけ実行する（ティックは再描画専用のため）。

        Returns:
            int: 実行したコールバック数
        """
        now = self._monotonic()
        fired = 0
        # コールバック内でcancelされる可能性があるためコピーして走査
        for handle, scheduled in list(self._callbacks.items()):
            if handle not in self._callbacks or scheduled.next_due > now:
                continue
            while scheduled.next_due <= now:
                scheduled.next_due += scheduled.interval_sec
            scheduled.callback()
            fired += 1
        return fired


class RefreshTicker:
    """
    発話中のみ動作する再描画ティック

    ハンドルは発話中の間だけ保持され、待機中に戻った時点で即座に解除される。
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval_sec: float,
        on_tick: Callable[[], None],
    ) -> None:
        self.scheduler = scheduler
        self.interval_sec = interval_sec
        self.on_tick = on_tick
        self.handle: int | None = None

    @property
    def is_running(self) -> bool:
        return self.handle is not None

    def sync(self, is_active: bool) -> None:
        """発話状態に合わせてティックを開始/停止"""
        if is_active and self.handle is None:
            self.handle = self.scheduler.schedule(self.on_tick, self.interval_sec)
        elif not is_active:
            self.cancel()

    def cancel(self) -> None:
        """ティックを停止（停止済みなら何もしない）"""
        if self.handle is not None:
            self.scheduler.cancel(self.handle)
            self.handle = None
