#!/usr/bin/env python3
"""
Talk Tally - Core Application
プレゼンテーション層：TalkTallyAppコアロジック（UI非依存）
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from talk_tally.domain import (
    MessageLevel,
    SessionResetEvent,
    SessionState,
    SessionTickedEvent,
    Settings,
    SpeakerChangedEvent,
    TimerEngine,
    combined_total,
    post_message,
    session_reset,
    session_ticked,
    speaker_changed,
    total_for,
    utc_now,
)
from talk_tally.infrastructure.persistence import (
    SessionJsonExporter,
    SessionStateStore,
)
from talk_tally.infrastructure.scheduling import RefreshTicker, Scheduler


class TalkTallyApp:
    """
    Talk Tally共通コアアプリケーション

    責務:
    - セッション状態の復元と所有
    - TimerEngine・永続化・ティックの配線
    - セッションのライフサイクル管理（セットアップ / リセット / 終了）

    Note:
    - イベント駆動アーキテクチャを採用（blinker使用）
    - 状態変更の度に全フィールドのスナップショットを保存する
    - UI層は各Signalを直接subscribeして表示を行う
    """

    def __init__(
        self,
        store: SessionStateStore,
        scheduler: Scheduler,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        TalkTallyAppの初期化

        Args:
            store: セッション状態ストア
            scheduler: 再描画ティック用スケジューラ
            settings: アプリケーション設定
            clock: 現在時刻（UTC）を返す関数
        """
        self.settings = settings
        self.store = store
        self.clock = clock

        # 1. セッション状態の復元（失敗時はデフォルト）
        self.state: SessionState = store.load()

        # 2. TimerEngine初期化
        self.engine = TimerEngine(self.state.active, self.state.ledger, clock=clock)

        # 3. ティック初期化（発話中の状態で復元された場合は即座に開始）
        self.ticker = RefreshTicker(
            scheduler=scheduler,
            interval_sec=settings.session.tick_interval_sec,
            on_tick=self._on_tick,
        )
        self._sync_ticker()

        # 4. イベントサブスクリプション設定（Pub/Sub）
        speaker_changed.connect(self._on_speaker_changed)

    # ========== イベントハンドラ（Pub/Sub） ==========

    def _on_speaker_changed(self, sender: object, event: SpeakerChangedEvent) -> None:
        """
        発話者切り替え時のイベントハンドラ

        自身のTimerEngineからのイベントのみ処理する:
        1. スナップショット保存
        2. ティックの開始/停止

        Args:
            sender: イベント送信元のTimerEngine
            event: SpeakerChangedEvent
        """
        if sender is not self.engine:
            return
        self.store.save(self.state)
        self._sync_ticker()

    def _sync_ticker(self) -> None:
        """発話中（開始時刻あり）の間だけティックを動かす"""
        active = self.state.active
        self.ticker.sync(active.is_active and active.is_consistent)

    def _on_tick(self) -> None:
        """ティック（再描画要求のみ、状態は変更しない）"""
        session_ticked.send(self, event=SessionTickedEvent(timestamp=self.clock()))

    # ========== 発話操作 ==========

    def toggle(self, participant_id: int) -> bool:
        """
        参加者の発話状態を切り替える

        Args:
            participant_id: 参加者ID

        Returns:
            bool: 切り替えた場合True（未知の参加者IDならFalse）
        """
        if participant_id not in self.state.directory:
            post_message(
                f"Unknown participant id: {participant_id}", MessageLevel.WARNING
            )
            return False
        self.engine.toggle(participant_id)
        return True

    def total_for(self, participant_id: int) -> int:
        """参加者の合計発話秒数（発話中の区間を含む）"""
        return total_for(
            self.state.ledger, self.state.active, participant_id, self.clock()
        )

    def combined_total(self) -> int:
        """全参加者の合計発話秒数（発話中の区間を含む）"""
        return combined_total(self.state.ledger, self.state.active, self.clock())

    # ========== セットアップ ==========

    def rename_participant(self, participant_id: int, name: str) -> bool:
        """参加者名を変更して保存"""
        if not self.state.directory.rename(participant_id, name):
            post_message(
                f"Cannot rename participant {participant_id} to {name!r}",
                MessageLevel.WARNING,
            )
            return False
        self.store.save(self.state)
        return True

    def set_environment(self, text: str) -> None:
        """環境メモ（改行区切り）を設定して保存"""
        self.state.surroundings = text
        self.store.save(self.state)

    def set_dark_mode(self, enabled: bool) -> None:
        """ダークモード設定を保存（UI専用）"""
        self.state.dark_mode = enabled
        self.store.save(self.state)

    def complete_setup(self) -> None:
        """セットアップ完了を記録して保存"""
        self.state.setup_done = True
        self.store.save(self.state)

    # ========== エクスポート ==========

    def build_export(self) -> dict[str, Any]:
        """エクスポート文書を構築"""
        return SessionJsonExporter.build_export(
            self.state.directory, self.state.ledger, self.state.surroundings
        )

    def export(self, output_dir: Path | None = None) -> Path:
        """
        エクスポート文書をファイルに保存

        Args:
            output_dir: 出力ディレクトリ（Noneの場合は設定値）

        Returns:
            Path: 保存されたファイルのパス

        Raises:
            OSError: ファイル書き込みに失敗した場合
        """
        output_path = SessionJsonExporter.save_to_file(
            self.build_export(),
            output_dir=output_dir or self.settings.export.output_dir,
            exported_at=self.clock(),
            indent=self.settings.export.indent,
        )
        post_message(f"Session exported to: {output_path}", MessageLevel.SUCCESS)
        return output_path

    # ========== セッション管理 ==========

    def reset(self) -> None:
        """
        セッションのリセット（保存データ消去 + 初期状態に戻す）

        Note: 発話中の区間はログに確定せず破棄する
        """
        self.ticker.cancel()
        discarded = self.engine.reset()
        self.store.clear()

        self.state = self.store.default_state()
        self.engine = TimerEngine(
            self.state.active, self.state.ledger, clock=self.clock
        )

        session_reset.send(
            self, event=SessionResetEvent(discarded_participant_id=discarded)
        )
        post_message("Session reset", MessageLevel.SUCCESS)

    def shutdown(self) -> None:
        """
        セッションの終了処理（ティック停止 + 保存）

        Note: 発話中の区間は閉じずに保存し、次回起動時に継続する
        """
        self.ticker.cancel()
        self.store.save(self.state)
