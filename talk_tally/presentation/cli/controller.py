#!/usr/bin/env python3
"""
Talk Tally - CLI Controller
CLIアプリケーションのコントローラー層：アプリケーションのライフサイクル管理
"""

import sys
import traceback
from pathlib import Path

from talk_tally.domain import (
    MessageLevel,
    Settings,
    post_message,
)
from talk_tally.infrastructure.persistence import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    SessionStateStore,
)
from talk_tally.infrastructure.scheduling import PollingScheduler
from talk_tally.presentation.app import TalkTallyApp

from .input_handler import KeyAction, KeyBindings, KeyCommand, TerminalKeyReader
from .view import CLIView


class CLIController:
    """
    CLIコントローラー

    責務:
    - 状態ストア・スケジューラの生成
    - App/View初期化と配線
    - セットアップ引数の適用（名前変更・環境メモ）
    - キー入力ループとティックの駆動（シングルスレッド）
    """

    def __init__(
        self,
        settings: Settings,
        renames: dict[int, str] | None = None,
        environment_lines: list[str] | None = None,
        persist: bool = True,
        verbose: bool = False,
    ):
        """
        CLIControllerの初期化

        Args:
            settings: アプリケーション設定
            renames: 参加者ID → 新しい名前
            environment_lines: 環境メモ（Noneの場合は保存済みの値を維持）
            persist: Falseならメモリ上のみで動作（ファイルに保存しない）
            verbose: DEBUGメッセージを表示するかどうか
        """
        self.settings = settings
        self.renames = renames or {}
        self.environment_lines = environment_lines
        self.persist = persist

        self.view = CLIView(settings=settings, verbose=verbose)
        self.scheduler = PollingScheduler()
        self.reader = TerminalKeyReader()

        store = SessionStateStore(
            kv=self._create_kv_store(),
            session_settings=settings.session,
            key_prefix=settings.storage.key_prefix,
        )
        self.app = TalkTallyApp(
            store=store, scheduler=self.scheduler, settings=settings
        )
        self.bindings = self._create_bindings()

    def setup(self) -> None:
        """セットアップ引数を適用してセットアップ完了にする"""
        for participant_id, name in self.renames.items():
            self.app.rename_participant(participant_id, name)
        if self.environment_lines is not None:
            self.app.set_environment("\n".join(self.environment_lines))
        if not self.app.state.setup_done:
            self.app.complete_setup()

    def export_only(self, output_dir: Path | None = None) -> Path:
        """エクスポートのみ実行"""
        return self.app.export(output_dir)

    def reset_only(self, assume_yes: bool) -> bool:
        """
        リセットのみ実行

        Args:
            assume_yes: Trueなら確認せずにリセット

        Returns:
            bool: リセットした場合True
        """
        if not assume_yes:
            self.view.show_prompt("Reset session? All data will be lost. [y/N]")
            try:
                answer = input().strip().lower()
            except EOFError:
                # 入力の終端（パイプ・/dev/null）は拒否として扱う
                answer = ""
            if answer not in ("y", "yes"):
                post_message("Reset cancelled", MessageLevel.INFO)
                return False
        self.app.reset()
        return True

    def run(self) -> None:
        """
        対話セッションを実行

        Raises:
            SystemExit: エラー発生時
        """
        # 1. セットアップ引数の適用
        self.setup()

        # 2. バナー表示とダッシュボード開始
        self.view.show_banner()
        self.view.start(self.app, self.bindings)

        try:
            with self.reader.raw_mode():
                self._event_loop()
            post_message("Goodbye!", MessageLevel.SUCCESS)

        except KeyboardInterrupt:
            # Ctrl-C: 正常終了
            post_message("Goodbye!", MessageLevel.SUCCESS)

        except EOFError:
            # Ctrl-D: 正常終了
            post_message("Exit (Ctrl-D)", MessageLevel.WARNING)

        except Exception as e:
            # エラー時は保存して終了
            self._shutdown()
            post_message(f"Error: {e}", MessageLevel.ERROR)
            traceback.print_exc()
            sys.exit(1)

        self._shutdown()

    def _event_loop(self) -> None:
        """
        キー入力ループ（quitキーで終了）

        Raises:
            KeyboardInterrupt: Ctrl-C が押された場合
            EOFError: Ctrl-D が押された場合
        """
        while True:
            key = self.reader.read_key(self.settings.app.input_poll_interval_sec)
            self.scheduler.run_pending()
            if key is None:
                continue

            command = self.bindings.resolve(key)
            if command is None:
                continue
            if command.action is KeyAction.QUIT:
                return
            self._dispatch(command)

    def _dispatch(self, command: KeyCommand) -> None:
        """キー操作を実行"""
        if command.action is KeyAction.TOGGLE and command.participant_id is not None:
            self.app.toggle(command.participant_id)
        elif command.action is KeyAction.EXPORT:
            try:
                self.app.export()
            except OSError as e:
                post_message(f"Export failed: {e}", MessageLevel.ERROR)
        elif command.action is KeyAction.RESET:
            self._confirm_reset()

    def _confirm_reset(self) -> None:
        """確認キー（y）が押された場合のみリセット"""
        self.view.show_prompt("Reset session? All data will be lost. [y/N]")
        answer = self._wait_for_key()
        if answer.lower() != "y":
            post_message("Reset cancelled", MessageLevel.INFO)
            return

        self.app.reset()
        self.bindings = self._create_bindings()
        self.view.start(self.app, self.bindings)

    def _wait_for_key(self) -> str:
        """次のキー入力を待つ（待機中もティックは継続）"""
        while True:
            key = self.reader.read_key(self.settings.app.input_poll_interval_sec)
            self.scheduler.run_pending()
            if key is not None:
                return key

    def _create_kv_store(self) -> KeyValueStore:
        if not self.persist:
            return InMemoryKeyValueStore()
        return JsonFileKeyValueStore(self.settings.storage.state_file)

    def _create_bindings(self) -> KeyBindings:
        return KeyBindings(self.settings.keyboard, self.app.state.directory.ids())

    def _shutdown(self) -> None:
        """アプリケーションの終了処理"""
        self.app.shutdown()
        self.view.stop()
