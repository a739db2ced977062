#!/usr/bin/env python3
"""
Talk Tally - CLI View
CLIのView層：Signal購読とコンソール表示の統合管理
"""

import re
import sys
from collections import deque

import wcwidth  # type: ignore[import-untyped]
from colorama import Fore, Style  # type: ignore[import-untyped]

from talk_tally import __version__
from talk_tally.domain import (
    MessageLevel,
    MessagePostedEvent,
    SessionResetEvent,
    SessionTickedEvent,
    Settings,
    SpeakerChangedEvent,
    format_duration,
    message_posted,
    session_reset,
    session_ticked,
    speaker_changed,
)
from talk_tally.infrastructure.persistence.json_exporter import split_environment
from talk_tally.presentation.app import TalkTallyApp

from .input_handler import KeyAction, KeyBindings

# 画面クリア（カーソルを左上へ移動して以降を消去）
_CLEAR_SCREEN = "\033[H\033[J"

# 名前・役割列の表示幅
_NAME_COLUMN_WIDTH = 20
_ROLE_COLUMN_WIDTH = 14


class CLIView:
    """
    CLI View層

    責務:
    - Signalサブスクリプションとイベント駆動表示
    - ダッシュボード（参加者ごとの合計・直近ログ・メッセージ）の描画
    - 全角文字を考慮した列揃え
    """

    # ANSIエスケープコード削除用パターン（コンパイル済み）
    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    def __init__(self, settings: Settings, verbose: bool = False) -> None:
        """
        CLIViewの初期化とSignalサブスクリプション設定

        Args:
            settings: アプリケーション設定
            verbose: DEBUGメッセージを表示するかどうか
        """
        self.settings = settings
        self.verbose = verbose
        self.interactive = sys.stdout.isatty()
        self.messages: deque[MessagePostedEvent] = deque(
            maxlen=settings.app.max_messages
        )

        self._app: TalkTallyApp | None = None
        self._bindings: KeyBindings | None = None

        # Signalサブスクリプション設定
        speaker_changed.connect(self._on_speaker_changed)
        session_ticked.connect(self._on_session_ticked)
        session_reset.connect(self._on_session_reset)
        message_posted.connect(self._on_message_posted)

    # ========== Signalハンドラ ==========

    def _on_speaker_changed(self, _sender: object, event: SpeakerChangedEvent) -> None:
        """発話者切り替え時の再描画ハンドラ"""
        self.render()

    def _on_session_ticked(self, _sender: object, event: SessionTickedEvent) -> None:
        """ティック時の再描画ハンドラ（端末出力時のみ）"""
        if self.interactive:
            self.render()

    def _on_session_reset(self, _sender: object, event: SessionResetEvent) -> None:
        """リセット時の再描画ハンドラ"""
        self.render()

    def _on_message_posted(self, _sender: object, event: MessagePostedEvent) -> None:
        """ステータスメッセージ表示ハンドラ"""
        if event.level == MessageLevel.DEBUG and not self.verbose:
            return
        if self._app is None or not self.interactive:
            # ダッシュボード表示前・非端末出力時はそのまま出力
            self._write(self._format_message(event) + "\n")
            return
        self.messages.append(event)
        self.render()

    # ========== ライフサイクル制御 ==========

    def start(self, app: TalkTallyApp, bindings: KeyBindings) -> None:
        """
        ダッシュボード表示を開始

        Args:
            app: TalkTallyAppインスタンス
            bindings: キー割り当て
        """
        self._app = app
        self._bindings = bindings
        self.render()

    def stop(self) -> None:
        """ダッシュボード表示を停止"""
        self._app = None
        self._bindings = None
        self._write(Style.RESET_ALL + "\n")

    # ========== 表示メソッド ==========

    def render(self) -> None:
        """ダッシュボードを描画"""
        if self._app is None or self._bindings is None:
            return

        lines = self._build_dashboard(self._app, self._bindings)
        prefix = _CLEAR_SCREEN if self.interactive else ""
        self._write(prefix + "\n".join(lines) + "\n")

    def show_prompt(self, prompt: str) -> None:
        """確認プロンプトを表示"""
        self._write(f"{Fore.YELLOW}{prompt}{Style.RESET_ALL} ")

    def show_banner(self) -> None:
        """起動バナーを表示"""
        # バージョン文字列の表示：.dev以降をカット
        version_display = (
            __version__.split(".dev")[0] if ".dev" in __version__ else __version__
        )
        state_file = self.settings.storage.state_file
        export_dir = self.settings.export.output_dir
        tick = self.settings.session.tick_interval_sec

        banner = f"""
{Fore.CYAN}╔══════════════════════════════════════════╗
║       Talk Tally v{version_display:<21}  ║
║  Speaking-time Tracker                   ║
╚══════════════════════════════════════════╝{Style.RESET_ALL}

{Fore.YELLOW}Config:{Style.RESET_ALL}
  - State file: {state_file}
  - Export dir: {export_dir}
  - Refresh: {tick}s

"""
        self._write(banner)

    def _build_dashboard(self, app: TalkTallyApp, bindings: KeyBindings) -> list[str]:
        """ダッシュボードの各行を構築"""
        state = app.state
        active_id = state.active.active_participant_id

        title = f"{Fore.CYAN}Talk Tally{Style.RESET_ALL}"
        lines = [f"{title}  {self._status_text(app)}", ""]

        # 参加者テーブル
        header = (
            f"  {'Key':<5}{self._pad('Name', _NAME_COLUMN_WIDTH)}"
            f"{self._pad('Role', _ROLE_COLUMN_WIDTH)}Total"
        )
        lines.append(f"{Style.DIM}{header}{Style.RESET_ALL}")
        for participant in state.directory:
            key = bindings.key_for(participant.id)
            key_label = f"[{key}]" if key else "   "
            total = format_duration(app.total_for(participant.id))
            row = (
                f"  {key_label:<5}"
                f"{self._pad(participant.name, _NAME_COLUMN_WIDTH)}"
                f"{self._pad(participant.role, _ROLE_COLUMN_WIDTH)}{total}"
            )
            if participant.id == active_id:
                row = f"{Fore.GREEN}{row}  ● speaking{Style.RESET_ALL}"
            lines.append(row)

        combined = format_duration(app.combined_total())
        label = self._pad("Combined", _NAME_COLUMN_WIDTH + _ROLE_COLUMN_WIDTH)
        lines.append(f"  {'':<5}{label}{Style.BRIGHT}{combined}{Style.RESET_ALL}")

        # 直近ログ（新しい順）
        max_logs = self.settings.app.max_recent_logs
        if max_logs and len(state.ledger) > 0:
            lines += [
                "",
                f"{Fore.YELLOW}Recent intervals (newest first):{Style.RESET_ALL}",
            ]
            for entry in state.ledger.entries[:max_logs]:
                start = entry.start_time.astimezone().strftime("%H:%M:%S")
                end = entry.end_time.astimezone().strftime("%H:%M:%S")
                name = state.directory.name_for(entry.participant_id)
                lines.append(
                    f"  {start} → {end}  {self._pad(name, _NAME_COLUMN_WIDTH)}"
                    f"{format_duration(entry.duration_seconds)}"
                )

        environment = split_environment(state.surroundings)
        if environment:
            lines += [
                "",
                f"{Fore.YELLOW}Environment:{Style.RESET_ALL} {', '.join(environment)}",
            ]

        if self.messages:
            lines.append("")
            lines += [self._format_message(m) for m in self.messages]

        lines += ["", self._help_text(app, bindings)]
        return lines

    def _status_text(self, app: TalkTallyApp) -> str:
        """発話状態の表示テキスト"""
        active = app.state.active
        if not active.is_active:
            return f"{Style.DIM}○ Idle{Style.RESET_ALL}"
        name = app.state.directory.name_for(active.active_participant_id)
        return f"{Fore.RED}● Speaking: {name}{Style.RESET_ALL}"

    def _help_text(self, app: TalkTallyApp, bindings: KeyBindings) -> str:
        """キー操作のヘルプ"""
        keys = [bindings.key_for(p.id) for p in app.state.directory]
        bound = [k for k in keys if k]
        parts = []
        if bound:
            key_range = bound[0] if len(bound) == 1 else f"{bound[0]}-{bound[-1]}"
            parts.append(f"[{key_range}] toggle")
        for action, label in (
            (KeyAction.EXPORT, "export"),
            (KeyAction.RESET, "reset"),
            (KeyAction.QUIT, "quit"),
        ):
            key = bindings.key_for_action(action)
            if key:
                parts.append(f"[{key}] {label}")
        return f"{Style.DIM}{'  '.join(parts)}{Style.RESET_ALL}"

    def _format_message(self, event: MessagePostedEvent) -> str:
        """メッセージレベルに応じた色で整形"""
        color_map = {
            MessageLevel.DEBUG: Style.DIM,
            MessageLevel.INFO: Fore.CYAN,
            MessageLevel.SUCCESS: Fore.GREEN,
            MessageLevel.WARNING: Fore.YELLOW,
            MessageLevel.ERROR: Fore.RED,
        }
        color = color_map.get(event.level, Fore.WHITE)
        time_str = event.timestamp.strftime("%H:%M:%S")
        return f"{color}[{time_str}] {event.message}{Style.RESET_ALL}"

    def _write(self, text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    # ========== フォーマッティングメソッド ==========

    def _get_display_width(self, text: str) -> int:
        """ANSIエスケープコードを除いた実際の表示幅を取得"""
        plain_text = self._ANSI_ESCAPE_PATTERN.sub("", text)
        return max(0, int(wcwidth.wcswidth(plain_text)))

    def _pad(self, text: str, width: int) -> str:
        """表示幅に合わせて右側を空白で埋める（はみ出す場合は切り詰め）"""
        text = self._truncate_text(text, width - 1)
        return text + " " * max(0, width - self._get_display_width(text))

    def _truncate_text(self, text: str, max_width: int) -> str:
        """テキストを指定された表示幅に切り詰める（末尾に…を付ける）"""
        if self._get_display_width(text) <= max_width:
            return text

        width = 0
        for i, char in enumerate(text):
            char_width = max(0, wcwidth.wcwidth(char))
            if width + char_width > max_width - 1:
                return text[:i] + "…"
            width += char_width
        return text
