#!/usr/bin/env python3
"""
Talk Tally - Input Handler
プレゼンテーション層：キー入力の読み取りとキー割り当て
"""

import select
import sys
import termios
import tty
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from typing import TextIO

from talk_tally.domain import KeyboardSettings

# 端末のEOT（Ctrl-D）。cbreakモードでは文字として届く
_EOT = "\x04"


class KeyAction(Enum):
    """キー入力によって発生するアクション"""

    TOGGLE = auto()
    EXPORT = auto()
    RESET = auto()
    QUIT = auto()


@dataclass(frozen=True)
class KeyCommand:
    """解決済みのキー操作"""

    action: KeyAction
    participant_id: int | None = None


class KeyBindings:
    """
    キー → 操作 の対応表

    参加者キーは参加者ディレクトリの並び順に割り当てる。
    キーが足りない場合、余った参加者はキー操作できない。
    """

    def __init__(self, keyboard: KeyboardSettings, participant_ids: Iterable[int]):
        self._commands: dict[str, KeyCommand] = {
            key: KeyCommand(KeyAction.TOGGLE, participant_id)
            for key, participant_id in zip(keyboard.participant_keys, participant_ids)
        }
        self._commands[keyboard.export_key] = KeyCommand(KeyAction.EXPORT)
        self._commands[keyboard.reset_key] = KeyCommand(KeyAction.RESET)
        self._commands[keyboard.quit_key] = KeyCommand(KeyAction.QUIT)

    def resolve(self, key: str) -> KeyCommand | None:
        """キーに対応する操作（未割り当てならNone）"""
        return self._commands.get(key)

    def key_for(self, participant_id: int) -> str | None:
        """参加者に割り当てられたキー"""
        for key, command in self._commands.items():
            if (
                command.action is KeyAction.TOGGLE
                and command.participant_id == participant_id
            ):
                return key
        return None

    def key_for_action(self, action: KeyAction) -> str | None:
        for key, command in self._commands.items():
            if command.action is action:
                return key
        return None


class TerminalKeyReader:
    """
    端末からの1キー入力リーダー

    責務:
    - 端末をcbreakモードに切り替え（Enter不要で1文字ずつ読む）
    - タイムアウト付きの入力待ち
    - Ctrl-D (EOF) の検出
    """

    def __init__(self, stream: TextIO = sys.stdin) -> None:
        self.stream = stream

    @contextmanager
    def raw_mode(self) -> Iterator[None]:
        """端末をcbreakモードにし、終了時に元に戻す（端末でなければ何もしない）"""
        if not self.stream.isatty():
            yield
            return

        fd = self.stream.fileno()
        original = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            yield
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, original)

    def read_key(self, timeout_sec: float) -> str | None:
        """
        1キー読み取る

        Args:
            timeout_sec: 入力待ちの最大秒数

        Returns:
            str | None: 入力されたキー（タイムアウト時はNone）

        Raises:
            EOFError: Ctrl-D または入力の終端
        """
        ready, _, _ = select.select([self.stream], [], [], timeout_sec)
        if not ready:
            return None

        key = self.stream.read(1)
        if not key or key == _EOT:
            raise EOFError
        return key
