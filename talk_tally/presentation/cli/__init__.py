#!/usr/bin/env python3
"""
Talk Tally - CLI Presentation
CLIプレゼンテーション層
"""

# CLIコントローラー
from .controller import CLIController

# CLIビュー
from .view import CLIView

# キー入力
from .input_handler import KeyBindings, TerminalKeyReader

# CLIエントリーポイント
from .main import main

__all__ = [
    # コントローラー
    "CLIController",
    # ビュー
    "CLIView",
    # キー入力
    "KeyBindings",
    "TerminalKeyReader",
    # エントリーポイント
    "main",
]
