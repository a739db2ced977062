#!/usr/bin/env python3
"""
Talk Tally - Presentation Layer
プレゼンテーション層：UI、アプリケーションロジック
"""

# コアアプリケーション
from .app import TalkTallyApp

__all__ = [
    # コアアプリケーション
    "TalkTallyApp",
]
