#!/usr/bin/env python3
"""
Talk Tally - Package Entry Point
python -m talk_tally で実行
"""

from talk_tally.presentation.cli import main

if __name__ == "__main__":
    main()
