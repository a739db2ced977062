#!/usr/bin/env python3
"""
Talk Tally - CLI Main Entry Point
CLIアプリケーションのエントリーポイント
"""

import argparse
import sys
import tomllib
from pathlib import Path

from colorama import Fore, Style  # type: ignore[import-untyped]
from colorama import init as colorama_init
from pydantic import ValidationError

from talk_tally.infrastructure.config import load_settings

from .controller import CLIController


def _parse_rename(value: str) -> tuple[int, str]:
    """ID=NAME 形式の引数を解析する"""
    participant_id, sep, name = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected ID=NAME, got {value!r}")
    try:
        return int(participant_id), name.strip()
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"participant id must be an integer, got {participant_id!r}"
        ) from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI引数を解析する"""
    parser = argparse.ArgumentParser(
        prog="talk-tally",
        description="Track speaking time across session participants",
    )
    parser.add_argument(
        "-n",
        "--rename",
        type=_parse_rename,
        action="append",
        default=[],
        metavar="ID=NAME",
        help="Rename a participant before the session starts (repeatable)",
    )
    parser.add_argument(
        "--env",
        action="append",
        default=None,
        metavar="LINE",
        help="Environment/object note for the export (repeatable)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Read environment notes from a file (one per line)",
    )
    parser.add_argument(
        "--export",
        action="store_true",
        help="Write the session export JSON and exit",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear all session data and exit",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation when resetting",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Session state file (overrides storage.state_file)",
    )
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep session state in memory only",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show diagnostic messages",
    )
    return parser.parse_args(argv)


def _environment_lines(args: argparse.Namespace) -> list[str] | None:
    """--env と --env-file から環境メモを集める（どちらもなければNone）"""
    if args.env is None and args.env_file is None:
        return None
    lines = list(args.env or [])
    if args.env_file is not None:
        lines += args.env_file.read_text(encoding="utf-8").splitlines()
    return lines


def main(argv: list[str] | None = None) -> None:
    """エントリーポイント"""
    # CLI引数解析
    args = parse_args(argv)

    # colorama初期化
    colorama_init(autoreset=True)

    # 設定読み込み（不正な設定は起動時エラー）
    try:
        settings = load_settings()
    except (ValidationError, tomllib.TOMLDecodeError) as e:
        print(f"{Fore.RED}Invalid configuration:{Style.RESET_ALL}\n{e}")
        sys.exit(1)

    if args.state_file is not None:
        settings.storage.state_file = args.state_file

    try:
        environment_lines = _environment_lines(args)
    except OSError as e:
        print(f"{Fore.RED}Cannot read environment file: {e}{Style.RESET_ALL}")
        sys.exit(1)

    # CLIController起動
    controller = CLIController(
        settings=settings,
        renames=dict(args.rename),
        environment_lines=environment_lines,
        persist=not args.no_persist,
        verbose=args.verbose,
    )

    # リセットのみ実行モード
    if args.reset:
        controller.reset_only(assume_yes=args.yes)
        return

    # エクスポートのみ実行モード
    if args.export:
        controller.setup()
        try:
            controller.export_only()
        except OSError as e:
            print(f"{Fore.RED}Export failed: {e}{Style.RESET_ALL}")
            sys.exit(1)
        return

    controller.run()


if __name__ == "__main__":
    main()
