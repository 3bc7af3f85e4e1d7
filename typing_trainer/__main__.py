from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    If this module is executed as a script (``python typing_trainer/__main__.py``),
    the package may not be discoverable by Python. This helper inserts the
    parent directory of the package into ``sys.path`` so that imports resolve
    correctly.
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root = pkg_dir.parent
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    # Works when executed as a module: python -m typing_trainer
    from .app import run  # type: ignore[attr-defined]
    from .config import load_config  # type: ignore[attr-defined]
except ImportError:
    # Works when executed as a script (absolute path, IDE "Run Python File", etc.)
    _ensure_repo_root_on_path()
    from typing_trainer.app import run  # type: ignore[attr-defined]
    from typing_trainer.config import load_config  # type: ignore[attr-defined]


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _positive_seconds(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {raw!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be a positive number of seconds")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="typing-trainer", description="Timed typing speed test.")
    parser.add_argument("--tester", help="tester name to prefill")
    parser.add_argument("--language", help="passage language (unknown tags fall back to the default)")
    parser.add_argument("--duration", type=_positive_seconds, help="test duration in seconds")
    parser.add_argument("--passages", type=Path, help="JSON passage catalogue")
    parser.add_argument("--no-live-wpm", action="store_true", help="only report WPM when a test finishes")
    parser.add_argument("--log-level", help="logging level (default from TYPING_TRAINER_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point for running the trainer from the command line."""
    args = parse_args(argv)
    config = load_config()
    overrides: dict[str, object] = {}
    if args.tester:
        overrides["tester_id"] = args.tester
    if args.language:
        overrides["language"] = args.language
    if args.duration is not None:
        overrides["duration_s"] = args.duration
    if args.passages is not None:
        overrides["passages_path"] = args.passages
    if args.no_live_wpm:
        overrides["live_updates"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    config = dataclasses.replace(config, **overrides)

    setup_logging(config.log_level)
    return run(config=config)


if __name__ == "__main__":
    raise SystemExit(main())
