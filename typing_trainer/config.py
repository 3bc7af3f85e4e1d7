from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .passages import BUILTIN_PASSAGES, DEFAULT_LANGUAGE
from .session import DEFAULT_DURATION_S

logger = logging.getLogger(__name__)

LANGUAGE_ENV = "TYPING_TRAINER_LANGUAGE"
DURATION_ENV = "TYPING_TRAINER_DURATION"
TESTER_ENV = "TYPING_TRAINER_TESTER"
PASSAGES_PATH_ENV = "TYPING_TRAINER_PASSAGES_PATH"
LIVE_UPDATES_ENV = "TYPING_TRAINER_LIVE_UPDATES"
LOG_LEVEL_ENV = "TYPING_TRAINER_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class TrainerConfig:
    language: str = DEFAULT_LANGUAGE
    duration_s: int = DEFAULT_DURATION_S
    tester_id: str | None = None
    passages_path: Path | None = None
    live_updates: bool = True
    log_level: str = "INFO"


@dataclass(frozen=True, slots=True)
class PassageCatalog:
    default_language: str
    languages: dict[str, tuple[str, ...]]


_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _env_flag(environ: dict[str, str], key: str, fallback: bool) -> bool:
    raw = environ.get(key, "").strip().lower()
    if raw == "":
        return fallback
    return raw not in _FALSE_VALUES


def _env_positive_int(environ: dict[str, str], key: str, fallback: int) -> int:
    raw = environ.get(key, "").strip()
    if raw == "":
        return fallback
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", key, raw)
        return fallback
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be > 0", key, raw)
        return fallback
    return value


def load_config(environ: dict[str, str] | None = None) -> TrainerConfig:
    """Build the trainer configuration from ``TYPING_TRAINER_*`` variables."""

    env = dict(os.environ) if environ is None else environ
    raw_path = env.get(PASSAGES_PATH_ENV, "").strip()
    tester = env.get(TESTER_ENV, "").strip()
    return TrainerConfig(
        language=env.get(LANGUAGE_ENV, "").strip() or DEFAULT_LANGUAGE,
        duration_s=_env_positive_int(env, DURATION_ENV, DEFAULT_DURATION_S),
        tester_id=tester or None,
        passages_path=Path(raw_path).expanduser() if raw_path else None,
        live_updates=_env_flag(env, LIVE_UPDATES_ENV, True),
        log_level=env.get(LOG_LEVEL_ENV, "").strip().upper() or "INFO",
    )


def builtin_catalog() -> PassageCatalog:
    return PassageCatalog(default_language=DEFAULT_LANGUAGE, languages=dict(BUILTIN_PASSAGES))


def load_passage_catalog(path: Path | None) -> PassageCatalog:
    """Read a JSON passage catalogue, falling back to the built-in passages.

    Expected shape::

        {"version": 1, "default_language": "English",
         "languages": {"English": ["...", "..."], ...}}

    Blank passages and languages left with no passages are dropped. A file that
    is missing, unreadable or has no usable default language is ignored.
    """

    if path is None:
        return builtin_catalog()
    if not path.exists():
        logger.warning("Passage catalogue %s not found, using built-in passages", path)
        return builtin_catalog()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read passage catalogue %s: %s", path, exc)
        return builtin_catalog()
    if not isinstance(payload, dict):
        logger.warning("Passage catalogue %s is not a JSON object", path)
        return builtin_catalog()

    raw_languages = payload.get("languages")
    if not isinstance(raw_languages, dict):
        logger.warning("Passage catalogue %s has no 'languages' table", path)
        return builtin_catalog()

    languages: dict[str, tuple[str, ...]] = {}
    for tag, items in raw_languages.items():
        if not isinstance(items, list):
            continue
        passages = tuple(str(p).strip() for p in items if str(p).strip() != "")
        name = str(tag).strip()
        if name and passages:
            languages[name] = passages

    default_language = str(payload.get("default_language", DEFAULT_LANGUAGE)).strip()
    if default_language not in languages:
        logger.warning("Passage catalogue %s has no passages for %r", path, default_language)
        return builtin_catalog()
    return PassageCatalog(default_language=default_language, languages=languages)
