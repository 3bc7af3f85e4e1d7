from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from .typing_core import SeededRng

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "English"

BUILTIN_PASSAGES: dict[str, tuple[str, ...]] = {
    "English": (
        "Typing quickly is an essential skill.",
        "Typing practice improves your speed and accuracy.",
        "Java is a versatile and popular programming language.",
        "Consistent practice leads to mastery.",
        "Learning Java opens doors to various opportunities.",
    ),
    "Kazakh": (
        "Жылдам теру дағдыларыңызды дамыту маңызды.",
        "Жазу практикасы жылдамдығыңыз бен дәлдігіңізді жақсартады.",
        "Java - әмбебап және танымал бағдарламалау тілі.",
        "Үздіксіз практика шеберлікке жетелейді.",
        "Java-ны үйрену түрлі мүмкіндіктерге жол ашады.",
    ),
    "Russian": (
        "Быстрая печать помогает развивать навыки.",
        "Практика печати улучшает вашу скорость и точность.",
        "Java - универсальный и популярный язык программирования.",
        "Постоянная практика приводит к мастерству.",
        "Изучение Java открывает новые возможности.",
    ),
}


class PassageProvider:
    """Picks target passages per language.

    Unknown languages fall back to the default language's pool. Empty pools
    and empty passages are configuration errors and fail at construction.
    """

    def __init__(
        self,
        rng: SeededRng,
        *,
        passages: Mapping[str, Sequence[str]] | None = None,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        source = BUILTIN_PASSAGES if passages is None else passages
        pools: dict[str, tuple[str, ...]] = {}
        for language, pool in source.items():
            items = tuple(str(p) for p in pool)
            if not items:
                raise ValueError(f"passage pool for {language!r} is empty")
            if any(p == "" for p in items):
                raise ValueError(f"passage pool for {language!r} contains an empty passage")
            pools[str(language)] = items
        if default_language not in pools:
            raise ValueError(f"default language {default_language!r} has no passages")

        self._rng = rng
        self._pools = pools
        self._default_language = default_language

    @property
    def default_language(self) -> str:
        return self._default_language

    def languages(self) -> list[str]:
        return list(self._pools)

    def resolve(self, language: str) -> str:
        """Return the registered language actually used for ``language``."""

        if language in self._pools:
            return language
        return self._default_language

    def fetch(self, language: str) -> str:
        resolved = self.resolve(language)
        if resolved != language:
            logger.info("No passages for %r, falling back to %r", language, resolved)
        return self._rng.choice(self._pools[resolved])
