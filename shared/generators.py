"""
Random challenge text and secret generators.

All generators use cryptographically secure sources (``secrets`` module):
the challenge text is the answer to a captcha and client secrets are
credentials, so a general-purpose PRNG is never acceptable here.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterable, Iterator
from random import Random
from typing import TYPE_CHECKING, Optional

from errors import InvalidConfigurationError
from shared.character_range import expand_character_range

if TYPE_CHECKING:
    from config import CaptchaSettings


class ChallengeTextGenerator(Iterator[str]):
    """Endless stream of random fixed-length strings over a character set.

    Each call to :meth:`next` draws ``length`` independent, uniformly random
    characters (with replacement). The generator is also a Python iterator,
    so ``next(generator)`` and ``itertools.islice`` work as expected.
    """

    def __init__(
        self,
        length: int,
        characters: Iterable[str],
        random_source: Optional[Random] = None,
    ) -> None:
        if length <= 0:
            raise InvalidConfigurationError(
                "Length must be greater than zero.", field="captcha_length"
            )
        alphabet = tuple(sorted(set(characters)))
        if not alphabet:
            raise InvalidConfigurationError(
                "Character set must contain at least one character.",
                field="captcha_character_range",
            )
        self.length = length
        self.alphabet = alphabet
        self._random = random_source if random_source is not None else secrets.SystemRandom()

    @classmethod
    def from_settings(cls, settings: "CaptchaSettings") -> "ChallengeTextGenerator":
        """Build a generator from CAPTCHA_LENGTH and CAPTCHA_CHARACTER_RANGE."""
        return cls(
            settings.captcha_length,
            expand_character_range(settings.captcha_character_range),
        )

    def next(self) -> str:
        """Generate a new random string."""
        return "".join(self._random.choice(self.alphabet) for _ in range(self.length))

    def __next__(self) -> str:
        return self.next()

    def __iter__(self) -> "ChallengeTextGenerator":
        return self


def generate_client_secret(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe client secret.

    Args:
        length: Number of random bytes before base64 encoding (default 32).
            The resulting string will be longer than *length* characters.
    """
    return secrets.token_urlsafe(length)
