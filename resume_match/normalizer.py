"""
Text Normalizer

Turns resume and job-description text into comparable keyword sets.
Deterministic: the same text always produces the same TokenSet.
"""

import logging
import re
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from .config import DEFAULT_STOP_WORDS, KEYWORD_ALIASES, MIN_KEYWORD_LENGTH
from .errors import EmptyInputError

logger = logging.getLogger(__name__)

TokenSet = Tuple[str, ...]

# Runs of letters and digits; punctuation and underscores split tokens
_WORD_RE = re.compile(r"[^\W_]+")


class TextNormalizer:
    """
    Read-only keyword extractor.

    The stop-word list and alias table are fixed at construction, so one
    instance can be shared by concurrent analyses.
    """

    def __init__(
        self,
        stop_words: Optional[Iterable[str]] = None,
        aliases: Optional[Mapping[str, str]] = None,
        min_length: int = MIN_KEYWORD_LENGTH,
    ):
        if stop_words is None:
            stop_words = DEFAULT_STOP_WORDS
        if aliases is None:
            aliases = KEYWORD_ALIASES
        self._stop_words = frozenset(w.lower() for w in stop_words)
        self._aliases = MappingProxyType({k.lower(): v.lower() for k, v in aliases.items()})
        self._min_length = min_length

    @property
    def stop_words(self) -> frozenset:
        return self._stop_words

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    @property
    def min_length(self) -> int:
        return self._min_length

    def _accept(self, token: str, min_length: int) -> bool:
        return (
            len(token) >= min_length
            and not token.isdigit()
            and token not in self._stop_words
        )

    def tokens(self, text: Optional[str], min_length: Optional[int] = None) -> TokenSet:
        """Extract keywords, returning an empty TokenSet instead of raising."""
        if not text:
            return ()
        min_length = self._min_length if min_length is None else min_length

        seen = set()
        result = []
        for word in _WORD_RE.findall(text.lower()):
            # Filters apply to the alias target, not the raw variant
            word = self._aliases.get(word, word)
            if word in seen or not self._accept(word, min_length):
                continue
            seen.add(word)
            result.append(word)
        return tuple(result)

    def normalize(self, text: Optional[str], min_length: Optional[int] = None) -> TokenSet:
        """
        Normalize text into an ordered, duplicate-free keyword tuple.

        Args:
            text: Raw resume or job-description text
            min_length: Override for the minimum token length

        Returns:
            Keywords in first-seen order

        Raises:
            EmptyInputError: If the text is empty or no keyword survives filtering
        """
        tokens = self.tokens(text, min_length)
        if not tokens:
            raise EmptyInputError("No keywords found in text")
        logger.debug(f"Normalized {len(text)} chars into {len(tokens)} keywords")
        return tokens


DEFAULT_NORMALIZER = TextNormalizer()


def normalize(text: Optional[str], min_length: int = MIN_KEYWORD_LENGTH) -> TokenSet:
    """Normalize text with the default stop words and aliases."""
    return DEFAULT_NORMALIZER.normalize(text, min_length)
