import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

LEET_TABLE = str.maketrans(
    {
        "@": "a",
        "4": "a",
        "8": "b",
        "(": "c",
        "3": "e",
        "1": "i",
        "!": "i",
        "|": "i",
        "0": "o",
        "5": "s",
        "$": "s",
        "7": "t",
    }
)

NON_ALPHA = re.compile(r"[^a-z]")


def normalize(token: str) -> str:
    """Lower-case, undo leetspeak and keep only a-z."""
    return NON_ALPHA.sub("", token.lower().translate(LEET_TABLE))


class ProfanityFilter:
    """
    Token based blocklist matcher.

    Text is split on whitespace and every token is normalized before an exact
    lookup in the blocklist. There is no substring or fuzzy matching, so
    "classic" is never flagged for containing "ass".
    """

    def __init__(self, words: Iterable[str]):
        self.words = frozenset(normalize(word) for word in words if normalize(word))

    def is_profane_token(self, token: str) -> bool:
        return normalize(token) in self.words

    def is_profane(self, text: str) -> bool:
        return any(self.is_profane_token(token) for token in text.split())

    def clean(self, text: str) -> str:
        """Mask profane tokens with asterisks the length of the original token."""
        return " ".join(
            "*" * len(token) if self.is_profane_token(token) else token
            for token in text.split()
        )


def load_words(path: Optional[str]) -> list:
    """Read extra blocklist words from a file, one per line; '#' starts a comment."""
    if not path:
        return []

    with open(path, encoding="utf-8") as handle:
        words = [line.split("#", 1)[0].strip() for line in handle]

    words = [word for word in words if word]
    logger.info(f"blocklist_loaded path={path} words={len(words)}")
    return words
