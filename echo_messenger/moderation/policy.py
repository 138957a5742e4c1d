"""
Moderation policy applied at each call site that accepts user text.

- usernames and avatars are rejected outright when profane or zalgo
- message bodies are censored when profane and rejected when zalgo
- avatars must also be exactly one grapheme cluster that is an emoji

The profanity filter is built once at import from the built-in blocklist plus
the optional ``BLOCKLIST_FILE`` and is shared read-only by every request.
"""

import logging
from typing import NamedTuple

import emoji
import regex

from echo_messenger.core import config
from echo_messenger.core.errors import InvalidRequest
from .blocklist import DEFAULT_BLOCKLIST
from .profanity import ProfanityFilter, load_words
from .zalgo import is_zalgo

logger = logging.getLogger(__name__)

profanity_filter = ProfanityFilter(
    list(DEFAULT_BLOCKLIST) + load_words(config.BLOCKLIST_FILE)
)


class Classification(NamedTuple):
    profane: bool
    zalgo: bool


def classify(text: str, words: ProfanityFilter = None) -> Classification:
    words = words or profanity_filter
    return Classification(profane=words.is_profane(text), zalgo=is_zalgo(text))


def sanitize(text: str, words: ProfanityFilter = None) -> str:
    return (words or profanity_filter).clean(text)


def count_graphemes(text: str) -> int:
    return len(regex.findall(r"\X", text))


def check_username(username: str) -> str:
    verdict = classify(username)
    if verdict.profane:
        logger.info("username_rejected reason=profane")
        raise InvalidRequest("Username contains inappropriate language.")
    if verdict.zalgo:
        logger.info("username_rejected reason=zalgo")
        raise InvalidRequest("Username contains distorted text.")
    return username


def check_avatar(avatar: str) -> str:
    if not avatar:
        raise InvalidRequest("Emoji is required.")

    if count_graphemes(avatar) != 1 or not emoji.is_emoji(avatar):
        raise InvalidRequest("Avatar must be a single emoji.")

    verdict = classify(avatar)
    if verdict.zalgo:
        raise InvalidRequest("Emoji contains distorted text.")
    if verdict.profane:
        raise InvalidRequest("Avatar contains inappropriate language.")
    return avatar


def moderate_message(content: str) -> str:
    """Return the text to store for a message body, or raise InvalidRequest."""
    if not content or not content.strip():
        raise InvalidRequest("Message content cannot be empty.")

    verdict = classify(content)
    if verdict.zalgo:
        logger.info("message_rejected reason=zalgo")
        raise InvalidRequest("Message contains distorted text.")

    if verdict.profane:
        logger.info("message_censored")
        return sanitize(content)

    return content
