import re

# Combining Diacritical Marks, their Extended block and their Supplement.
COMBINING_MARK_REGEX = re.compile("[\u0300-\u036f\u1ab0-\u1aff\u1dc0-\u1dff]")

# Up to this many marks is ordinary accented text.
MAX_COMBINING_MARKS = 2


def count_combining_marks(text: str) -> int:
    return len(COMBINING_MARK_REGEX.findall(text))


def is_zalgo(text: str) -> bool:
    return count_combining_marks(text) > MAX_COMBINING_MARKS
