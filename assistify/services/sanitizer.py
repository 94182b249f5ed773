"""
Answer sanitizer: turns model (or client) output into plain display text.

The rules are applied in a fixed order, each on the output of the previous
one. They are pattern substitutions only; there is no markdown parsing, so
malformed input (an unmatched bracket, a lone backtick) is left as-is.
"""

from __future__ import annotations

import re
from typing import Any

_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`([^`]*)`")
_HEADING = re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE)
_UNORDERED_ITEM = re.compile(r"^\s*[-*+]\s+", re.MULTILINE)
_ORDERED_ITEM = re.compile(r"^\s*\d+\.\s+", re.MULTILINE)
_EMPHASIS = re.compile(r"\*+")
_LINK = re.compile(r"\[([^\]]+)\]\((?:[^)]+)\)")
# An unterminated tag swallows the rest of the text
_TAG = re.compile(r"</?[^>]+(?:>|\Z)")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_LEADING_SPACE = re.compile(r"^[ \t]+", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{2,}")

_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (_FENCED_CODE, ""),
    (_INLINE_CODE, r"\1"),
    (_HEADING, ""),
    (_UNORDERED_ITEM, ""),
    (_ORDERED_ITEM, ""),
    (_EMPHASIS, ""),
    (_LINK, r"\1"),
    (_TAG, ""),
    (_TRAILING_SPACE, ""),
    (_LEADING_SPACE, ""),
    (_BLANK_RUN, "\n\n"),
)


def sanitize_answer(text: Any) -> str:
    """
    Strip markdown and HTML artifacts from an answer.

    Removes fenced code blocks, unwraps inline code, drops heading and list
    markers at line starts, deletes emphasis asterisks, keeps only the label
    of [label](url) links, removes <tags>, trims every line, and collapses
    blank-line runs. None or non-string input yields "".
    """
    if not text or not isinstance(text, str):
        return ""

    cleaned = text
    for pattern, replacement in _RULES:
        cleaned = pattern.sub(replacement, cleaned)
    return cleaned.strip()
