"""
String Helpers: Key Normalisation and Text Cleaning.

Documents written by the previous mobile client use camelCase keys
(``createdAt``, ``createdByName``); the Supabase tables use snake_case.
The models pass every incoming document through ``normalize_keys`` so
both shapes load the same.
"""

from __future__ import annotations

import re
from typing import Union

__all__ = [
    "JsonValue",
    "collapse_whitespace",
    "normalize_keys",
    "to_snake_case",
]

JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, "JsonValue"],
    list["JsonValue"],
]

# "MRCoriginal" -> "MRC_original"
_RE_UPPER_RUN = re.compile(r"([A-Z]+)([A-Z][a-z])")

# "createdAt" -> "created_At"
_RE_CAMEL_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")

_RE_MULTI_UNDERSCORE = re.compile(r"_+")

_RE_SEPARATORS = re.compile(r"[,\r\n]")


def to_snake_case(name: str) -> str:
    """Convert a camelCase, PascalCase, or mixed-case string to snake_case.

    ::

        createdAt      -> created_at
        createdByName  -> created_by_name
        imageUrl       -> image_url
        resolved_at    -> resolved_at
    """
    s1 = _RE_UPPER_RUN.sub(r"\1_\2", name)
    s2 = _RE_CAMEL_BOUNDARY.sub(r"\1_\2", s1)
    s3 = _RE_MULTI_UNDERSCORE.sub("_", s2)
    return s3.lower()


def normalize_keys(data: dict[str, JsonValue]) -> dict[str, JsonValue]:
    """Return a copy of *data* with top-level keys converted to snake_case.

    When both spellings of a key are present (``createdAt`` and
    ``created_at``), the snake_case one wins.
    """
    result: dict[str, JsonValue] = {}
    for key, value in data.items():
        snake = to_snake_case(key)
        if snake in result and snake != key:
            continue
        result[snake] = value
    return result


def collapse_whitespace(text: str) -> str:
    """Replace commas and line breaks with spaces and collapse runs of whitespace.

    ``"Fix A/C, now"`` becomes ``"Fix A/C now"``.
    """
    return " ".join(_RE_SEPARATORS.sub(" ", text).split())
