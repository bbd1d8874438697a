"""Tiny English inflection helpers for operator and class names."""

from __future__ import annotations

import re
from typing import Final

_IRREGULAR_PLURALS: Final[dict[str, str]] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "status": "statuses",
    "series": "series",
    "data": "data",
}
_IRREGULAR_SINGULARS: Final[dict[str, str]] = {
    plural: singular for singular, plural in _IRREGULAR_PLURALS.items()
}

_WORD_SPLIT = re.compile(r"[\s_\-]+")


def _split_last(word: str) -> tuple[str, str]:
    head, sep, last = word.rpartition("_")
    return head + sep, last


def singularize(word: str) -> str:
    """Return the singular form of the last word in ``word`` (snake_case aware)."""

    prefix, last = _split_last(word)
    lowered = last.lower()
    if lowered in _IRREGULAR_SINGULARS:
        return prefix + _IRREGULAR_SINGULARS[lowered]
    if lowered in _IRREGULAR_PLURALS:
        return word
    if lowered.endswith("ies") and len(lowered) > 3:
        return prefix + last[:-3] + "y"
    if lowered.endswith(("sses", "xes", "zes", "ches", "shes")):
        return prefix + last[:-2]
    if lowered.endswith("s") and not lowered.endswith("ss"):
        return prefix + last[:-1]
    return word


def pluralize(word: str) -> str:
    """Return the plural form of the last word in ``word`` (snake_case aware)."""

    prefix, last = _split_last(word)
    lowered = last.lower()
    if lowered in _IRREGULAR_PLURALS:
        return prefix + _IRREGULAR_PLURALS[lowered]
    if lowered.endswith("y") and lowered[-2:-1] not in ("a", "e", "i", "o", "u", ""):
        return prefix + last[:-1] + "ies"
    if lowered.endswith(("s", "x", "z", "ch", "sh")):
        return prefix + last + "es"
    return prefix + last + "s"


def camelize(word: str) -> str:
    """``loader_release`` -> ``LoaderRelease``."""

    return "".join(part[:1].upper() + part[1:] for part in _WORD_SPLIT.split(word) if part)


def classify(name: str) -> str:
    """Turn a (possibly plural) operator name into a class name: ``categories`` -> ``Category``."""

    return camelize(singularize(name))
