"""Cleaning up resource descriptions."""

from __future__ import annotations

DESCRIPTION_SEPARATOR = "."
TERRAFORM_KEYWORD = "terraform"
_REPLACEMENT = "Upbound official provider"


def filter_description(description: str, keyword: str) -> str:
    """Drop every sentence of ``description`` that mentions ``keyword``.

    Sentences are lower-cased before the search. If every sentence mentions
    the keyword, the whole description is lower-cased and the keyword is
    replaced instead.
    """
    kept = [
        sentence
        for sentence in description.split(DESCRIPTION_SEPARATOR)
        if keyword not in sentence.lower()
    ]
    if not kept:
        return description.lower().replace(keyword, _REPLACEMENT)
    return DESCRIPTION_SEPARATOR.join(kept)