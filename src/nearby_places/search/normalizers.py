"""
Search text normalization.

Turns free-text queries and catalog text into lower-case word tokens, and
expands US state abbreviations in queries so "nj" also matches "new jersey".
"""

import re
from typing import Any, Iterable, List, Mapping

from ..utils.errors import InvalidQuery

# Two-letter postal abbreviations for the 50 states and DC
US_STATE_NAMES: Mapping[str, str] = {
    "al": "Alabama", "ak": "Alaska", "az": "Arizona", "ar": "Arkansas",
    "ca": "California", "co": "Colorado", "ct": "Connecticut", "de": "Delaware",
    "dc": "District of Columbia", "fl": "Florida", "ga": "Georgia", "hi": "Hawaii",
    "id": "Idaho", "il": "Illinois", "in": "Indiana", "ia": "Iowa",
    "ks": "Kansas", "ky": "Kentucky", "la": "Louisiana", "me": "Maine",
    "md": "Maryland", "ma": "Massachusetts", "mi": "Michigan", "mn": "Minnesota",
    "ms": "Mississippi", "mo": "Missouri", "mt": "Montana", "ne": "Nebraska",
    "nv": "Nevada", "nh": "New Hampshire", "nj": "New Jersey", "nm": "New Mexico",
    "ny": "New York", "nc": "North Carolina", "nd": "North Dakota", "oh": "Ohio",
    "ok": "Oklahoma", "or": "Oregon", "pa": "Pennsylvania", "ri": "Rhode Island",
    "sc": "South Carolina", "sd": "South Dakota", "tn": "Tennessee", "tx": "Texas",
    "ut": "Utah", "vt": "Vermont", "va": "Virginia", "wa": "Washington",
    "wv": "West Virginia", "wi": "Wisconsin", "wy": "Wyoming",
}

# Any run of characters that is not a letter or digit
_RE_NON_ALNUM = re.compile(r"[\W_]+")


def _unique(tokens: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for token in tokens:
        if token not in seen:
            seen.add(token)
            result.append(token)
    return result


def tokenize_search_text(text: str) -> List[str]:
    """
    Split text into unique lower-case alphanumeric tokens, in order of first
    appearance. No abbreviation expansion.
    """
    if not text:
        return []
    t = _RE_NON_ALNUM.sub(" ", str(text).lower())
    return _unique(t.split())


def expand_state_abbreviations(tokens: Iterable[str]) -> List[str]:
    """Follow each state abbreviation with the words of the state's full name."""
    expanded = []
    for token in tokens:
        expanded.append(token)
        state = US_STATE_NAMES.get(token)
        if state:
            expanded.extend(state.lower().split())
    return _unique(expanded)


def normalize_search_query(query: Any) -> List[str]:
    """
    Normalize a free-text query into search tokens.

    >>> normalize_search_query("NJ pizza!!")
    ['nj', 'new', 'jersey', 'pizza']

    Raises:
        InvalidQuery: if the query is not a string or is blank
    """
    if not isinstance(query, str):
        raise InvalidQuery(f"Expected a string for search query, got {type(query).__name__}", query)
    if not query.strip():
        raise InvalidQuery("Search query cannot be empty", query)

    return expand_state_abbreviations(tokenize_search_text(query))
