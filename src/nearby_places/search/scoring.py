from typing import Sequence

from .models import CatalogPlace
from .normalizers import tokenize_search_text


def compute_search_match_score(tokens: Sequence[str], place: CatalogPlace) -> int:
    """
    Count query-token matches across a place's address, name and description.

    A query token scores one point per field in which it is a substring of
    some field token, so a token found in all three fields scores 3.
    """
    score = 0
    for text in place.text_fields():
        if text is None:
            continue
        field_tokens = tokenize_search_text(text)
        score += sum(1 for token in tokens if any(token in ft for ft in field_tokens))
    return score
