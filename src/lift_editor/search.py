"""Search, filter and sort over entries.

Matching is accent-insensitive for the Paiute letters ü, ŵ and ŷ, which are
folded to u, w and y.
"""

from __future__ import annotations

from collections.abc import Iterable

from lift_editor.exceptions import ValidationError
from lift_editor.models import Entry, SortField

_CHAR_MAP = str.maketrans({
    "ü": "u", "Ü": "u",
    "ŵ": "w", "Ŵ": "w",
    "ŷ": "y", "Ŷ": "y",
})

# Score weights
EXACT_WORD = 100
WORD_PREFIX = 50
WORD_SUBSTRING = 25
FORM_MATCH = 10
DEFINITION_MATCH = 8
GLOSS_MATCH = 8
EXACT_GLOSS = 20
EXAMPLE_MATCH = 3


def normalize(text: str) -> str:
    """Lower-case *text* and fold Paiute diacritics to ASCII."""
    return text.translate(_CHAR_MAP).lower()


def score_entry(entry: Entry, query: str) -> int:
    """Relevance of *entry* for a normalized, non-empty *query*."""
    score = 0
    word = normalize(entry.word)
    if word == query:
        score += EXACT_WORD
    elif word.startswith(query):
        score += WORD_PREFIX
    elif query in word:
        score += WORD_SUBSTRING

    for term in query.split():
        score += FORM_MATCH * _count_matches(entry.forms.values(), term)
        for sense in entry.senses:
            score += DEFINITION_MATCH * _count_matches(sense.definitions.values(), term)
            for gloss in sense.glosses.values():
                gloss = normalize(gloss)
                if term in gloss:
                    score += GLOSS_MATCH
                if gloss == term:
                    score += EXACT_GLOSS
            for example in sense.examples:
                score += EXAMPLE_MATCH * _count_matches(example.forms.values(), term)
                for translation in example.translations:
                    score += EXAMPLE_MATCH * _count_matches(
                        translation.forms.values(), term
                    )
    return score


def _count_matches(texts: Iterable[str], term: str) -> int:
    return sum(1 for text in texts if term in normalize(text))


def search_entries(entries: Iterable[Entry], query: str | None) -> list[Entry]:
    """Return entries matching *query*, best match first.

    A blank query returns the entries unchanged.
    """
    if not query or not query.strip():
        return list(entries)
    query = normalize(query.strip())
    scored = [(score_entry(entry, query), entry) for entry in entries]
    scored = [item for item in scored if item[0] > 0]
    # Stable: equal scores keep their input order
    scored.sort(key=lambda item: item[0], reverse=True)
    return [entry for _, entry in scored]


def filter_by_pos(entries: Iterable[Entry], pos: str | None) -> list[Entry]:
    """Entries with at least one sense of grammatical category *pos*."""
    if not pos:
        return list(entries)
    return [e for e in entries if pos in e.sense_pos_list]


def filter_by_morph_type(
    entries: Iterable[Entry], morph_type: str | None
) -> list[Entry]:
    """Entries with a ``morph-type`` trait equal to *morph_type*."""
    if not morph_type:
        return list(entries)
    return [e for e in entries if morph_type in e.trait_values("morph-type")]


def sort_entries(
    entries: Iterable[Entry],
    sort_by: str | SortField = SortField.WORD,
    direction: str = "asc",
) -> list[Entry]:
    """Sort entries by word or by one of the timestamps."""
    try:
        key_field = SortField(sort_by)
    except ValueError:
        raise ValidationError(f"Unknown sort key: {sort_by!r}") from None
    if direction not in ("asc", "desc"):
        raise ValidationError(f"Unknown sort direction: {direction!r}")

    if key_field is SortField.WORD:
        def key(e: Entry) -> str:
            return e.word.casefold()
    elif key_field is SortField.DATE_MODIFIED:
        def key(e: Entry) -> str:
            return e.date_modified
    else:
        def key(e: Entry) -> str:
            return e.date_created
    return sorted(entries, key=key, reverse=direction == "desc")
