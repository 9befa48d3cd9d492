from __future__ import annotations

from typing import Any, Iterable, Optional


def _first_present(seq: list) -> Any:
    return next((x for x in seq if x is not None), None)


def resolve(tree: Any, path: str, fallback: Any = None, first_of_sequence: bool = False) -> Any:
    """
    Safe dotted-path lookup: resolve(doc, "Price.PriceAmount").

    Any step that lands on a non-mapping or a missing key yields `fallback`,
    and so does an explicit None at the end of the path. With
    `first_of_sequence`, repeated elements (lists) are replaced by their first
    present entry before the next step, so "Party.PartyLegalEntity.RegistrationName"
    works whether PartyLegalEntity occurs once or several times.
    """
    cur = tree
    for key in path.split("."):
        if first_of_sequence and isinstance(cur, list):
            cur = _first_present(cur)
        if not isinstance(cur, dict) or key not in cur:
            return fallback
        cur = cur[key]
    if first_of_sequence and isinstance(cur, list):
        cur = _first_present(cur)
    return fallback if cur is None else cur


def first_of(tree: Any, candidates: Iterable[str], first_of_sequence: bool = False) -> Any:
    """Return the first non-None value among the candidate paths, else None."""
    for path in candidates:
        value = resolve(tree, path, first_of_sequence=first_of_sequence)
        if value is not None:
            return value
    return None


def unwrap_text(value: Any, text_key: str = "#text") -> Any:
    """
    Elements carrying attributes come out of the parser as
    {"#text": "10", "@_currencyID": "RON"}; return the text part.
    """
    if isinstance(value, dict):
        return value.get(text_key)
    return value


def text_or_none(value: Any, text_key: str = "#text") -> Optional[str]:
    """Unwrap and render a scalar as str; structures without text give None."""
    value = unwrap_text(value, text_key)
    if value is None or isinstance(value, (dict, list)):
        return None
    s = str(value).strip()
    return s or None
