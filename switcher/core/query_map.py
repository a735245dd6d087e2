"""Order-preserving query string codec.

Query parameters are handled as a list of ``(key, value)`` pairs rather than
a dict: the positional order of every pair survives an update, so two
references that differ only in one value serialize identically elsewhere.
"""

from __future__ import annotations

from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit, urlunsplit

QueryPairs = list[tuple[str, str]]


def parse_query(query: str) -> QueryPairs:
    """Decode a raw query string into ordered pairs (blank values kept)."""
    if not query:
        return []
    return parse_qsl(query, keep_blank_values=True)


def serialize_query(pairs: QueryPairs) -> str:
    """Encode ordered pairs as ``application/x-www-form-urlencoded``."""
    return urlencode(pairs)


def update_or_append(pairs: QueryPairs, key: str, value: str) -> QueryPairs:
    """Return *pairs* with every *key* occurrence set to *value* in place.

    When *key* is absent a new pair is appended after the last one.
    """
    updated: QueryPairs = []
    found = False
    for k, v in pairs:
        if k == key:
            updated.append((k, value))
            found = True
        else:
            updated.append((k, v))
    if not found:
        updated.append((key, value))
    return updated


def update_or_append_query(url: SplitResult, key: str, value: str) -> SplitResult:
    """Apply :func:`update_or_append` to the query component of *url*."""
    pairs = update_or_append(parse_query(url.query), key, value)
    return url._replace(query=serialize_query(pairs))


def update_or_append_url(url: str, key: str, value: str) -> str:
    """String convenience wrapper: ``x:y/z`` + ``a=b`` -> ``x:y/z?a=b``."""
    return urlunsplit(update_or_append_query(urlsplit(url), key, value))
