"""Flake references — URL-shaped identifiers with a commit pin and a target.

A flake reference looks like::

    github:owner/repo[/branch/parts][?ref=<commit>&...][#<fragment>]

The commit pin lives in the query string and the build target lives in the
fragment.  A pinned reference names no branch: Nix refuses a branch path
segment next to a ``ref`` pin.  They are orthogonal: pinning never touches the fragment and
setting a fragment never touches the query.
"""

from __future__ import annotations

import copy
from urllib.parse import SplitResult, urlsplit, urlunsplit

from switcher.core.query_map import update_or_append_query
from switcher.core.schemes import SourceScheme
from switcher.errors import InvalidUrlError


class FlakeRef:
    """A mutable flake reference.

    Instances are mutated in place by :meth:`set_commit_id` and
    :meth:`set_fragment`.  Use :meth:`clone` before deriving a buildable so
    that a shared base reference is never mutated.
    """

    __slots__ = ("_url",)

    def __init__(self, url: SplitResult) -> None:
        self._url = url

    @classmethod
    def parse(cls, value: str) -> FlakeRef:
        """Parse *value* into a ``FlakeRef``.

        Raises
        ------
        InvalidUrlError
            If *value* is not an absolute URL with a scheme.
        """
        if not value or value != value.strip() or any(c.isspace() for c in value):
            raise InvalidUrlError(f"invalid flake reference {value!r}")
        try:
            url = urlsplit(value)
        except ValueError as exc:
            raise InvalidUrlError(f"invalid flake reference {value!r}: {exc}") from exc
        if not url.scheme:
            raise InvalidUrlError(f"flake reference {value!r} has no scheme")
        if not url.netloc and not url.path:
            raise InvalidUrlError(f"flake reference {value!r} has no path")
        return cls(url)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def scheme(self) -> str:
        return self._url.scheme

    @property
    def path(self) -> str:
        return self._url.path

    @property
    def query(self) -> str:
        return self._url.query

    def fragment(self) -> str | None:
        """Return the build target fragment, or ``None`` if unset."""
        return self._url.fragment or None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_commit_id(self, commit_id: str) -> FlakeRef:
        """Pin this reference to *commit_id* under the scheme's pin key.

        Mutates in place and returns ``self`` for chaining.

        Raises
        ------
        UnsupportedSchemeError
            If the scheme has no pin key.
        """
        scheme = SourceScheme.for_pinning(self.scheme)
        self._url = update_or_append_query(self._url, scheme.pin_key, commit_id)
        return self

    def set_path(self, path: str) -> None:
        """Overwrite the path, keeping scheme, query and fragment."""
        self._url = self._url._replace(path=path)

    def set_fragment(self, fragment: str) -> None:
        """Overwrite the fragment unconditionally."""
        self._url = self._url._replace(fragment=fragment)

    def clone(self) -> FlakeRef:
        return copy.copy(self)

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __copy__(self) -> FlakeRef:
        return type(self)(self._url)

    def __str__(self) -> str:
        return urlunsplit(self._url)

    def __repr__(self) -> str:
        return f"FlakeRef({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlakeRef):
            return NotImplemented
        return str(self) == str(other)

    __hash__ = None  # type: ignore[assignment]
