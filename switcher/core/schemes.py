"""Known flake reference schemes.

Each supported scheme carries its own commit pin key.  Anything not listed
here falls into the explicit unsupported arm instead of a default.
"""

from __future__ import annotations

from enum import Enum

from switcher.errors import UnsupportedProviderError, UnsupportedSchemeError


class SourceScheme(str, Enum):
    """Flake reference schemes switcher knows how to pin and resolve."""

    GITHUB = "github"

    @property
    def pin_key(self) -> str:
        """Query parameter that pins a reference of this scheme to a commit."""
        return _PIN_KEYS[self]

    @classmethod
    def for_pinning(cls, scheme: str) -> SourceScheme:
        """Look up *scheme* for commit pinning or raise ``UnsupportedSchemeError``."""
        try:
            return cls(scheme)
        except ValueError:
            raise UnsupportedSchemeError(scheme) from None

    @classmethod
    def for_provider(cls, scheme: str) -> SourceScheme:
        """Look up *scheme* for commit resolution or raise ``UnsupportedProviderError``."""
        try:
            return cls(scheme)
        except ValueError:
            raise UnsupportedProviderError(scheme) from None


_PIN_KEYS: dict[SourceScheme, str] = {
    SourceScheme.GITHUB: "ref",
}
