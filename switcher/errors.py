"""Error taxonomy for switcher.

Every ordinary failure derives from ``SwitcherError`` and is propagated to
the top of the pipeline unmodified.  ``MissingToolError`` is deliberately
kept outside that hierarchy: it signals a missing precondition and the
process must stop with a distinct exit status.
"""

from __future__ import annotations


class SwitcherError(RuntimeError):
    """Base class for all ordinary switcher errors."""


class InvalidUrlError(SwitcherError, ValueError):
    """Raised when a flake reference string is not a syntactically valid URL."""


class UnsupportedSchemeError(SwitcherError):
    """Raised when a scheme has no commit pin key defined."""

    def __init__(self, scheme: str) -> None:
        self.scheme = scheme
        super().__init__(f"scheme {scheme!r} is not yet supported for commit pinning")


class UnsupportedProviderError(SwitcherError):
    """Raised when no commit provider exists for a scheme."""

    def __init__(self, scheme: str) -> None:
        self.scheme = scheme
        super().__init__(f"there is no commit provider for {scheme!r} yet")


class InvalidPathError(SwitcherError):
    """Raised when an owner/repo[/branch] path cannot be parsed."""


class MissingFieldError(SwitcherError):
    """Raised when an expected field is absent from a provider response."""

    def __init__(self, field: str, detail: str = "") -> None:
        self.field = field
        message = f"provider response is missing field {field!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NotACommitError(SwitcherError):
    """Raised when a ref target resolves to something other than a commit."""

    def __init__(self, variant: str) -> None:
        self.variant = variant
        super().__init__(f"ref target is a {variant!r}, expected a 'Commit'")


class ProviderRequestError(SwitcherError):
    """Raised when the hosting provider could not be queried."""


class CommandError(SwitcherError):
    """Raised when an external program cannot be run to completion."""

    def __init__(self, program: str, message: str) -> None:
        self.program = program
        super().__init__(f"{program}: {message}")


class CommandFailedError(CommandError):
    """Raised when an interactive external program exits non-zero."""

    def __init__(self, program: str, returncode: int) -> None:
        self.returncode = returncode
        super().__init__(program, f"exited with status {returncode}")


class EncodingError(SwitcherError):
    """Raised when a program's output is not valid UTF-8."""

    def __init__(self, program: str) -> None:
        self.program = program
        super().__init__(f"output of {program!r} is not valid UTF-8")


class PreconditionError(SwitcherError):
    """Raised when a build plan cannot be assembled from the gathered facts."""


class MissingToolError(RuntimeError):
    """Raised when required external tools are not installed.

    This is a fatal condition, not a transient failure.  It must not be
    caught and ignored; the process should exit.
    """

    def __init__(self, tools: list[str] | tuple[str, ...]) -> None:
        self.tools = tuple(tools)
        names = ", ".join(self.tools)
        super().__init__(f"required tool(s) not found: {names}")
