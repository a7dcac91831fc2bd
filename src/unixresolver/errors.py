"""Exception types raised while building resolver configuration providers.

Brief:
  Configuration problems surface as ValueError subclasses so callers that
  already guard against bad configuration with ``except ValueError`` keep
  working. I/O failures are not wrapped and propagate as OSError.
"""

from __future__ import annotations

from typing import Optional


class ResolverConfigError(ValueError):
    """Brief: A resolver configuration could not be turned into a provider."""


class ResolverConfigParseError(ResolverConfigError):
    """Brief: A directive in a resolver configuration file is malformed.

    Inputs:
      - message: Human readable description of the problem.
      - path: File being parsed when the error occurred.
      - line_number: 1-based line number within ``path``.
      - line: The offending line, trimmed.

    Outputs:
      - ResolverConfigParseError instance exposing the inputs as attributes.

    Example:
      >>> err = ResolverConfigParseError("bad port", path="/etc/resolv.conf", line_number=3, line="port x")
      >>> err.line_number
      3
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.line_number = line_number
        self.line = line
