"""Error taxonomy shared by the metadata source, the explorer and the CLI."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, TypeVar


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping.

    Tuples (schema paths) become lists, nested mappings are normalized and
    anything that is not a JSON scalar is stringified.
    """

    def convert(value: Any) -> Any:
        if isinstance(value, Mapping):
            return {str(key): convert(item) for key, item in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [convert(item) for item in value]
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        return str(value)

    return {str(key): convert(value) for key, value in context.items()}


class CqtError(Exception):
    """Base error; ``hint`` is an optional next step shown to the user."""

    default_hint: ClassVar[str | None] = None

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = normalize_context(context or {})
        self.hint = hint if hint is not None else self.default_hint
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def describe(self) -> str:
        """Message followed by the hint, for one-line terminal output."""
        if not self.hint:
            return self.message
        return f"{self.message} ({self.hint})"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.error_type,
            "message": self.message,
            "context": self.context,
        }
        if self.hint:
            payload["hint"] = self.hint
        return payload


class ClusterConnectionError(CqtError):
    """No session could be opened against the given nodes."""

    default_hint = "check --address and that the nodes accept CQL connections"


class MetadataFetchError(CqtError):
    """The keyspace schema could not be read or refreshed."""


class DetailsFetchError(CqtError):
    """The rows or properties behind a selected node could not be read."""


class FormatError(CqtError):
    """A value is not JSON; callers fall back to the raw text."""


class ConfigurationError(CqtError):
    """Invalid command-line or environment settings."""

    default_hint = "run with --help for the accepted options"


E = TypeVar("E", bound=CqtError)


def wrap_error(
    error_cls: type[E],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> E:
    """Build ``error_cls`` around a lower-level exception."""
    return error_cls(message, context=context, cause=cause)
