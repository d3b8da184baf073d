from enum import Enum


class ErrorKind(str, Enum):
    invalid_input = "invalid_input"
    data_access = "data_access"


class CareslotsError(Exception):
    """Base for errors reported to callers as a typed error result."""

    kind: ErrorKind


class InvalidInputError(CareslotsError, ValueError):
    """Malformed date/time, out-of-range day or month, non-positive duration, bad provider id."""

    kind = ErrorKind.invalid_input


class DataAccessError(CareslotsError):
    """The underlying fetch failed (connectivity, timeout, permission). Never retried here."""

    kind = ErrorKind.data_access


class PartialRuleSkipped(Exception):
    """A single malformed schedule rule, block or appointment row. Caught, logged and skipped."""

    def __init__(self, row_kind: str, row_id: object, reason: str) -> None:
        super().__init__(f"{row_kind} {row_id}: {reason}")
        self.row_kind = row_kind
        self.row_id = row_id
        self.reason = reason
