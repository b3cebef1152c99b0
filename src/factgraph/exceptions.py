"""Error taxonomy raised by the retraction workflow and its collaborators.

Every error maps onto one HTTP status in ``factgraph.api.errors``. Errors that
describe a problem with a specific request field carry ``ValidationError``
records so clients can tell which field was rejected and why.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """One field-level problem attached to an error."""
    message: str
    message_template: str
    field: str
    parameter: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "messageTemplate": self.message_template,
            "field": self.field,
            "parameter": self.parameter,
        }


class FactGraphError(Exception):
    """Base class for all errors surfaced to callers."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.validation_errors: list[ValidationError] = []

    def add_validation_error(
        self, message: str, message_template: str, field: str, parameter: Any,
    ) -> "FactGraphError":
        self.validation_errors.append(
            ValidationError(message, message_template, field, str(parameter))
        )
        if not self.message:
            self.message = message
            self.args = (message,)
        return self


class AuthenticationFailedError(FactGraphError):
    """The caller's identity could not be established."""


class AccessDeniedError(FactGraphError):
    """The caller is known but lacks a required permission."""


class ObjectNotFoundError(FactGraphError):
    """A referenced entity does not exist."""


class InvalidArgumentError(FactGraphError):
    """A request field is well-formed but violates a business rule."""
