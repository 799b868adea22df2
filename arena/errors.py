from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    not_found = "NotFound"
    conflict = "Conflict"
    invalid_input = "InvalidInput"
    invalid_state = "InvalidState"
    transient = "Transient"


class EngineError(Exception):
    """Base class for failures the engine reports back to its caller.

    Subclasses pin the `kind`; the message is meant for humans.
    """

    kind: ErrorKind = ErrorKind.invalid_state

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EngineError):
    kind = ErrorKind.not_found


class ConflictError(EngineError):
    kind = ErrorKind.conflict


class InvalidInputError(EngineError):
    kind = ErrorKind.invalid_input


class InvalidStateError(EngineError):
    kind = ErrorKind.invalid_state


class TransientError(EngineError):
    kind = ErrorKind.transient
