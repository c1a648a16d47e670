"""Input validation for multi-line editing."""

from __future__ import annotations

import enum
from dataclasses import dataclass

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = set(_OPENERS.values())


class ValidationKind(enum.Enum):
    INCOMPLETE = "incomplete"
    INVALID = "invalid"
    VALID = "valid"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating input, with an optional message."""

    kind: ValidationKind
    message: str | None = None

    @classmethod
    def incomplete(cls) -> ValidationResult:
        return cls(ValidationKind.INCOMPLETE)

    @classmethod
    def invalid(cls, message: str | None = None) -> ValidationResult:
        return cls(ValidationKind.INVALID, message)

    @classmethod
    def valid(cls, message: str | None = None) -> ValidationResult:
        return cls(ValidationKind.VALID, message)

    def is_valid(self) -> bool:
        return self.kind is ValidationKind.VALID

    def has_message(self) -> bool:
        return self.kind is not ValidationKind.INCOMPLETE and self.message is not None


class ValidationContext:
    """Gives a validator access to the user's input."""

    def __init__(self, text: str) -> None:
        self._text = text

    def input(self) -> str:
        return self._text


class Validator:
    """Decides whether pressing Enter ends the editing session."""

    def validate(self, ctx: ValidationContext) -> ValidationResult:
        return ValidationResult.valid()

    def validate_while_typing(self) -> bool:
        return False


class MatchingBracketValidator(Validator):
    """Rejects or holds back input whose brackets do not match."""

    def validate(self, ctx: ValidationContext) -> ValidationResult:
        return validate_brackets(ctx.input())


def validate_brackets(text: str) -> ValidationResult:
    """Check that (), [] and {} in ``text`` are balanced and properly nested."""
    stack: list[str] = []
    for c in text:
        if c in _OPENERS:
            stack.append(c)
        elif c in _CLOSERS:
            if not stack:
                return ValidationResult.invalid(
                    f"Mismatched brackets: '{c}' is unpaired"
                )
            wanted = stack.pop()
            if _OPENERS[wanted] != c:
                return ValidationResult.invalid(
                    f"Mismatched brackets: '{wanted}' is not properly closed"
                )
    return ValidationResult.incomplete() if stack else ValidationResult.valid()