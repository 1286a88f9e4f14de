"""
Input validation errors.

Business rejections (closed windows, duplicates, missing activities) are never
raised; they travel back to callers as ``reason`` codes on result models.
"""


class ConfPulseInputError(ValueError):
    """Malformed caller input, rejected before any store access."""


class InvalidCodeError(ConfPulseInputError):
    pass


class InvalidEmailError(ConfPulseInputError):
    pass


class InvalidEvaluationTypeError(ConfPulseInputError):
    pass


class InvalidResponsesError(ConfPulseInputError):
    pass


class InvalidLimitError(ConfPulseInputError):
    pass


class CodeAlreadyExistsError(ConfPulseInputError):
    """A participant with this code is already registered."""
