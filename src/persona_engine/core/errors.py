"""
Error taxonomy of the persona engine.
"""


class PersonaEngineError(Exception):
    """Base class for engine errors."""


class MessageValidationError(PersonaEngineError):
    """The incoming request is missing a usable message or identifiers."""

    def __init__(self, message: str, field: str = "message", code: str = "invalid"):
        super().__init__(message)
        self.field = field
        self.code = code


class StoreUnavailable(PersonaEngineError):
    """A memory store call failed or timed out."""

    def __init__(self, operation: str, reason: str = ""):
        detail = f"{operation} failed" + (f": {reason}" if reason else "")
        super().__init__(detail)
        self.operation = operation


class ConfigurationError(PersonaEngineError):
    """The engine was assembled with an unusable configuration."""
