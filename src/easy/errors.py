"""Exceptions for the transfer handle.

Only configuration problems raise. Transfer outcomes (transport failures,
HTTP errors, timeouts) are reported through the response code and the
success/failure handlers instead.
"""


class EasyError(Exception):
    """Base exception for all transfer handle errors."""


class InvalidOptionValueError(EasyError, ValueError):
    """Raised when a setter receives a value outside its allowed set."""

    def __init__(self, option: str, value: object, allowed: frozenset[str]) -> None:
        """Initialize the error.

        Args:
            option: Semantic option name.
            value: The rejected value.
            allowed: Values the option accepts.
        """
        self.option = option
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Invalid {option} value: {value!r} (expected one of {sorted(allowed)})"
        )


class UnknownOptionError(EasyError, KeyError):
    """Raised when an option name is not present in the option table."""

    def __init__(self, option: str) -> None:
        self.option = option
        super().__init__(option)

    def __str__(self) -> str:
        return f"Unknown transfer option: {self.option}"


class OptionKindError(EasyError, TypeError):
    """Raised when a value does not match the kind an option accepts."""

    def __init__(self, option: str, expected: str, value: object) -> None:
        self.option = option
        self.expected = expected
        super().__init__(
            f"Option {option} expects a {expected} value, "
            f"got {type(value).__name__}"
        )


class InfoKindError(EasyError, TypeError):
    """Raised when an info identifier is read through the wrong accessor."""

    def __init__(self, info: int, accessor: str) -> None:
        self.info = info
        self.accessor = accessor
        super().__init__(f"Info {info:#x} cannot be read as {accessor}")
