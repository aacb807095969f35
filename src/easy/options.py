"""Typed option dispatch to the transfer engine."""

import structlog

from src.easy.constants import OPTIONS, OptionKind, OptionSpec
from src.easy.errors import OptionKindError, UnknownOptionError
from src.engine.protocols import TransferEngine


logger = structlog.get_logger()

OptionValue = str | bytes | int | bool | None


def lookup_option(name: str) -> OptionSpec:
    """Look up the identifier and value kind of a semantic option.

    Args:
        name: Option name, e.g. ``"URL"`` or ``"FOLLOWLOCATION"``.

    Returns:
        The option's spec.

    Raises:
        UnknownOptionError: If the name is not in the option table.
    """
    try:
        return OPTIONS[name]
    except KeyError:
        raise UnknownOptionError(name) from None


class OptionEncoder:
    """Send option values to an engine using the call shape of their kind.

    ``str``/``bytes`` values go through the string call, ``int``/``bool``
    values through the integer call. ``None`` means "leave at engine
    default" and makes no call; ``0`` and ``False`` are sent explicitly.
    """

    def __init__(self, engine: TransferEngine) -> None:
        self._engine = engine
        self._log = logger.bind(component="easy")

    def set(self, name: str, value: OptionValue) -> bool:
        """Set an option on the engine.

        Args:
            name: Semantic option name.
            value: Value to send, or None to skip.

        Returns:
            True if a call was made to the engine.

        Raises:
            UnknownOptionError: If the option name is unknown.
            OptionKindError: If the value kind does not match the option.
        """
        spec = lookup_option(name)
        if value is None:
            return False

        if isinstance(value, str | bytes):
            if spec.kind is not OptionKind.STRING:
                raise OptionKindError(name, "string", value)
            self._engine.set_option_string(spec.identifier, value)
        elif isinstance(value, int):
            if spec.kind is not OptionKind.LONG:
                raise OptionKindError(name, "integer", value)
            self._engine.set_option_long(spec.identifier, int(value))
        else:
            raise OptionKindError(name, spec.kind.value.lower(), value)

        self._log.debug("option_set", option=name, kind=spec.kind.value)
        return True
