"""Typed reads of transfer result fields."""

from src.easy.constants import INFO, INFO_DOUBLE, INFO_LONG, INFO_STRING, INFO_TYPEMASK
from src.easy.errors import InfoKindError
from src.engine.protocols import TransferEngine


class InfoExtractor:
    """Read-only view over an engine's per-transfer result fields."""

    def __init__(self, engine: TransferEngine) -> None:
        self._engine = engine

    def string(self, info: int) -> str:
        """Read a string info field."""
        _check_kind(info, INFO_STRING, "string")
        return self._engine.get_info_string(info)

    def long(self, info: int) -> int:
        """Read an integer info field."""
        _check_kind(info, INFO_LONG, "integer")
        return self._engine.get_info_long(info)

    def double(self, info: int) -> float:
        """Read a floating-point info field."""
        _check_kind(info, INFO_DOUBLE, "double")
        return self._engine.get_info_double(info)

    @property
    def response_code(self) -> int:
        """HTTP status of the last transfer, 0 if none was obtained."""
        return self.long(INFO["RESPONSE_CODE"])

    @property
    def total_time_taken(self) -> float:
        """Duration of the last transfer in seconds."""
        return self.double(INFO["TOTAL_TIME"])

    @property
    def effective_url(self) -> str:
        """Final URL of the last transfer, after redirects."""
        return self.string(INFO["EFFECTIVE_URL"])

    @property
    def auth_methods_available(self) -> int:
        """Auth-method bitmask offered by the server on a 401/407."""
        return self.long(INFO["HTTPAUTH_AVAIL"])


def _check_kind(info: int, expected: int, accessor: str) -> None:
    if info & INFO_TYPEMASK != expected:
        raise InfoKindError(info, accessor)
