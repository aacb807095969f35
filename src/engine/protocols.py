"""Protocol interface for transfer engines."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransferEngine(Protocol):
    """Protocol for the component that performs the actual transfer.

    The handle only issues configuration directives and reads typed result
    fields back. Socket I/O, TLS, redirects and HTTP framing all live behind
    this interface. One engine instance serves exactly one handle.
    """

    def set_option_string(self, option: int, value: str | bytes) -> None:
        """Set a string-valued option."""
        ...

    def set_option_long(self, option: int, value: int) -> None:
        """Set an integer-valued option."""
        ...

    def add_header(self, line: str) -> None:
        """Queue a ``"Name: value"`` request header line."""
        ...

    def commit_headers(self) -> None:
        """Replace the active request headers with the queued lines."""
        ...

    def set_body(self, data: bytes) -> None:
        """Set the upload body used in upload (PUT) mode."""
        ...

    def execute(self) -> None:
        """Run the transfer synchronously.

        Must not raise for transport failures; those leave the response
        code at 0.
        """
        ...

    def get_info_string(self, info: int) -> str:
        """Read a string result field."""
        ...

    def get_info_long(self, info: int) -> int:
        """Read an integer result field."""
        ...

    def get_info_double(self, info: int) -> float:
        """Read a floating-point result field."""
        ...

    def read_buffers(self) -> tuple[bytes, bytes]:
        """Return the raw response header and body buffers."""
        ...

    def reset_state(self) -> None:
        """Clear per-request result state, keeping configured options."""
        ...

    def version(self) -> str:
        """Return the engine version string."""
        ...
