"""Data models for the transfer handle."""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.easy.constants import AUTH_TYPES, SSL_CERT_TYPES, SSL_KEY_TYPES
from src.easy.params import ParamScalar


class HttpMethod(str, Enum):
    """Verbs with dedicated transfer modes.

    Any other verb is sent as a literal custom request method.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    HEAD = "HEAD"


class AuthInfo(BaseModel):
    """Credentials and the auth schemes they may be used with."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str
    password: str = ""
    method: int | None = Field(
        default=None, description="Auth-method bitmask; None keeps the engine default"
    )

    @field_validator("method", mode="before")
    @classmethod
    def resolve_method_names(cls, v: object) -> object:
        """Accept scheme names (``"DIGEST"``, ``"basic|ntlm"``) as well as masks."""
        if not isinstance(v, str):
            return v
        mask = 0
        for name in v.split("|"):
            key = name.strip().upper()
            if key not in AUTH_TYPES:
                msg = f"Unknown auth method: {name.strip()!r}"
                raise ValueError(msg)
            mask |= AUTH_TYPES[key]
        return mask

    @property
    def userpwd(self) -> str:
        """Credential string in ``user:password`` form."""
        return f"{self.username}:{self.password}"


class RequestConfig(BaseModel):
    """High-level description of one HTTP request.

    Applied to a handle with ``EasyHandle.from_config``. Fields left as
    None keep the engine's default.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Annotated[str, Field(min_length=1)] = HttpMethod.GET.value
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    params: (
        dict[str, ParamScalar | list[ParamScalar] | dict[str, ParamScalar]] | None
    ) = None
    body: bytes | None = Field(
        default=None, description="Raw request body; bypasses params encoding"
    )
    proxy: str | None = None
    user_agent: str | None = None
    auth: AuthInfo | None = None
    verbose: bool = False
    follow_location: bool | None = None
    max_redirects: Annotated[int, Field(ge=-1)] | None = None
    connect_timeout_ms: Annotated[int, Field(ge=0)] | None = None
    timeout_ms: Annotated[int, Field(ge=0)] | None = None
    ssl_cert: str | None = None
    ssl_cert_type: str | None = None
    ssl_key: str | None = None
    ssl_key_type: str | None = None
    ssl_key_password: str | None = None
    ssl_cacert: str | None = None
    ssl_capath: str | None = None
    verify_peer: bool = True

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """Upper-case the verb."""
        return v.upper()

    @field_validator("ssl_cert_type")
    @classmethod
    def validate_cert_type(cls, v: str | None) -> str | None:
        """Ensure the certificate format is supported."""
        if v is not None and v not in SSL_CERT_TYPES:
            msg = f"Invalid ssl cert type: {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("ssl_key_type")
    @classmethod
    def validate_key_type(cls, v: str | None) -> str | None:
        """Ensure the key format is supported."""
        if v is not None and v not in SSL_KEY_TYPES:
            msg = f"Invalid ssl key type: {v!r}"
            raise ValueError(msg)
        return v


@dataclass(frozen=True)
class ResponseState:
    """Result buffers of the most recent perform.

    Replaced wholesale on each perform and on reset.
    """

    response_code: int = 0
    response_header: bytes = b""
    response_body: bytes = b""
