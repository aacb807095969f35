"""Transfer engine backed by httpx.

Accepts curl-numbered options, runs one synchronous exchange per
``execute()`` and exposes the result through curl-numbered info fields.
Transport failures never raise; they leave the response code at 0 and
record a message in ``last_error``.
"""

import re
import ssl
import time
import zlib
from collections.abc import Generator
from typing import Any

import httpx
import structlog

from src.easy.constants import (
    AUTH_BASIC,
    AUTH_DIGEST,
    AUTH_DIGEST_IE,
    AUTH_GSSNEGOTIATE,
    AUTH_NTLM,
    HTTP_STATUS_PROXY_AUTH_REQUIRED,
    HTTP_STATUS_UNAUTHORIZED,
    INFO,
    OPTIONS,
    RESPONSE_CODE_NONE,
)
from src.easy.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()

_URL = OPTIONS["URL"].identifier
_CUSTOMREQUEST = OPTIONS["CUSTOMREQUEST"].identifier
_POSTFIELDS = OPTIONS["POSTFIELDS"].identifier
_COPYPOSTFIELDS = OPTIONS["COPYPOSTFIELDS"].identifier
_POSTFIELDSIZE = OPTIONS["POSTFIELDSIZE"].identifier
_USERAGENT = OPTIONS["USERAGENT"].identifier
_TIMEOUT_MS = OPTIONS["TIMEOUT_MS"].identifier
_CONNECTTIMEOUT_MS = OPTIONS["CONNECTTIMEOUT_MS"].identifier
_FOLLOWLOCATION = OPTIONS["FOLLOWLOCATION"].identifier
_MAXREDIRS = OPTIONS["MAXREDIRS"].identifier
_HTTPAUTH = OPTIONS["HTTPAUTH"].identifier
_USERPWD = OPTIONS["USERPWD"].identifier
_VERBOSE = OPTIONS["VERBOSE"].identifier
_PROXY = OPTIONS["PROXY"].identifier
_SSL_VERIFYPEER = OPTIONS["SSL_VERIFYPEER"].identifier
_ENCODING = OPTIONS["ENCODING"].identifier
_SSLCERT = OPTIONS["SSLCERT"].identifier
_SSLCERTTYPE = OPTIONS["SSLCERTTYPE"].identifier
_SSLKEY = OPTIONS["SSLKEY"].identifier
_SSLKEYTYPE = OPTIONS["SSLKEYTYPE"].identifier
_KEYPASSWD = OPTIONS["KEYPASSWD"].identifier
_CAINFO = OPTIONS["CAINFO"].identifier
_CAPATH = OPTIONS["CAPATH"].identifier

# Options that switch the request verb when set to a nonzero value
_MODE_OPTIONS: dict[int, str] = {
    OPTIONS["HTTPGET"].identifier: "GET",
    OPTIONS["HTTPPOST"].identifier: "POST",
    OPTIONS["UPLOAD"].identifier: "PUT",
    OPTIONS["NOBODY"].identifier: "HEAD",
}

_INFO_RESPONSE_CODE = INFO["RESPONSE_CODE"]
_INFO_TOTAL_TIME = INFO["TOTAL_TIME"]
_INFO_EFFECTIVE_URL = INFO["EFFECTIVE_URL"]
_INFO_HTTPAUTH_AVAIL = INFO["HTTPAUTH_AVAIL"]

_AUTH_SCHEMES: dict[str, int] = {
    "basic": AUTH_BASIC,
    "digest": AUTH_DIGEST,
    "negotiate": AUTH_GSSNEGOTIATE,
    "ntlm": AUTH_NTLM,
}

_UNLIMITED_REDIRECTS = 2**31 - 1
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Scheme tokens start a challenge; auth-params are followed by "="
_CHALLENGE_SCHEME = re.compile(r"(?:^|,)\s*([A-Za-z][\w-]*)(?=\s|,|$)")


class EngineConfigError(Exception):
    """Raised inside the engine when configured options cannot be applied."""


def auth_schemes_mask(challenges: list[str]) -> int:
    """Convert authentication challenges into an auth-method bitmask.

    Args:
        challenges: ``WWW-Authenticate`` or ``Proxy-Authenticate`` values.

    Returns:
        Bitwise OR of the recognised scheme flags.
    """
    mask = 0
    for challenge in challenges:
        for scheme in _CHALLENGE_SCHEME.findall(challenge):
            mask |= _AUTH_SCHEMES.get(scheme.lower(), 0)
    return mask


class ChallengeAuth(httpx.Auth):
    """Pick Basic or Digest from the server's challenge.

    Sends the first request without credentials and answers a 401 with
    the strongest scheme both sides allow.
    """

    def __init__(self, username: str, password: str) -> None:
        self._basic = httpx.BasicAuth(username, password)
        self._digest = httpx.DigestAuth(username, password)

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        response = yield request
        if response.status_code != HTTP_STATUS_UNAUTHORIZED:
            return

        offered = auth_schemes_mask(response.headers.get_list("www-authenticate"))
        if offered & AUTH_DIGEST:
            digest_flow = self._digest.auth_flow(request)
            next(digest_flow)
            try:
                retry = digest_flow.send(response)
            except StopIteration:
                return
            yield retry
        elif offered & AUTH_BASIC:
            yield from self._basic.auth_flow(request)


class HttpxEngine:
    """Synchronous transfer engine on top of ``httpx.Client``.

    A fresh client is opened for each ``execute()`` so that every option
    change takes effect on the next transfer.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        """Initialize the engine.

        Args:
            transport: Optional transport override (e.g. ``httpx.MockTransport``).
        """
        self._transport = transport
        self._strings: dict[int, str | bytes] = {}
        self._longs: dict[int, int] = {}
        self._mode = "GET"
        self._upload_body = b""
        self._post_fields: bytes | None = None
        self._pending_headers: list[str] = []
        self._headers: list[tuple[str, str]] = []
        self._info: dict[int, str | int | float] = {}
        self._header_buffer = b""
        self._body_buffer = b""
        self._last_error: str | None = None
        self._log = logger.bind(component="engine")

    @property
    def last_error(self) -> str | None:
        """Get the message of the last transport failure, if any."""
        return self._last_error

    @property
    def headers(self) -> list[tuple[str, str]]:
        """Get the committed request headers."""
        return list(self._headers)

    def set_option_string(self, option: int, value: str | bytes) -> None:
        self._strings[option] = value
        if option in (_POSTFIELDS, _COPYPOSTFIELDS):
            self._post_fields = value.encode() if isinstance(value, str) else value
            self._mode = "POST"

    def set_option_long(self, option: int, value: int) -> None:
        self._longs[option] = value
        mode = _MODE_OPTIONS.get(option)
        if mode is None:
            return
        if value:
            self._mode = mode
        elif self._mode == mode:
            self._mode = "GET"

    def add_header(self, line: str) -> None:
        self._pending_headers.append(line)

    def commit_headers(self) -> None:
        headers: list[tuple[str, str]] = []
        for line in self._pending_headers:
            name, _, value = line.partition(":")
            headers.append((name.strip(), value.strip()))
        self._headers = headers
        self._pending_headers = []

    def set_body(self, data: bytes) -> None:
        self._upload_body = data

    def get_info_string(self, info: int) -> str:
        return str(self._info.get(info, ""))

    def get_info_long(self, info: int) -> int:
        return int(self._info.get(info, 0))

    def get_info_double(self, info: int) -> float:
        return float(self._info.get(info, 0.0))

    def read_buffers(self) -> tuple[bytes, bytes]:
        return self._header_buffer, self._body_buffer

    def reset_state(self) -> None:
        self._info = {}
        self._header_buffer = b""
        self._body_buffer = b""
        self._pending_headers = []
        self._last_error = None

    def version(self) -> str:
        return f"httpx/{httpx.__version__} zlib/{zlib.ZLIB_RUNTIME_VERSION}"

    def execute(self) -> None:
        """Run one transfer with the configured options."""
        self.reset_state()
        url = self._string(_URL)
        method = self._resolve_method()
        start = time.perf_counter()

        try:
            if not url:
                msg = "No URL set"
                raise EngineConfigError(msg)

            with httpx.Client(**self.client_kwargs()) as client:
                request = client.build_request(
                    method,
                    url,
                    headers=self._request_headers(),
                    content=self._request_body(),
                )
                for name, value in self._headers:
                    if not value:
                        request.headers.pop(name, None)
                response = client.send(request)

        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            OSError,
            ValueError,
            EngineConfigError,
        ) as e:
            self._last_error = f"{type(e).__name__}: {e}"
            self._info[_INFO_RESPONSE_CODE] = RESPONSE_CODE_NONE
            self._info[_INFO_EFFECTIVE_URL] = url or ""
            self._log.warning(
                "transfer_failed",
                method=method,
                url=redact_url_credentials(url or ""),
                error_type=type(e).__name__,
                error=str(e),
            )
            return

        finally:
            self._info[_INFO_TOTAL_TIME] = time.perf_counter() - start

        self._info[_INFO_RESPONSE_CODE] = response.status_code
        self._info[_INFO_EFFECTIVE_URL] = str(response.url)
        self._info[_INFO_HTTPAUTH_AVAIL] = self._available_auth(response)
        self._header_buffer = b"".join(
            _format_header_block(r) for r in [*response.history, response]
        )
        self._body_buffer = response.content

    def client_kwargs(self) -> dict[str, Any]:
        """Translate the configured options into ``httpx.Client`` arguments.

        Returns:
            Keyword arguments for ``httpx.Client``.

        Raises:
            EngineConfigError: If TLS client material is not loadable.
            ssl.SSLError: If a CA bundle or key cannot be read.
        """
        kwargs: dict[str, Any] = {
            "timeout": self._timeout(),
            "follow_redirects": bool(self._longs.get(_FOLLOWLOCATION, 0)),
            "verify": self._verify(),
        }

        max_redirects = self._longs.get(_MAXREDIRS)
        if max_redirects is not None:
            # -1 means unlimited; httpx needs a finite cap
            kwargs["max_redirects"] = (
                max_redirects if max_redirects >= 0 else _UNLIMITED_REDIRECTS
            )

        proxy = self._string(_PROXY)
        if proxy:
            kwargs["proxy"] = proxy

        auth = self._auth()
        if auth is not None:
            kwargs["auth"] = auth

        if self._longs.get(_VERBOSE):
            kwargs["event_hooks"] = {
                "request": [self._log_request],
                "response": [self._log_response],
            }

        if self._transport is not None:
            kwargs["transport"] = self._transport

        return kwargs

    def _string(self, option: int) -> str | None:
        value = self._strings.get(option)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def _resolve_method(self) -> str:
        custom = self._string(_CUSTOMREQUEST)
        if custom:
            return custom
        return self._mode

    def _request_body(self) -> bytes | None:
        if self._mode == "PUT":
            return self._upload_body
        if self._mode == "POST":
            data = self._post_fields or b""
            size = self._longs.get(_POSTFIELDSIZE)
            if size is not None and size >= 0:
                data = data[:size]
            return data
        return None

    def _request_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}

        user_agent = self._string(_USERAGENT)
        if user_agent:
            headers["User-Agent"] = user_agent

        # An empty encoding means every supported one, which is httpx's default
        encoding = self._string(_ENCODING)
        if encoding:
            headers["Accept-Encoding"] = encoding

        for name, value in self._headers:
            if value:
                headers[name] = value

        if self._mode == "POST" and not any(
            name.lower() == "content-type" for name, _ in self._headers
        ):
            headers["Content-Type"] = _FORM_CONTENT_TYPE
        return headers

    def _timeout(self) -> httpx.Timeout:
        total_ms = self._longs.get(_TIMEOUT_MS)
        connect_ms = self._longs.get(_CONNECTTIMEOUT_MS)
        total = total_ms / 1000.0 if total_ms else None
        connect = connect_ms / 1000.0 if connect_ms else total
        return httpx.Timeout(total, connect=connect)

    def _verify(self) -> ssl.SSLContext | bool:
        verify_peer = bool(self._longs.get(_SSL_VERIFYPEER, 1))
        cafile = self._string(_CAINFO)
        capath = self._string(_CAPATH)
        cert = self._string(_SSLCERT)

        if not (cafile or capath or cert):
            return verify_peer

        context = ssl.create_default_context(cafile=cafile, capath=capath)
        if not verify_peer:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        if cert:
            for option, label in ((_SSLCERTTYPE, "certificate"), (_SSLKEYTYPE, "key")):
                kind = self._string(option) or "PEM"
                if kind != "PEM":
                    msg = f"Unsupported {label} format for this engine: {kind}"
                    raise EngineConfigError(msg)
            context.load_cert_chain(
                cert,
                keyfile=self._string(_SSLKEY),
                password=self._string(_KEYPASSWD),
            )
        return context

    def _auth(self) -> httpx.Auth | None:
        userpwd = self._string(_USERPWD)
        if userpwd is None:
            return None

        username, _, password = userpwd.partition(":")
        mask = self._longs.get(_HTTPAUTH, AUTH_BASIC)
        wants_digest = bool(mask & (AUTH_DIGEST | AUTH_DIGEST_IE))
        wants_basic = bool(mask & AUTH_BASIC)

        # Negotiate and NTLM are not available; fall back to Basic
        if wants_digest and wants_basic:
            return ChallengeAuth(username, password)
        if wants_digest:
            return httpx.DigestAuth(username, password)
        return httpx.BasicAuth(username, password)

    def _available_auth(self, response: httpx.Response) -> int:
        if response.status_code == HTTP_STATUS_UNAUTHORIZED:
            return auth_schemes_mask(response.headers.get_list("www-authenticate"))
        if response.status_code == HTTP_STATUS_PROXY_AUTH_REQUIRED:
            return auth_schemes_mask(response.headers.get_list("proxy-authenticate"))
        return 0

    def _log_request(self, request: httpx.Request) -> None:
        self._log.debug(
            "engine_request",
            method=request.method,
            url=redact_url_credentials(str(request.url)),
            headers=redact_headers(request.headers),
        )

    def _log_response(self, response: httpx.Response) -> None:
        self._log.debug(
            "engine_response",
            status_code=response.status_code,
            url=redact_url_credentials(str(response.url)),
            headers=redact_headers(response.headers),
        )


def _format_header_block(response: httpx.Response) -> bytes:
    status = (
        f"{response.http_version} {response.status_code} {response.reason_phrase}\r\n"
    )
    lines = [status.encode("latin-1", errors="replace")]
    lines.extend(name + b": " + value + b"\r\n" for name, value in response.headers.raw)
    lines.append(b"\r\n")
    return b"".join(lines)
