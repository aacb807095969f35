"""Single-request HTTP handle over a transfer engine.

The handle turns request configuration into engine options, drives one
transfer per ``perform()``, classifies the response code and notifies the
registered success or failure handler. Retrying is left to the caller,
using ``increment_retries()``, ``max_retries_reached()``, ``timed_out()``
and ``reset()``.

A handle is not thread-safe; use one handle per concurrent request.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from src.easy.constants import (
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    RESPONSE_CODE_NONE,
    SSL_CERT_TYPES,
    SSL_KEY_TYPES,
)
from src.easy.errors import InvalidOptionValueError, OptionKindError
from src.easy.info import InfoExtractor
from src.easy.metrics import TransferMetrics
from src.easy.models import AuthInfo, HttpMethod, RequestConfig, ResponseState
from src.easy.options import OptionEncoder
from src.easy.params import ParamValue, encode_params
from src.easy.redact import (
    redact_header_lines,
    redact_url_credentials,
    redact_userpwd,
)
from src.engine.protocols import TransferEngine
from src.settings.app import EasySettings, get_settings


logger = structlog.get_logger()

Handler = Callable[["EasyHandle"], Any]

_ZLIB = re.compile(r"zlib", re.IGNORECASE)


class HandlerSlot:
    """Single-slot handler registration on a handle.

    ``handle.on_success(fn)`` and ``handle.on_success = fn`` both replace
    the registered handler. The call form returns ``fn`` so it can be used
    as a decorator.
    """

    def __set_name__(self, owner: type, name: str) -> None:
        self._slot = f"_{name}"

    def __get__(self, handle: Any, owner: type | None = None) -> Any:
        if handle is None:
            return self

        def register(handler: Handler) -> Handler:
            setattr(handle, self._slot, handler)
            return handler

        return register

    def __set__(self, handle: Any, handler: Handler | None) -> None:
        setattr(handle, self._slot, handler)


def is_success_status(status_code: int) -> bool:
    """Check whether a response code counts as success (2xx only)."""
    return HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX


def _to_bytes(data: str | bytes) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


class EasyHandle:
    """Configuration and execution state for one HTTP request.

    Setters push their value into the engine immediately, except headers,
    which are sent at perform time. Configuration survives ``reset()``.
    """

    def __init__(
        self,
        engine: TransferEngine | None = None,
        settings: EasySettings | None = None,
    ) -> None:
        """Initialize the handle with GET and no headers.

        Args:
            engine: Transfer engine to drive (default: a new HttpxEngine).
            settings: Handle defaults (default: read from the environment).
        """
        if engine is None:
            # Deferred: the engine module imports from this package
            from src.engine.httpx_engine import HttpxEngine  # noqa: PLC0415

            engine = HttpxEngine()
        settings = settings or get_settings()

        self._engine = engine
        self._options = OptionEncoder(engine)
        self._info = InfoExtractor(engine)
        self._metrics = TransferMetrics.get_instance()
        self._log = logger.bind(component="easy")

        self._method: str = HttpMethod.GET.value
        self._url: str | None = None
        self._headers: dict[str, str] = {}
        self._params: Mapping[str, ParamValue] | None = None
        self._request_body: bytes | None = None
        self._post_data: bytes | None = None
        self._proxy: str | None = None
        self._user_agent: str | None = None
        self._auth: AuthInfo | None = None
        self._verbose = False
        self._follow_location: bool | None = None
        self._max_redirects: int | None = None
        self._connect_timeout_ms: int | None = None
        self._timeout_ms: int | None = None
        self._verify_peer = True
        self._ssl_cert: str | None = None
        self._ssl_cert_type: str | None = None
        self._ssl_key: str | None = None
        self._ssl_key_type: str | None = None
        self._ssl_key_password: str | None = None
        self._ssl_cacert: str | None = None
        self._ssl_capath: str | None = None

        self._retries = 0
        self._max_retries = settings.max_retries
        self._state = ResponseState()
        self._on_success: Handler | None = None
        self._on_failure: Handler | None = None
        self.start_time: float | None = None

        # Enable encoding/compression support
        self._options.set("ENCODING", "")

        if settings.user_agent:
            self.user_agent = settings.user_agent
        if settings.verbose:
            self.verbose = True

    @classmethod
    def from_config(
        cls,
        config: RequestConfig,
        engine: TransferEngine | None = None,
        settings: EasySettings | None = None,
    ) -> "EasyHandle":
        """Create a handle configured from a request description.

        Headers are replaced before the method, which may add to them, and
        the method is applied before params and body so that both pick the
        right encoding.

        Args:
            config: Validated request description.
            engine: Transfer engine to drive.
            settings: Handle defaults.

        Returns:
            A configured handle, ready to perform.
        """
        handle = cls(engine=engine, settings=settings)
        handle.headers = config.headers
        handle.method = config.method
        if config.url is not None:
            handle.url = config.url
        if config.proxy is not None:
            handle.proxy = config.proxy
        if config.user_agent is not None:
            handle.user_agent = config.user_agent
        if config.auth is not None:
            handle.auth = config.auth
        if config.verbose:
            handle.verbose = True
        if config.follow_location is not None:
            handle.follow_location = config.follow_location
        if config.max_redirects is not None:
            handle.max_redirects = config.max_redirects
        if config.connect_timeout_ms is not None:
            handle.connect_timeout = config.connect_timeout_ms
        if config.timeout_ms is not None:
            handle.timeout = config.timeout_ms

        handle.ssl_cert = config.ssl_cert
        handle.ssl_cert_type = config.ssl_cert_type
        handle.ssl_key = config.ssl_key
        handle.ssl_key_type = config.ssl_key_type
        handle.ssl_key_password = config.ssl_key_password
        handle.ssl_cacert = config.ssl_cacert
        handle.ssl_capath = config.ssl_capath
        if not config.verify_peer:
            handle.disable_ssl_peer_verification()

        if config.params is not None:
            handle.params = config.params
        if config.body is not None:
            handle.request_body = config.body
        return handle

    # Request configuration

    @property
    def url(self) -> str | None:
        """Get the target URL."""
        return self._url

    @url.setter
    def url(self, url: str) -> None:
        self._url = url
        self._options.set("URL", url)

    @property
    def method(self) -> str:
        """Get the request verb, upper-cased."""
        return self._method

    @method.setter
    def method(self, method: HttpMethod | str) -> None:
        if isinstance(method, HttpMethod):
            verb = method.value
        elif isinstance(method, str) and method:
            verb = method.upper()
        else:
            raise OptionKindError("method", "non-empty string", method)

        self._method = verb
        if verb == HttpMethod.GET:
            self._options.set("HTTPGET", 1)
        elif verb == HttpMethod.POST:
            self._options.set("HTTPPOST", 1)
            if self._post_data is None:
                self.post_data = b""
        elif verb == HttpMethod.PUT:
            self._options.set("UPLOAD", 1)
            self.request_body = (
                b"" if self._request_body is None else self._request_body
            )
        elif verb == HttpMethod.HEAD:
            self._options.set("NOBODY", 1)
        else:
            self._options.set("CUSTOMREQUEST", verb)

    @property
    def headers(self) -> dict[str, str]:
        """Get the request headers; mutations apply at the next perform."""
        return self._headers

    @headers.setter
    def headers(self, headers: Mapping[str, str]) -> None:
        self._headers = dict(headers)

    @property
    def params(self) -> Mapping[str, ParamValue] | None:
        """Get the parameters last used to build the query or body."""
        return self._params

    @params.setter
    def params(self, params: Mapping[str, ParamValue]) -> None:
        # Without a URL the query string is all there is, e.g. "?a=1"
        self._params = params
        encoded = encode_params(params)
        if self._method == HttpMethod.POST:
            self.post_data = encoded
        else:
            self.url = f"{self._url or ''}?{encoded}"

    @property
    def request_body(self) -> bytes | None:
        """Get the raw request body, if one was set."""
        return self._request_body

    @request_body.setter
    def request_body(self, body: str | bytes) -> None:
        data = _to_bytes(body)
        self._request_body = data
        if self._method == HttpMethod.PUT:
            self._engine.set_body(data)
            self._headers["Transfer-Encoding"] = ""
            self._headers["Expect"] = ""
        else:
            self.post_data = data

    @property
    def post_data(self) -> bytes | None:
        """Get the POST body last sent to the engine."""
        return self._post_data

    @post_data.setter
    def post_data(self, data: str | bytes) -> None:
        payload = _to_bytes(data)
        self._post_data = payload
        self._options.set("POSTFIELDSIZE", len(payload))
        self._options.set("COPYPOSTFIELDS", payload)

    @property
    def proxy(self) -> str | None:
        """Get the upstream proxy URI."""
        return self._proxy

    @proxy.setter
    def proxy(self, proxy: str) -> None:
        self._proxy = proxy
        self._options.set("PROXY", proxy)

    @property
    def user_agent(self) -> str | None:
        """Get the User-Agent string."""
        return self._user_agent

    @user_agent.setter
    def user_agent(self, user_agent: str) -> None:
        self._user_agent = user_agent
        self._options.set("USERAGENT", user_agent)

    @property
    def auth(self) -> AuthInfo | None:
        """Get the configured credentials."""
        return self._auth

    @auth.setter
    def auth(self, auth: AuthInfo | Mapping[str, Any]) -> None:
        info = auth if isinstance(auth, AuthInfo) else AuthInfo.model_validate(auth)
        self._auth = info
        self._options.set("USERPWD", info.userpwd)
        self._options.set("HTTPAUTH", info.method)
        self._log.debug(
            "auth_configured",
            credentials=redact_userpwd(info.userpwd),
            auth_method=info.method,
        )

    @property
    def verbose(self) -> bool:
        """Get whether engine diagnostics are enabled."""
        return self._verbose

    @verbose.setter
    def verbose(self, enabled: bool) -> None:
        self._verbose = bool(enabled)
        self._options.set("VERBOSE", 1 if enabled else 0)

    @property
    def follow_location(self) -> bool | None:
        """Get whether redirects are followed (None: engine default)."""
        return self._follow_location

    @follow_location.setter
    def follow_location(self, enabled: bool) -> None:
        self._follow_location = bool(enabled)
        self._options.set("FOLLOWLOCATION", 1 if enabled else 0)

    @property
    def max_redirects(self) -> int | None:
        """Get the redirect hop limit."""
        return self._max_redirects

    @max_redirects.setter
    def max_redirects(self, redirects: int) -> None:
        self._max_redirects = redirects
        self._options.set("MAXREDIRS", redirects)

    @property
    def connect_timeout(self) -> int | None:
        """Get the connection-phase budget in milliseconds."""
        return self._connect_timeout_ms

    @connect_timeout.setter
    def connect_timeout(self, milliseconds: int) -> None:
        self._connect_timeout_ms = milliseconds
        self._options.set("NOSIGNAL", 1)
        self._options.set("CONNECTTIMEOUT_MS", milliseconds)

    @property
    def timeout(self) -> int | None:
        """Get the total transfer budget in milliseconds."""
        return self._timeout_ms

    @timeout.setter
    def timeout(self, milliseconds: int) -> None:
        self._timeout_ms = milliseconds
        self._options.set("NOSIGNAL", 1)
        self._options.set("TIMEOUT_MS", milliseconds)

    # TLS

    @property
    def verify_peer(self) -> bool:
        """Get whether the peer certificate is validated."""
        return self._verify_peer

    def disable_ssl_peer_verification(self) -> None:
        """Turn off peer certificate validation."""
        self._verify_peer = False
        self._options.set("SSL_VERIFYPEER", 0)

    @property
    def ssl_cert(self) -> str | None:
        """Get the client certificate file name."""
        return self._ssl_cert

    @ssl_cert.setter
    def ssl_cert(self, cert: str | None) -> None:
        self._ssl_cert = cert
        self._options.set("SSLCERT", cert)

    @property
    def ssl_cert_type(self) -> str | None:
        """Get the client certificate format (PEM or DER)."""
        return self._ssl_cert_type

    @ssl_cert_type.setter
    def ssl_cert_type(self, cert_type: str | None) -> None:
        self._check_allowed("ssl_cert_type", cert_type, SSL_CERT_TYPES)
        self._ssl_cert_type = cert_type
        self._options.set("SSLCERTTYPE", cert_type)

    @property
    def ssl_key(self) -> str | None:
        """Get the private key file name."""
        return self._ssl_key

    @ssl_key.setter
    def ssl_key(self, key: str | None) -> None:
        self._ssl_key = key
        self._options.set("SSLKEY", key)

    @property
    def ssl_key_type(self) -> str | None:
        """Get the private key format (PEM, DER or ENG)."""
        return self._ssl_key_type

    @ssl_key_type.setter
    def ssl_key_type(self, key_type: str | None) -> None:
        self._check_allowed("ssl_key_type", key_type, SSL_KEY_TYPES)
        self._ssl_key_type = key_type
        self._options.set("SSLKEYTYPE", key_type)

    @property
    def ssl_key_password(self) -> str | None:
        """Get the private key passphrase."""
        return self._ssl_key_password

    @ssl_key_password.setter
    def ssl_key_password(self, password: str | None) -> None:
        self._ssl_key_password = password
        self._options.set("KEYPASSWD", password)

    @property
    def ssl_cacert(self) -> str | None:
        """Get the CA bundle file used to verify the peer."""
        return self._ssl_cacert

    @ssl_cacert.setter
    def ssl_cacert(self, cacert: str | None) -> None:
        self._ssl_cacert = cacert
        self._options.set("CAINFO", cacert)

    @property
    def ssl_capath(self) -> str | None:
        """Get the directory of CA certificates (prepared with c_rehash)."""
        return self._ssl_capath

    @ssl_capath.setter
    def ssl_capath(self, capath: str | None) -> None:
        self._ssl_capath = capath
        self._options.set("CAPATH", capath)

    def _check_allowed(
        self, option: str, value: str | None, allowed: frozenset[str]
    ) -> None:
        if value is None or value in allowed:
            return
        self._log.warning(
            "invalid_option_value",
            option=option,
            value=value,
            allowed=sorted(allowed),
        )
        raise InvalidOptionValueError(option, value, allowed)

    # Execution

    def set_headers(self) -> None:
        """Push the configured headers to the engine as ``key: value`` lines."""
        lines = [f"{key}: {value}" for key, value in self._headers.items()]
        for line in lines:
            self._engine.add_header(line)
        if lines:
            self._engine.commit_headers()
            self._log.debug("headers_set", headers=redact_header_lines(lines))

    def perform(self) -> int:
        """Run the transfer and notify the matching handler.

        Returns:
            The response code; 0 if no response was obtained.
        """
        self.set_headers()
        self._engine.execute()

        response_code = self._info.response_code
        response_header, response_body = self._engine.read_buffers()
        self._state = ResponseState(
            response_code=response_code,
            response_header=response_header,
            response_body=response_body,
        )

        succeeded = is_success_status(response_code)
        duration_ms = self._info.total_time_taken * 1000
        self._metrics.record_perform(response_code, succeeded, duration_ms)
        self._log.info(
            "perform_complete",
            method=self._method,
            url=redact_url_credentials(self._url or ""),
            status_code=response_code,
            success=succeeded,
            bytes=len(response_body),
            duration_ms=round(duration_ms, 2),
            retries=self._retries,
        )

        if succeeded:
            self._notify(self._on_success)
        else:
            self._notify(self._on_failure)
        return response_code

    # Called after a 2xx response.
    on_success = HandlerSlot()
    # Called after any non-2xx outcome, including 0.
    on_failure = HandlerSlot()

    def _notify(self, handler: Handler | None) -> None:
        if handler is not None:
            handler(self)

    # Retry and timeout state

    @property
    def retries(self) -> int:
        """Get the number of retries recorded by the caller."""
        return self._retries

    @property
    def max_retries(self) -> int:
        """Get the retry limit."""
        return self._max_retries

    @max_retries.setter
    def max_retries(self, limit: int) -> None:
        self._max_retries = limit

    def increment_retries(self) -> int:
        """Record one more retry.

        Returns:
            The updated retry count.
        """
        self._retries += 1
        return self._retries

    def max_retries_reached(self) -> bool:
        """Check whether the retry count has hit the limit."""
        return self._retries >= self._max_retries

    def timed_out(self) -> bool:
        """Check whether the last transfer failed on its time budget.

        Only a transfer that got no response at all counts; a slow
        request that completed with a status code never does.
        """
        if self._timeout_ms is None:
            return False
        return (
            self.total_time_taken * 1000 > self._timeout_ms
            and self._state.response_code == RESPONSE_CODE_NONE
        )

    def reset(self) -> None:
        """Clear retry count and response state, keeping configuration."""
        self._retries = 0
        self._state = ResponseState()
        self._engine.reset_state()
        self._metrics.record_reset()
        self._log.debug("handle_reset", url=redact_url_credentials(self._url or ""))

    # Results

    @property
    def response_code(self) -> int:
        """Get the response code of the last perform (0 before any)."""
        return self._state.response_code

    @property
    def response_header(self) -> bytes:
        """Get the raw response header buffer."""
        return self._state.response_header

    @property
    def response_body(self) -> bytes:
        """Get the raw response body buffer."""
        return self._state.response_body

    @property
    def effective_url(self) -> str:
        """Get the final URL after redirects."""
        return self._info.effective_url

    @property
    def total_time_taken(self) -> float:
        """Get the duration of the last transfer in seconds."""
        return self._info.total_time_taken

    @property
    def auth_methods(self) -> int:
        """Get the auth-method bitmask offered by the server."""
        return self._info.auth_methods_available

    def get_info_string(self, info: int) -> str:
        """Read a string info field by identifier."""
        return self._info.string(info)

    def get_info_long(self, info: int) -> int:
        """Read an integer info field by identifier."""
        return self._info.long(info)

    def get_info_double(self, info: int) -> float:
        """Read a floating-point info field by identifier."""
        return self._info.double(info)

    def engine_version(self) -> str:
        """Get the transfer engine's version string."""
        return self._engine.version()

    def supports_zlib(self) -> bool:
        """Check whether the engine reports zlib compression support."""
        return bool(_ZLIB.search(self._engine.version()))
