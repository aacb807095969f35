"""Single-request HTTP handle over a pluggable transfer engine.

This module provides:
- Option, info and auth-method tables with typed option dispatch
- Form encoding of nested request parameters
- A reusable handle with perform/classify/notify execution
- Retry and timeout bookkeeping for caller-driven retry loops
- Metrics collection for observability
"""

from src.easy.constants import (
    AUTH_TYPES,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    INFO,
    OPTIONS,
    RESPONSE_CODE_NONE,
    SSL_CERT_TYPES,
    SSL_KEY_TYPES,
    OptionKind,
    OptionSpec,
)
from src.easy.errors import (
    EasyError,
    InfoKindError,
    InvalidOptionValueError,
    OptionKindError,
    UnknownOptionError,
)
from src.easy.handle import EasyHandle, is_success_status
from src.easy.info import InfoExtractor
from src.easy.metrics import TransferMetrics
from src.easy.models import AuthInfo, HttpMethod, RequestConfig, ResponseState
from src.easy.options import OptionEncoder, lookup_option
from src.easy.params import encode_params, escape
from src.easy.redact import (
    redact_header_lines,
    redact_headers,
    redact_url_credentials,
    redact_userpwd,
)


__all__ = [
    # Handle
    "EasyHandle",
    "is_success_status",
    # Encoders
    "OptionEncoder",
    "lookup_option",
    "InfoExtractor",
    "encode_params",
    "escape",
    # Models
    "AuthInfo",
    "HttpMethod",
    "RequestConfig",
    "ResponseState",
    # Errors
    "EasyError",
    "InfoKindError",
    "InvalidOptionValueError",
    "OptionKindError",
    "UnknownOptionError",
    # Constants
    "AUTH_TYPES",
    "INFO",
    "OPTIONS",
    "OptionKind",
    "OptionSpec",
    "HTTP_STATUS_OK_MIN",
    "HTTP_STATUS_OK_MAX",
    "RESPONSE_CODE_NONE",
    "SSL_CERT_TYPES",
    "SSL_KEY_TYPES",
    # Metrics
    "TransferMetrics",
    # Redaction
    "redact_header_lines",
    "redact_headers",
    "redact_url_credentials",
    "redact_userpwd",
]
