"""Option, info and auth tables for the transfer handle.

Identifiers follow libcurl numbering (see curl/curl.h). The tables are
read-only mappings; nothing in the package mutates them.
"""

from enum import Enum
from types import MappingProxyType
from typing import Final, NamedTuple


class OptionKind(str, Enum):
    """Value kind accepted by a transfer option."""

    STRING = "STRING"
    LONG = "LONG"


class OptionSpec(NamedTuple):
    """Transport identifier and value kind for a semantic option."""

    identifier: int
    kind: OptionKind


_STRING_BASE = 10000

OPTIONS: Final = MappingProxyType(
    {
        "URL": OptionSpec(_STRING_BASE + 2, OptionKind.STRING),
        "HTTPGET": OptionSpec(80, OptionKind.LONG),
        "HTTPPOST": OptionSpec(_STRING_BASE + 24, OptionKind.LONG),
        "UPLOAD": OptionSpec(46, OptionKind.LONG),
        "CUSTOMREQUEST": OptionSpec(_STRING_BASE + 36, OptionKind.STRING),
        "POSTFIELDS": OptionSpec(_STRING_BASE + 15, OptionKind.STRING),
        "COPYPOSTFIELDS": OptionSpec(_STRING_BASE + 165, OptionKind.STRING),
        "POSTFIELDSIZE": OptionSpec(60, OptionKind.LONG),
        "USERAGENT": OptionSpec(_STRING_BASE + 18, OptionKind.STRING),
        "TIMEOUT_MS": OptionSpec(155, OptionKind.LONG),
        # Only enforceable with signals disabled in threaded hosts
        "CONNECTTIMEOUT_MS": OptionSpec(156, OptionKind.LONG),
        "NOSIGNAL": OptionSpec(99, OptionKind.LONG),
        "HTTPHEADER": OptionSpec(_STRING_BASE + 23, OptionKind.STRING),
        "FOLLOWLOCATION": OptionSpec(52, OptionKind.LONG),
        "MAXREDIRS": OptionSpec(68, OptionKind.LONG),
        "HTTPAUTH": OptionSpec(107, OptionKind.LONG),
        "USERPWD": OptionSpec(_STRING_BASE + 5, OptionKind.STRING),
        "VERBOSE": OptionSpec(41, OptionKind.LONG),
        "PROXY": OptionSpec(_STRING_BASE + 4, OptionKind.STRING),
        "SSL_VERIFYPEER": OptionSpec(64, OptionKind.LONG),
        "NOBODY": OptionSpec(44, OptionKind.LONG),
        "ENCODING": OptionSpec(_STRING_BASE + 102, OptionKind.STRING),
        "SSLCERT": OptionSpec(_STRING_BASE + 25, OptionKind.STRING),
        "SSLCERTTYPE": OptionSpec(_STRING_BASE + 86, OptionKind.STRING),
        "SSLKEY": OptionSpec(_STRING_BASE + 87, OptionKind.STRING),
        "SSLKEYTYPE": OptionSpec(_STRING_BASE + 88, OptionKind.STRING),
        "KEYPASSWD": OptionSpec(_STRING_BASE + 26, OptionKind.STRING),
        "CAINFO": OptionSpec(_STRING_BASE + 65, OptionKind.STRING),
        "CAPATH": OptionSpec(_STRING_BASE + 97, OptionKind.STRING),
    }
)

# Info identifiers carry their value kind in the high bits
INFO_STRING = 0x100000
INFO_LONG = 0x200000
INFO_DOUBLE = 0x300000
INFO_TYPEMASK = 0xF00000

INFO: Final = MappingProxyType(
    {
        "EFFECTIVE_URL": INFO_STRING + 1,
        "RESPONSE_CODE": INFO_LONG + 2,
        "TOTAL_TIME": INFO_DOUBLE + 3,
        "HTTPAUTH_AVAIL": INFO_LONG + 23,
    }
)

AUTH_BASIC = 1
AUTH_DIGEST = 2
AUTH_GSSNEGOTIATE = 4
AUTH_NTLM = 8
AUTH_DIGEST_IE = 16

AUTH_TYPES: Final = MappingProxyType(
    {
        "BASIC": AUTH_BASIC,
        "DIGEST": AUTH_DIGEST,
        "GSSNEGOTIATE": AUTH_GSSNEGOTIATE,
        "NTLM": AUTH_NTLM,
        "DIGEST_IE": AUTH_DIGEST_IE,
        "AUTO": AUTH_BASIC | AUTH_DIGEST | AUTH_GSSNEGOTIATE | AUTH_NTLM | AUTH_DIGEST_IE,
    }
)

# TLS material formats
SSL_CERT_TYPES: Final = frozenset({"PEM", "DER"})
SSL_KEY_TYPES: Final = frozenset({"PEM", "DER", "ENG"})

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_PROXY_AUTH_REQUIRED = 407

# No response was obtained from the transfer
RESPONSE_CODE_NONE = 0
