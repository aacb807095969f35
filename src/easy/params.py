"""URL form encoding of (possibly nested) request parameters.

Keys, subkeys and values are escaped independently with form encoding
(space becomes ``+``). Nested mapping keys keep their brackets literal,
so ``{"c": {"d": 2}}`` encodes as ``c[d]=2``.
"""

from collections.abc import Mapping, Sequence
from urllib.parse import quote_plus


ParamScalar = str | int | float | bool
ParamValue = ParamScalar | Sequence[ParamScalar] | Mapping[str, ParamScalar]


def escape(value: object) -> str:
    """Form-encode a single key or value.

    Args:
        value: Scalar to encode; booleans render as ``true``/``false``.

    Returns:
        Percent-encoded text.
    """
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif value is None:
        text = ""
    else:
        text = str(value)
    return quote_plus(text)


def encode_params(params: Mapping[str, ParamValue]) -> str:
    """Encode a parameter mapping as a query string or form body.

    Keys are visited in mapping order. A list value emits one pair per
    element, a mapping value emits one ``key[subkey]`` pair per entry.

    Args:
        params: Parameters to encode.

    Returns:
        The ``&``-joined encoded pairs.
    """
    fragments: list[str] = []
    for key, value in params.items():
        name = escape(key)
        if isinstance(value, Mapping):
            fragments.extend(
                f"{name}[{escape(subkey)}]={escape(subvalue)}"
                for subkey, subvalue in value.items()
            )
        elif isinstance(value, list | tuple):
            fragments.extend(f"{name}={escape(item)}" for item in value)
        else:
            fragments.append(f"{name}={escape(value)}")
    return "&".join(fragments)
