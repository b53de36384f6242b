"""Text encodings for GUIDs and address parts on the dprun command line."""

from __future__ import annotations

import uuid

from dprun.core.model import AddressPart, AddressValue, GUIDOrNamed, Named

_INT_PREFIX = "i:"
_BINARY_PREFIX = "b:"


def to_braced(value: uuid.UUID) -> str:
    """Format a GUID as ``{XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX}`` (uppercase)."""
    return "{" + str(value).upper() + "}"


def format_guid_or_named(value: GUIDOrNamed) -> str:
    if isinstance(value, Named):
        return value.name
    return to_braced(value)


def parse_guid_or_named(text: str) -> GUIDOrNamed:
    """Read back a GUID (braced or bare) or fall back to a named alias."""
    stripped = text.strip()
    if not stripped:
        raise ValueError("GUID or alias name must not be empty")
    try:
        return uuid.UUID(stripped)
    except ValueError:
        return Named(stripped)


def encode_address_value(value: AddressValue) -> str:
    if isinstance(value, bool):
        raise TypeError("boolean address values are not supported")
    if isinstance(value, int):
        return f"{_INT_PREFIX}{value}"
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"{_BINARY_PREFIX}{bytes(value).hex()}"
    raise TypeError(f"unsupported address value type {type(value).__name__}")


def encode_address_part(part: AddressPart) -> str:
    return f"{format_guid_or_named(part.key)}={encode_address_value(part.value)}"


def parse_address_part(token: str) -> AddressPart:
    """Parse ``KEY=VALUE`` as accepted by ``dprun --address``."""
    key, sep, raw = token.partition("=")
    if not sep:
        raise ValueError(f"address part '{token}' must look like KEY=VALUE")

    value: AddressValue
    if raw.startswith(_INT_PREFIX):
        value = int(raw[len(_INT_PREFIX):], 10)
    elif raw.startswith(_BINARY_PREFIX):
        value = bytes.fromhex(raw[len(_BINARY_PREFIX):])
    else:
        value = raw
    return AddressPart(key=parse_guid_or_named(key), value=value)
