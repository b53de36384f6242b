from __future__ import annotations

import uuid

import pytest

from dprun.core.encoding import (
    encode_address_part,
    format_guid_or_named,
    parse_address_part,
    parse_guid_or_named,
    to_braced,
)
from dprun.core.model import GUID_INETPORT, AddressPart, Named

TCPIP = uuid.UUID("36E95EE0-8577-11cf-960c-0080c7534e82")


def test_to_braced_is_uppercase_and_fixed_width() -> None:
    braced = to_braced(TCPIP)
    assert braced == "{36E95EE0-8577-11CF-960C-0080C7534E82}"
    assert len(braced) == 38
    assert braced[0] == "{" and braced[-1] == "}"
    assert [i for i, c in enumerate(braced) if c == "-"] == [9, 14, 19, 24]


def test_to_braced_random_guids_keep_shape() -> None:
    for _ in range(20):
        braced = to_braced(uuid.uuid4())
        assert len(braced) == 38
        assert braced.count("-") == 4
        assert braced[1:-1] == braced[1:-1].upper()


def test_format_guid_or_named() -> None:
    assert format_guid_or_named(Named("TCPIP")) == "TCPIP"
    assert format_guid_or_named(TCPIP) == to_braced(TCPIP)


def test_named_alias_is_not_equal_to_guid() -> None:
    assert Named("DPRUN") != uuid.UUID("B1ED2367-609B-4C5C-8755-D2A29BB9A554")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (-5, "INetPort=i:-5"),
        (2197, "INetPort=i:2197"),
        (bytes([0x0A, 0xFF]), "INetPort=b:0aff"),
        ("x", "INetPort=x"),
    ],
)
def test_encode_address_value_prefixes(value, expected: str) -> None:
    assert encode_address_part(AddressPart(key=Named("INetPort"), value=value)) == expected


def test_encode_address_part_with_guid_key() -> None:
    part = AddressPart(key=GUID_INETPORT, value=2197)
    assert encode_address_part(part) == "{E4524541-8EA5-11D1-8A96-006097B01411}=i:2197"


def test_encode_rejects_bool() -> None:
    with pytest.raises(TypeError):
        encode_address_part(AddressPart(key=Named("INetPort"), value=True))


def test_parse_guid_or_named() -> None:
    assert parse_guid_or_named("{36E95EE0-8577-11CF-960C-0080C7534E82}") == TCPIP
    assert parse_guid_or_named("36e95ee0-8577-11cf-960c-0080c7534e82") == TCPIP
    assert parse_guid_or_named("IPX") == Named("IPX")
    with pytest.raises(ValueError):
        parse_guid_or_named("  ")


def test_parse_address_part_reads_encoded_tokens() -> None:
    assert parse_address_part("INet=127.0.0.1") == AddressPart(key=Named("INet"), value="127.0.0.1")
    assert parse_address_part("{E4524541-8EA5-11D1-8A96-006097B01411}=i:2197") == AddressPart(
        key=GUID_INETPORT, value=2197
    )
    assert parse_address_part("Blob=b:0aff") == AddressPart(key=Named("Blob"), value=b"\x0a\xff")
    assert parse_address_part("Phone=a=b") == AddressPart(key=Named("Phone"), value="a=b")


def test_parse_address_part_requires_separator() -> None:
    with pytest.raises(ValueError):
        parse_address_part("INet")
