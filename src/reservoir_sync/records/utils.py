"""Byte helpers for canonical rows: hashes, ids and addresses as fixed-width binary."""

from __future__ import annotations

from eth_utils import decode_hex, is_hex, is_hex_address


def to_bytes(hex_value: str | None) -> bytes:
    """Decode a hex string (0x prefix optional); empty when absent or not even-length hex."""
    if not hex_value or not is_hex(hex_value):
        return b""
    digits = hex_value[2:] if hex_value[:2].lower() == "0x" else hex_value
    if len(digits) % 2:
        return b""
    return decode_hex(digits)


def address_to_bytes(hex_value: str | None) -> bytes:
    """Decode a 0x-prefixed address or hash into its raw bytes."""
    return to_bytes(hex_value)


def is_address(value: str) -> bool:
    return is_hex_address(value)
