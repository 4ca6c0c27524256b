"""
Hex, hashing and unit helpers shared by the encoder, the decoder and the CLI.
"""

import re
from typing import Any, Union

from Crypto.Hash import keccak

from .errors import AbiValidationError

HEX_PREFIX = "0x"
LUX_DECIMALS = 8

_HEX_BODY = re.compile(r"[0-9a-fA-F]*")


def strip_hex_prefix(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value[2:]
    return value


def add_hex_prefix(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return HEX_PREFIX + value[2:]
    return HEX_PREFIX + value


def is_hex(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_HEX_BODY.fullmatch(strip_hex_prefix(value.strip())))


def normalize_hex(value: str, field: str, pad_to: int = 0) -> str:
    """Return ``value`` as lowercase, un-prefixed hex, optionally left-padded to ``pad_to`` chars."""
    if not isinstance(value, str):
        raise AbiValidationError(f"{field} must be a hex string.")
    body = strip_hex_prefix(value.strip()).lower()
    if not _HEX_BODY.fullmatch(body):
        raise AbiValidationError(f"{field} must be a hex string.")
    if pad_to:
        body = body.rjust(pad_to, "0")
    return body


def hex_to_bytes(value: Union[str, bytes, bytearray], field: str = "value", strict: bool = False) -> bytes:
    """
    Convert hex text to bytes. Odd-length input is left-padded with one ``0``
    unless ``strict`` is set, in which case it is rejected.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    body = normalize_hex(value, field)
    if len(body) % 2 != 0:
        if strict:
            raise AbiValidationError(f"{field} has an odd number of hex digits ({len(body)}).")
        body = "0" + body
    return bytes.fromhex(body)


def keccak256(data: Union[str, bytes]) -> bytes:
    """Keccak-256 digest. Text is hashed as UTF-8."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    hasher = keccak.new(digest_bits=256)
    hasher.update(data)
    return hasher.digest()


def parse_units(value: Any, decimals: int) -> int:
    """Scale a decimal amount (``"1.5"``) to an integer of base units."""
    if isinstance(value, bool):
        raise ValueError("amount must be a decimal number.")
    candidate = str(value).strip().replace("_", "")
    negative = candidate.startswith("-")
    if candidate[:1] in ("+", "-"):
        candidate = candidate[1:]
    if "." in candidate:
        whole, frac = candidate.split(".", 1)
    else:
        whole, frac = candidate, ""
    if not (whole or frac) or (whole and not whole.isdigit()) or (frac and not frac.isdigit()):
        raise ValueError("amount must be a decimal number.")
    if len(frac) > decimals:
        raise ValueError(f"amount has more fractional digits than allowed ({decimals}).")
    whole_int = int(whole) if whole else 0
    frac_int = int(frac.ljust(decimals, "0")) if frac else 0
    scaled = whole_int * (10**decimals) + frac_int
    return -scaled if negative else scaled


def format_units(value: int, decimals: int) -> str:
    """Inverse of :func:`parse_units`; trailing zeros are trimmed."""
    if decimals <= 0:
        return str(value)
    negative = value < 0
    s = str(abs(value))
    if len(s) <= decimals:
        s = "0." + "0" * (decimals - len(s)) + s
    else:
        s = s[: len(s) - decimals] + "." + s[len(s) - decimals :]
    s = s.rstrip("0").rstrip(".") or "0"
    if negative:
        s = "-" + s
    return s


def to_satoshi(amount: Any) -> int:
    return parse_units(amount, LUX_DECIMALS)


def from_satoshi(value: int) -> str:
    return format_units(value, LUX_DECIMALS)
