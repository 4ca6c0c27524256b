"""
Call encoder: selector + head/tail encoded arguments.
"""

import logging
from typing import Any, Optional, Sequence, Union

from .abi import Abi, AbiJson, FunctionDescriptor, signature_of
from .abi_types import TypeLike, encode_value, encode_values, parse_type
from .errors import AbiValidationError, SignatureResolutionError
from .utils import HEX_PREFIX, keccak256

logger = logging.getLogger(__name__)

__all__ = [
    "encode_arguments",
    "encode_call",
    "encode_value",
    "event_topic",
    "function_selector",
]


def function_selector(name: str, types: Sequence[TypeLike] = ()) -> str:
    """First 4 bytes of keccak256(``name(type1,...)``) as 8 hex chars."""
    return keccak256(signature_of(name, [parse_type(t) for t in types]))[:4].hex()


def event_topic(name: str, types: Sequence[TypeLike] = ()) -> str:
    """Full keccak256 of the event signature as 64 hex chars."""
    return keccak256(signature_of(name, [parse_type(t) for t in types])).hex()


def encode_arguments(types: Sequence[TypeLike], args: Sequence[Any]) -> str:
    return encode_values(types, list(args)).hex()


def encode_function(function: FunctionDescriptor, args: Sequence[Any] = (), hex_prefix: bool = False) -> str:
    values = list(args)
    if len(values) != len(function.inputs):
        raise SignatureResolutionError(
            function.name,
            f"Argument count mismatch for '{function.signature}': expected {len(function.inputs)}, got {len(values)}.",
        )
    try:
        body = encode_values(function.input_types, values)
    except AbiValidationError as exc:
        raise AbiValidationError(f"Cannot encode arguments for '{function.signature}': {exc}") from exc

    payload = function.selector + body.hex()
    logger.debug("encoded %s -> %d bytes", function.signature, len(payload) // 2)
    return HEX_PREFIX + payload if hex_prefix else payload


def encode_call(
    abi: Union[Abi, AbiJson],
    method: str,
    args: Optional[Sequence[Any]] = None,
    hex_prefix: bool = False,
) -> str:
    """
    Encode a contract call.

    :param abi: contract ABI (``Abi`` or raw JSON)
    :param method: function name, or full signature to pick an overload explicitly
    :param args: ordered arguments
    :param hex_prefix: prepend ``0x`` to the payload (Lux callcontract expects it without)
    """
    values = list(args or [])
    function = Abi.load(abi).resolve_function(method, values)
    return encode_function(function, values, hex_prefix=hex_prefix)
