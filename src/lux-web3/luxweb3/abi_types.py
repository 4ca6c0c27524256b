"""
Type codec: ABI type descriptors and the word-level encode/decode rules.

A descriptor string (``uint256``, ``bytes32[]``, ``(address,string)[2]`` ...) is
parsed once into an :class:`AbiType`. Every ``AbiType`` carries a :class:`TypeKind`
which selects its codec rules from ``_ENCODERS`` and ``_DECODERS``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import AbiValidationError, DecodeError, UnknownTypeError
from .utils import HEX_PREFIX, hex_to_bytes, normalize_hex

WORD_SIZE = 32
UINT256_MASK = (1 << 256) - 1

_ELEMENTARY_RE = re.compile(r"^(uint|int|bytes)(\d*)$")
_DECIMAL_RE = re.compile(r"^[+-]?\d+$")


class TypeKind(Enum):
    UINT = "uint"
    INT = "int"
    ADDRESS = "address"
    BOOL = "bool"
    FIXED_BYTES = "bytesN"
    BYTES = "bytes"
    STRING = "string"
    TUPLE = "tuple"


@dataclass(frozen=True)
class AbiType:
    kind: TypeKind
    # bit width for (u)intN, byte length for bytesN
    size: int = 0
    # textual order: uint256[2][] -> (2, None); the last entry is the outermost array
    dimensions: Tuple[Optional[int], ...] = ()
    components: Tuple[Tuple[str, "AbiType"], ...] = ()

    @property
    def is_array(self) -> bool:
        return bool(self.dimensions)

    @property
    def array_length(self) -> Optional[int]:
        return self.dimensions[-1] if self.dimensions else None

    @property
    def element_type(self) -> AbiType:
        if not self.dimensions:
            raise AbiValidationError(f"{self.canonical} is not an array type.")
        return AbiType(self.kind, self.size, self.dimensions[:-1], self.components)

    @property
    def is_dynamic(self) -> bool:
        if self.dimensions:
            if self.dimensions[-1] is None:
                return True
            return self.element_type.is_dynamic
        if self.kind in (TypeKind.BYTES, TypeKind.STRING):
            return True
        if self.kind is TypeKind.TUPLE:
            return any(component.is_dynamic for _, component in self.components)
        return False

    @property
    def static_size(self) -> int:
        """Bytes taken inline by a static value."""
        if self.is_dynamic:
            raise AbiValidationError(f"{self.canonical} is dynamic; size unknown.")
        if self.dimensions:
            return self.dimensions[-1] * self.element_type.static_size
        if self.kind is TypeKind.TUPLE:
            return sum(component.static_size for _, component in self.components)
        return WORD_SIZE

    @property
    def head_size(self) -> int:
        return WORD_SIZE if self.is_dynamic else self.static_size

    @property
    def base_name(self) -> str:
        if self.kind in (TypeKind.UINT, TypeKind.INT):
            return f"{self.kind.value}{self.size}"
        if self.kind is TypeKind.FIXED_BYTES:
            return f"bytes{self.size}"
        if self.kind is TypeKind.TUPLE:
            return "(" + ",".join(component.canonical for _, component in self.components) + ")"
        return self.kind.value

    @property
    def canonical(self) -> str:
        """Textual form used in signatures: aliases expanded, tuples inlined."""
        dims = "".join("[]" if dim is None else f"[{dim}]" for dim in self.dimensions)
        return self.base_name + dims

    @property
    def is_hex_valued(self) -> bool:
        return self.kind in (TypeKind.ADDRESS, TypeKind.BYTES, TypeKind.FIXED_BYTES)

    def __str__(self) -> str:
        return self.canonical


TypeLike = Union[str, AbiType]


def parse_type(descriptor: TypeLike, components: Optional[Sequence[Mapping[str, Any]]] = None) -> AbiType:
    """Parse an ABI type descriptor; ``components`` is the JSON ``components`` list of a tuple type."""
    if isinstance(descriptor, AbiType):
        return descriptor
    if not isinstance(descriptor, str):
        raise AbiValidationError(f"ABI type must be a string, got {type(descriptor).__name__}.")
    if components:
        base, dims = _split_array_dimensions(descriptor)
        if base != "tuple":
            raise UnknownTypeError(descriptor, "entry with components")
        members = tuple(
            (str(member.get("name") or ""), parse_type(member.get("type", ""), member.get("components")))
            for member in components
        )
        return AbiType(TypeKind.TUPLE, dimensions=dims, components=members)
    return _parse_descriptor(descriptor.strip())


@lru_cache(maxsize=512)
def _parse_descriptor(descriptor: str) -> AbiType:
    base, dims = _split_array_dimensions(descriptor)

    if base.startswith("(") and base.endswith(")"):
        members = tuple(("", _parse_descriptor(part)) for part in split_type_list(base[1:-1]))
        return AbiType(TypeKind.TUPLE, dimensions=dims, components=members)

    if base == "address":
        return AbiType(TypeKind.ADDRESS, dimensions=dims)
    if base == "bool":
        return AbiType(TypeKind.BOOL, dimensions=dims)
    if base == "string":
        return AbiType(TypeKind.STRING, dimensions=dims)
    if base == "bytes":
        return AbiType(TypeKind.BYTES, dimensions=dims)
    if base == "tuple":
        raise UnknownTypeError(descriptor, "tuple without components")

    match = _ELEMENTARY_RE.match(base)
    if not match:
        raise UnknownTypeError(descriptor)
    prefix, size_part = match.groups()
    if prefix == "bytes":
        size = int(size_part)
        if size < 1 or size > 32:
            raise UnknownTypeError(descriptor, "bytesN size must be between 1 and 32")
        return AbiType(TypeKind.FIXED_BYTES, size, dims)

    bits = int(size_part) if size_part else 256
    if bits <= 0 or bits > 256 or bits % 8 != 0:
        raise UnknownTypeError(descriptor, f"unsupported {prefix} size {bits}")
    kind = TypeKind.UINT if prefix == "uint" else TypeKind.INT
    return AbiType(kind, bits, dims)


def _split_array_dimensions(descriptor: str) -> Tuple[str, Tuple[Optional[int], ...]]:
    base = descriptor.strip()
    dims: List[Optional[int]] = []
    while base.endswith("]"):
        lidx = base.rfind("[")
        if lidx < 0:
            raise UnknownTypeError(descriptor)
        dim_str = base[lidx + 1 : -1].strip()
        if dim_str == "":
            dims.insert(0, None)
        elif dim_str.isdigit() and int(dim_str) > 0:
            dims.insert(0, int(dim_str))
        else:
            raise UnknownTypeError(descriptor, "invalid array dimension")
        base = base[:lidx].strip()
    if not base:
        raise UnknownTypeError(descriptor)
    return base, tuple(dims)


def split_type_list(text: str) -> List[str]:
    """Split ``uint256,(address,bool)[],string`` on top-level commas."""
    types: List[str] = []
    if not text.strip():
        return types
    depth = 0
    buf = ""
    for ch in text:
        if ch == "," and depth == 0:
            types.append(buf.strip())
            buf = ""
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        buf += ch
    types.append(buf.strip())
    if any(not t for t in types) or depth != 0:
        raise AbiValidationError(f"Malformed type list '({text})'.")
    return types


# ---------------------------------------------------------------------------
# encoding


def _uint_word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big")


def _to_int(abi_type: AbiType, value: Any) -> int:
    if isinstance(value, bool):
        raise AbiValidationError(f"{abi_type} value must be an integer, got bool.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        candidate = value.strip().replace("_", "")
        if candidate.lower().startswith(HEX_PREFIX):
            try:
                return int(candidate, 16)
            except ValueError as exc:
                raise AbiValidationError(f"{abi_type} value '{value}' is not a valid hex integer.") from exc
        if _DECIMAL_RE.match(candidate):
            return int(candidate, 10)
    raise AbiValidationError(f"{abi_type} value must be an integer, got {value!r}.")


def _encode_uint(abi_type: AbiType, value: Any) -> bytes:
    ivalue = _to_int(abi_type, value)
    if ivalue < 0 or ivalue >= 1 << abi_type.size:
        raise AbiValidationError(f"{abi_type} value {ivalue} out of range.")
    return _uint_word(ivalue)


def _encode_int(abi_type: AbiType, value: Any) -> bytes:
    ivalue = _to_int(abi_type, value)
    bound = 1 << (abi_type.size - 1)
    if ivalue < -bound or ivalue >= bound:
        raise AbiValidationError(f"{abi_type} value {ivalue} out of range.")
    return _uint_word(ivalue & UINT256_MASK)


def _encode_bool(abi_type: AbiType, value: Any) -> bytes:
    if isinstance(value, bool):
        return _uint_word(1 if value else 0)
    if isinstance(value, int) and value in (0, 1):
        return _uint_word(value)
    raise AbiValidationError(f"bool value must be True/False or 0/1, got {value!r}.")


def _encode_address(abi_type: AbiType, value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        body = normalize_hex(value, "address")
        if len(body) != 40:
            raise AbiValidationError(f"Invalid address value '{value}': expected 40 hex characters.")
        raw = bytes.fromhex(body)
    else:
        raise AbiValidationError(f"address value must be a hex string, got {value!r}.")
    if len(raw) != 20:
        raise AbiValidationError("address value must be 20 bytes.")
    return raw.rjust(WORD_SIZE, b"\x00")


def _to_bytes(abi_type: AbiType, value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return hex_to_bytes(value, str(abi_type))
    raise AbiValidationError(f"{abi_type} value must be a hex string or bytes, got {value!r}.")


def _encode_fixed_bytes(abi_type: AbiType, value: Any) -> bytes:
    raw = _to_bytes(abi_type, value)
    if len(raw) > abi_type.size:
        raise AbiValidationError(f"{abi_type} holds at most {abi_type.size} bytes, got {len(raw)}.")
    return raw.ljust(WORD_SIZE, b"\x00")


def _encode_dynamic_bytes(data: bytes) -> bytes:
    padded = data + b"\x00" * ((WORD_SIZE - len(data) % WORD_SIZE) % WORD_SIZE)
    return _uint_word(len(data)) + padded


def _encode_bytes(abi_type: AbiType, value: Any) -> bytes:
    return _encode_dynamic_bytes(_to_bytes(abi_type, value))


def _encode_string(abi_type: AbiType, value: Any) -> bytes:
    if not isinstance(value, str):
        raise AbiValidationError(f"string value must be a str, got {value!r}.")
    return _encode_dynamic_bytes(value.encode("utf-8"))


def _encode_tuple(abi_type: AbiType, value: Any) -> bytes:
    names = [name for name, _ in abi_type.components]
    types = [component for _, component in abi_type.components]
    if isinstance(value, Mapping):
        # decoded tuples key unnamed components by position
        keys = [name or idx for idx, name in enumerate(names)]
        missing = [str(key) for key in keys if key not in value]
        if missing:
            raise AbiValidationError(f"{abi_type} value is missing components: {', '.join(missing)}.")
        ordered = [value[key] for key in keys]
    elif isinstance(value, (list, tuple)):
        ordered = list(value)
    else:
        raise AbiValidationError(f"{abi_type} value must be a list, tuple or dict, got {value!r}.")
    return encode_values(types, ordered)


_ENCODERS: Dict[TypeKind, Callable[[AbiType, Any], bytes]] = {
    TypeKind.UINT: _encode_uint,
    TypeKind.INT: _encode_int,
    TypeKind.BOOL: _encode_bool,
    TypeKind.ADDRESS: _encode_address,
    TypeKind.FIXED_BYTES: _encode_fixed_bytes,
    TypeKind.BYTES: _encode_bytes,
    TypeKind.STRING: _encode_string,
    TypeKind.TUPLE: _encode_tuple,
}


def _encode_array(abi_type: AbiType, value: Any) -> bytes:
    if not isinstance(value, (list, tuple)):
        raise AbiValidationError(f"{abi_type} value must be a list or tuple, got {value!r}.")
    values = list(value)
    length = abi_type.array_length
    if length is not None and len(values) != length:
        raise AbiValidationError(f"{abi_type} expects {length} elements, got {len(values)}.")
    element = abi_type.element_type
    body = encode_values([element] * len(values), values)
    if length is None:
        return _uint_word(len(values)) + body
    return body


def _encode(abi_type: AbiType, value: Any) -> bytes:
    if abi_type.dimensions:
        return _encode_array(abi_type, value)
    return _ENCODERS[abi_type.kind](abi_type, value)


def encode_values(types: Sequence[TypeLike], values: Sequence[Any]) -> bytes:
    """Head/tail encode an ordered sequence (argument list, tuple body or array body)."""
    parsed = [parse_type(t) for t in types]
    if len(parsed) != len(values):
        raise AbiValidationError(f"Expected {len(parsed)} values, got {len(values)}.")

    head_parts: List[bytes] = []
    tail_parts: List[bytes] = []
    tail_offset = sum(t.head_size for t in parsed)
    for abi_type, value in zip(parsed, values):
        encoded = _encode(abi_type, value)
        if abi_type.is_dynamic:
            # head holds the byte offset of this value's tail, measured from the sequence start
            head_parts.append(_uint_word(tail_offset))
            tail_parts.append(encoded)
            tail_offset += len(encoded)
        else:
            head_parts.append(encoded)
    return b"".join(head_parts + tail_parts)


def encode_value(type_: TypeLike, value: Any) -> str:
    """Encode one value. Dynamic types return their standalone (tail) encoding."""
    return _encode(parse_type(type_), value).hex()


def is_compatible(type_: TypeLike, value: Any) -> bool:
    try:
        _encode(parse_type(type_), value)
    except AbiValidationError:
        return False
    return True


# ---------------------------------------------------------------------------
# decoding


def _read_word(data: bytes, offset: int) -> bytes:
    end = offset + WORD_SIZE
    if offset < 0 or end > len(data):
        raise DecodeError(
            f"Data shorter than expected: need a word at byte {offset}, have {len(data)} bytes."
        )
    return data[offset:end]


def _read_uint(data: bytes, offset: int) -> int:
    return int.from_bytes(_read_word(data, offset), "big")


def _read_dynamic_bytes(abi_type: AbiType, data: bytes, offset: int) -> bytes:
    length = _read_uint(data, offset)
    start = offset + WORD_SIZE
    end = start + length
    if end > len(data):
        raise DecodeError(f"{abi_type} out of range: length {length} at byte {offset}.")
    return data[start:end]


def _decode_uint(abi_type: AbiType, data: bytes, offset: int) -> int:
    return _read_uint(data, offset) & ((1 << abi_type.size) - 1)


def _decode_int(abi_type: AbiType, data: bytes, offset: int) -> int:
    bits = abi_type.size
    value = _read_uint(data, offset) & ((1 << bits) - 1)
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


def _decode_bool(abi_type: AbiType, data: bytes, offset: int) -> bool:
    return _read_uint(data, offset) != 0


def _decode_address(abi_type: AbiType, data: bytes, offset: int) -> str:
    return HEX_PREFIX + _read_word(data, offset)[-20:].hex()


def _decode_fixed_bytes(abi_type: AbiType, data: bytes, offset: int) -> str:
    return HEX_PREFIX + _read_word(data, offset)[: abi_type.size].hex()


def _decode_bytes(abi_type: AbiType, data: bytes, offset: int) -> str:
    return HEX_PREFIX + _read_dynamic_bytes(abi_type, data, offset).hex()


def _decode_string(abi_type: AbiType, data: bytes, offset: int) -> str:
    return _read_dynamic_bytes(abi_type, data, offset).decode("utf-8", errors="replace")


def _decode_tuple(abi_type: AbiType, data: bytes, offset: int) -> Dict[Union[str, int], Any]:
    values = decode_values([component for _, component in abi_type.components], data, offset)
    return {
        (name or idx): value for idx, ((name, _), value) in enumerate(zip(abi_type.components, values))
    }


_DECODERS: Dict[TypeKind, Callable[[AbiType, bytes, int], Any]] = {
    TypeKind.UINT: _decode_uint,
    TypeKind.INT: _decode_int,
    TypeKind.BOOL: _decode_bool,
    TypeKind.ADDRESS: _decode_address,
    TypeKind.FIXED_BYTES: _decode_fixed_bytes,
    TypeKind.BYTES: _decode_bytes,
    TypeKind.STRING: _decode_string,
    TypeKind.TUPLE: _decode_tuple,
}


def _decode_array(abi_type: AbiType, data: bytes, offset: int) -> List[Any]:
    element = abi_type.element_type
    length = abi_type.array_length
    base = offset
    if length is None:
        length = _read_uint(data, offset)
        base = offset + WORD_SIZE
    if base + length * element.head_size > len(data):
        raise DecodeError(f"{abi_type} out of range: {length} elements at byte {offset}.")
    return decode_values([element] * length, data, base)


def _decode(abi_type: AbiType, data: bytes, offset: int) -> Any:
    """Decode at ``offset``: the head slot for static types, the content start for dynamic ones."""
    if abi_type.dimensions:
        return _decode_array(abi_type, data, offset)
    return _DECODERS[abi_type.kind](abi_type, data, offset)


def decode_values(types: Sequence[TypeLike], data: bytes, offset: int = 0) -> List[Any]:
    """Inverse of :func:`encode_values`; tail offsets are relative to ``offset``."""
    parsed = [parse_type(t) for t in types]
    values: List[Any] = []
    cursor = offset
    for abi_type in parsed:
        if abi_type.is_dynamic:
            pointer = _read_uint(data, cursor)
            if offset + pointer > len(data):
                raise DecodeError(f"{abi_type} offset {pointer} points past the end of the data.")
            values.append(_decode(abi_type, data, offset + pointer))
            cursor += WORD_SIZE
        else:
            values.append(_decode(abi_type, data, cursor))
            cursor += abi_type.static_size
    return values


def to_blob(data: Union[str, bytes, bytearray], field: str = "data") -> bytes:
    try:
        return hex_to_bytes(data, field, strict=True)
    except AbiValidationError as exc:
        raise DecodeError(str(exc)) from exc


def decode_value(type_: TypeLike, data: Union[str, bytes]) -> Any:
    """Decode one value from the output of :func:`encode_value`."""
    return _decode(parse_type(type_), to_blob(data), 0)


def strip_hex_values(type_: TypeLike, value: Any) -> Any:
    """Drop the ``0x`` marker from hex-valued leaves (address/bytes/bytesN), following arrays and tuples."""
    abi_type = parse_type(type_)
    if abi_type.dimensions and isinstance(value, list):
        element = abi_type.element_type
        return [strip_hex_values(element, item) for item in value]
    if abi_type.kind is TypeKind.TUPLE and isinstance(value, dict):
        return {
            key: strip_hex_values(component, value[key])
            for key, (_, component) in zip(value.keys(), abi_type.components)
        }
    if abi_type.is_hex_valued and isinstance(value, str) and value.startswith(HEX_PREFIX):
        return value[len(HEX_PREFIX) :]
    return value
