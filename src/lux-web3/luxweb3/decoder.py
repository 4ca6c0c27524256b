"""
Result and event log decoding.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .abi import Abi, AbiJson, AbiParam, EventDescriptor
from .abi_types import (
    AbiType,
    TypeKind,
    decode_value,
    decode_values,
    parse_type,
    strip_hex_values,
    to_blob,
)
from .errors import AbiValidationError, DecodeError
from .utils import HEX_PREFIX, strip_hex_prefix

logger = logging.getLogger(__name__)

__all__ = [
    "decode_call_result",
    "decode_event",
    "decode_result",
    "decode_search_log",
    "decode_value",
]

OutputLike = Union[str, AbiType, AbiParam, Mapping[str, Any]]
ContractMetadata = Mapping[str, Any]


def _as_type(output: OutputLike) -> AbiType:
    if isinstance(output, AbiParam):
        return output.type
    if isinstance(output, Mapping):
        return parse_type(output.get("type", ""), output.get("components"))
    return parse_type(output)


def decode_result(output_types: Sequence[OutputLike], hex_blob: Union[str, bytes]) -> List[Any]:
    """Decode a call's return data into its ordered output values."""
    types = [_as_type(output) for output in output_types]
    blob = to_blob(hex_blob, "result")
    head_length = sum(t.head_size for t in types)
    if len(blob) < head_length:
        raise DecodeError(
            f"Result is {len(blob)} bytes, expected at least {head_length} for {len(types)} outputs."
        )
    return decode_values(types, blob)


def decode_call_result(
    abi: Union[Abi, AbiJson], method: str, hex_blob: Union[str, bytes]
) -> Dict[Union[str, int], Any]:
    """Decode return data against a function's outputs, keyed by output name (position when unnamed)."""
    function = Abi.load(abi).resolve_function(method)
    values = decode_result(function.outputs, hex_blob)
    return {param.name or idx: value for idx, (param, value) in enumerate(zip(function.outputs, values))}


def _topic_is_hash(abi_type: AbiType) -> bool:
    # only value types are stored in a topic as-is; everything else is keccak256 of its encoding
    return abi_type.is_dynamic or abi_type.is_array or abi_type.kind is TypeKind.TUPLE


def decode_event(
    event: EventDescriptor,
    topics: Sequence[str],
    data: Union[str, bytes],
    strip_hex_prefix: bool = False,
) -> Dict[Union[str, int], Any]:
    """Decode one log entry already matched to ``event``; fields come back in declaration order."""
    indexed = event.indexed_inputs
    topic_values = list(topics[1:]) if not event.anonymous else list(topics)
    if len(topic_values) < len(indexed):
        raise DecodeError(
            f"{event.signature} has {len(indexed)} indexed inputs but the log carries {len(topic_values)} topics."
        )

    topic_iter = iter(topic_values)
    data_values = iter(decode_result(event.data_inputs, data))

    fields: Dict[Union[str, int], Any] = {}
    for idx, param in enumerate(event.inputs):
        if param.indexed:
            word = to_blob(next(topic_iter), "topic")
            if len(word) != 32:
                raise DecodeError(f"Topic for '{param.name or idx}' is {len(word)} bytes, expected 32.")
            if _topic_is_hash(param.type):
                value = HEX_PREFIX + word.hex()
                if strip_hex_prefix:
                    value = value[len(HEX_PREFIX) :]
            else:
                value = decode_values([param.type], word)[0]
                if strip_hex_prefix:
                    value = strip_hex_values(param.type, value)
        else:
            value = next(data_values)
            if strip_hex_prefix:
                value = strip_hex_values(param.type, value)
        fields[param.name or idx] = value
    return fields


def _address_key(address: Any) -> str:
    return strip_hex_prefix(str(address).strip()).lower()


def build_metadata_index(contract_metadata: Optional[ContractMetadata]) -> Dict[str, Abi]:
    """
    Map normalized contract addresses to loaded ABIs.

    Accepts ``{address: abi}`` as well as ``{label: {"address": ..., "abi": ...}}``.
    """
    index: Dict[str, Abi] = {}
    if not contract_metadata:
        return index
    if not isinstance(contract_metadata, Mapping):
        raise AbiValidationError("contract metadata must be a mapping of address to ABI.")
    for key, value in contract_metadata.items():
        address, abi = key, value
        if isinstance(value, Mapping) and "abi" in value:
            address = value.get("address") or key
            abi = value["abi"]
        index[_address_key(address)] = Abi.load(abi)
    return index


def _match_event(entry: Mapping[str, Any], index: Mapping[str, Abi]) -> Tuple[EventDescriptor, List[str]]:
    address = entry.get("address")
    if not isinstance(address, str) or not address:
        raise DecodeError("log entry has no address.")
    abi = index.get(_address_key(address))
    if abi is None:
        raise DecodeError(f"No ABI registered for address {address}.")

    topics = entry.get("topics")
    if not isinstance(topics, list) or not topics:
        raise DecodeError(f"log entry for {address} has no topics.")
    event = abi.find_event(str(topics[0]))
    if event is None:
        raise DecodeError(f"No event in the ABI for {address} matches topic {topics[0]}.")
    return event, [str(topic) for topic in topics]


def _decode_entry(
    position: Union[int, str],
    entry: Any,
    index: Mapping[str, Abi],
    strip_hex_prefix: bool,
) -> Dict[str, Any]:
    if not isinstance(entry, Mapping):
        return {
            "ok": False,
            "error": str(DecodeError("log entry must be an object.", entry_index=position)),
            "event": None,
            "signature": None,
            "fields": None,
            "raw": entry,
        }

    decoded: Dict[str, Any] = dict(entry)
    try:
        event, topics = _match_event(entry, index)
        fields = decode_event(event, topics, entry.get("data") or "", strip_hex_prefix)
    except DecodeError as exc:
        error = DecodeError(str(exc), entry_index=position)
        logger.warning("Leaving log undecoded: %s", error)
        decoded.update({"ok": False, "error": str(error), "event": None, "signature": None, "fields": None})
        return decoded

    decoded.update(
        {"ok": True, "error": None, "event": event.name, "signature": event.signature, "fields": fields}
    )
    return decoded


def decode_search_log(
    raw_results: Optional[Sequence[Any]],
    contract_metadata: Optional[ContractMetadata],
    strip_hex_prefix: bool = False,
) -> List[Dict[str, Any]]:
    """
    Decode ``searchlogs`` output.

    Each result is either a log entry or a receipt whose ``log`` list holds the
    entries. Every entry comes back with ``ok``/``error``; on success also
    ``event``, ``signature`` and ``fields``. Undecodable entries are kept, marked
    ``ok=False``, and never stop the rest of the batch.
    """
    if raw_results is None:
        return []
    if not isinstance(raw_results, (list, tuple)):
        raise AbiValidationError("search log results must be a list.")

    index = build_metadata_index(contract_metadata)
    decoded: List[Dict[str, Any]] = []
    for idx, result in enumerate(raw_results):
        if isinstance(result, Mapping) and isinstance(result.get("log"), list):
            receipt = dict(result)
            receipt["log"] = [
                _decode_entry(f"{idx}.{log_idx}", entry, index, strip_hex_prefix)
                for log_idx, entry in enumerate(result["log"])
            ]
            decoded.append(receipt)
        else:
            decoded.append(_decode_entry(idx, result, index, strip_hex_prefix))
    return decoded
