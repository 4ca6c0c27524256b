from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .abi_types import AbiType, is_compatible, parse_type, split_type_list
from .errors import AbiValidationError, SignatureResolutionError, UnknownTypeError
from .utils import keccak256

IGNORED_KINDS = {"constructor", "fallback", "receive", "error"}

AbiJson = Union[str, Sequence[Mapping[str, Any]]]


@dataclass(frozen=True)
class AbiParam:
    name: str
    type: AbiType
    indexed: bool = False


def signature_of(name: str, types: Sequence[AbiType]) -> str:
    return f"{name}({','.join(t.canonical for t in types)})"


@dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    inputs: Tuple[AbiParam, ...]
    outputs: Tuple[AbiParam, ...]
    constant: bool = False
    payable: bool = False
    state_mutability: Optional[str] = None

    kind = "function"

    @property
    def input_types(self) -> List[AbiType]:
        return [param.type for param in self.inputs]

    @property
    def output_types(self) -> List[AbiType]:
        return [param.type for param in self.outputs]

    @property
    def signature(self) -> str:
        return signature_of(self.name, self.input_types)

    @property
    def selector(self) -> str:
        """4-byte selector as 8 lowercase hex chars."""
        return keccak256(self.signature)[:4].hex()


@dataclass(frozen=True)
class EventDescriptor:
    name: str
    inputs: Tuple[AbiParam, ...]
    anonymous: bool = False

    kind = "event"

    @property
    def signature(self) -> str:
        # topic hash covers every input, indexed or not
        return signature_of(self.name, [param.type for param in self.inputs])

    @property
    def topic(self) -> str:
        """Full 32-byte topic as 64 lowercase hex chars."""
        return keccak256(self.signature).hex()

    @property
    def indexed_inputs(self) -> List[AbiParam]:
        return [param for param in self.inputs if param.indexed]

    @property
    def data_inputs(self) -> List[AbiParam]:
        return [param for param in self.inputs if not param.indexed]


class Abi:
    """A contract ABI, validated once at load time."""

    def __init__(self, functions: Sequence[FunctionDescriptor], events: Sequence[EventDescriptor]) -> None:
        self.functions: List[FunctionDescriptor] = list(functions)
        self.events: List[EventDescriptor] = list(events)

    def __repr__(self) -> str:
        return f"Abi(functions={len(self.functions)}, events={len(self.events)})"

    @classmethod
    def load(cls, abi: Union[Abi, AbiJson]) -> Abi:
        if isinstance(abi, Abi):
            return abi
        return cls.from_json(abi)

    @classmethod
    def from_json(cls, abi: AbiJson) -> Abi:
        if isinstance(abi, str):
            try:
                abi = json.loads(abi)
            except json.JSONDecodeError as exc:
                raise AbiValidationError("Invalid ABI JSON.") from exc
        if not isinstance(abi, (list, tuple)):
            raise AbiValidationError("ABI must be a list of entries.")

        functions: List[FunctionDescriptor] = []
        events: List[EventDescriptor] = []
        for idx, entry in enumerate(abi):
            if not isinstance(entry, Mapping):
                raise AbiValidationError(f"ABI entry {idx} must be an object.")
            kind = entry.get("type", "function")
            if kind in IGNORED_KINDS:
                continue
            if kind == "function":
                functions.append(cls._parse_function(idx, entry))
            elif kind == "event":
                events.append(cls._parse_event(idx, entry))
            else:
                raise AbiValidationError(f"ABI entry {idx} has unknown type '{kind}'.")
        return cls(functions, events)

    @staticmethod
    def _entry_name(idx: int, entry: Mapping[str, Any]) -> str:
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            raise AbiValidationError(f"ABI entry {idx} is missing a name.")
        return name

    @staticmethod
    def _parse_params(
        idx: int, entity: str, params: Any, allow_indexed: bool = False
    ) -> Tuple[AbiParam, ...]:
        if params is None:
            return ()
        if not isinstance(params, list):
            raise AbiValidationError(f"ABI entry {idx} ({entity}) has malformed parameters.")
        parsed: List[AbiParam] = []
        for param in params:
            if not isinstance(param, Mapping):
                raise AbiValidationError(f"ABI entry {idx} ({entity}) has malformed parameters.")
            try:
                abi_type = parse_type(param.get("type", ""), param.get("components"))
            except UnknownTypeError as exc:
                raise UnknownTypeError(exc.descriptor, f"ABI entry {idx} ({entity})") from exc
            except AbiValidationError as exc:
                raise AbiValidationError(f"{exc} (ABI entry {idx}, {entity})") from exc
            parsed.append(
                AbiParam(
                    name=str(param.get("name") or ""),
                    type=abi_type,
                    indexed=bool(param.get("indexed")) if allow_indexed else False,
                )
            )
        return tuple(parsed)

    @classmethod
    def _parse_function(cls, idx: int, entry: Mapping[str, Any]) -> FunctionDescriptor:
        name = cls._entry_name(idx, entry)
        mutability = entry.get("stateMutability")
        return FunctionDescriptor(
            name=name,
            inputs=cls._parse_params(idx, name, entry.get("inputs")),
            outputs=cls._parse_params(idx, name, entry.get("outputs")),
            constant=bool(entry.get("constant")) or mutability in ("view", "pure"),
            payable=bool(entry.get("payable")) or mutability == "payable",
            state_mutability=mutability,
        )

    @classmethod
    def _parse_event(cls, idx: int, entry: Mapping[str, Any]) -> EventDescriptor:
        name = cls._entry_name(idx, entry)
        return EventDescriptor(
            name=name,
            inputs=cls._parse_params(idx, name, entry.get("inputs"), allow_indexed=True),
            anonymous=bool(entry.get("anonymous")),
        )

    def find_functions(self, name: str) -> List[FunctionDescriptor]:
        return [fn for fn in self.functions if fn.name == name]

    def resolve_function(self, method: str, args: Optional[Sequence[Any]] = None) -> FunctionDescriptor:
        """
        Pick the function a call refers to.

        ``method`` is either a bare name or a full signature such as
        ``transfer(address,uint256)``. Bare names are narrowed by argument count and
        then by whether every argument encodes under the candidate's input types.
        When ``args`` is None only the name (or signature) is used.
        """
        text = (method or "").strip()
        if "(" in text:
            return self._resolve_signature(text, args)

        candidates = self.find_functions(text)
        if not candidates:
            raise SignatureResolutionError(text, f"Function '{text}' not found in ABI.")
        all_signatures = [fn.signature for fn in candidates]

        if args is None:
            if len(candidates) == 1:
                return candidates[0]
            raise SignatureResolutionError(
                text, f"Function '{text}' is overloaded; pass a full signature.", all_signatures
            )

        by_count = [fn for fn in candidates if len(fn.inputs) == len(args)]
        if not by_count:
            if len(candidates) == 1:
                expected = len(candidates[0].inputs)
                raise SignatureResolutionError(
                    text, f"Argument count mismatch for '{text}': expected {expected}, got {len(args)}."
                )
            raise SignatureResolutionError(
                text, f"No overload of '{text}' takes {len(args)} arguments.", all_signatures
            )
        if len(by_count) == 1:
            return by_count[0]

        compatible = [
            fn for fn in by_count if all(is_compatible(t, arg) for t, arg in zip(fn.input_types, args))
        ]
        if len(compatible) == 1:
            return compatible[0]
        if not compatible:
            raise SignatureResolutionError(
                text, f"No overload of '{text}' accepts the given arguments.", [fn.signature for fn in by_count]
            )
        raise SignatureResolutionError(
            text, f"Call to '{text}' is ambiguous.", [fn.signature for fn in compatible]
        )

    def _resolve_signature(self, text: str, args: Optional[Sequence[Any]]) -> FunctionDescriptor:
        if not text.endswith(")"):
            raise SignatureResolutionError(text, "Signature must look like name(type1,type2,...).")
        name, rest = text.split("(", 1)
        canonical = signature_of(name.strip(), [parse_type(t) for t in split_type_list(rest[:-1])])
        for fn in self.functions:
            if fn.signature == canonical:
                if args is not None and len(args) != len(fn.inputs):
                    raise SignatureResolutionError(
                        text,
                        f"Argument count mismatch for '{canonical}': expected {len(fn.inputs)}, got {len(args)}.",
                    )
                return fn
        raise SignatureResolutionError(
            text, f"Function '{canonical}' not found in ABI.", [fn.signature for fn in self.find_functions(name.strip())]
        )

    def find_event(self, topic: str) -> Optional[EventDescriptor]:
        """First non-anonymous event whose topic equals ``topic`` (prefix/case-insensitive)."""
        wanted = topic.lower()
        if wanted.startswith("0x"):
            wanted = wanted[2:]
        for event in self.events:
            if not event.anonymous and event.topic == wanted:
                return event
        return None

    def event_by_name(self, name: str) -> Optional[EventDescriptor]:
        for event in self.events:
            if event.name == name:
                return event
        return None
