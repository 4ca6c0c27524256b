"""
MCP server exposing Lux contract encoding/decoding and node queries.
"""

import argparse
from collections.abc import Mapping
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from .abi_types import split_type_list
from .config import configure_logging, load_config
from .decoder import decode_call_result, decode_search_log as _decode_search_log
from .encoder import encode_call as _encode_call, function_selector as _function_selector
from .protocols import HttpProtocol
from .web3 import Web3

server = FastMCP(
    name="lux-web3",
    instructions="Encode Lux contract calls, decode results and event logs, and query a Lux node.",
)

_web3: Optional[Web3] = None


def _get_web3() -> Web3:
    global _web3
    if _web3 is None:
        cfg = load_config()
        _web3 = Web3(
            HttpProtocol(
                cfg.rpc_url,
                timeout=cfg.request_timeout,
                max_retries=cfg.max_retries,
                backoff_seconds=cfg.backoff_seconds,
            )
        )
    return _web3


def _normalize_array_param(value: Optional[Any], name: str) -> Optional[list]:
    """
    Ensure a parameter intended as an array is actually treated as one:
    - str/bytes: likely misuse, raise with guidance
    - list/tuple: keep as list
    - Mapping: reject (not an array)
    - other scalars: auto-wrap into single-element list
    """
    if value is None:
        return None
    if isinstance(value, (str, bytes, bytearray)):
        raise ValueError(f"{name} must be an array (e.g. ['0x...', 123]); got a string/bytes.")
    if isinstance(value, Mapping):
        raise ValueError(f"{name} must be an array, not an object/map.")
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _stringify_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(v) for v in value]
    return value


@server.tool(
    name="function_selector",
    title="Function Selector",
    description="Compute the 4-byte selector of a signature such as transfer(address,uint256).",
)
def function_selector(signature: str) -> dict:
    text = signature.strip()
    if "(" not in text or not text.endswith(")"):
        raise ValueError("signature must be in the form name(type1,type2,...)")
    name, rest = text.split("(", 1)
    return {"signature": text, "selector": _function_selector(name.strip(), split_type_list(rest[:-1]))}


@server.tool(
    name="encode_call",
    title="Encode Contract Call",
    description="ABI-encode a call: selector + arguments. `args` must be an array. Returns un-prefixed hex unless hex_prefix is set.",
)
def encode_call(abi: Any, method: str, args: Optional[Any] = None, hex_prefix: bool = False) -> dict:
    normalized_args = _normalize_array_param(args, "args") or []
    return {"method": method, "data": _encode_call(abi, method, normalized_args, hex_prefix=hex_prefix)}


@server.tool(
    name="decode_result",
    title="Decode Call Result",
    description="Decode hex return data against a function's outputs in the given ABI.",
)
def decode_result(abi: Any, method: str, data: str) -> dict:
    return {"method": method, "outputs": _stringify_keys(decode_call_result(abi, method, data))}


@server.tool(
    name="decode_search_log",
    title="Decode Search Logs",
    description="Decode raw searchlogs results with a mapping of contract address to ABI. Undecodable entries are returned with ok=false.",
)
def decode_search_log(logs: Any, contract_metadata: dict, strip_hex_prefix: bool = False) -> dict:
    normalized_logs = _normalize_array_param(logs, "logs") or []
    return {"logs": _stringify_keys(_decode_search_log(normalized_logs, contract_metadata, strip_hex_prefix))}


@server.tool(
    name="call_contract",
    title="Call Contract Function",
    description="Run callcontract for a function and decode its outputs. `args` must be an array.",
)
def call_contract(
    address: str,
    abi: Any,
    method: str,
    args: Optional[Any] = None,
    sender_address: Optional[str] = None,
) -> dict:
    w3 = _get_web3()
    normalized_args = _normalize_array_param(args, "args")
    return _stringify_keys(w3.contract(address, abi).call(method, normalized_args, sender_address))


@server.tool(
    name="search_logs",
    title="Search Logs",
    description="Run searchlogs over a block range (-1 = latest) and decode with optional contract_metadata.",
)
def search_logs(
    from_block: int,
    to_block: int,
    addresses: Any,
    topics: Optional[Any] = None,
    contract_metadata: Optional[dict] = None,
    remove_hex_prefix: bool = False,
) -> dict:
    w3 = _get_web3()
    results = w3.search_logs(
        from_block,
        to_block,
        addresses,
        topics if topics is not None else [],
        contract_metadata,
        remove_hex_prefix,
    )
    return {"logs": _stringify_keys(results)}


@server.tool(
    name="get_block_count",
    title="Get Block Count",
    description="Current synced block height.",
)
def get_block_count() -> dict:
    return {"block_count": _get_web3().get_block_count()}


@server.tool(
    name="get_block",
    title="Get Block",
    description="Fetch a block by hash.",
)
def get_block(block_hash: str, verbose: bool = True) -> dict:
    return {"block": _get_web3().get_block(block_hash, verbose)}


@server.tool(
    name="get_transaction_receipt",
    title="Get Transaction Receipt",
    description="Fetch the contract receipt(s) of a transaction.",
)
def get_transaction_receipt(txid: str) -> dict:
    return {"receipt": _get_web3().get_transaction_receipt(txid)}


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the lux-web3 MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    configure_logging(load_config())

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
