import argparse
import json
import sys
from typing import Any, Optional

from .abi import Abi
from .abi_types import split_type_list
from .config import configure_logging, load_config
from .decoder import decode_call_result, decode_search_log
from .encoder import encode_call, function_selector
from .protocols import HttpProtocol
from .web3 import Web3


def _load_json_file(path: str, what: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except OSError as exc:
        raise ValueError(f"Cannot read {what} file '{path}': {exc.strerror}.") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"{what} file '{path}' is not valid JSON.") from exc


def _parse_args_json(raw: Optional[str]) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("--args must be a JSON array.") from exc
    if not isinstance(value, list):
        raise ValueError("--args must be a JSON array (e.g. '[\"0x...\", 100]').")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Encode and decode Lux contract data and query a Lux node.",
        allow_abbrev=False,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    selector_parser = subparsers.add_parser("selector", help="Compute a function selector")
    selector_parser.add_argument(
        "--signature",
        required=True,
        help="Function signature, e.g. transfer(address,uint256).",
    )

    encode_parser = subparsers.add_parser("encode", help="Encode a contract call")
    encode_parser.add_argument("--abi", required=True, help="Path to the contract ABI JSON.")
    encode_parser.add_argument("--method", required=True, help="Function name or full signature.")
    encode_parser.add_argument("--args", required=False, help="JSON array of arguments.")
    encode_parser.add_argument(
        "--hex-prefix",
        action="store_true",
        help="Prefix the payload with 0x.",
    )

    decode_parser = subparsers.add_parser("decode-result", help="Decode a call result")
    decode_parser.add_argument("--abi", required=True, help="Path to the contract ABI JSON.")
    decode_parser.add_argument("--method", required=True, help="Function name or full signature.")
    decode_parser.add_argument("--data", required=True, help="Hex return data.")

    logs_parser = subparsers.add_parser("decode-logs", help="Decode searchlogs output")
    logs_parser.add_argument("--logs", required=True, help="Path to raw searchlogs JSON.")
    logs_parser.add_argument(
        "--metadata",
        required=True,
        help="Path to JSON mapping contract address to ABI.",
    )
    logs_parser.add_argument(
        "--strip-hex-prefix",
        action="store_true",
        help="Remove 0x from hex-valued decoded fields.",
    )

    call_parser = subparsers.add_parser("call", help="Call a contract function on the node")
    call_parser.add_argument("--address", required=True, help="Contract address (hex).")
    call_parser.add_argument("--abi", required=True, help="Path to the contract ABI JSON.")
    call_parser.add_argument("--method", required=True, help="Function name or full signature.")
    call_parser.add_argument("--args", required=False, help="JSON array of arguments.")
    call_parser.add_argument("--sender", required=False, help="Optional sender address.")

    search_parser = subparsers.add_parser("search-logs", help="Search logs on the node")
    search_parser.add_argument("--from-block", required=True, type=int, help="Starting block.")
    search_parser.add_argument(
        "--to-block",
        required=True,
        type=int,
        help="Ending block, -1 for latest.",
    )
    search_parser.add_argument(
        "--address",
        action="append",
        default=[],
        help="Contract address to filter on (repeatable).",
    )
    search_parser.add_argument(
        "--topic",
        action="append",
        default=[],
        help="Topic hash to filter on (repeatable).",
    )
    search_parser.add_argument(
        "--metadata",
        required=False,
        help="Path to JSON mapping contract address to ABI; omit for raw logs.",
    )
    search_parser.add_argument(
        "--strip-hex-prefix",
        action="store_true",
        help="Remove 0x from hex-valued decoded fields.",
    )

    subparsers.add_parser("block-count", help="Print the node's block count")

    return parser


def _web3() -> Web3:
    config = load_config()
    configure_logging(config)
    return Web3(
        HttpProtocol(
            config.rpc_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )
    )


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "selector":
            text = args.signature.strip()
            if "(" not in text or not text.endswith(")"):
                raise ValueError("signature must be in the form name(type1,type2,...)")
            name, rest = text.split("(", 1)
            types = split_type_list(rest[:-1])
            result = {"signature": text, "selector": function_selector(name.strip(), types)}
        elif args.command == "encode":
            abi = Abi.from_json(_load_json_file(args.abi, "ABI"))
            call_args = _parse_args_json(args.args)
            function = abi.resolve_function(args.method, call_args)
            result = {
                "method": args.method,
                "signature": function.signature,
                "selector": function.selector,
                "data": encode_call(abi, function.signature, call_args, hex_prefix=args.hex_prefix),
            }
        elif args.command == "decode-result":
            abi = Abi.from_json(_load_json_file(args.abi, "ABI"))
            decoded = decode_call_result(abi, args.method, args.data)
            result = {"method": args.method, "outputs": {str(k): v for k, v in decoded.items()}}
        elif args.command == "decode-logs":
            logs = _load_json_file(args.logs, "logs")
            metadata = _load_json_file(args.metadata, "metadata")
            result = decode_search_log(logs, metadata, args.strip_hex_prefix)
        elif args.command == "call":
            abi = _load_json_file(args.abi, "ABI")
            contract = _web3().contract(args.address, abi)
            result = contract.call(args.method, _parse_args_json(args.args), args.sender)
        elif args.command == "search-logs":
            metadata = _load_json_file(args.metadata, "metadata") if args.metadata else None
            result = _web3().search_logs(
                args.from_block,
                args.to_block,
                args.address,
                args.topic,
                metadata,
                args.strip_hex_prefix,
            )
        elif args.command == "block-count":
            result = _web3().get_block_count()
        print(json.dumps(result, indent=2, default=str))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
