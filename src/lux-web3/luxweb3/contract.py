import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .abi import Abi, AbiJson
from .config import DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE
from .decoder import decode_result, decode_search_log
from .encoder import encode_function
from .errors import AbiValidationError, DecodeError
from .utils import normalize_hex

logger = logging.getLogger(__name__)


class Contract:
    """Binds an address and ABI to a protocol for callcontract/sendtocontract."""

    def __init__(self, protocol: Any, address: str, abi: Union[Abi, AbiJson]) -> None:
        self.protocol = protocol
        self.address = normalize_hex(address, "address")
        if len(self.address) != 40:
            raise AbiValidationError("Invalid contract address. Expected 40 hex characters.")
        self.abi = Abi.load(abi)

    def __repr__(self) -> str:
        return f"Contract({self.address!r}, {self.abi!r})"

    def call(
        self,
        method: str,
        args: Optional[Sequence[Any]] = None,
        sender_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute a read-only call. The node result is returned with
        ``executionResult.formattedOutput`` holding the decoded outputs.
        """
        values = list(args or [])
        function = self.abi.resolve_function(method, values)
        data = encode_function(function, values)

        params: List[Any] = [self.address, data]
        if sender_address:
            params.append(sender_address)
        result = self.protocol.raw_call("callcontract", params)

        execution = result.get("executionResult") if isinstance(result, dict) else None
        if not isinstance(execution, dict):
            return result

        output = execution.get("output") or ""
        formatted: Dict[Union[str, int], Any] = {}
        try:
            values_out = decode_result(function.outputs, output) if function.outputs else []
        except DecodeError as exc:
            logger.warning("Could not decode %s output: %s", function.signature, exc)
            execution["formattedOutputError"] = str(exc)
        else:
            formatted = {
                param.name or idx: value for idx, (param, value) in enumerate(zip(function.outputs, values_out))
            }
        execution["formattedOutput"] = formatted
        return result

    def send(
        self,
        method: str,
        args: Optional[Sequence[Any]] = None,
        amount: Union[int, float] = 0,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        gas_price: float = DEFAULT_GAS_PRICE,
        sender_address: Optional[str] = None,
    ) -> Any:
        """Broadcast a state-changing call through sendtocontract."""
        values = list(args or [])
        function = self.abi.resolve_function(method, values)
        data = encode_function(function, values)

        params: List[Any] = [self.address, data, amount, gas_limit, gas_price]
        if sender_address:
            params.append(sender_address)
        return self.protocol.raw_call("sendtocontract", params)

    def decode_logs(self, raw_results: Sequence[Any], strip_hex_prefix: bool = False) -> List[Dict[str, Any]]:
        return decode_search_log(raw_results, {self.address: self.abi}, strip_hex_prefix)
