from typing import Any, List, Optional, Sequence, Union


class LuxWeb3Error(Exception):
    """Base class for every error raised by luxweb3."""


class AbiValidationError(LuxWeb3Error, ValueError):
    """Bad argument type/shape or malformed ABI. Raised before any output is produced."""


class UnknownTypeError(AbiValidationError):
    def __init__(self, descriptor: str, context: Optional[str] = None) -> None:
        self.descriptor = descriptor
        message = f"Unsupported ABI type '{descriptor}'"
        if context:
            message += f" in {context}"
        super().__init__(message + ".")


class SignatureResolutionError(AbiValidationError):
    def __init__(self, method: str, message: str, candidates: Optional[Sequence[str]] = None) -> None:
        self.method = method
        self.candidates: List[str] = list(candidates or [])
        detail = message
        if self.candidates:
            detail += f" Candidates: {', '.join(self.candidates)}."
        super().__init__(detail)


class DecodeError(LuxWeb3Error, ValueError):
    """Truncated or malformed hex data, or a log entry that matches no event."""

    def __init__(self, message: str, entry_index: Optional[Union[int, str]] = None) -> None:
        self.entry_index = entry_index
        if entry_index is not None:
            message = f"entry {entry_index}: {message}"
        super().__init__(message)


class ProtocolError(LuxWeb3Error, ValueError):
    """The provider handed to Web3 is neither a URL nor an object with raw_call()."""


class TransportError(LuxWeb3Error):
    """Network or HTTP failure while talking to the node."""


class RpcError(TransportError):
    def __init__(
        self,
        method: str,
        code: Optional[int] = None,
        message: Optional[str] = None,
        data: Any = None,
    ) -> None:
        self.method = method
        self.code = code
        self.data = data
        parts: List[str] = []
        if code is not None:
            parts.append(f"code {code}")
        if message:
            parts.append(str(message))
        if data:
            parts.append(str(data))
        detail = ": ".join(parts) if parts else "unknown error"
        super().__init__(f"RPC error in {method}: {detail}.")
