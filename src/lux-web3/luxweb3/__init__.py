from . import decoder as Decoder
from . import encoder as Encoder
from . import utils as Utils
from .abi import Abi
from .contract import Contract
from .errors import (
    AbiValidationError,
    DecodeError,
    LuxWeb3Error,
    ProtocolError,
    RpcError,
    SignatureResolutionError,
    TransportError,
    UnknownTypeError,
)
from .protocols import HttpProtocol
from .web3 import Web3

__all__ = [
    "Abi",
    "AbiValidationError",
    "Contract",
    "DecodeError",
    "Decoder",
    "Encoder",
    "HttpProtocol",
    "LuxWeb3Error",
    "ProtocolError",
    "RpcError",
    "SignatureResolutionError",
    "TransportError",
    "UnknownTypeError",
    "Utils",
    "Web3",
]
