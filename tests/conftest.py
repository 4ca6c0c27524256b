import pytest

TOKEN_ADDRESS = "aa" * 20
OTHER_ADDRESS = "bb" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20

TRANSFER_TOPIC = "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
APPROVAL_TOPIC = "8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "payable": False,
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [{"name": "_to", "type": "address"}, {"name": "_value", "type": "uint256"}],
        "name": "transfer",
        "outputs": [{"name": "success", "type": "bool"}],
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": True, "name": "spender", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Approval",
        "type": "event",
    },
    {"inputs": [{"name": "_supply", "type": "uint256"}], "type": "constructor"},
]

REGISTRY_ABI = [
    {
        "inputs": [{"name": "label", "type": "string"}, {"name": "count", "type": "uint256"}],
        "name": "register",
        "outputs": [],
        "type": "function",
    },
    {
        "inputs": [{"name": "id", "type": "uint256"}],
        "name": "entry",
        "outputs": [
            {"name": "label", "type": "string"},
            {"name": "owner", "type": "address"},
            {"name": "tags", "type": "bytes32[]"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {"inputs": [{"name": "value", "type": "uint256"}], "name": "set", "outputs": [], "type": "function"},
    {"inputs": [{"name": "value", "type": "string"}], "name": "set", "outputs": [], "type": "function"},
    {
        "inputs": [{"name": "a", "type": "uint256"}, {"name": "b", "type": "uint256"}],
        "name": "set",
        "outputs": [],
        "type": "function",
    },
    {"inputs": [{"name": "value", "type": "uint256"}], "name": "pick", "outputs": [], "type": "function"},
    {"inputs": [{"name": "value", "type": "int256"}], "name": "pick", "outputs": [], "type": "function"},
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "label", "type": "string"},
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": False, "name": "note", "type": "string"},
            {"indexed": False, "name": "count", "type": "uint256"},
        ],
        "name": "Registered",
        "type": "event",
    },
]


def word(value: int) -> str:
    return format(value, "064x")


def topic_address(address: str) -> str:
    return "0" * 24 + address[2:]


def padded(hex_body: str) -> str:
    return hex_body + "0" * ((64 - len(hex_body) % 64) % 64)


def transfer_log(sender: str = ALICE, recipient: str = BOB, value: int = 100, address: str = TOKEN_ADDRESS) -> dict:
    return {
        "address": address,
        "topics": [TRANSFER_TOPIC, topic_address(sender), topic_address(recipient)],
        "data": word(value),
    }


class FakeProtocol:
    """Records raw_call invocations and answers from a method -> response table."""

    def __init__(self, responses=None):
        self.calls = []
        self.responses = responses or {}

    def raw_call(self, method, params=None):
        self.calls.append((method, params))
        response = self.responses.get(method)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response


@pytest.fixture
def erc20_abi():
    return ERC20_ABI


@pytest.fixture
def registry_abi():
    return REGISTRY_ABI


@pytest.fixture
def fake_protocol():
    return FakeProtocol()
