import pytest

from luxweb3.config import DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE
from luxweb3.contract import Contract
from luxweb3.encoder import encode_call
from luxweb3.errors import AbiValidationError, SignatureResolutionError

from conftest import ALICE, BOB, ERC20_ABI, TOKEN_ADDRESS, FakeProtocol, transfer_log, word


def _call_result(output):
    return {"address": TOKEN_ADDRESS, "executionResult": {"excepted": "None", "output": output}}


def test_address_is_normalized():
    contract = Contract(FakeProtocol(), "0x" + TOKEN_ADDRESS.upper(), ERC20_ABI)
    assert contract.address == TOKEN_ADDRESS


@pytest.mark.parametrize("address", ["0x1234", "zz" * 20, 42])
def test_invalid_address(address):
    with pytest.raises(AbiValidationError):
        Contract(FakeProtocol(), address, ERC20_ABI)


def test_call_sends_encoded_data_and_decodes_output():
    protocol = FakeProtocol({"callcontract": _call_result(word(5000))})
    result = Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).call("balanceOf", [ALICE])

    assert protocol.calls == [("callcontract", [TOKEN_ADDRESS, encode_call(ERC20_ABI, "balanceOf", [ALICE])])]
    assert result["executionResult"]["formattedOutput"] == {"balance": 5000}
    assert result["executionResult"]["output"] == word(5000)


def test_call_with_sender():
    protocol = FakeProtocol({"callcontract": _call_result(word(1))})
    Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).call("totalSupply", sender_address=BOB)
    assert protocol.calls[0][1] == [TOKEN_ADDRESS, "18160ddd", BOB]


def test_call_with_undecodable_output_keeps_node_result():
    protocol = FakeProtocol({"callcontract": _call_result("")})
    result = Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).call("totalSupply")
    execution = result["executionResult"]
    assert execution["formattedOutput"] == {}
    assert "expected at least 32" in execution["formattedOutputError"]


def test_call_without_execution_result_is_returned_unchanged():
    protocol = FakeProtocol({"callcontract": {"address": TOKEN_ADDRESS}})
    assert Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).call("totalSupply") == {"address": TOKEN_ADDRESS}


def test_call_validates_before_touching_the_node():
    protocol = FakeProtocol()
    with pytest.raises(SignatureResolutionError):
        Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).call("transfer", [ALICE])
    assert protocol.calls == []


def test_send_uses_default_gas():
    protocol = FakeProtocol({"sendtocontract": {"txid": "ab" * 32}})
    result = Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).send("transfer", [BOB, 10])
    assert result == {"txid": "ab" * 32}
    data = encode_call(ERC20_ABI, "transfer", [BOB, 10])
    assert protocol.calls == [
        ("sendtocontract", [TOKEN_ADDRESS, data, 0, DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE])
    ]


def test_send_with_overrides():
    protocol = FakeProtocol({"sendtocontract": {}})
    Contract(protocol, TOKEN_ADDRESS, ERC20_ABI).send(
        "transfer", [BOB, 10], amount=1, gas_limit=100000, gas_price=0.0000005, sender_address=ALICE
    )
    params = protocol.calls[0][1]
    assert params[2:] == [1, 100000, 0.0000005, ALICE]


def test_decode_logs_uses_contract_abi():
    contract = Contract(FakeProtocol(), TOKEN_ADDRESS, ERC20_ABI)
    results = contract.decode_logs([transfer_log(value=3)], strip_hex_prefix=True)
    assert results[0]["fields"] == {"from": ALICE[2:], "to": BOB[2:], "value": 3}
