import pytest

from luxweb3.encoder import encode_arguments, encode_call, event_topic, function_selector
from luxweb3.errors import AbiValidationError, SignatureResolutionError

from conftest import ALICE, TRANSFER_TOPIC, padded, word


@pytest.mark.parametrize(
    "name, types, selector",
    [
        ("transfer", ["address", "uint256"], "a9059cbb"),
        ("balanceOf", ["address"], "70a08231"),
        ("totalSupply", [], "18160ddd"),
        ("name", [], "06fdde03"),
        ("approve", ["address", "uint"], "095ea7b3"),
        ("transferFrom", ["address", "address", "uint256"], "23b872dd"),
    ],
)
def test_known_selectors(name, types, selector):
    assert function_selector(name, types) == selector


def test_event_topic_is_full_hash():
    assert event_topic("Transfer", ["address", "address", "uint256"]) == TRANSFER_TOPIC


def test_encode_transfer(erc20_abi):
    data = encode_call(erc20_abi, "transfer", [ALICE, 100])
    assert data == "a9059cbb" + "0" * 24 + "11" * 20 + word(100)


def test_encode_without_arguments(erc20_abi):
    assert encode_call(erc20_abi, "totalSupply") == "18160ddd"
    assert encode_call(erc20_abi, "totalSupply", []) == "18160ddd"


def test_encode_hex_prefix(erc20_abi):
    assert encode_call(erc20_abi, "totalSupply", hex_prefix=True) == "0x18160ddd"


def test_encode_dynamic_argument_offsets(registry_abi):
    data = encode_call(registry_abi, "register", ["hello", 7])
    selector = function_selector("register", ["string", "uint256"])
    assert data == selector + word(64) + word(7) + word(5) + padded("68656c6c6f")


def test_encode_accepts_abi_json_text(erc20_abi):
    import json

    assert encode_call(json.dumps(erc20_abi), "balanceOf", [ALICE]).startswith("70a08231")


def test_encode_picks_overload(registry_abi):
    assert encode_call(registry_abi, "set", [1, 2]) == (
        function_selector("set", ["uint256", "uint256"]) + word(1) + word(2)
    )
    assert encode_call(registry_abi, "set(string)", ["7"]).startswith(function_selector("set", ["string"]))


def test_encode_argument_list_only():
    assert encode_arguments(["uint256", "bool"], [1, True]) == word(1) + word(1)


def test_encode_wraps_value_errors_with_signature(erc20_abi):
    with pytest.raises(AbiValidationError, match=r"transfer\(address,uint256\)") as excinfo:
        encode_call(erc20_abi, "transfer(address,uint256)", ["0x1234", 1])
    assert not isinstance(excinfo.value, SignatureResolutionError)


def test_encode_argument_count_mismatch(erc20_abi):
    with pytest.raises(SignatureResolutionError):
        encode_call(erc20_abi, "transfer", [ALICE])


def test_encode_unknown_method(erc20_abi):
    with pytest.raises(SignatureResolutionError):
        encode_call(erc20_abi, "mint", [ALICE, 1])
