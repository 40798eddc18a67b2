import pytest
from fastapi import HTTPException

from cosmos_history.validation.input import (
    validate_address,
    validate_backend,
    validate_groups,
    validate_order,
    validate_tx_hash,
)
from tests.conftest import ACCOUNT


class TestValidateAddress:
    def test_valid_cosmos(self):
        assert validate_address(ACCOUNT) == ACCOUNT

    def test_other_prefixes(self):
        osmo = "osmo1" + "q" * 38
        assert validate_address(osmo) == osmo
        valoper = "cosmosvaloper1" + "q" * 38
        assert validate_address(valoper) == valoper

    def test_upper_case_normalized(self):
        assert validate_address(ACCOUNT.upper()) == ACCOUNT

    def test_strips_whitespace(self):
        assert validate_address(f"  {ACCOUNT}  ") == ACCOUNT

    def test_mixed_case_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_address("Cosmos1" + "q" * 38)
        assert exc_info.value.status_code == 400
        assert "Mixed case" in exc_info.value.detail

    def test_invalid_characters(self):
        # "b" is not part of the bech32 data alphabet
        with pytest.raises(HTTPException):
            validate_address("cosmos1" + "b" * 38)

    def test_missing_separator(self):
        with pytest.raises(HTTPException):
            validate_address("cosmosqqqqqqqqqq")

    def test_evm_address_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_address("0x" + "ab" * 20)
        assert "bech32" in exc_info.value.detail

    def test_too_long(self):
        with pytest.raises(HTTPException):
            validate_address("cosmos1" + "q" * 90)

    def test_empty(self):
        with pytest.raises(HTTPException):
            validate_address("")


class TestValidateTxHash:
    def test_valid_hash_upper_cased(self):
        assert validate_tx_hash("ab" * 32) == "AB" * 32

    def test_0x_prefix_stripped(self):
        assert validate_tx_hash("0x" + "AB" * 32) == "AB" * 32

    def test_too_short(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_tx_hash("ab" * 16)
        assert exc_info.value.status_code == 400

    def test_non_hex(self):
        with pytest.raises(HTTPException):
            validate_tx_hash("zz" * 32)


class TestValidateGroups:
    def test_single(self):
        assert validate_groups("core") == ["core"]

    def test_comma_separated_with_spaces(self):
        assert validate_groups("core, ibc ,staking") == ["core", "ibc", "staking"]

    def test_unknown_group(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_groups("core,wasm")
        assert "wasm" in exc_info.value.detail

    def test_empty(self):
        with pytest.raises(HTTPException):
            validate_groups(" , ")


class TestValidateBackendAndOrder:
    def test_backend(self):
        assert validate_backend("RPC") == "rpc"
        assert validate_backend(" rest ") == "rest"

    def test_unknown_backend(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_backend("grpc")
        assert "Unsupported backend" in exc_info.value.detail

    def test_order(self):
        assert validate_order("ASC") == "asc"

    def test_invalid_order(self):
        with pytest.raises(HTTPException):
            validate_order("newest")
