import pytest
import requests
from web3.exceptions import ContractLogicError

from fixtures.prices import ResponseMock
from tokencat.errors import ValidationError
from tokencat.utils import is_transient, normalize_address, short_address, validate_address

DAI_CHECKSUM = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"


def test_normalize_address():
    assert normalize_address(DAI_CHECKSUM) == DAI
    assert normalize_address(DAI_CHECKSUM[2:]) == DAI
    assert normalize_address(DAI) == DAI


def test_validate_address():
    assert validate_address(DAI_CHECKSUM[2:].upper()) == DAI
    with pytest.raises(ValidationError):
        validate_address(DAI + "\n")
    with pytest.raises(ValueError):
        validate_address(None)


def test_short_address():
    assert short_address(DAI_CHECKSUM) == "0x6B17...1d0F"


@pytest.mark.parametrize(
    "error,expected",
    [
        (requests.ConnectionError("reset"), True),
        (requests.Timeout("timeout"), True),
        (requests.HTTPError(response=ResponseMock(429, {})), True),
        (requests.HTTPError(response=ResponseMock(502, {})), True),
        (requests.HTTPError(response=ResponseMock(404, {})), False),
        (requests.HTTPError("no response"), False),
        (ContractLogicError("execution reverted"), False),
        (ValueError("malformed"), False),
    ],
)
def test_is_transient(error: BaseException, expected: bool):
    assert is_transient(error) is expected
