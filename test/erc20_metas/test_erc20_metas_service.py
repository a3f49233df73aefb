import pytest

from fixtures.tokens import erc20_metas_service
from fixtures.w3 import DAI, NOT_A_TOKEN, USDC, Web3Mock, w3_mock
from tokencat.config import ETHER_ADDRESS
from tokencat.errors import ResolutionError
from tokencat.erc20_metas.erc20_meta import ERC20Meta
from tokencat.erc20_metas.service import ERC20MetasService


def test_get(erc20_metas_service: ERC20MetasService, w3_mock: Web3Mock):
    meta = erc20_metas_service.get(USDC.upper().replace("0X", "0x"))
    assert meta == ERC20Meta(USDC, "USD Coin", "USDC", 6)
    assert w3_mock.number_of_calls == 3


def test_ether(erc20_metas_service: ERC20MetasService, w3_mock: Web3Mock):
    meta = erc20_metas_service.get(ETHER_ADDRESS)
    assert meta == ERC20Meta(ETHER_ADDRESS, "Ether", "ETH", 18)
    assert w3_mock.number_of_calls == 0


def test_not_a_token(erc20_metas_service: ERC20MetasService, w3_mock: Web3Mock):
    with pytest.raises(ResolutionError):
        erc20_metas_service.get(NOT_A_TOKEN)
    assert w3_mock.number_of_calls == 1


def test_transient_error_is_retried_once(
    erc20_metas_service: ERC20MetasService, w3_mock: Web3Mock
):
    w3_mock.transient_failures = 1
    assert erc20_metas_service.get(DAI) == ERC20Meta(DAI, "Dai Stablecoin", "DAI", 18)
    assert w3_mock.number_of_calls == 4


def test_retry_exhausted(erc20_metas_service: ERC20MetasService, w3_mock: Web3Mock):
    w3_mock.transient_failures = 2
    with pytest.raises(ResolutionError):
        erc20_metas_service.get(DAI)
    assert w3_mock.number_of_calls == 2
