from typing import Any, Dict, Tuple
import time
import pytest
import requests
from web3.exceptions import ContractLogicError

DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
NOT_A_TOKEN = "0x5777d92f208679db4b9778590fa3cab3ac9e2168"

METAS = {
    DAI: ("Dai Stablecoin", "DAI", 18),
    USDC: ("USD Coin", "USDC", 6),
    WETH: ("Wrapped Ether", "WETH", 18),
}


class CallMock:
    def __init__(self, w3: "Web3Mock", address: str, fn: str):
        self._w3 = w3
        self._address = address
        self._fn = fn

    def call(self) -> Any:
        self._w3.number_of_calls += 1
        if self._w3.delay:
            time.sleep(self._w3.delay)
        if self._w3.transient_failures > 0:
            self._w3.transient_failures -= 1
            raise requests.ConnectionError("connection reset")
        if self._address not in self._w3.metas:
            raise ContractLogicError("execution reverted")
        name, symbol, decimals = self._w3.metas[self._address]
        return {"name": name, "symbol": symbol, "decimals": decimals}[self._fn]


class FunctionsMock:
    def __init__(self, w3: "Web3Mock", address: str):
        self._w3 = w3
        self._address = address

    def name(self) -> CallMock:
        return CallMock(self._w3, self._address, "name")

    def symbol(self) -> CallMock:
        return CallMock(self._w3, self._address, "symbol")

    def decimals(self) -> CallMock:
        return CallMock(self._w3, self._address, "decimals")


class ContractMock:
    def __init__(self, w3: "Web3Mock", address: str):
        self.address = address
        self.functions = FunctionsMock(w3, address.lower())


class Web3Mock:
    """
    Serves ERC20 metadata for a few known tokens. Any other address reverts.
    """

    metas: Dict[str, Tuple[str, str, int]]
    #: Number of contract calls made
    number_of_calls: int
    #: Number of upcoming calls failing with a connection error
    transient_failures: int
    #: Seconds every call takes
    delay: float

    def __init__(self):
        self.metas = dict(METAS)
        self.number_of_calls = 0
        self.transient_failures = 0
        self.delay = 0

    @property
    def eth(self):
        return self

    @property
    def chain_id(self):
        return 1

    def contract(self, address: str, abi: Any) -> ContractMock:
        return ContractMock(self, address)


@pytest.fixture
def w3_mock() -> Web3Mock:
    """
    Mock instance of Web3
    """
    return Web3Mock()
