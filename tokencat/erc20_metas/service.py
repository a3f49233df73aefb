from __future__ import annotations
import logging
from typing import Any
import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from tokencat import config
from tokencat.core import Core
from tokencat.errors import ResolutionError
from tokencat.erc20_metas.abi import ERC20_ABI
from tokencat.erc20_metas.erc20_meta import ERC20Meta
from tokencat.utils import normalize_address, short_address, upstream_retry

logger = logging.getLogger(__name__)


class ERC20MetasService(Core):
    """
    Service for fetching ERC20 tokens metadata (name, symbol, decimals) from web3.

    The service does not cache anything: :class:`tokencat.tokens.TokensService`
    calls it exactly once per token, on the first full resolution.

    **Request/Response flow**

    ::

                    +-------------------+              +-------+
                    | ERC20MetasService |              | Web3  |
                    +-------------------+              +-------+
         -------------------  |                            |
         | Metadata request |-|                            |
         |------------------| |                            |
                              | If ether: answer directly  |
                              |-----------                 |
                              |          |                 |
                              |<----------                 |
                              |                            |
                              | name(), symbol(),          |
                              | decimals()                 |
                              |--------------------------->|
        --------------------  |                            |
        | Metadata response |-|                            |
        |-------------------| |                            |
                              |                            |

    Every contract call has a timeout (see :class:`tokencat.core.Core`) and
    is retried once on a transient error.

    Args:
        kwargs: Args for the :class:`tokencat.core.Core`
    """

    @staticmethod
    def create(**kwargs) -> ERC20MetasService:
        """
        Create an instance of :class:`ERC20MetasService`

        Args:
            rpc: Ethereum rpc url. If ``None``, ``WEB3_PROVIDER_URI`` env variable is used

        Returns:
            An instance of :class:`ERC20MetasService`
        """
        return ERC20MetasService(**kwargs)

    def get(self, address: str) -> ERC20Meta:
        """
        Get metadata by token address.

        Args:
            address: token address

        Returns:
            An instance of :class:`ERC20Meta`

        Raises:
            ResolutionError: if the contract doesn't conform to ERC20
                or the rpc is unavailable
        """
        address = normalize_address(address)
        if address == config.ETHER_ADDRESS:
            return ERC20Meta(address, "Ether", "ETH", 18)

        logger.info(f"Fetching ERC20 metadata for {short_address(address)}")
        try:
            contract = self.w3.eth.contract(
                address=Web3.to_checksum_address(address), abi=ERC20_ABI
            )
            name = self._call(contract.functions.name())
            symbol = self._call(contract.functions.symbol())
            decimals = self._call(contract.functions.decimals())
        except (Web3Exception, ValueError, requests.RequestException) as e:
            logger.warning(f"Failed to fetch ERC20 metadata for {address}: {e}")
            raise ResolutionError(
                f"Error fetching token data for {address} from the blockchain"
            ) from e
        return ERC20Meta(address, name, symbol, decimals)

    @upstream_retry
    def _call(self, fn: Any) -> Any:
        return fn.call()
