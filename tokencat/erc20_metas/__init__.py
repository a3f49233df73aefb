"""
Module for fetching ERC20 tokens metadata (name, symbol, decimals)
from the chain.

Example:
    ::

        from tokencat.erc20_metas import ERC20MetasService

        service = ERC20MetasService.create()
        weth_meta = service.get("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
        # => ERC20Meta({"address": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", "name": "Wrapped Ether", "symbol": "WETH", "decimals": 18})
"""

from tokencat.erc20_metas.erc20_meta import ERC20Meta
from tokencat.erc20_metas.service import ERC20MetasService
