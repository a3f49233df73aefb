"""
Module for resolving tokens and keeping their prices fresh.

The main class of this module is :class:`TokensService`.
It serves tokens from the in-memory cache, the database or
resolves them live, refreshing prices older than the ttl.
:class:`BulkRefreshJob` refreshes the stalest prices in batches.

Example:
    ::

        from tokencat.tokens import TokensService

        service = TokensService.create()
        dai = service.get("0x6B175474E89094C44Da98b954EedeAC495271d0F")
        # => going for web3 and CoinGecko
        # => Token({"address": "0x6b175474e89094c44da98b954eedeac495271d0f", "name": "Dai Stablecoin", "symbol": "DAI", "decimals": 18, "price": "0.999", ...})

        dai = service.get("0x6b175474e89094c44da98b954eedeac495271d0f")
        # => serving from cache
"""

from tokencat.tokens.token import Token
from tokencat.tokens.cache import TokensCache
from tokencat.tokens.repo import TokensRepo
from tokencat.tokens.service import TokensService
from tokencat.tokens.bulk import BulkRefreshJob
