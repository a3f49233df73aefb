"""
Tokencat resolves ERC20 tokens metadata (name, symbol, decimals) and
prices, and keeps the prices fresh.

+------------------------------------------------+---------------------------+
| Class                                          | Description               |
+================================================+===========================+
| :class:`tokencat.tokens.TokensService`         | Resolving tokens through  |
|                                                | cache, database and       |
|                                                | upstream                  |
+------------------------------------------------+---------------------------+
| :class:`tokencat.tokens.BulkRefreshJob`        | Periodic batch refresh of |
|                                                | the stalest prices        |
+------------------------------------------------+---------------------------+
| :class:`tokencat.erc20_metas.ERC20MetasService`| Fetching token metadata   |
|                                                | from web3                 |
+------------------------------------------------+---------------------------+
| :class:`tokencat.prices.PricesService`         | Fetching token prices     |
|                                                | from CoinGecko            |
+------------------------------------------------+---------------------------+

The best way to get started is to explore these services and module
docs.
"""
