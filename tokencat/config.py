"""
Service configuration.

All values are read from environment variables once, on import.
The Ethereum RPC and the sqlite path are resolved lazily by
:class:`tokencat.core.Core` (``WEB3_PROVIDER_URI`` and ``WEB3_CACHE_PATH``).
"""

import os

#: Seconds after which a price observation is considered stale
PRICE_TTL = int(os.environ.get("TOKENCAT_PRICE_TTL", 3600))
#: Number of the stalest tokens refreshed by one bulk run
BULK_BATCH_SIZE = int(os.environ.get("TOKENCAT_BULK_BATCH_SIZE", 50))
#: Seconds between two bulk runs
BULK_INTERVAL = int(os.environ.get("TOKENCAT_BULK_INTERVAL", 3600))
#: Maximum number of tokens kept in memory
CACHE_SIZE = int(os.environ.get("TOKENCAT_CACHE_SIZE", 10_000))
#: Timeout in seconds for every upstream request
UPSTREAM_TIMEOUT = float(os.environ.get("TOKENCAT_UPSTREAM_TIMEOUT", 10))

COINGECKO_URL = os.environ.get("COINGECKO_URL", "https://api.coingecko.com/api/v3")
COINGECKO_API_KEY = os.environ.get("COINGECKO_API_KEY")
COINGECKO_PLATFORM = "ethereum"
COINGECKO_ETHER_ID = "ethereum"
CURRENCY = "usd"

#: Placeholder address used for native ether
ETHER_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

PORT = int(os.environ.get("TOKENCAT_PORT", 3000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
