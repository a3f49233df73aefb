"""
Module for fetching token prices from CoinGecko.

Example:
    ::

        from tokencat.prices import PricesService

        service = PricesService.create()
        service.get_prices(["0x6B175474E89094C44Da98b954EedeAC495271d0F"])
        # => {"0x6b175474e89094c44da98b954eedeac495271d0f": Decimal("0.999")}
"""

from tokencat.prices.service import PricesService
