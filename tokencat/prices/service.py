from __future__ import annotations
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable
import requests

from tokencat import config
from tokencat.errors import ResolutionError
from tokencat.utils import normalize_address, upstream_retry

logger = logging.getLogger(__name__)


class PricesService:
    """
    Service for fetching token prices (and images) from the CoinGecko api.

    One call to :meth:`get_prices` makes at most two http requests:
    one for all ERC20 addresses (``/simple/token_price``) and one for
    native ether (``/simple/price``) if it was asked for.

    The CoinGecko api returns lowercase addresses and silently omits
    tokens it has no price for. The returned mapping is keyed by
    normalized addresses and has no entry for such tokens.

    Every request has a timeout and is retried once on a transient error
    (connection error, timeout, 429 or 5xx).

    Args:
        session: :class:`requests.Session` used for http requests
        base_url: CoinGecko api url
        api_key: optional CoinGecko demo api key
        timeout: timeout for a single request, in seconds
    """

    _session: requests.Session
    _base_url: str
    _api_key: str | None
    _timeout: float

    def __init__(
        self,
        session: requests.Session | None = None,
        base_url: str = config.COINGECKO_URL,
        api_key: str | None = config.COINGECKO_API_KEY,
        timeout: float = config.UPSTREAM_TIMEOUT,
    ):
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    @staticmethod
    def create(**kwargs) -> PricesService:
        """
        Create an instance of :class:`PricesService`

        Returns:
            An instance of :class:`PricesService`
        """
        return PricesService(**kwargs)

    def get_prices(self, addresses: Iterable[str]) -> Dict[str, Decimal]:
        """
        Get USD prices for a set of tokens.

        Args:
            addresses: token addresses (any casing)

        Returns:
            Mapping from normalized address to price. Tokens without
            a known price are absent.

        Raises:
            ResolutionError: if the price feed is unavailable
        """
        addresses = {normalize_address(a) for a in addresses}
        prices: Dict[str, Decimal] = {}
        if len(addresses) == 0:
            return prices

        tokens = sorted(addresses - {config.ETHER_ADDRESS})
        logger.debug(f"Fetching prices for {len(addresses)} tokens from CoinGecko")
        try:
            if config.ETHER_ADDRESS in addresses:
                data = self._get(
                    "/simple/price",
                    {"ids": config.COINGECKO_ETHER_ID, "vs_currencies": config.CURRENCY},
                )
                price = _extract_price(data.get(config.COINGECKO_ETHER_ID))
                if price is not None:
                    prices[config.ETHER_ADDRESS] = price
            if len(tokens) > 0:
                data = self._get(
                    f"/simple/token_price/{config.COINGECKO_PLATFORM}",
                    {
                        "contract_addresses": ",".join(tokens),
                        "vs_currencies": config.CURRENCY,
                    },
                )
                for address, quote in data.items():
                    address = normalize_address(address)
                    price = _extract_price(quote)
                    if price is None:
                        logger.warning(f"Received undefined price for {address}")
                        continue
                    if address in addresses:
                        prices[address] = price
        except (
            requests.RequestException,
            ValueError,
            AttributeError,
            InvalidOperation,
        ) as e:
            logger.warning(f"Error fetching token prices from CoinGecko: {e}")
            raise ResolutionError("Error fetching token prices from CoinGecko") from e

        logger.debug(f"Received {len(prices)} prices from CoinGecko")
        return prices

    def get_image(self, address: str) -> str | None:
        """
        Get token image url. This is best-effort: any failure yields ``None``.

        Args:
            address: token address (any casing)

        Returns:
            Image url or ``None`` if unknown
        """
        address = normalize_address(address)
        if address == config.ETHER_ADDRESS:
            path = f"/coins/{config.COINGECKO_ETHER_ID}"
        else:
            path = f"/coins/{config.COINGECKO_PLATFORM}/contract/{address}"
        try:
            data = self._get(path, {})
        except (requests.RequestException, ValueError) as e:
            logger.info(f"No image for {address}: {e}")
            return None
        image = data.get("image") if isinstance(data, dict) else None
        if not isinstance(image, dict):
            return None
        return image.get("small") or image.get("thumb") or image.get("large")

    @upstream_retry
    def _get(self, path: str, params: Dict[str, str]) -> Any:
        headers = {"accept": "application/json"}
        if self._api_key:
            headers["x-cg-demo-api-key"] = self._api_key
        response = self._session.get(
            f"{self._base_url}{path}",
            params=params,
            headers=headers,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()


def _extract_price(quote: Any) -> Decimal | None:
    if not isinstance(quote, dict) or quote.get(config.CURRENCY) is None:
        return None
    value = quote[config.CURRENCY]
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"Malformed price: {value!r}")
    price = Decimal(str(value))
    if not price.is_finite():
        raise ValueError(f"Malformed price: {value!r}")
    return price
