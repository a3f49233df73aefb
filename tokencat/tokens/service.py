from __future__ import annotations
import logging
from contextlib import contextmanager
from threading import Lock
from typing import Callable, Dict, Iterator

from tokencat import config
from tokencat.errors import ResolutionError
from tokencat.erc20_metas.service import ERC20MetasService
from tokencat.prices.service import PricesService
from tokencat.tokens.cache import TokensCache
from tokencat.tokens.repo import TokensRepo
from tokencat.tokens.token import Token
from tokencat.utils import now, short_address, validate_address

logger = logging.getLogger(__name__)


class TokensService:
    """
    Service for resolving tokens and keeping their prices fresh.

    The lookup goes through three tiers: in-memory cache, database and
    finally live resolution from web3 (metadata) and CoinGecko (price).
    A price observation older than ``ttl`` seconds is stale and is refreshed
    on read. Metadata is resolved once and never refetched.

    **Request/Response flow**

    ::

                  +---------------+      +-------------+ +------------+ +-------------------+ +---------------+
                  | TokensService |      | TokensCache | | TokensRepo | | ERC20MetasService | | PricesService |
                  +---------------+      +-------------+ +------------+ +-------------------+ +---------------+
        ----------------  |                     |              |                  |                   |
        | Token request |-|                     |              |                  |                   |
        |---------------| |                     |              |                  |                   |
                          | Find token          |              |                  |                   |
                          |-------------------->|              |                  |                   |
                          |                     |              |                  |                   |
                          | If cache miss: Find token          |                  |                   |
                          |----------------------------------->|                  |                   |
                          |                     |              |                  |                   |
                          | If db miss: Fetch metadata         |                  |                   |
                          |------------------------------------------------------>|                   |
                          |                     |              |                  |                   |
                          | If db miss or stale: Fetch price   |                  |                   |
                          |-------------------------------------------------------------------------->|
                          |                     |              |                  |                   |
                          | Save token          |              |                  |                   |
                          |----------------------------------->|                  |                   |
                          |                     |              |                  |                   |
                          | Cache token         |              |                  |                   |
                          |-------------------->|              |                  |                   |
            -----------   |                     |              |                  |                   |
            | Response |--|                     |              |                  |                   |
            |----------|  |                     |              |                  |                   |

    Failure policy:
        * A failed price refresh raises :class:`tokencat.errors.ResolutionError`
          and leaves the stale token untouched. Stale data is better
          than lost data.
        * A failed first resolution raises :class:`tokencat.errors.ResolutionError`
          and nothing is saved or cached.
        * :class:`tokencat.errors.PersistenceError` from the database is
          propagated. The cache is written only after the database.

    Concurrent requests for the same non-fresh token are serialized,
    so only one of them goes upstream. The others find the token in the cache.

    Args:
        tokens_repo: An instance of :class:`TokensRepo`
        tokens_cache: An instance of :class:`TokensCache`
        erc20_metas_service: An instance of :class:`ERC20MetasService`
        prices_service: An instance of :class:`PricesService`
        ttl: price time to live, in seconds
        clock: returns the current unix timestamp
    """

    _tokens_repo: TokensRepo
    _tokens_cache: TokensCache
    _erc20_metas_service: ERC20MetasService
    _prices_service: PricesService
    _ttl: int
    _clock: Callable[[], int]
    _flights: Dict[str, _Flight]
    _flights_lock: Lock

    def __init__(
        self,
        tokens_repo: TokensRepo,
        tokens_cache: TokensCache,
        erc20_metas_service: ERC20MetasService,
        prices_service: PricesService,
        ttl: int = config.PRICE_TTL,
        clock: Callable[[], int] = now,
    ):
        self._tokens_repo = tokens_repo
        self._tokens_cache = tokens_cache
        self._erc20_metas_service = erc20_metas_service
        self._prices_service = prices_service
        self._ttl = ttl
        self._clock = clock
        self._flights = {}
        self._flights_lock = Lock()

    @staticmethod
    def create(
        tokens_cache: TokensCache | None = None,
        prices_service: PricesService | None = None,
        **kwargs,
    ) -> TokensService:
        """
        Create an instance of :class:`TokensService`

        Args:
            tokens_cache: shared cache, a new one is created if ``None``
            prices_service: shared price feed client, a new one is created if ``None``
            cache_path: path for the database
            rpc: Ethereum rpc url. If ``None``, ``WEB3_PROVIDER_URI`` env variable is used

        Returns:
            An instance of :class:`TokensService`
        """
        tokens_repo = TokensRepo(**kwargs)
        erc20_metas_service = ERC20MetasService(**kwargs)
        return TokensService(
            tokens_repo,
            tokens_cache or TokensCache(),
            erc20_metas_service,
            prices_service or PricesService(),
        )

    @property
    def tokens_repo(self) -> TokensRepo:
        """
        The database tier
        """
        return self._tokens_repo

    @property
    def tokens_cache(self) -> TokensCache:
        """
        The in-memory tier
        """
        return self._tokens_cache

    @property
    def prices_service(self) -> PricesService:
        """
        The price feed client
        """
        return self._prices_service

    def get(self, address: str) -> Token:
        """
        Get a token with a fresh price.

        Args:
            address: token address, 40 hex chars with an optional ``0x`` prefix

        Returns:
            An instance of :class:`Token`

        Raises:
            ValidationError: if the address is malformed (no I/O is made)
            ResolutionError: if the price or metadata could not be resolved
            PersistenceError: if the database failed
        """
        address = validate_address(address)
        token = self._tokens_cache.get(address)
        if token is not None and not self._is_stale(token):
            return token

        with self._single_flight(address):
            # Another request might have refreshed the token meanwhile
            token = self._tokens_cache.get(address)
            if token is not None:
                if not self._is_stale(token):
                    return token
                logger.debug(f"Cached price expired for {short_address(address)}")
                return self._refresh_price(token)

            token = self._tokens_repo.find(address)
            if token is None:
                return self._resolve(address)
            if self._is_stale(token):
                logger.debug(f"Stored price expired for {short_address(address)}")
                return self._refresh_price(token)
            self._tokens_cache.put(token)
            return token

    def clear_cache(self):
        """
        Drop all tokens from the in-memory tier
        """
        self._tokens_cache.clear()

    def _is_stale(self, token: Token) -> bool:
        return token.is_stale(self._clock(), self._ttl)

    def _refresh_price(self, token: Token) -> Token:
        prices = self._prices_service.get_prices([token.address])
        price = prices.get(token.address)
        if price is None and token.price is not None:
            raise ResolutionError(f"No price available for {token.address}")
        refreshed = token.with_price(price, self._clock())
        self._tokens_repo.upsert(refreshed)
        self._tokens_cache.put(refreshed)
        return refreshed

    def _resolve(self, address: str) -> Token:
        logger.info(f"Resolving token {address}")
        meta = self._erc20_metas_service.get(address)
        prices = self._prices_service.get_prices([address])
        image = self._prices_service.get_image(address)
        token = Token(
            address=address,
            name=meta.name,
            symbol=meta.symbol,
            decimals=meta.decimals,
            price=prices.get(address),
            last_updated=self._clock(),
            image=image,
        )
        self._tokens_repo.upsert(token)
        self._tokens_cache.put(token)
        return token

    @contextmanager
    def _single_flight(self, address: str) -> Iterator[None]:
        with self._flights_lock:
            flight = self._flights.setdefault(address, _Flight())
            flight.waiters += 1
        try:
            with flight.lock:
                yield
        finally:
            with self._flights_lock:
                flight.waiters -= 1
                if flight.waiters == 0:
                    del self._flights[address]


class _Flight:
    """
    In-flight resolution of a single address
    """

    def __init__(self):
        self.lock = Lock()
        self.waiters = 0
