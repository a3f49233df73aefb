from __future__ import annotations
import logging
from threading import Lock
from typing import Callable, List

from tokencat import config
from tokencat.errors import PersistenceError, ResolutionError
from tokencat.prices.service import PricesService
from tokencat.tokens.cache import TokensCache
from tokencat.tokens.repo import TokensRepo
from tokencat.tokens.token import Token
from tokencat.utils import normalize_address, now

logger = logging.getLogger(__name__)


class BulkRefreshJob:
    """
    Periodic job refreshing prices of the stalest tokens.

    Unlike :meth:`tokencat.tokens.TokensService.get`, which makes one price
    request per token, a run makes a single price request for the whole batch
    and saves all new prices in one transaction.

    Each run:

        1. Selects ``batch_size`` tokens with the oldest ``last_updated``.
        2. Fetches prices for all of them in one request.
        3. Updates price and ``last_updated`` of every token that got a price.
        4. Saves the updated tokens in one transaction (all or nothing).
        5. Puts the updated tokens into the cache.

    Tokens without a price are left untouched. They stay the oldest and are
    selected again on the next run.

    Only one run executes at a time. A run started while another one is
    in progress is skipped.

    Args:
        tokens_repo: An instance of :class:`TokensRepo`
        tokens_cache: An instance of :class:`TokensCache` shared with :class:`TokensService`
        prices_service: An instance of :class:`PricesService`
        batch_size: number of tokens refreshed per run
        clock: returns the current unix timestamp
    """

    _tokens_repo: TokensRepo
    _tokens_cache: TokensCache
    _prices_service: PricesService
    _batch_size: int
    _clock: Callable[[], int]
    _running: Lock

    def __init__(
        self,
        tokens_repo: TokensRepo,
        tokens_cache: TokensCache,
        prices_service: PricesService,
        batch_size: int = config.BULK_BATCH_SIZE,
        clock: Callable[[], int] = now,
    ):
        self._tokens_repo = tokens_repo
        self._tokens_cache = tokens_cache
        self._prices_service = prices_service
        self._batch_size = batch_size
        self._clock = clock
        self._running = Lock()

    @property
    def running(self) -> bool:
        """
        Whether a run is in progress
        """
        return self._running.locked()

    def run(self) -> List[Token] | None:
        """
        Refresh prices of the stalest tokens.

        Returns:
            Updated tokens, or ``None`` if the run was skipped because
            another run is in progress

        Raises:
            ResolutionError: if the price feed is unavailable (nothing is updated)
            PersistenceError: if the transaction failed (nothing is updated)
        """
        if not self._running.acquire(blocking=False):
            logger.warning("Bulk refresh is still running, skipping")
            return None
        try:
            return self._refresh()
        finally:
            self._running.release()

    def tick(self):
        """
        Scheduler entry point. Same as :meth:`run` but never raises
        so that a failed run doesn't stop the schedule.
        The next run retries the same tokens since they are still the oldest.
        """
        try:
            self.run()
        except (ResolutionError, PersistenceError) as e:
            logger.error(f"Bulk refresh failed, will retry on the next run: {e}")

    def _refresh(self) -> List[Token]:
        tokens = self._tokens_repo.oldest(self._batch_size)
        if len(tokens) == 0:
            logger.debug("No tokens to refresh")
            return []

        logger.info(f"Bulk updating prices for {len(tokens)} tokens")
        prices = self._prices_service.get_prices([t.address for t in tokens])
        prices = {normalize_address(a): p for a, p in prices.items()}
        timestamp = self._clock()
        updated = [
            t.with_price(prices[t.address], timestamp)
            for t in tokens
            if prices.get(t.address) is not None
        ]
        if len(updated) < len(tokens):
            logger.info(f"No price for {len(tokens) - len(updated)} tokens")

        self._tokens_repo.upsert_batch(updated)
        for t in updated:
            self._tokens_cache.put(t)
        logger.info(f"Bulk updated prices for {len(updated)} tokens")
        return updated
