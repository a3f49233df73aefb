from threading import Lock
from cachetools import LRUCache

from tokencat import config
from tokencat.tokens.token import Token
from tokencat.utils import normalize_address


class TokensCache:
    """
    Bounded in-memory index of recently resolved tokens.

    This is the fastest tier of :class:`tokencat.tokens.TokensService`.
    It holds only tokens that were read from the database or resolved live,
    and is never asked whether a token exists beyond its own entries.
    When full, the least recently used token is evicted.

    All methods are safe to call from several threads.

    Args:
        maxsize: maximum number of cached tokens
    """

    _tokens: LRUCache
    _lock: Lock

    def __init__(self, maxsize: int = config.CACHE_SIZE):
        self._tokens = LRUCache(maxsize=maxsize)
        self._lock = Lock()

    def get(self, address: str) -> Token | None:
        """
        Get a cached token.

        Args:
            address: token address (any casing)

        Returns:
            Cached :class:`Token` or ``None`` on a cache miss
        """
        with self._lock:
            return self._tokens.get(normalize_address(address))

    def put(self, token: Token):
        """
        Cache a token, replacing the previous entry for the same address.
        """
        with self._lock:
            self._tokens[token.address] = token

    def clear(self):
        """
        Drop all cached tokens
        """
        with self._lock:
            self._tokens.clear()

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return normalize_address(address) in self._tokens

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
