"""
Implements :class:`Core` that is used in other modules.
"""

import os
from sqlite3 import Connection, connect
from functools import cached_property
from web3 import Web3

from tokencat import config

web3_cache = {}
db_cache = {}


class Core:
    """
    A base class for any class that wants to use
    an Ethereum RPC or Sqlite3 database.

    When deriving this class, you're providing arguments like rpc url
    or OS path to the database. The resources are instantiated
    on demand though. It means that if you're just using the Ethereum
    RPC it's sufficient to supply only the rpc endpoint and skip OS path
    to the database in the constructor.

    So this class lightweight and safe to derive from any other
    class.

    **Caching**

    The web3 instance is cached by the rpc url key.
    The sqlite3 connection is cached by the OS path of the database.

    The connection is opened with ``check_same_thread=False`` because
    the bulk refresh job runs on a scheduler thread. Classes writing
    to the connection from several threads must serialize access
    themselves (see :class:`tokencat.tokens.TokensRepo`).

    Args:
        rpc: An https Ethereum RPC endpoint uri
        cache_path: OS path to the database
        w3: an instance of web3 (overrides rpc)
        conn: an instance of database connection (overrides cache_path)
    """

    #: An https Ethereum RPC endpoint uri.
    #: Can be ``None`` if :class:`web3.Web3` is injected directly.
    rpc: str | None
    #: OS path to the database.
    #: Can be ``None`` if :class:`sqlite3.Connection` is injected directly.
    cache_path: str | None

    def __init__(
        self,
        rpc: str | None = None,
        cache_path: str | None = None,
        w3: Web3 | None = None,
        conn: Connection | None = None,
    ):
        self.rpc = rpc
        self.cache_path = cache_path
        self._w3 = w3
        self._conn = conn

    @cached_property
    def w3(self) -> Web3:
        """
        :class:`web3.Web3` instance for working with Ethereum RPC
        """
        if not self._w3 is None:
            return self._w3

        if self.rpc is None:
            self.rpc = os.environ.get("WEB3_PROVIDER_URI")

        if self.rpc is None:
            raise ValueError(
                "Ethereum RPC is not set. \
                Use `WEB3_PROVIDER_URI` env variable or pass rpc explicitly"
            )

        if not self.rpc in web3_cache:
            web3_cache[self.rpc] = Web3(
                Web3.HTTPProvider(
                    self.rpc, request_kwargs={"timeout": config.UPSTREAM_TIMEOUT}
                )
            )

        return web3_cache[self.rpc]

    @cached_property
    def conn(self) -> Connection:
        """
        :class:`sqlite3.Connection` to the tokens database
        """
        if not self._conn is None:
            return self._conn

        if self.cache_path is None:
            self.cache_path = os.environ.get("WEB3_CACHE_PATH")

        if self.cache_path is None:
            raise ValueError(
                "Database path is not set. \
                Use `WEB3_CACHE_PATH` env variable or pass cache_path explicitly"
            )

        if not self.cache_path in db_cache:
            db_cache[self.cache_path] = connection_from_path(self.cache_path)

        return db_cache[self.cache_path]


def connection_from_path(path: str) -> Connection:
    """
    Creates a connection to a database at ``path``.
    If the file at ``path`` doesn't exist, creates a new one.
    Missing tables and indices are created in any case, so an existing
    file without the tokens schema can be reused.

    Args:
        path: The absolute path to the database (or ``:memory:``)

    Returns:
        An instance of sqlite3 Connection

    Note:
        The schema migrations are currently not supported.
    """

    conn = connect(path, check_same_thread=False)
    _init_db(conn)

    return conn


def _init_db(conn: Connection):
    """
    Initialize db schema

    Args:
        conn: Connection to the database
    """
    cursor = conn.cursor()
    # Tokens table
    cursor.execute(
        """CREATE TABLE IF NOT EXISTS tokens
            (address text PRIMARY KEY, name text, symbol text, decimals integer, \
            price text, last_updated integer, image text)"""
    )
    cursor.execute(
        """CREATE INDEX IF NOT EXISTS idx_tokens_last_updated \
        ON tokens(last_updated,address)
    """
    )

    conn.commit()
