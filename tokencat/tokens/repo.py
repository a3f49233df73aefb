import logging
import sqlite3
from threading import RLock
from typing import List

from tokencat.core import Core
from tokencat.errors import PersistenceError
from tokencat.tokens.token import Token
from tokencat.utils import normalize_address

logger = logging.getLogger(__name__)


class TokensRepo(Core):
    """
    Reading and writing :class:`Token` to database.

    The connection is shared between request threads and the bulk
    refresh job, so every statement runs under a re-entrant lock.
    :meth:`save` leaves changes pending like any other repo, while
    :meth:`upsert` and :meth:`upsert_batch` commit (or roll back)
    on their own.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._lock = RLock()

    def find(self, address: str) -> Token | None:
        """
        Find a :class:`Token`.

        Args:
            address: token address (any casing)

        Returns:
            An instance of :class:`Token` or ``None`` if not found
        """
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT * FROM tokens WHERE address = ?",
                    (normalize_address(address),),
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read token {address}") from e
        if not row:
            return None
        return Token.from_row(row)

    def oldest(self, limit: int) -> List[Token]:
        """
        Tokens with the oldest price observations.

        Args:
            limit: maximum number of tokens to return

        Returns:
            Tokens ordered by ``last_updated`` ascending (ties by address)
        """
        try:
            with self._lock:
                rows = self.conn.execute(
                    "SELECT * FROM tokens ORDER BY last_updated ASC, address ASC LIMIT ?",
                    (limit,),
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError("Failed to read the oldest tokens") from e
        return [Token.from_row(r) for r in rows]

    def count(self) -> int:
        """
        Number of stored tokens
        """
        try:
            with self._lock:
                return self.conn.execute("SELECT COUNT(*) FROM tokens").fetchone()[0]
        except sqlite3.Error as e:
            raise PersistenceError("Failed to count tokens") from e

    def save(self, tokens: List[Token]):
        """
        Insert or replace tokens. Changes are pending until :meth:`commit`.

        Args:
            tokens: a list of :class:`Token` to save
        """
        rows = [t.to_row() for t in tokens]
        with self._lock:
            self.conn.executemany(
                "INSERT INTO tokens VALUES(?,?,?,?,?,?,?) ON CONFLICT(address) DO UPDATE SET \
                name = excluded.name, symbol = excluded.symbol, decimals = excluded.decimals, \
                price = excluded.price, last_updated = excluded.last_updated, image = excluded.image",
                rows,
            )

    def save_prices(self, tokens: List[Token]):
        """
        Update price and ``last_updated`` of existing tokens. Metadata is not touched.
        Changes are pending until :meth:`commit`.

        Args:
            tokens: a list of :class:`Token` with new prices
        """
        rows = [
            (None if t.price is None else str(t.price), t.last_updated, t.address)
            for t in tokens
        ]
        with self._lock:
            self.conn.executemany(
                "UPDATE tokens SET price = ?, last_updated = ? WHERE address = ?", rows
            )

    def upsert(self, token: Token):
        """
        Save a single token and commit.

        Args:
            token: token to save

        Raises:
            PersistenceError: if the write failed (nothing is saved)
        """
        with self._lock:
            try:
                self.save([token])
                self.commit()
            except sqlite3.Error as e:
                self.rollback()
                raise PersistenceError(f"Failed to save token {token.address}") from e

    def upsert_batch(self, tokens: List[Token]):
        """
        Save new prices for a batch of tokens in one transaction.
        Either all the tokens are updated or none of them.

        Args:
            tokens: tokens with new prices

        Raises:
            PersistenceError: if the transaction failed (everything is rolled back)
        """
        if len(tokens) == 0:
            return
        with self._lock:
            try:
                self.save_prices(tokens)
                self.commit()
            except sqlite3.Error as e:
                self.rollback()
                logger.error(f"Rolled back price update for {len(tokens)} tokens")
                raise PersistenceError(
                    f"Failed to update prices for {len(tokens)} tokens"
                ) from e

    def commit(self):
        """
        Commits all changes pending on the database connection.
        """
        with self._lock:
            self.conn.commit()

    def rollback(self):
        """
        Rollbacks all changes pending on the database connection.
        """
        with self._lock:
            self.conn.rollback()
