from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, Tuple
import json

from tokencat.utils import normalize_address


class Token:
    """
    Token metadata (name, symbol, decimals) together with the latest known price.

    Note:
        The convention is to use ``address`` in lowercase format.
        This is not in line with EIP55 but makes lookups uniform: the
        chain, the price feed and the callers all use different casing.

    Note:
        ``price`` is ``None`` when no price is currently known. This is
        different from a price of ``Decimal(0)``.
    """

    #: Token address (lowercase)
    address: str
    #: Token name
    name: str
    #: Token symbol
    symbol: str
    #: Token decimals
    decimals: int
    #: Price in USD or ``None`` if unknown
    price: Decimal | None
    #: Unix timestamp of the last successful price observation
    last_updated: int
    #: Token image url or ``None`` if unknown
    image: str | None

    def __init__(
        self,
        address: str,
        name: str,
        symbol: str,
        decimals: int,
        price: Decimal | None,
        last_updated: int,
        image: str | None = None,
    ):
        self.address = normalize_address(address)
        self.name = name
        self.symbol = symbol
        self.decimals = int(decimals)
        self.price = price
        self.last_updated = int(last_updated)
        self.image = image

    def is_stale(self, now: int, ttl: int) -> bool:
        """
        Whether the price observation is older than ``ttl``.

        A token exactly at the boundary (``now == last_updated + ttl``) is still fresh.

        Args:
            now: current unix timestamp
            ttl: price time to live, in seconds
        """
        return now > self.last_updated + ttl

    def with_price(self, price: Decimal | None, last_updated: int) -> Token:
        """
        Copy of the token with a new price observation. Metadata is kept as is.

        Args:
            price: new price (``None`` if unknown)
            last_updated: timestamp of the observation
        """
        return Token(
            address=self.address,
            name=self.name,
            symbol=self.symbol,
            decimals=self.decimals,
            price=price,
            last_updated=last_updated,
            image=self.image,
        )

    @staticmethod
    def from_row(row: Tuple[str, str, str, int, str | None, int, str | None]) -> Token:
        """
        Deserialize from database row

        Args:
            row: database row
        """
        address, name, symbol, decimals, price, last_updated, image = row
        return Token(
            address,
            name,
            symbol,
            decimals,
            None if price is None else Decimal(price),
            last_updated,
            image,
        )

    def to_row(self) -> Tuple[str, str, str, int, str | None, int, str | None]:
        """
        Serialize to database row

        Returns:
            database row
        """
        return (
            self.address,
            self.name,
            self.symbol,
            self.decimals,
            None if self.price is None else str(self.price),
            self.last_updated,
            self.image,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`Token` to dict. The price is a decimal string.
        """
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "price": None if self.price is None else str(self.price),
            "lastUpdated": self.last_updated,
            "image": self.image,
        }

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"Token({json.dumps(self.to_dict())})"
