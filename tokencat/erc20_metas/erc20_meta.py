from __future__ import annotations
import json
from typing import Any, Dict


class ERC20Meta:
    """
    ERC20 token metadata (name, symbol, decimals) as read from the chain.

    Note:
        Only ``address`` is lowercased. ``name`` and ``symbol`` are kept
        exactly as the contract returns them.
    """

    #: Token address (lowercase)
    address: str
    #: Token name
    name: str
    #: Token symbol
    symbol: str
    #: Token decimals
    decimals: int

    def __init__(self, address: str, name: str, symbol: str, decimals: int):
        self.address = address.lower()
        self.name = name
        self.symbol = symbol
        self.decimals = int(decimals)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`ERC20Meta` to dict
        """
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
        }

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"ERC20Meta({json.dumps(self.to_dict())})"
