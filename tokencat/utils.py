"""
Utility functions.
"""

import re
import time
import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

from tokencat.errors import ValidationError

ADDRESS_RE = re.compile(r"(0x)?[0-9a-fA-F]{40}")


def normalize_address(address: str) -> str:
    """
    Canonical form of an Ethereum address: lowercase with ``0x`` prefix.

    Every address entering the system (requests, database rows,
    price feed responses) goes through this function, so lookups
    never depend on the casing supplied from outside.

    Args:
        address: Ethereum address in any casing, with or without ``0x``

    Returns:
        Normalized address

    Examples:
        ::

            normalize_address("6B175474E89094C44Da98b954EedeAC495271d0F")
            # 0x6b175474e89094c44da98b954eedeac495271d0f
    """
    address = address.lower()
    if not address.startswith("0x"):
        address = f"0x{address}"
    return address


def validate_address(address: str) -> str:
    """
    Check the address syntax and normalize it.

    Args:
        address: 40 hex chars, optional ``0x`` prefix

    Returns:
        Normalized address

    Raises:
        ValidationError: if the address is malformed
    """
    if not isinstance(address, str) or not ADDRESS_RE.fullmatch(address):
        raise ValidationError(f"Invalid token address: {address}")
    return normalize_address(address)


def short_address(address: str) -> str:
    """
    Converts ethereum address to short version (for display purposes only).

    Args:
        address: Ethereum address to shorten

    Returns:
        Short version of the address.

    Examples:
        ::

            print(short_address("0x6B175474E89094C44Da98b954EedeAC495271d0F"))
            # 0x6B17...1d0F

    """
    return f"{address[:6]}...{address[38:]}"


def now() -> int:
    """
    Current unix timestamp in seconds
    """
    return int(time.time())


def is_transient(error: BaseException) -> bool:
    """
    Whether an upstream error is worth retrying.

    Connection errors, timeouts, rate limits and 5xx responses are transient.
    Everything else (4xx, reverted calls, malformed responses) is not.
    """
    if isinstance(error, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(error, requests.HTTPError) and error.response is not None:
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


#: Decorator for upstream calls: one retry on a transient error,
#: the original error is re-raised after that.
upstream_retry = retry(
    retry=retry_if_exception(is_transient),
    stop=stop_after_attempt(2),
    wait=wait_fixed(0.5),
    reraise=True,
)
