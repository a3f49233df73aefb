"""
FastAPI application serving resolved tokens.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from tokencat.errors import PersistenceError, ResolutionError, ValidationError
from tokencat.scheduler import start_scheduler, stop_scheduler
from tokencat.tokens.bulk import BulkRefreshJob
from tokencat.tokens.service import TokensService

logger = logging.getLogger(__name__)

_tokens_service: Optional[TokensService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Run the bulk refresh schedule while the app is up
    """
    service = get_tokens_service()
    start_scheduler(
        BulkRefreshJob(
            service.tokens_repo, service.tokens_cache, service.prices_service
        )
    )
    try:
        yield
    finally:
        stop_scheduler()


app = FastAPI(
    title="Tokencat API",
    description="ERC20 token metadata and prices",
    version="0.1.0",
    lifespan=lifespan,
)


class TokenResponse(BaseModel):
    """
    Token response model. The price is a decimal string.
    """

    address: str
    name: str
    symbol: str
    decimals: int
    price: Optional[str]
    lastUpdated: int
    image: Optional[str] = None


class StatusResponse(BaseModel):
    """
    Service status response model
    """

    name: str
    database: bool
    cachedTokens: int
    storedTokens: Optional[int] = None


def get_tokens_service() -> TokensService:
    """
    Get or create the tokens service configured from env variables

    Returns:
        An instance of :class:`TokensService`
    """
    global _tokens_service
    if _tokens_service is None:
        _tokens_service = TokensService.create()
    return _tokens_service


@app.get("/token/{address}", response_model=TokenResponse)
def get_token(address: str, service: TokensService = Depends(get_tokens_service)):
    """
    Resolve a token by address.

    Args:
        address: token address, 40 hex chars with an optional ``0x`` prefix

    Returns:
        The token with a fresh price. Errors map to 400 (malformed address),
        502 (upstream failure) and 503 (database failure).
    """
    logger.info(f"GET /token/{address}")
    try:
        token = service.get(address)
    except ValidationError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except ResolutionError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except PersistenceError as e:
        logger.error(f"Database error for {address}: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return token.to_dict()


@app.get("/status", response_model=StatusResponse)
def get_status(service: TokensService = Depends(get_tokens_service)):
    """
    Report database reachability and cache size
    """
    stored = None
    try:
        stored = service.tokens_repo.count()
    except PersistenceError as e:
        logger.error(f"Health check failed: {e}")
    return StatusResponse(
        name="Tokens",
        database=stored is not None,
        cachedTokens=len(service.tokens_cache),
        storedTokens=stored,
    )
