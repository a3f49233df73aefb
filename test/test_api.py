from sqlite3 import Connection
from decimal import Decimal
from fastapi.testclient import TestClient
import pytest

from fixtures.general import START_TIME, conn, clock
from fixtures.prices import (
    PricesServiceMock,
    ResponseMock,
    SessionMock,
    prices_mock,
    session_mock,
    prices_service,
)
from fixtures.tokens import (
    FailingTokensRepo,
    tokens_repo,
    failing_tokens_repo,
    tokens_cache,
    erc20_metas_service,
    tokens_service,
)
from fixtures.w3 import DAI, NOT_A_TOKEN, w3_mock
from tokencat.api import app, get_tokens_service
from tokencat.errors import PersistenceError
from tokencat.erc20_metas.service import ERC20MetasService
from tokencat.prices.service import PricesService
from tokencat.tokens.cache import TokensCache
from tokencat.tokens.repo import TokensRepo
from tokencat.tokens.service import TokensService


class UnreachableTokensRepo(TokensRepo):
    def count(self) -> int:
        raise PersistenceError("database is locked")


def _client(service: TokensService) -> TestClient:
    app.dependency_overrides[get_tokens_service] = lambda: service
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_overrides():
    yield
    app.dependency_overrides.clear()


def test_get_token(tokens_service: TokensService, prices_mock: PricesServiceMock):
    prices_mock.prices[DAI] = Decimal("0.999")
    prices_mock.images[DAI] = "dai.png"
    response = _client(tokens_service).get(f"/token/{DAI.upper()[2:]}")
    assert response.status_code == 200
    assert response.json() == {
        "address": DAI,
        "name": "Dai Stablecoin",
        "symbol": "DAI",
        "decimals": 18,
        "price": "0.999",
        "lastUpdated": START_TIME,
        "image": "dai.png",
    }


def test_get_token_without_price(tokens_service: TokensService):
    response = _client(tokens_service).get(f"/token/{DAI}")
    assert response.status_code == 200
    assert response.json()["price"] is None


def test_invalid_address(
    tokens_service: TokensService, prices_mock: PricesServiceMock
):
    response = _client(tokens_service).get("/token/0xThisIsNotAValidAddress")
    assert response.status_code == 400
    assert "Invalid token address" in response.json()["detail"]
    assert prices_mock.price_requests == []


def test_unresolvable_token(tokens_service: TokensService):
    response = _client(tokens_service).get(f"/token/{NOT_A_TOKEN}")
    assert response.status_code == 502


def test_price_feed_down(tokens_service: TokensService, prices_mock: PricesServiceMock):
    prices_mock.failing = True
    response = _client(tokens_service).get(f"/token/{DAI}")
    assert response.status_code == 502


def test_database_down(
    failing_tokens_repo: FailingTokensRepo,
    tokens_cache: TokensCache,
    erc20_metas_service: ERC20MetasService,
    prices_mock: PricesServiceMock,
):
    service = TokensService(
        failing_tokens_repo, tokens_cache, erc20_metas_service, prices_mock
    )
    response = _client(service).get(f"/token/{DAI}")
    assert response.status_code == 503
    assert len(tokens_cache) == 0


def test_status(tokens_service: TokensService):
    client = _client(tokens_service)
    assert client.get(f"/token/{DAI}").status_code == 200
    response = client.get("/status")
    assert response.status_code == 200
    assert response.json() == {
        "name": "Tokens",
        "database": True,
        "cachedTokens": 1,
        "storedTokens": 1,
    }


def test_status_database_down(
    conn: Connection,
    tokens_cache: TokensCache,
    erc20_metas_service: ERC20MetasService,
    prices_mock: PricesServiceMock,
):
    service = TokensService(
        UnreachableTokensRepo(conn=conn), tokens_cache, erc20_metas_service, prices_mock
    )
    response = _client(service).get("/status")
    assert response.status_code == 200
    assert response.json()["database"] is False
    assert response.json()["storedTokens"] is None


def test_malformed_price(
    tokens_repo: TokensRepo,
    tokens_cache: TokensCache,
    erc20_metas_service: ERC20MetasService,
    prices_service: PricesService,
    session_mock: SessionMock,
):
    session_mock.responses.append(ResponseMock(200, {DAI: {"usd": "n/a"}}))
    service = TokensService(tokens_repo, tokens_cache, erc20_metas_service, prices_service)
    response = _client(service).get(f"/token/{DAI}")
    assert response.status_code == 502
    assert tokens_repo.find(DAI) is None
