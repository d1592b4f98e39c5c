"""HTTP tests for the launchpad API over ASGITransport with in-memory state."""

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.ql_common.database import get_db_session
from src.ql_gateway.auth.jwt_handler import create_access_token
from src.ql_launchpad.application.service import LaunchpadService, get_launchpad_service
from src.ql_launchpad.launchpad import Launchpad
from src.main import app
from tests.factories import ALICE, BOB, CAROL, DAVE, MEMBERS, OWNER, WEIGHTS, make_config

Headers = Callable[[str], dict[str, str]]


async def _no_db() -> AsyncGenerator[None, None]:
    yield None


def _auth(agent: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(agent)}"}


@pytest.fixture
def service(clock) -> LaunchpadService:
    return LaunchpadService(Launchpad(make_config(), clock=clock))


@pytest_asyncio.fixture
async def client(service: LaunchpadService) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_launchpad_service] = lambda: service
    app.dependency_overrides[get_db_session] = _no_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_market(client: AsyncClient) -> dict:
    resp = await client.post(
        "/api/v1/markets",
        json={"members": MEMBERS, "weights": WEIGHTS, "name": "Crab", "symbol": "CRAB"},
        headers=_auth(ALICE),
    )
    assert resp.status_code == 201
    return resp.json()["data"]


class TestAuth:
    @pytest.mark.asyncio
    async def test_mutation_requires_token(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/markets",
            json={"members": MEMBERS, "weights": WEIGHTS, "name": "Crab", "symbol": "CRAB"},
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/markets/0/buy",
            json={"spend": "1"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_reads_are_public(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets")
        assert resp.status_code == 200
        assert resp.json()["data"] == []


class TestErrors:
    @pytest.mark.asyncio
    async def test_unknown_market_envelope(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets/9")
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == 6001
        assert body["data"] is None
        assert body["request_id"] == resp.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_caller_request_id_is_echoed(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets", headers={"X-Request-ID": "req_fromclient"})
        assert resp.headers["X-Request-ID"] == "req_fromclient"
        assert resp.json()["request_id"] == "req_fromclient"

    @pytest.mark.asyncio
    async def test_invalid_quorum_rejected(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/markets",
            json={"members": MEMBERS, "weights": [40, 35, 20], "name": "Crab", "symbol": "CRAB"},
            headers=_auth(ALICE),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 1003


class TestMarketFlow:
    @pytest.mark.asyncio
    async def test_create_and_read(self, client: AsyncClient) -> None:
        market = await _create_market(client)
        assert market["total_supply"] == "1000000"
        assert market["curve_allocation"] == "600000"
        assert market["raised"] == "0"

        price = (await client.get(f"/api/v1/markets/{market['id']}/price")).json()["data"]
        assert price["price"] == "0.0001"

    @pytest.mark.asyncio
    async def test_buy_then_sell(self, client: AsyncClient) -> None:
        market = await _create_market(client)
        credited = await client.post(
            "/api/v1/admin/credit", json={"holder": DAVE, "amount": "5"}, headers=_auth(OWNER)
        )
        assert credited.json()["data"]["balance"] == "5"

        quote = (
            await client.get(f"/api/v1/markets/{market['id']}/quote/buy", params={"spend": "1"})
        ).json()["data"]
        bought = await client.post(
            f"/api/v1/markets/{market['id']}/buy",
            json={"spend": "1", "min_units_out": quote["amount_out"]},
            headers=_auth(DAVE),
        )
        assert bought.status_code == 200
        receipt = bought.json()["data"]
        assert receipt["units"] == quote["amount_out"]
        assert receipt["fee"] == "0.005"

        sold = await client.post(
            f"/api/v1/markets/{market['id']}/sell",
            json={"units": receipt["units"]},
            headers=_auth(DAVE),
        )
        assert sold.status_code == 200
        assert sold.json()["data"]["side"] == "SELL"

    @pytest.mark.asyncio
    async def test_buy_without_funds(self, client: AsyncClient) -> None:
        market = await _create_market(client)
        resp = await client.post(
            f"/api/v1/markets/{market['id']}/buy", json={"spend": "1"}, headers=_auth(DAVE)
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2008


class TestQuorumFlow:
    @pytest.mark.asyncio
    async def test_unanimous_approval_launches_market(self, client: AsyncClient) -> None:
        created = await client.post(
            "/api/v1/quorum-proposals",
            json={"members": MEMBERS, "weights": WEIGHTS, "name": "Reef", "symbol": "REEF"},
            headers=_auth(ALICE),
        )
        assert created.status_code == 201
        quorum_id = created.json()["data"]["id"]

        for agent in (BOB, CAROL):
            resp = await client.post(
                f"/api/v1/quorum-proposals/{quorum_id}/approve", headers=_auth(agent)
            )
            assert resp.status_code == 200

        formed = resp.json()["data"]
        assert formed["executed"] is True
        weights = (await client.get(f"/api/v1/markets/{formed['market_id']}/weights")).json()
        assert weights["data"]["weights"] == dict(zip(MEMBERS, WEIGHTS))
        assert weights["data"]["total"] == 100

        proposal = await client.post(
            "/api/v1/proposals",
            json={"market_id": formed["market_id"], "action": "ADD_MEMBER", "target": DAVE, "value": 10},
            headers=_auth(ALICE),
        )
        assert proposal.status_code == 201
        vote = await client.post(
            f"/api/v1/proposals/{proposal.json()['data']['id']}/vote",
            json={"support": True},
            headers=_auth(BOB),
        )
        assert vote.json()["data"]["for_votes"] == 35

    @pytest.mark.asyncio
    async def test_outsider_cannot_approve(self, client: AsyncClient) -> None:
        created = await client.post(
            "/api/v1/quorum-proposals",
            json={"members": MEMBERS, "weights": WEIGHTS, "name": "Reef", "symbol": "REEF"},
            headers=_auth(ALICE),
        )
        resp = await client.post(
            f"/api/v1/quorum-proposals/{created.json()['data']['id']}/approve",
            headers=_auth(DAVE),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 3004


class TestAdmin:
    @pytest.mark.asyncio
    async def test_fee_update_is_owner_only(self, client: AsyncClient) -> None:
        denied = await client.put(
            "/api/v1/admin/fee", json={"protocol_fee_bps": 10}, headers=_auth(DAVE)
        )
        assert denied.status_code == 403

        ok = await client.put(
            "/api/v1/admin/fee", json={"protocol_fee_bps": 10}, headers=_auth(OWNER)
        )
        assert ok.status_code == 200
        config = (await client.get("/api/v1/admin/config")).json()["data"]
        assert config["protocol_fee_bps"] == 10
