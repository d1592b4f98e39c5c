# src/ql_admin/api/router.py
"""Admin REST API. Every mutating endpoint is owner-only (checked by AdminConsole)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.database import get_db_session
from src.ql_common.fixed_point import to_display, to_fixed
from src.ql_common.response import ApiResponse, stamp, success_response
from src.ql_gateway.auth.dependencies import get_current_agent
from src.ql_launchpad.application.service import LaunchpadService, get_launchpad_service
from src.ql_market.application.schemas import MarketOut
from src.ql_market.domain.models import Market, ProtocolConfig

router = APIRouter(prefix="/admin", tags=["admin"])


class FeeRequest(BaseModel):
    protocol_fee_bps: int = Field(..., ge=0)


class IdentityRequest(BaseModel):
    identity: str


class DefaultParametersRequest(BaseModel):
    base_price: str
    slope: str
    target_raise: str


class WithdrawRequest(BaseModel):
    amount: str
    asset: str | None = None


class CreditRequest(BaseModel):
    holder: str
    amount: str


def _config_out(config: ProtocolConfig) -> dict[str, object]:
    return {
        "owner": config.owner,
        "governance": config.governance,
        "treasury": config.treasury,
        "protocol_fee_bps": config.protocol_fee_bps,
        "default_base_price": to_display(config.defaults.base_price),
        "default_slope": to_display(config.defaults.slope),
        "default_target_raise": to_display(config.defaults.target_raise),
    }


def _market_out(market: Market) -> dict[str, object]:
    return MarketOut.from_domain(market).model_dump(mode="json")


@router.get("/config")
async def get_config(
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
) -> ApiResponse:
    return success_response(_config_out(service.get_config()))


@router.put("/fee")
async def set_fee(
    body: FeeRequest,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    config = await service.set_protocol_fee_bps(agent, body.protocol_fee_bps, db)
    return success_response(_config_out(config))


@router.put("/treasury")
async def set_treasury(
    body: IdentityRequest,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    config = await service.set_protocol_treasury(agent, body.identity, db)
    return success_response(_config_out(config))


@router.put("/governance")
async def set_governance(
    body: IdentityRequest,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    config = await service.set_governance(agent, body.identity, db)
    return success_response(_config_out(config))


@router.put("/defaults")
async def set_default_parameters(
    body: DefaultParametersRequest,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    config = await service.set_default_parameters(
        agent, to_fixed(body.base_price), to_fixed(body.slope), to_fixed(body.target_raise), db
    )
    return success_response(_config_out(config))


@router.post("/markets/{market_id}/pause/request")
async def request_pause(
    market_id: int,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    await service.request_pause(agent, market_id, db)
    executable_at = service.launchpad.pauses.pending[market_id]
    return success_response({"market_id": market_id, "executable_at": stamp(executable_at)})


@router.post("/markets/{market_id}/pause/execute")
async def execute_pause(
    market_id: int,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(_market_out(await service.execute_pause(agent, market_id, db)))


@router.post("/markets/{market_id}/pause/cancel")
async def cancel_pause(
    market_id: int,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(_market_out(await service.cancel_pause(agent, market_id, db)))


@router.post("/markets/{market_id}/emergency-pause")
async def emergency_pause(
    market_id: int,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(_market_out(await service.emergency_pause(agent, market_id, db)))


@router.post("/markets/{market_id}/unpause")
async def unpause(
    market_id: int,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(_market_out(await service.unpause(agent, market_id, db)))


@router.post("/markets/{market_id}/rescue")
async def rescue_graduated_market_funds(
    market_id: int,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(_market_out(await service.rescue_graduated_market_funds(agent, market_id, db)))


@router.get("/surplus")
async def get_surplus(
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    asset: str | None = Query(None, description="Also report unit surplus for this asset"),
) -> ApiResponse:
    figures = service.surplus(asset)
    return success_response({k: to_display(v) for k, v in figures.items()})


@router.post("/withdraw")
async def emergency_withdraw(
    body: WithdrawRequest,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    amount = to_fixed(body.amount)
    if body.asset is None:
        withdrawn = await service.emergency_withdraw_surplus_value(agent, amount, db)
    else:
        withdrawn = await service.emergency_withdraw_surplus_asset(agent, body.asset, amount, db)
    return success_response({"asset": body.asset, "amount": to_display(withdrawn)})


@router.post("/credit")
async def credit(
    body: CreditRequest,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    balance = await service.credit(agent, body.holder, to_fixed(body.amount), db)
    return success_response({"holder": body.holder, "balance": to_display(balance)})
