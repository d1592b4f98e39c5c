"""ql_trading REST endpoints.

POST /markets/{market_id}/buy              — buy units from the curve
POST /markets/{market_id}/sell             — sell units back to the curve
POST /markets/{market_id}/force-graduate   — governance authority only
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.database import get_db_session
from src.ql_common.fixed_point import to_fixed
from src.ql_common.response import ApiResponse, success_response
from src.ql_gateway.auth.dependencies import get_current_agent
from src.ql_launchpad.application.service import LaunchpadService, get_launchpad_service
from src.ql_market.application.schemas import MarketOut
from src.ql_trading.application.schemas import BuyRequest, SellRequest, TradeReceiptOut

router = APIRouter(prefix="/markets", tags=["trading"])


@router.post("/{market_id}/buy")
async def buy(
    market_id: int,
    req: BuyRequest,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    receipt = await service.buy(
        agent, market_id, to_fixed(req.min_units_out), to_fixed(req.spend), db
    )
    return success_response(TradeReceiptOut.from_domain(receipt).model_dump(mode="json"), request)


@router.post("/{market_id}/sell")
async def sell(
    market_id: int,
    req: SellRequest,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    receipt = await service.sell(
        agent, market_id, to_fixed(req.units), to_fixed(req.min_spend_out), db
    )
    return success_response(TradeReceiptOut.from_domain(receipt).model_dump(mode="json"), request)


@router.post("/{market_id}/force-graduate")
async def force_graduate(
    market_id: int,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    market = await service.force_graduate(agent, market_id, db)
    return success_response(MarketOut.from_domain(market).model_dump(mode="json"), request)
