"""ql_market REST endpoints.

GET  /markets                              — list all markets
POST /markets                              — create a market directly (permissionless)
GET  /markets/{market_id}                  — full detail
GET  /markets/{market_id}/price            — current curve price
GET  /markets/{market_id}/quote/buy        — units for a spend, after fee
GET  /markets/{market_id}/quote/sell       — gross refund for units
GET  /markets/{market_id}/weights          — governance weight snapshot
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.database import get_db_session
from src.ql_common.fixed_point import to_display, to_fixed
from src.ql_common.response import ApiResponse, success_response
from src.ql_gateway.auth.dependencies import get_current_agent
from src.ql_launchpad.application.service import LaunchpadService, get_launchpad_service
from src.ql_market.application.schemas import CreateMarketRequest, MarketOut, PriceOut, QuoteOut

router = APIRouter(prefix="/markets", tags=["markets"])


@router.get("")
async def list_markets(
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    graduated: bool | None = Query(None, description="Filter by graduation state"),
) -> ApiResponse:
    markets = [
        MarketOut.from_domain(m).model_dump(mode="json")
        for m in service.list_markets()
        if graduated is None or m.graduated == graduated
    ]
    return success_response(markets, request)


@router.post("", status_code=201)
async def create_market(
    req: CreateMarketRequest,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    market = await service.create_market(
        agent, req.members, req.weights, req.name, req.symbol, req.thesis, db
    )
    return success_response(MarketOut.from_domain(market).model_dump(mode="json"), request)


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
) -> ApiResponse:
    return success_response(MarketOut.from_domain(service.get_market(market_id)).model_dump(mode="json"), request)


@router.get("/{market_id}/price")
async def get_price(
    market_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
) -> ApiResponse:
    price = service.get_current_price(market_id)
    return success_response(PriceOut(market_id=market_id, price=to_display(price)).model_dump(), request)


@router.get("/{market_id}/quote/buy")
async def quote_buy(
    market_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    spend: str = Query(..., description="Value to spend, decimal string"),
) -> ApiResponse:
    units = service.quote_buy(market_id, to_fixed(spend))
    quote = QuoteOut(market_id=market_id, amount_in=spend, amount_out=to_display(units))
    return success_response(quote.model_dump(), request)


@router.get("/{market_id}/quote/sell")
async def quote_sell(
    market_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    units: str = Query(..., description="Units to sell, decimal string"),
) -> ApiResponse:
    refund = service.quote_sell(market_id, to_fixed(units))
    quote = QuoteOut(market_id=market_id, amount_in=units, amount_out=to_display(refund))
    return success_response(quote.model_dump(), request)


@router.get("/{market_id}/weights")
async def get_weights(
    market_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
) -> ApiResponse:
    weights = service.get_weights(market_id)
    return success_response({"market_id": market_id, "weights": weights, "total": sum(weights.values())}, request)
