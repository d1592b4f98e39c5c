"""ql_governance REST endpoints.

POST /proposals                          — create (current quorum members only)
GET  /proposals/{proposal_id}            — detail
POST /proposals/{proposal_id}/vote       — weighted vote before the deadline
POST /proposals/{proposal_id}/execute    — tally and dispatch inside the execution window
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.database import get_db_session
from src.ql_common.response import ApiResponse, success_response
from src.ql_gateway.auth.dependencies import get_current_agent
from src.ql_governance.application.schemas import ProposalOut, ProposeRequest, VoteRequest
from src.ql_launchpad.application.service import LaunchpadService, get_launchpad_service

router = APIRouter(prefix="/proposals", tags=["governance"])


@router.post("", status_code=201)
async def propose(
    req: ProposeRequest,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    proposal = await service.propose(
        agent, req.market_id, req.action, req.target, req.value, req.payload, req.description, db
    )
    return success_response(ProposalOut.from_domain(proposal).model_dump(mode="json"), request)


@router.get("/{proposal_id}")
async def get_proposal(
    proposal_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
) -> ApiResponse:
    return success_response(
        ProposalOut.from_domain(service.get_proposal(proposal_id)).model_dump(mode="json"),
        request,
    )


@router.post("/{proposal_id}/vote")
async def vote(
    proposal_id: int,
    req: VoteRequest,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    proposal = await service.vote(agent, proposal_id, req.support, db)
    return success_response(ProposalOut.from_domain(proposal).model_dump(mode="json"), request)


@router.post("/{proposal_id}/execute")
async def execute(
    proposal_id: int,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    proposal = await service.execute(agent, proposal_id, db)
    return success_response(ProposalOut.from_domain(proposal).model_dump(mode="json"), request)
