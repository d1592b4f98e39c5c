"""ql_quorum REST endpoints.

POST /quorum-proposals                     — propose a quorum (proposer pre-approved)
GET  /quorum-proposals/{quorum_id}         — detail
POST /quorum-proposals/{quorum_id}/approve — approve; the last approval launches the market
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.database import get_db_session
from src.ql_common.response import ApiResponse, success_response
from src.ql_gateway.auth.dependencies import get_current_agent
from src.ql_launchpad.application.service import LaunchpadService, get_launchpad_service
from src.ql_quorum.application.schemas import ProposeQuorumRequest, QuorumProposalOut

router = APIRouter(prefix="/quorum-proposals", tags=["quorum"])


@router.post("", status_code=201)
async def propose_quorum(
    req: ProposeQuorumRequest,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    proposal = await service.propose_quorum(
        agent, req.members, req.weights, req.name, req.symbol, req.thesis, db
    )
    return success_response(QuorumProposalOut.from_domain(proposal).model_dump(mode="json"), request)


@router.get("/{quorum_id}")
async def get_quorum_proposal(
    quorum_id: int,
    request: Request,
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
) -> ApiResponse:
    proposal = service.get_quorum_proposal(quorum_id)
    return success_response(QuorumProposalOut.from_domain(proposal).model_dump(mode="json"), request)


@router.post("/{quorum_id}/approve")
async def approve_quorum(
    quorum_id: int,
    request: Request,
    agent: Annotated[str, Depends(get_current_agent)],
    service: Annotated[LaunchpadService, Depends(get_launchpad_service)],
    db: Annotated[AsyncSession | None, Depends(get_db_session)],
) -> ApiResponse:
    proposal = await service.approve_quorum(agent, quorum_id, db)
    return success_response(QuorumProposalOut.from_domain(proposal).model_dump(mode="json"), request)
