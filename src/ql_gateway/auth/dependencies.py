"""FastAPI dependency: get_current_agent.

Usage in any protected router:
    from src.ql_gateway.auth.dependencies import get_current_agent

    @router.post("/protected")
    async def protected(agent: Annotated[str, Depends(get_current_agent)]):
        ...
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.ql_common.errors import InvalidCredentialsError
from src.ql_gateway.auth.jwt_handler import decode_token

_bearer = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_agent(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Return the agent identity (`sub`) from the Bearer token.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    agent_id: str | None = payload.get("sub")
    if not agent_id:
        raise _CREDENTIALS_EXCEPTION
    request.state.agent_id = agent_id
    return agent_id
