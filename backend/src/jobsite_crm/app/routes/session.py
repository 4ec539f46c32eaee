"""Acting-user session and the shared route dependencies.

There is no authentication: the acting user is whatever the caller puts
in ``X-User-Id``, or the workspace's current user when the header is
absent.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from jobsite_crm.domain.schemas import CurrentUser
from jobsite_crm.services.workspace import Workspace

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


def get_workspace(request: Request) -> Workspace:
    """FastAPI dependency: the process-wide workspace built at startup."""
    return request.app.state.workspace


def get_acting_user(
    x_user_id: Optional[int] = Header(default=None),
    workspace: Workspace = Depends(get_workspace),
) -> int:
    """FastAPI dependency: acting user id for attribution."""
    if x_user_id is not None:
        return x_user_id
    return workspace.current_user_id


@router.get("/user", response_model=CurrentUser)
async def current_user(workspace: Workspace = Depends(get_workspace)):
    return CurrentUser(user_id=workspace.current_user_id)


@router.put("/user", response_model=CurrentUser)
async def switch_user(data: CurrentUser, workspace: Workspace = Depends(get_workspace)):
    """Change the default acting user for requests without ``X-User-Id``."""
    workspace.current_user_id = data.user_id
    logger.info("Current user switched to %d", data.user_id)
    return CurrentUser(user_id=workspace.current_user_id)
