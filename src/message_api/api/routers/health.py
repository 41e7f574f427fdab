from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from message_api.api import deps
from message_api.schemas.message import StatusRead
from message_api.services import message as message_service
from message_api.services.status import DependencyStatusRegistry

router = APIRouter(tags=["health"])

@router.get("/status", response_model=StatusRead)
async def status_route(
    status: Optional[int] = Query(None, ge=100, le=599),
    session: AsyncSession = Depends(deps.get_db),
    registry: DependencyStatusRegistry = Depends(deps.get_status_registry),
):
    """Report store connectivity and which dependencies are up or down.

    ``?status=NNN`` answers with that code and no body (load balancer checks).
    """
    if status is not None:
        return Response(status_code=status)
    snapshot = await message_service.status(session, registry)
    body = StatusRead(**snapshot)
    return JSONResponse(status_code=body.statuscode, content=body.model_dump())
