from fastapi import APIRouter, Request

from kubedeploy.schemas.common import HealthStatus

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus, summary="Liveness and auth status")
async def health(request: Request) -> HealthStatus:
    state = request.app.state
    if not state.settings.database_url:
        database = "disabled"
    elif state.database is None:
        database = "unavailable"
    else:
        database = "connected"
    return HealthStatus(status="healthy", database=database, auth=state.auth_mode.value)
