"""
Action Routes

Stateless status endpoint. Image data never reaches the server:
`process` only acknowledges that work happens on the client.
"""

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ...config import get_settings
from ..schemas import ActionRequest, ErrorResponse, ProcessAckResponse, ServiceStatusResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["process"])


def sanitize_for_log(value: str) -> str:
    """Sanitize a value for safe logging (prevent log injection)."""
    return re.sub(r'[\r\n\t]', '', str(value))


@router.post(
    "/process",
    response_model=ServiceStatusResponse | ProcessAckResponse,
    responses={400: {"model": ErrorResponse}},
)
async def handle_action(body: ActionRequest):
    """
    Dispatch on `action`.

    - health: static service status
    - process: static acknowledgement, nothing is processed here
    - anything else: 400
    """
    settings = get_settings()

    if body.action == "health":
        return ServiceStatusResponse(
            service=settings.app_name,
            timestamp=datetime.now(timezone.utc),
            version=settings.service_version,
        )

    if body.action == "process":
        return ProcessAckResponse()

    logger.warning("Unknown action requested: %s", sanitize_for_log(body.action))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="Unknown action").model_dump(),
    )
