from collections.abc import Container
from pathlib import Path
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse
from returns.result import Success

from application.dtos.approval_dtos import RequestAccessRequest, RequestAccessResponse
from application.use_cases.approval_use_cases import (
    CheckApprovalUseCase,
    RecordApprovalUseCase,
    RequestAccessUseCase,
)
from interfaces.api.middleware import handle_use_case_errors
from interfaces.dependencies import get_container

logger = structlog.get_logger()

router = APIRouter(tags=["approvals"])

STATIC_DIR = Path(__file__).resolve().parents[1] / "static"


@router.post("/verify-pdf-access", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def request_access(
    request: RequestAccessRequest,
    container: Annotated[Container, Depends(get_container)],
) -> RequestAccessResponse:
    """Check the shared secret and email the operator an approval link.

    Returns:
        200 OK: token to poll with
        401 Unauthorized: wrong secret
        500 Internal Server Error: the approval email could not be sent

    """
    use_case = container[RequestAccessUseCase]
    return await use_case.execute(request)


@router.get("/approve/{token}", response_class=FileResponse)
async def approve(
    token: str,
    container: Annotated[Container, Depends(get_container)],
) -> FileResponse:
    """Operator landing page reached from the approval email.

    Always answers with HTML, since it is opened directly in a browser.
    """
    use_case = container[RecordApprovalUseCase]
    result = await use_case.execute(token)

    if isinstance(result, Success):
        return FileResponse(STATIC_DIR / "approved.html", media_type="text/html")
    return FileResponse(
        STATIC_DIR / "error.html",
        status_code=status.HTTP_404_NOT_FOUND,
        media_type="text/html",
    )


@router.get("/check-approval/{token}", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def check_approval(
    token: str,
    container: Annotated[Container, Depends(get_container)],
) -> dict[str, Any]:
    """Poll an approval token. An approved token is consumed by this call."""
    use_case = container[CheckApprovalUseCase]
    result = await use_case.execute(token)
    return result.map(lambda response: response.model_dump(by_alias=True, exclude_none=True))
