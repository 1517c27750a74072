import logging

from fastapi import APIRouter, Depends, HTTPException, status

from entitlement_gate.api.deps import get_access_service
from entitlement_gate.api.schemas import AccessViewResponse
from entitlement_gate.components.access import AccessQueryService
from entitlement_gate.domain.errors import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/user/{email}/access", response_model=AccessViewResponse)
def get_user_access(
    email: str,
    service: AccessQueryService = Depends(get_access_service),
) -> AccessViewResponse:
    """Current entitlements for a self-reported email. Unknown emails have no access."""
    try:
        view = service.query_access(email)
    except StorageError as e:
        logger.error(f"Access query failed for {email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Entitlement store unavailable",
        ) from e
    return AccessViewResponse.from_view(view)
