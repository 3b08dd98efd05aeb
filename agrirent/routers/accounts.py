"""Endpoints for the signed-in account."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from agrirent.database import get_db
from agrirent.dependencies import CurrentAccount, get_auth_service, get_current_account
from agrirent.schemas.account import AccountProfile, DeactivateResponse
from agrirent.services.account_store import AccountStore
from agrirent.services.auth import AuthService

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("/me", response_model=AccountProfile)
def get_me(
    current: CurrentAccount = Depends(get_current_account),
    db: Session = Depends(get_db),
) -> AccountProfile:
    """Return the profile of the account named by the session token."""
    account = AccountStore(db).get(current.account_id)
    if not account or account.variant != current.variant.value:
        raise HTTPException(status_code=404, detail="Account not found")
    return AccountProfile.model_validate(account)


@router.delete("/me", response_model=DeactivateResponse)
def deactivate_me(
    current: CurrentAccount = Depends(get_current_account),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> DeactivateResponse:
    """Soft-delete the signed-in account."""
    result = auth_service.deactivate(db, current.account_id)
    if not result.success:
        raise HTTPException(status_code=404, detail=result.error)
    return DeactivateResponse(
        message="Account deactivated successfully",
        account=AccountProfile.model_validate(result.account),
    )
