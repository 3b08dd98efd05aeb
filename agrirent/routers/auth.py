"""Authentication API endpoints."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from agrirent.database import get_db
from agrirent.dependencies import get_auth_service
from agrirent.models.account import AccountVariant
from agrirent.rate_limit import limiter
from agrirent.schemas.account import AccountProfile
from agrirent.schemas.auth import (
    ActivationResponse,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    ResetTokenStatus,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    VerifyPasswordRequest,
)
from agrirent.services.auth import FORGOT_PASSWORD_MESSAGE, AuthErrorKind, AuthResult, AuthService

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

ERROR_STATUS = {
    AuthErrorKind.VALIDATION: 400,
    AuthErrorKind.ALREADY_EXISTS: 400,
    AuthErrorKind.NOT_FOUND: 404,
    AuthErrorKind.NOT_ACTIVATED: 400,
    AuthErrorKind.INVALID_CREDENTIALS: 400,
    AuthErrorKind.INVALID_OR_EXPIRED: 400,
    AuthErrorKind.DELIVERY_FAILED: 400,
    AuthErrorKind.INTERNAL: 500,
}


def raise_for_result(result: AuthResult) -> None:
    """Turn a failed AuthResult into the matching HTTP error."""
    if not result.success:
        raise HTTPException(status_code=ERROR_STATUS[result.error_kind], detail=result.error)


# --- Password reset ---


@router.post("/password/forgot", response_model=MessageResponse)
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Request a password reset link. The answer is the same whether or not the account exists."""
    # Runs after the response; a closed request session is reopened on first use
    background_tasks.add_task(auth_service.forgot_password, db, body.user_type, body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/password/reset", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Set a new password with a valid reset token. The token cannot be used again."""
    result = auth_service.reset_password(db, body.token, body.password)
    raise_for_result(result)
    return MessageResponse(message="Password updated successfully")


@router.get(
    "/password/reset/verify/{token}",
    response_model=ResetTokenStatus,
    response_model_exclude_none=True,
)
def verify_reset_token(
    token: str,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> ResetTokenStatus | JSONResponse:
    """Check a reset token before showing the new-password form."""
    result = auth_service.verify_reset_token(db, token)
    if not result.success:
        status = ResetTokenStatus(valid=False, message=result.error)
        return JSONResponse(
            status_code=ERROR_STATUS[result.error_kind],
            content=status.model_dump(by_alias=True, exclude_none=True),
        )
    return ResetTokenStatus(valid=True, user_type=result.variant)


@router.post("/verify-password")
@limiter.limit("10/minute")
def verify_password(
    request: Request,
    body: VerifyPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Check a password without signing in, e.g. before a profile update."""
    result = auth_service.verify_password(db, body.user_type, body.email, body.password)
    raise_for_result(result)
    return {"success": True, "isValid": result.valid}


# --- Signup / activation / signin, per account variant ---


@router.post("/{variant}/signup", response_model=SignupResponse, status_code=201)
@limiter.limit("5/minute")
def signup(
    request: Request,
    variant: AccountVariant,
    body: SignupRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> SignupResponse:
    """Register an account and email its activation link."""
    profile = body.model_dump(exclude={"email", "password"})
    result = auth_service.signup(db, variant, body.email, body.password, profile)
    raise_for_result(result)

    noun = "Provider account" if variant is AccountVariant.PROVIDER else "Account"
    return SignupResponse(
        message=f"{noun} created successfully! Please check your email to activate your account.",
        email=result.email,  # type: ignore[arg-type]
    )


@router.get("/{variant}/activate/{token}", response_model=ActivationResponse)
def activate(
    variant: AccountVariant,
    token: str,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> ActivationResponse:
    """Activate an account from the link sent at signup."""
    result = auth_service.activate(db, variant, token)
    raise_for_result(result)

    noun = "Provider account" if variant is AccountVariant.PROVIDER else "Account"
    return ActivationResponse(
        message=f"{noun} activated successfully!",
        email=result.email,  # type: ignore[arg-type]
        user_type=variant,
        id=result.account.id,  # type: ignore[union-attr]
    )


@router.post("/{variant}/signin", response_model=SigninResponse)
@limiter.limit("10/minute")
def signin(
    request: Request,
    variant: AccountVariant,
    body: SigninRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> SigninResponse:
    """Authenticate and receive a session token."""
    result = auth_service.signin(db, variant, body.email, body.password)
    raise_for_result(result)

    return SigninResponse(
        token=result.token,  # type: ignore[arg-type]
        user=AccountProfile.model_validate(result.account),
    )
