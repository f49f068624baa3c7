"""Account endpoints: register, login, current user."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from credhub.core.auth import (
    DuplicateUserError,
    InvalidCredentialsError,
    RegistrationError,
    authenticate,
    create_access_token,
    get_redirect_path,
    register_user,
)
from credhub.db.users_repository import UserRecord
from credhub.web.deps import get_current_user
from credhub.web.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: UserRecord) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user),
        redirect_path=get_redirect_path(user.role),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> TokenResponse:
    """Create an account and sign it in."""
    try:
        user = register_user(
            email=request.email,
            password=request.password,
            confirm_password=request.confirm_password,
            role=request.role,
            full_name=request.full_name,
        )
    except RegistrationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Invalid registration", "errors": e.errors},
        )
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest) -> TokenResponse:
    """Sign in and get an access token plus the role's landing path."""
    try:
        user = authenticate(request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(user)


@router.get("/me", response_model=UserResponse)
async def me(user: UserRecord = Depends(get_current_user)) -> UserResponse:
    """Get the signed-in user."""
    return UserResponse.model_validate(user)
