from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.auth import UserCreate, UserLogin, UserUpdate, UserResponse, PasswordChange, Token
from app.services.auth_service import AuthService
from app.utils.exceptions import (
    EmailAlreadyRegisteredError, InvalidCredentialsError, InvalidPasswordError, PasswordReuseError,
)
from app.utils.security import create_access_token, get_current_user

router = APIRouter()


def _issue_token(user: User) -> Token:
    return Token(
        access_token=create_access_token(str(user.id)),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a new account and log it in"""
    service = AuthService(db)
    try:
        user = await service.create_user(user_data)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict())
    return _issue_token(user)


@router.post("/login", response_model=Token)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for an access token"""
    service = AuthService(db)
    user = await service.authenticate_user(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=InvalidCredentialsError().to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_token(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user's profile"""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update the current user's profile"""
    service = AuthService(db)
    return await service.update_profile(current_user, update_data)


@router.put("/change-password")
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change the current user's password"""
    service = AuthService(db)
    try:
        await service.change_password(
            current_user,
            password_data.current_password,
            password_data.new_password,
        )
    except (InvalidPasswordError, PasswordReuseError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict())
    return {"message": "Password changed successfully. Please log in again with your new password."}


@router.post("/refresh", response_model=Token)
async def refresh_token(current_user: User = Depends(get_current_user)):
    """Issue a fresh token for the current user"""
    return _issue_token(current_user)


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy"""
    return {"message": "Logged out successfully"}
