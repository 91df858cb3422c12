import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from engigrow.core.database import get_db
from engigrow.core.errors import ValidationError
from engigrow.core.security import token_service
from engigrow.models.user import User
from engigrow.services.user_service import user_service
from engigrow.api.dependencies import get_current_user
from engigrow.api.responses import ApiResponse, TokenData

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class UserCreate(BaseModel):
    name: str
    # "college" is what older clients send
    institution: str = Field(validation_alias=AliasChoices("institution", "college"))
    interests: List[str]
    email: EmailStr
    password: str
    confirm_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("confirm_password", "confirmPassword"))

    @field_validator("interests", mode="before")
    @classmethod
    def split_interests(cls, value):
        # Accept "ml, robotics" as well as ["ml", "robotics"]
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value


class UserLogin(BaseModel):
    email: str
    password: str


class ProfileResponse(BaseModel):
    name: str
    institution: str
    interests: List[str]

    model_config = ConfigDict(from_attributes=True)


@router.post("/register", response_model=ApiResponse[TokenData], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user and log them in"""
    if user_data.confirm_password is not None and user_data.confirm_password != user_data.password:
        raise ValidationError("Passwords do not match.")

    # Password is hashed inside register; the raw value is never stored
    user = user_service.register(
        db,
        name=user_data.name,
        institution=user_data.institution,
        interests=user_data.interests,
        email=user_data.email,
        raw_password=user_data.password,
    )
    token = token_service.issue(user)
    return ApiResponse(message="User registered successfully", data=TokenData(token=token))


@router.post("/login", response_model=ApiResponse[TokenData])
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get access token"""
    if not credentials.email or not credentials.password:
        raise ValidationError("Email and password are required.")

    user = user_service.verify(db, credentials.email, credentials.password)
    token = token_service.issue(user)
    logger.info(f"User {user.email} logged in")
    return ApiResponse(message="Login successful", data=TokenData(token=token))


@router.get("/profile", response_model=ApiResponse[ProfileResponse])
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get current user's profile"""
    return ApiResponse(
        message="User profile fetched successfully",
        data=ProfileResponse.model_validate(current_user),
    )
