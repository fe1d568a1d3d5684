import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from snack_orders.auth import jwt_handler
from snack_orders.auth.dependencies import get_current_user, get_storage
from snack_orders.auth.passwords import hash_password, verify_password
from snack_orders.models.user import User
from snack_orders.routes.common import database_unavailable, resolve_class_room, username_taken
from snack_orders.schemas import AuthResponse, CamelModel, UserResponse
from snack_orders.storage import Storage

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

MIN_REGISTRATION_PASSWORD_LENGTH = 6


class RegisterRequest(CamelModel):
    username: EmailStr
    password: str = Field(min_length=MIN_REGISTRATION_PASSWORD_LENGTH)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    class_room: str = Field(min_length=1)
    email: EmailStr | None = None

    @field_validator('username')
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('first_name', 'last_name', 'class_room')
    @classmethod
    def strip_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field cannot be blank.')
        return normalized


class LoginRequest(BaseModel):
    username: str
    password: str


def build_auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=jwt_handler.create_access_token(user.id, user.username),
        user=UserResponse.model_validate(user),
    )


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, storage: Storage = Depends(get_storage)):
    try:
        if storage.get_user_by_username(data.username) is not None:
            raise username_taken()

        class_room = resolve_class_room(storage, data.class_room, is_staff=False)
        user = storage.create_user(
            username=data.username,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            class_room=class_room,
            email=data.email or data.username,
        )
    except IntegrityError as exc:
        raise username_taken() from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    logger.info('Registered user %s in class %s', user.id, user.class_room)
    return build_auth_response(user)


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, storage: Storage = Depends(get_storage)):
    try:
        user = storage.get_user_by_username(data.username.strip().lower())
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if user is None or not verify_password(data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid username or password.',
        )

    return build_auth_response(user)


@router.get('/user', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
