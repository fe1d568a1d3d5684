import logging
from datetime import date
from urllib.parse import unquote

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from snack_orders.auth.dependencies import get_storage, require_capability
from snack_orders.auth.passwords import hash_password
from snack_orders.auth.permissions import Capability, RoleSet, can_access_class
from snack_orders.models.order import OrderStatus
from snack_orders.models.user import User
from snack_orders.routes.common import database_unavailable, resolve_class_room, username_taken
from snack_orders.routes.order_routes import serialize_admin_order
from snack_orders.schemas import (
    AdminOrderResponse,
    BulkDeleteResponse,
    CamelModel,
    MessageResponse,
    OrderResponse,
    UserResponse,
)
from snack_orders.services.order_service import OrderValidationError, change_order_status
from snack_orders.storage import Storage

router = APIRouter(tags=['admin'])

logger = logging.getLogger(__name__)

MIN_ADMIN_PASSWORD_LENGTH = 8


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class UpdateClassesRequest(BaseModel):
    classes: list[str]


class CreateUserRequest(CamelModel):
    username: EmailStr
    password: str = Field(min_length=MIN_ADMIN_PASSWORD_LENGTH)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    class_room: str = ''
    email: EmailStr | None = None
    is_admin: bool = False
    is_representative: bool = False
    is_user_admin: bool = False

    @field_validator('username')
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return value.strip().lower()


class UpdateUserRequest(CamelModel):
    username: EmailStr | None = None
    password: str | None = None
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    class_room: str | None = None
    email: EmailStr | None = None
    is_admin: bool | None = None
    is_representative: bool | None = None
    is_user_admin: bool | None = None

    @field_validator('username')
    @classmethod
    def normalize_username(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        # An empty password leaves the current one unchanged.
        if not value:
            return None
        if len(value) < MIN_ADMIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters.')
        return value


def ensure_class_access(roles: RoleSet, class_room: str | None, message: str) -> None:
    if not can_access_class(roles, class_room):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# Orders

@router.get('/orders', response_model=list[AdminOrderResponse])
def list_all_orders(
    order_date: date | None = Query(default=None, alias='date'),
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.VIEW_ALL_ORDERS)),
):
    roles = RoleSet.from_user(current_user)

    try:
        if roles.is_admin:
            orders = storage.get_orders_by_date(order_date) if order_date else storage.get_orders()
        else:
            # Representatives only ever see their own class.
            orders = storage.get_orders_by_class(roles.class_room) if roles.class_room else []
            if order_date:
                orders = [order for order in orders if order.order_date.date() == order_date]

        return [serialize_admin_order(storage, order) for order in orders]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/orders/class/{classroom}', response_model=list[AdminOrderResponse])
def list_class_orders(
    classroom: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.VIEW_CLASS_ORDERS)),
):
    class_room = unquote(classroom).strip()
    ensure_class_access(
        RoleSet.from_user(current_user),
        class_room,
        'Representatives can only view orders of their own class.',
    )

    try:
        return [serialize_admin_order(storage, order) for order in storage.get_orders_by_class(class_room)]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/orders/{order_id}/status', response_model=OrderResponse)
def update_order_status(
    order_id: int,
    data: UpdateOrderStatusRequest,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.UPDATE_ORDER_STATUS)),
):
    try:
        order = storage.get_order(order_id)
        if order is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Order not found')

        owner = storage.get_user(order.user_id)
        ensure_class_access(
            RoleSet.from_user(current_user),
            owner.class_room if owner is not None else None,
            'Representatives can only manage orders of their own class.',
        )

        updated = change_order_status(storage, order_id, data.status)
    except OrderValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Order not found')
    return updated


# Class registry

@router.get('/classes', response_model=list[str])
def list_classes(storage: Storage = Depends(get_storage)):
    try:
        return storage.get_available_classes()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/classes', response_model=list[str])
def update_classes(
    data: UpdateClassesRequest,
    storage: Storage = Depends(get_storage),
    _user_admin: User = Depends(require_capability(Capability.MANAGE_CLASSES)),
):
    try:
        requested = {label.strip().lower() for label in data.classes if label.strip()}
        removed = [
            label for label in storage.get_available_classes() if label.lower() not in requested
        ]
        in_use = sorted({user.class_room for user in storage.get_users_in_classes(removed)})
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    'message': 'Classes still assigned to users cannot be removed.',
                    'classes': in_use,
                },
            )

        return storage.update_available_classes(data.classes)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


# Users

@router.get('/users', response_model=list[UserResponse])
def list_users(
    storage: Storage = Depends(get_storage),
    _user_admin: User = Depends(require_capability(Capability.MANAGE_USERS)),
):
    try:
        return storage.get_all_users()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/users', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: CreateUserRequest,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.MANAGE_USERS)),
):
    try:
        if storage.get_user_by_username(data.username) is not None:
            raise username_taken()

        class_room = resolve_class_room(
            storage,
            data.class_room,
            is_staff=data.is_admin or data.is_user_admin,
        )
        user = storage.create_user(
            username=data.username,
            password_hash=hash_password(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            class_room=class_room,
            email=data.email or data.username,
            is_admin=data.is_admin,
            is_representative=data.is_representative,
            is_user_admin=data.is_user_admin,
        )
    except IntegrityError as exc:
        raise username_taken() from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    logger.info('User %s created by user-admin %s', user.id, current_user.id)
    return user


# Declared before /users/{user_id} so the literal path wins.
@router.delete('/users/students/all', response_model=BulkDeleteResponse)
def delete_all_students(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.MANAGE_USERS)),
):
    try:
        student_ids = [
            user.id
            for user in storage.get_all_users()
            if not user.is_admin and not user.is_user_admin and user.id != current_user.id
        ]
        count = storage.delete_users(student_ids)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    logger.info('User-admin %s deleted %s student accounts', current_user.id, count)
    return BulkDeleteResponse(message=f'{count} students deleted', count=count)


@router.patch('/users/{user_id}', response_model=UserResponse)
def update_user(
    user_id: int,
    data: UpdateUserRequest,
    storage: Storage = Depends(get_storage),
    _user_admin: User = Depends(require_capability(Capability.MANAGE_USERS)),
):
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    try:
        user = storage.get_user(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        new_username = changes.get('username')
        if new_username and new_username != user.username:
            if storage.get_user_by_username(new_username) is not None:
                raise username_taken()

        password = changes.pop('password', None)
        if password:
            changes['password_hash'] = hash_password(password)

        is_staff = changes.get('is_admin', user.is_admin) or changes.get('is_user_admin', user.is_user_admin)
        changes['class_room'] = resolve_class_room(
            storage,
            changes.get('class_room', user.class_room),
            is_staff=is_staff,
        )

        updated = storage.update_user(user_id, **changes)
    except IntegrityError as exc:
        raise username_taken() from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    return updated


@router.delete('/users/{user_id}', response_model=MessageResponse)
def delete_user(
    user_id: int,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.MANAGE_USERS)),
):
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='You cannot delete your own account.',
        )

    try:
        deleted = storage.delete_user(user_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    return MessageResponse(message='User deleted')
