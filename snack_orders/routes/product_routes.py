from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError

from snack_orders.auth.dependencies import get_storage, require_capability
from snack_orders.auth.permissions import Capability
from snack_orders.models.user import User
from snack_orders.routes.common import database_unavailable
from snack_orders.schemas import CamelModel, MessageResponse, ProductResponse
from snack_orders.storage import Storage

router = APIRouter(tags=['products'])


class CreateProductRequest(CamelModel):
    name: str = Field(min_length=1)
    description: str = ''
    price: Decimal = Field(ge=0)
    category: str = Field(min_length=1)
    available: bool = True


class UpdateProductRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, min_length=1)
    available: bool | None = None


def get_product_or_404(storage: Storage, product_id: int):
    product = storage.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Product not found')
    return product


@router.get('/products', response_model=list[ProductResponse])
def list_products(
    category: str | None = Query(default=None),
    storage: Storage = Depends(get_storage),
):
    return storage.get_products_by_category(category)


@router.get('/products/{product_id}', response_model=ProductResponse)
def get_product(product_id: int, storage: Storage = Depends(get_storage)):
    return get_product_or_404(storage, product_id)


@router.post('/products', response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    data: CreateProductRequest,
    storage: Storage = Depends(get_storage),
    _admin: User = Depends(require_capability(Capability.MANAGE_PRODUCTS)),
):
    try:
        return storage.create_product(**data.model_dump())
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/products/{product_id}', response_model=ProductResponse)
def update_product(
    product_id: int,
    data: UpdateProductRequest,
    storage: Storage = Depends(get_storage),
    _admin: User = Depends(require_capability(Capability.MANAGE_PRODUCTS)),
):
    try:
        product = storage.update_product(product_id, **data.model_dump(exclude_unset=True, exclude_none=True))
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Product not found')
    return product


@router.delete('/products/{product_id}', response_model=MessageResponse)
def delete_product(
    product_id: int,
    storage: Storage = Depends(get_storage),
    _admin: User = Depends(require_capability(Capability.MANAGE_PRODUCTS)),
):
    try:
        deleted = storage.delete_product(product_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Product not found')
    return MessageResponse(message='Product deleted')
