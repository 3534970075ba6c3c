"""Server-side cart for the signed-in customer."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.storefront.api.http.deps import get_cart_service, get_current_user
from src.storefront.api.http.middleware.limiter import rate_limit_preset
from src.storefront.core.services.cart import CartService, CartView
from src.storefront.entities.core.profile import Profile

router = APIRouter(
    prefix="/cart",
    tags=["cart"],
    dependencies=[Depends(rate_limit_preset("standard"))],
)


class AddItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateItemRequest(BaseModel):
    quantity: int


class CartLineRequest(BaseModel):
    product_id: str
    quantity: int = 1


class ReplaceCartRequest(BaseModel):
    items: list[CartLineRequest] = Field(default_factory=list)


@router.get("", response_model=CartView)
def get_cart(
    user: Profile = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartView:
    return cart.view(user.id)


@router.put("", response_model=CartView)
def replace_cart(
    body: ReplaceCartRequest,
    user: Profile = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartView:
    return cart.replace(user.id, ((line.product_id, line.quantity) for line in body.items))


@router.delete("", response_model=CartView)
def clear_cart(
    user: Profile = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartView:
    return cart.clear(user.id)


@router.post("/items", response_model=CartView)
def add_item(
    body: AddItemRequest,
    user: Profile = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartView:
    return cart.add_item(user.id, body.product_id, body.quantity)


@router.put("/items/{product_id}", response_model=CartView)
def update_item(
    product_id: str,
    body: UpdateItemRequest,
    user: Profile = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartView:
    return cart.update_quantity(user.id, product_id, body.quantity)


@router.delete("/items/{product_id}", response_model=CartView)
def remove_item(
    product_id: str,
    user: Profile = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartView:
    return cart.remove_item(user.id, product_id)
