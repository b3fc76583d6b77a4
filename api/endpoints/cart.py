# api/endpoints/cart.py
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.exceptions import NotFoundError
from services.dependencies import get_service_manager

router = APIRouter(tags=["cart"])

USERS = "users"


class CartRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)

    model_config = {"populate_by_name": True}


class CartAddRequest(CartRequest):
    item_id: str = Field(..., alias="itemId", min_length=1)
    size: str = Field(..., min_length=1, max_length=20)


class CartUpdateRequest(CartAddRequest):
    quantity: int = Field(..., ge=0, le=999)


async def _load_cart(sm, user_id: str) -> Dict[str, Dict[str, int]]:
    user = await sm.get_document(USERS, user_id)
    if user is None:
        raise NotFoundError("User not found", resource="user")
    return dict(user.get("cartData") or {})


@router.post("/get", summary="Fetch a user's cart")
async def get_cart(payload: CartRequest, sm=Depends(get_service_manager)):
    cart = await _load_cart(sm, payload.user_id)
    return {"success": True, "cartData": cart}


@router.post("/add", summary="Add one unit of an item size")
async def add_to_cart(payload: CartAddRequest, sm=Depends(get_service_manager)):
    cart = await _load_cart(sm, payload.user_id)
    sizes = dict(cart.get(payload.item_id) or {})
    sizes[payload.size] = int(sizes.get(payload.size, 0)) + 1
    cart[payload.item_id] = sizes
    await sm.update_document(USERS, payload.user_id, {"cartData": cart})
    return {"success": True, "message": "Added to cart", "cartData": cart}


@router.post("/update", summary="Set the quantity of an item size")
async def update_cart(payload: CartUpdateRequest, sm=Depends(get_service_manager)):
    cart = await _load_cart(sm, payload.user_id)
    sizes = dict(cart.get(payload.item_id) or {})
    if payload.quantity == 0:
        sizes.pop(payload.size, None)
    else:
        sizes[payload.size] = payload.quantity
    if sizes:
        cart[payload.item_id] = sizes
    else:
        cart.pop(payload.item_id, None)
    await sm.update_document(USERS, payload.user_id, {"cartData": cart})
    return {"success": True, "message": "Cart updated", "cartData": cart}
