# api/endpoints/order.py
import time
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.exceptions import NotFoundError
from core.logging import logger
from services.dependencies import get_service_manager

router = APIRouter(tags=["order"])

ORDERS = "orders"
USERS = "users"


class PlaceOrderRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    items: List[Dict[str, Any]] = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    address: Dict[str, Any] = Field(default_factory=dict)
    payment_method: str = Field(default="COD", alias="paymentMethod", max_length=40)

    model_config = {"populate_by_name": True}


class UserOrdersRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)

    model_config = {"populate_by_name": True}


class OrderStatusRequest(BaseModel):
    order_id: str = Field(..., alias="orderId", min_length=1)
    status: str = Field(..., min_length=1, max_length=60)

    model_config = {"populate_by_name": True}


@router.post("/place", summary="Place an order and clear the cart")
async def place_order(payload: PlaceOrderRequest, sm=Depends(get_service_manager)):
    if await sm.get_document(USERS, payload.user_id) is None:
        raise NotFoundError("User not found", resource="user")

    order = await sm.create_document(ORDERS, {
        "userId": payload.user_id,
        "items": payload.items,
        "amount": payload.amount,
        "address": payload.address,
        "paymentMethod": payload.payment_method,
        "payment": False,
        "status": "Order Placed",
        "date": int(time.time() * 1000),
    })
    await sm.update_document(USERS, payload.user_id, {"cartData": {}})
    logger.info("Order placed", order_id=order["id"], user_id=payload.user_id)
    return {"success": True, "message": "Order placed", "order": order}


@router.post("/userorders", summary="List a user's orders")
async def user_orders(payload: UserOrdersRequest, sm=Depends(get_service_manager)):
    orders = await sm.list_documents(ORDERS, filters=[("userId", "==", payload.user_id)])
    return {"success": True, "orders": orders}


@router.get("/list", summary="List all orders")
async def list_orders(sm=Depends(get_service_manager)):
    orders = await sm.list_documents(ORDERS)
    return {"success": True, "orders": orders}


@router.post("/status", summary="Update an order's status")
async def update_status(payload: OrderStatusRequest, sm=Depends(get_service_manager)):
    if not await sm.update_document(ORDERS, payload.order_id, {"status": payload.status}):
        raise NotFoundError("Order not found", resource="order")
    return {"success": True, "message": "Status updated"}
