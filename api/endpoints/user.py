# api/endpoints/user.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.exceptions import ConflictError, NotFoundError
from services.dependencies import get_service_manager

router = APIRouter(tags=["user"])

USERS = "users"


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")


def _public(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password"}


@router.post("/register", summary="Create a customer record")
async def register(payload: RegisterRequest, sm=Depends(get_service_manager)):
    email = payload.email.strip().lower()
    existing = await sm.list_documents(USERS, filters=[("email", "==", email)], limit=1)
    if existing:
        raise ConflictError("User already exists", resource="user")

    user = await sm.create_document(USERS, {
        "name": payload.name.strip(),
        "email": email,
        "cartData": {},
        "created_at": datetime.now(timezone.utc).isoformat(),
    })
    return {"success": True, "user": _public(user)}


@router.get("/list", summary="List customers")
async def list_users(sm=Depends(get_service_manager)):
    users = await sm.list_documents(USERS)
    return {"success": True, "users": [_public(u) for u in users]}


@router.get("/{user_id}", summary="Fetch one customer")
async def get_user(user_id: str, sm=Depends(get_service_manager)):
    user = await sm.get_document(USERS, user_id)
    if user is None:
        raise NotFoundError("User not found", resource="user")
    return {"success": True, "user": _public(user)}


@router.delete("/{user_id}", summary="Delete one customer")
async def delete_user(user_id: str, sm=Depends(get_service_manager)):
    if not await sm.delete_document(USERS, user_id):
        raise NotFoundError("User not found", resource="user")
    return {"success": True, "message": "User removed"}
