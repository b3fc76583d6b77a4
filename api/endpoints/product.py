# api/endpoints/product.py
from typing import List
import json
import mimetypes
import os
import time
import uuid

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from core.exceptions import NotFoundError, ValidationError
from core.logging import logger
from services.dependencies import get_service_manager

router = APIRouter(tags=["product"])

PRODUCTS = "products"
LIST_CACHE_KEY = "product:list"
MAX_IMAGE_BYTES = 10 * 1024 * 1024


class ProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    price: float = Field(..., ge=0)
    category: str = Field(default="", max_length=100)
    sub_category: str = Field(default="", alias="subCategory", max_length=100)
    sizes: List[str] = Field(default_factory=list)
    bestseller: bool = False
    images: List[str] = Field(default_factory=list, max_length=4)

    model_config = {"populate_by_name": True}


class ProductIdRequest(BaseModel):
    product_id: str = Field(..., alias="productId", min_length=1)

    model_config = {"populate_by_name": True}


@router.get("/list", summary="List all products")
async def list_products(request: Request, sm=Depends(get_service_manager)):
    cached = await sm.cache_get(LIST_CACHE_KEY)
    if cached:
        try:
            return {"success": True, "products": json.loads(cached)}
        except ValueError:
            logger.warning("Discarding unreadable product cache entry")

    products = await sm.list_documents(PRODUCTS)
    await sm.cache_setex(LIST_CACHE_KEY, request.app.state.settings.cache_ttl, json.dumps(products, default=str))
    return {"success": True, "products": products}


@router.post("/add", summary="Add a product")
async def add_product(payload: ProductRequest, sm=Depends(get_service_manager)):
    data = payload.model_dump(by_alias=True)
    data["date"] = int(time.time() * 1000)
    product = await sm.create_document(PRODUCTS, data)
    await sm.cache_delete(LIST_CACHE_KEY)
    logger.info("Product added", product_id=product["id"])
    return {"success": True, "message": "Product added", "product": product}


@router.post("/single", summary="Fetch one product")
async def single_product(payload: ProductIdRequest, sm=Depends(get_service_manager)):
    product = await sm.get_document(PRODUCTS, payload.product_id)
    if product is None:
        raise NotFoundError("Product not found", resource="product")
    return {"success": True, "product": product}


@router.post("/remove", summary="Remove a product")
async def remove_product(payload: ProductIdRequest, sm=Depends(get_service_manager)):
    if not await sm.delete_document(PRODUCTS, payload.product_id):
        raise NotFoundError("Product not found", resource="product")
    await sm.cache_delete(LIST_CACHE_KEY)
    logger.info("Product removed", product_id=payload.product_id)
    return {"success": True, "message": "Product removed"}


@router.post("/upload-image", summary="Upload a product image")
async def upload_image(request: Request, filename: str = Query(..., min_length=1, max_length=200),
                       sm=Depends(get_service_manager)):
    data = await request.body()
    if not data:
        raise ValidationError("Image body is empty", field="body")
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationError("Image exceeds 10 MB", field="body")

    content_type = request.headers.get("content-type") or mimetypes.guess_type(filename)[0]
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image uploads are accepted", field="content-type")

    ext = os.path.splitext(os.path.basename(filename))[1].lower()
    key = f"products/{uuid.uuid4().hex}{ext}"
    url = await sm.upload_media(key, data, content_type)
    return {"success": True, "url": url}
