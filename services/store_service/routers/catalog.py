"""Store catalog router: active products with their current prices."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.common.datetime_utils import utc_now
from libs.db.session import get_async_db
from services.store_service.models import Product
from services.store_service.schemas import ProductResponse, VariantResponse
from services.store_service.services.pricing import (
    current_price,
    is_on_promotion,
    promo_is_active,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


def product_to_response(product: Product, now=None) -> ProductResponse:
    """Catalog view of a product with promo pricing already applied."""
    now = now or utc_now()
    promo = is_on_promotion(product, now)
    original = None
    if promo:
        original = max(product.original_price or product.price, product.price)
    return ProductResponse(
        id=product.id,
        name=product.name,
        slug=product.slug,
        description=product.description,
        category=product.category,
        image=product.image,
        unit=product.unit,
        price=current_price(product, now),
        original_price=original,
        is_promo=promo,
        promo_end=product.promo_end if promo_is_active(product, now) else None,
        stock=product.stock,
        stock_status=product.stock_status,
        variants=[VariantResponse.model_validate(v) for v in product.variants],
    )


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, min_length=2),
    promo: bool = Query(False, description="Only products on promotion"),
    db: AsyncSession = Depends(get_async_db),
):
    """List active products."""
    query = (
        select(Product)
        .where(Product.is_active.is_(True))
        .options(selectinload(Product.variants))
        .order_by(Product.name)
    )
    if category:
        query = query.where(Product.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )

    result = await db.execute(query)
    now = utc_now()
    products = [product_to_response(p, now) for p in result.scalars().all()]
    if promo:
        products = [p for p in products if p.is_promo]
    return products


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Get a single active product."""
    result = await db.execute(
        select(Product)
        .where(Product.id == product_id, Product.is_active.is_(True))
        .options(selectinload(Product.variants))
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Produk tidak ditemukan")
    return product_to_response(product)
