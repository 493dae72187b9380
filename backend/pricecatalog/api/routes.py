import json
import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricecatalog import cache
from pricecatalog.config.settings import settings
from pricecatalog.db.models import Product
from pricecatalog.db.session import get_session
from pricecatalog.jobs.queue import enqueue_reindex
from pricecatalog.lookup import CatalogLookup
from pricecatalog.pricing.fees import payment_processing_fee
from pricecatalog.pricing.quotes import build_quote, variation_price_range
from pricecatalog.schemas.cache import ClearCacheRequest, ClearCacheResponse, TransientReport
from pricecatalog.schemas.pricing import CheckoutFee, CheckoutFeeRequest, PriceQuote, PriceRange

router = APIRouter()


def get_lookup() -> CatalogLookup:
    return CatalogLookup()


def _normalize_currency(currency: str | None) -> str:
    cleaned = (currency or "").strip().upper()
    return cleaned or settings.default_currency


def format_age(seconds: float) -> str:
    total = max(int(seconds), 0)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{days} days, {hours} hours, {minutes} minutes and {secs} seconds"


def _decode_cached(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _cached_age(value: Any, now: float) -> str | None:
    if not isinstance(value, dict):
        return None
    fetched_at = value.get("fetched_at")
    if not isinstance(fetched_at, (int, float)):
        return None
    return format_age(now - fetched_at)


async def _get_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found.")
    return product


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.post("/cache/clear", response_model=ClearCacheResponse)
def clear_cache_endpoint(payload: ClearCacheRequest) -> ClearCacheResponse:
    response = ClearCacheResponse()
    now = time.time()
    for name in payload.transients:
        before = _decode_cached(cache.get_value(name))
        age = _cached_age(before, now)
        cleared = cache.delete_value(name)
        after = _decode_cached(cache.get_value(name))
        response.transients[name] = TransientReport(
            name=name,
            value_before_clear=before,
            age=age,
            cleared=cleared,
            value_after_clear=after,
        )
    return response


@router.get("/products/{product_id}/price", response_model=PriceQuote)
async def product_price_endpoint(
    product_id: int,
    currency: str | None = None,
    quantity: int = Query(default=1, ge=1),
    db: AsyncSession = Depends(get_session),
    lookup: CatalogLookup = Depends(get_lookup),
) -> PriceQuote:
    product = await _get_product(db, product_id)
    return await run_in_threadpool(
        build_quote,
        product,
        product.price,
        _normalize_currency(currency),
        lookup,
        settings.pricing,
        quantity,
    )


@router.get("/products/{product_id}/price-range", response_model=PriceRange | None)
async def product_price_range_endpoint(
    product_id: int,
    currency: str | None = None,
    db: AsyncSession = Depends(get_session),
    lookup: CatalogLookup = Depends(get_lookup),
) -> PriceRange | None:
    product = await _get_product(db, product_id)
    result = await db.execute(select(Product).where(Product.parent_id == product.id))
    variant_skus = [variation.sku for variation in result.scalars().all()]
    return await run_in_threadpool(
        variation_price_range, variant_skus, _normalize_currency(currency), lookup
    )


@router.post("/checkout/fees", response_model=CheckoutFee)
def checkout_fee_endpoint(
    payload: CheckoutFeeRequest, lookup: CatalogLookup = Depends(get_lookup)
) -> CheckoutFee:
    return payment_processing_fee(
        payload.lines,
        payload.payment_method,
        _normalize_currency(payload.currency),
        lookup,
        settings.pricing,
    )


@router.post("/reindex", status_code=status.HTTP_202_ACCEPTED)
def reindex_endpoint(currency: str | None = None) -> dict:
    job = enqueue_reindex(currency=_normalize_currency(currency))
    return {"job_id": job.id, "status": "queued"}
