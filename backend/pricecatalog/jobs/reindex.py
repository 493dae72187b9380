from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricecatalog.config.settings import ReindexSettings, settings
from pricecatalog.db.models import Product
from pricecatalog.db.session import job_session
from pricecatalog.lookup import CatalogLookup
from pricecatalog.pricing.engine import lowest_possible_price
from pricecatalog.schemas.catalog import CatalogRecord
from pricecatalog.schemas.pricing import ReindexResult


logger = logging.getLogger(__name__)


async def _load_page(
    session: AsyncSession, statuses: Sequence[str], page: int, page_size: int
) -> list[Product]:
    result = await session.execute(
        select(Product)
        .where(Product.parent_id.is_(None), Product.status.in_(list(statuses)))
        .order_by(Product.id)
        .limit(page_size)
        .offset(page * page_size)
    )
    return list(result.scalars().all())


async def _load_variations(session: AsyncSession, parent_id: int) -> list[Product]:
    result = await session.execute(
        select(Product).where(Product.parent_id == parent_id).order_by(Product.id)
    )
    return list(result.scalars().all())


def _apply_price(product: Product, record: CatalogRecord) -> bool:
    ask = lowest_possible_price(record)
    if ask is None:
        return False
    product.price = ask
    product.regular_price = ask
    return True


async def reindex_products(
    session: AsyncSession,
    lookup: CatalogLookup,
    currency: str,
    reindex: ReindexSettings | None = None,
) -> ReindexResult:
    """Overwrite stored prices with the lowest catalog price, page by page.

    Variable products are priced per variation by the variation's own SKU.
    """
    reindex = reindex or settings.reindex
    result = ReindexResult()
    page = 0
    while True:
        products = await _load_page(session, reindex.statuses, page, reindex.page_size)
        for product in products:
            result.scanned += 1
            if product.is_variable:
                for variation in await _load_variations(session, product.id):
                    record = lookup.resolve([variation.sku], currency)
                    if record is not None and _apply_price(variation, record):
                        result.updated += 1
                continue
            record = lookup.resolve_product(product, currency)
            if record is not None and _apply_price(product, record):
                result.updated += 1

        await session.commit()
        page += 1
        result.pages = page
        if len(products) < reindex.page_size:
            break
    return result


async def _reindex(currency: str) -> ReindexResult:
    async with job_session() as session:
        return await reindex_products(session, CatalogLookup(), currency)


def run_product_reindex(currency: str | None = None) -> dict:
    currency = currency or settings.default_currency
    result = asyncio.run(_reindex(currency))
    logger.info(
        "reindexed %s: %d scanned, %d updated over %d pages",
        currency,
        result.scanned,
        result.updated,
        result.pages,
    )
    return result.model_dump()
