"""Catalog service: product writes for sellers, product reads for customers.

Write path (one session transaction per request):
1. Build a ProductDraft from the payload (and the stored product on updates)
2. validate_draft -> reject invalid selling-unit states
3. normalize -> derive price / compare_at_price / stock / discount
4. Copy draft onto the ORM row, flush

Read path:
- Visible products: status == Active and publish
- Every item carries isAvailable = seller_id in the caller's seller set
- The seller set is computed once per request by the route (services.geo)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
import math
from uuid import uuid4

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Category, Product, ProductStatus, Seller
from marketplace.schemas.product import (
    BulkStockItem,
    BulkStockResult,
    CustomerProduct,
    ProductDetail,
    ProductFlagsUpdate,
    ProductOut,
    ProductUpdate,
    QuantityProductCreate,
    VariationIn,
    VariationOut,
    WeightProductCreate,
    WeightVariantIn,
    WeightVariantOut,
)
from marketplace.services.availability import (
    AvailabilityOutcome,
    AvailabilityPolicy,
    is_available,
    resolve_availability,
)
from marketplace.services.errors import (
    CategoryNotFoundError,
    ProductNotFoundError,
    SellerNotFoundError,
)
from marketplace.services.geo import GeoPoint
from marketplace.services.pricing import (
    ProductDraft,
    QuantityVariant,
    SellingUnit,
    VariationStatus,
    WeightVariant,
    normalize,
)
from marketplace.services.product_validation import ProductValidationError, validate_draft

logger = logging.getLogger("uvicorn.error")

PRICING_FIELDS = {"selling_unit", "weight_variants", "variations", "compare_at_price"}
PLAIN_FIELDS = ("category_id", "small_description", "description", "main_image", "pack")

SORT_OPTIONS = {
    "price_asc": (Product.price.asc(),),
    "price_desc": (Product.price.desc(),),
    "discount": (Product.discount.desc(),),
    "popular": (Product.popular.desc(), Product.deal_of_day.desc()),
}
DEFAULT_SORT = (Product.created_at.desc(), Product.id.desc())

SELLER_SORT_COLUMNS = {
    "createdAt": Product.created_at,
    "price": Product.price,
    "stock": Product.stock,
    "name": Product.name,
    "discount": Product.discount,
}


# ============================================================
# Draft <-> row conversion
# ============================================================


def _weight_variant_from_schema(v: WeightVariantIn) -> WeightVariant:
    return WeightVariant(
        label=v.label,
        grams=v.grams,
        price=v.price,
        mrp=v.mrp,
        stock=v.stock,
        is_enabled=v.is_enabled,
    )


def _variation_from_schema(v: VariationIn) -> QuantityVariant:
    return QuantityVariant(
        id=v.id or uuid4().hex,
        title=v.title,
        price=v.price,
        disc_price=v.disc_price,
        stock=v.stock,
        status=v.status,
    )


def _load_weight_variants(product: Product) -> list[WeightVariant]:
    if not product.weight_variants_json:
        return []
    return [WeightVariant(**item) for item in json.loads(product.weight_variants_json)]


def _load_variations(product: Product) -> list[QuantityVariant]:
    if not product.variations_json:
        return []
    variations = []
    for item in json.loads(product.variations_json):
        item["status"] = VariationStatus(item.get("status") or VariationStatus.AVAILABLE.value)
        variations.append(QuantityVariant(**item))
    return variations


def product_draft(product: Product) -> ProductDraft:
    """Rebuild the pricing draft of a stored product."""
    return ProductDraft(
        selling_unit=SellingUnit(product.selling_unit or SellingUnit.QUANTITY.value),
        weight_variants=_load_weight_variants(product),
        variations=_load_variations(product),
        price=product.price or 0,
        compare_at_price=product.compare_at_price,
        stock=product.stock or 0,
        discount=product.discount or 0,
    )


def apply_draft(product: Product, draft: ProductDraft) -> None:
    """Copy a normalized draft onto the ORM row.

    Only the array chosen by the selling unit is stored; the other one is cleared.
    """
    weight_mode = draft.selling_unit == SellingUnit.WEIGHT
    weight_variants = draft.weight_variants if weight_mode else []
    variations = [] if weight_mode else draft.variations

    product.selling_unit = draft.selling_unit.value
    product.weight_variants_json = json.dumps([asdict(v) for v in weight_variants])
    product.variations_json = json.dumps(
        [{**asdict(v), "status": v.status.value} for v in variations]
    )
    product.price = draft.price
    product.compare_at_price = draft.compare_at_price
    product.stock = draft.stock
    product.discount = draft.discount
    product.disc_price = variations[0].disc_price if variations else 0


def _load_tags(product: Product) -> list[str]:
    if not product.tags_json:
        return []
    try:
        tags = json.loads(product.tags_json)
    except json.JSONDecodeError:
        return []
    return [str(t) for t in tags] if isinstance(tags, list) else []


def to_product_out(product: Product) -> ProductOut:
    """Convert a stored product to its API schema."""
    return ProductOut(**_product_fields(product))


def to_customer_product(product: Product, nearby: set[int] | frozenset[int]) -> CustomerProduct:
    return CustomerProduct(
        **_product_fields(product),
        is_available=is_available(product.seller_id, nearby),
    )


def _product_fields(product: Product) -> dict:
    selling_unit = SellingUnit(product.selling_unit or SellingUnit.QUANTITY.value)
    weight_mode = selling_unit == SellingUnit.WEIGHT
    return {
        "id": product.id,
        "seller_id": product.seller_id,
        "category_id": product.category_id,
        "name": product.name,
        "small_description": product.small_description,
        "description": product.description,
        "main_image": product.main_image,
        "pack": product.pack,
        "tags": _load_tags(product),
        "selling_unit": selling_unit,
        "weight_variants": [
            WeightVariantOut(**asdict(v)) for v in _load_weight_variants(product)
        ] if weight_mode else [],
        "variations": [] if weight_mode else [
            VariationOut(**asdict(v)) for v in _load_variations(product) if v.id
        ],
        "price": product.price,
        "compare_at_price": product.compare_at_price,
        "mrp": product.mrp,
        "disc_price": product.disc_price or 0,
        "stock": product.stock,
        "discount": product.discount,
        "status": product.status,
        "publish": product.publish,
        "popular": product.popular,
        "deal_of_day": product.deal_of_day,
        "rating": product.rating or 0,
        "reviews_count": product.reviews_count or 0,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }


async def _flush_and_refresh(session: AsyncSession, product: Product) -> None:
    # Server-side timestamps must be loaded eagerly under asyncio.
    await session.flush()
    await session.refresh(product)


# ============================================================
# Seller write path
# ============================================================


async def _ensure_seller(session: AsyncSession, seller_id: int) -> Seller:
    seller = await session.get(Seller, seller_id)
    if seller is None:
        raise SellerNotFoundError(seller_id)
    return seller


async def _ensure_category(session: AsyncSession, category_id: int) -> Category:
    category = await session.get(Category, category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


def _tags_columns(tags: list[str]) -> dict[str, str]:
    return {"tags_json": json.dumps(tags), "tags_text": "\n".join(tags)}


async def _get_owned_product(session: AsyncSession, seller_id: int, product_id: int) -> Product:
    result = await session.execute(
        select(Product).where(Product.id == product_id).where(Product.seller_id == seller_id)
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def _draft_from_create(payload: WeightProductCreate | QuantityProductCreate) -> ProductDraft:
    if isinstance(payload, WeightProductCreate):
        return ProductDraft(
            selling_unit=SellingUnit.WEIGHT,
            weight_variants=[_weight_variant_from_schema(v) for v in payload.weight_variants],
            compare_at_price=payload.compare_at_price,
        )
    return ProductDraft(
        selling_unit=SellingUnit.QUANTITY,
        variations=[_variation_from_schema(v) for v in payload.variations],
        compare_at_price=payload.compare_at_price,
    )


async def create_product(
    session: AsyncSession,
    seller_id: int,
    payload: WeightProductCreate | QuantityProductCreate,
) -> Product:
    """Create a product for a seller. New products are Active and published.

    Raises:
        SellerNotFoundError: Unknown seller.
        CategoryNotFoundError: categoryId does not exist.
        ProductValidationError: Invalid variants for the selling unit.
    """
    await _ensure_seller(session, seller_id)
    if payload.category_id is not None:
        await _ensure_category(session, payload.category_id)

    draft = _draft_from_create(payload)
    validate_draft(draft)
    normalize(draft)

    product = Product(
        seller_id=seller_id,
        category_id=payload.category_id,
        name=payload.name,
        small_description=payload.small_description,
        description=payload.description,
        main_image=payload.main_image,
        pack=payload.pack,
        **_tags_columns(payload.tags),
        status=ProductStatus.ACTIVE.value,
        publish=True,
        popular=payload.popular,
        deal_of_day=payload.deal_of_day,
        disc_price=0,
        rating=0,
        reviews_count=0,
    )
    apply_draft(product, draft)
    session.add(product)
    await _flush_and_refresh(session, product)

    logger.info(
        f"[catalog] created product id={product.id} seller={seller_id} unit={draft.selling_unit.value} "
        f"price={product.price} stock={product.stock} discount={product.discount}"
    )
    return product


async def update_product(
    session: AsyncSession,
    seller_id: int,
    product_id: int,
    payload: ProductUpdate,
) -> Product:
    """Apply a partial update; re-derives pricing when variant data changes.

    Raises:
        ProductNotFoundError: Product missing or owned by another seller.
        CategoryNotFoundError: categoryId does not exist.
        ProductValidationError: Resulting variants are invalid for the selling unit.
    """
    product = await _get_owned_product(session, seller_id, product_id)
    changes = payload.model_fields_set
    if "category_id" in changes and payload.category_id is not None:
        await _ensure_category(session, payload.category_id)

    if payload.name is not None:
        product.name = payload.name
    for name in PLAIN_FIELDS:
        if name in changes:
            setattr(product, name, getattr(payload, name))
    if "tags" in changes:
        for name, value in _tags_columns(payload.tags or []).items():
            setattr(product, name, value)

    if changes & PRICING_FIELDS:
        draft = product_draft(product)
        if payload.selling_unit is not None:
            draft.selling_unit = payload.selling_unit
        if payload.weight_variants is not None:
            draft.weight_variants = [_weight_variant_from_schema(v) for v in payload.weight_variants]
        if payload.variations is not None:
            draft.variations = [_variation_from_schema(v) for v in payload.variations]
        if "compare_at_price" in changes:
            draft.compare_at_price = payload.compare_at_price

        validate_draft(draft)
        normalize(draft)
        apply_draft(product, draft)

    await _flush_and_refresh(session, product)
    logger.info(f"[catalog] updated product id={product.id} fields={sorted(changes)}")
    return product


def _apply_stock_change(
    variation: QuantityVariant,
    stock: int | None,
    status: VariationStatus | None,
) -> None:
    if stock is not None:
        variation.stock = stock
        if stock == 0:
            variation.status = VariationStatus.SOLD_OUT
        elif variation.status == VariationStatus.SOLD_OUT:
            variation.status = VariationStatus.AVAILABLE
    if status is not None:
        variation.status = status


async def update_variation_stock(
    session: AsyncSession,
    seller_id: int,
    product_id: int,
    variation_id: str,
    *,
    stock: int | None = None,
    status: VariationStatus | None = None,
) -> Product:
    """Set one variation's stock/status and re-derive product stock.

    Stock 0 marks the variation Sold out; restocking a sold-out variation makes it Available.
    An explicit status wins over both.

    Raises:
        ProductNotFoundError: Product or variation missing.
        ProductValidationError: Product is sold by weight.
    """
    product = await _get_owned_product(session, seller_id, product_id)
    draft = product_draft(product)
    if draft.selling_unit != SellingUnit.QUANTITY:
        raise ProductValidationError(
            "Variation stock applies to quantity products only", field="sellingUnit"
        )

    variation = next((v for v in draft.variations if v.id == variation_id), None)
    if variation is None:
        raise ProductNotFoundError(product_id, variation_id)

    _apply_stock_change(variation, stock, status)
    normalize(draft)
    apply_draft(product, draft)
    await _flush_and_refresh(session, product)
    return product


async def bulk_update_stock(
    session: AsyncSession,
    seller_id: int,
    updates: list[BulkStockItem],
) -> list[BulkStockResult]:
    """Apply many variation stock updates; failures are reported per entry."""
    results: list[BulkStockResult] = []
    for update in updates:
        try:
            await update_variation_stock(
                session,
                seller_id,
                update.product_id,
                update.variation_id,
                stock=update.stock,
            )
        except (ProductNotFoundError, ProductValidationError) as e:
            results.append(
                BulkStockResult(
                    product_id=update.product_id,
                    variation_id=update.variation_id,
                    success=False,
                    message=str(e),
                )
            )
            continue
        results.append(
            BulkStockResult(product_id=update.product_id, variation_id=update.variation_id, success=True)
        )

    failed = sum(1 for r in results if not r.success)
    logger.info(f"[catalog] bulk stock seller={seller_id} updates={len(updates)} failed={failed}")
    return results


async def update_product_flags(
    session: AsyncSession,
    seller_id: int,
    product_id: int,
    flags: ProductFlagsUpdate,
) -> Product:
    product = await _get_owned_product(session, seller_id, product_id)
    if flags.publish is not None:
        product.publish = flags.publish
    if flags.popular is not None:
        product.popular = flags.popular
    if flags.deal_of_day is not None:
        product.deal_of_day = flags.deal_of_day
    await _flush_and_refresh(session, product)
    return product


async def delete_product(session: AsyncSession, seller_id: int, product_id: int) -> None:
    product = await _get_owned_product(session, seller_id, product_id)
    await session.delete(product)
    await session.flush()
    logger.info(f"[catalog] deleted product id={product_id} seller={seller_id}")


async def get_seller_product(session: AsyncSession, seller_id: int, product_id: int) -> Product:
    return await _get_owned_product(session, seller_id, product_id)


@dataclass
class SellerProductQuery:
    search: str | None = None
    category_id: int | None = None
    flag: str | None = None  # published, unpublished, popular, dealOfDay
    stock: str | None = None  # inStock, outOfStock
    page: int = 1
    limit: int = 10
    sort_by: str = "createdAt"
    sort_order: str = "desc"


async def list_seller_products(
    session: AsyncSession,
    seller_id: int,
    query: SellerProductQuery,
) -> tuple[list[Product], int]:
    """Seller's own products with dashboard filters. Returns (page, total)."""
    stmt = select(Product).where(Product.seller_id == seller_id)

    if query.search and query.search.strip():
        stmt = stmt.where(
            _matches(query.search, Product.name, Product.small_description, Product.tags_text)
        )
    if query.category_id is not None:
        stmt = stmt.where(Product.category_id == query.category_id)

    if query.flag == "published":
        stmt = stmt.where(Product.publish.is_(True))
    elif query.flag == "unpublished":
        stmt = stmt.where(Product.publish.is_(False))
    elif query.flag == "popular":
        stmt = stmt.where(Product.popular.is_(True))
    elif query.flag == "dealOfDay":
        stmt = stmt.where(Product.deal_of_day.is_(True))

    if query.stock == "inStock":
        stmt = stmt.where(Product.stock > 0)
    elif query.stock == "outOfStock":
        stmt = stmt.where(Product.stock == 0)

    column = SELLER_SORT_COLUMNS.get(query.sort_by, Product.created_at)
    order = column.asc() if query.sort_order == "asc" else column.desc()
    return await _paginate(session, stmt.order_by(order, Product.id.desc()), query.page, query.limit)


# ============================================================
# Customer read path
# ============================================================


def _visible(stmt: Select) -> Select:
    return stmt.where(Product.status == ProductStatus.ACTIVE.value).where(Product.publish.is_(True))


async def _paginate(
    session: AsyncSession,
    stmt: Select,
    page: int,
    limit: int,
) -> tuple[list[Product], int]:
    count_result = await session.execute(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    )
    total = count_result.scalar() or 0

    result = await session.execute(stmt.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), total


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def _like_pattern(term: str) -> str:
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _matches(term: str, *columns):
    """Case-insensitive substring match of `term` on any column, wildcards taken literally."""
    pattern = _like_pattern(term)
    return or_(*(column.ilike(pattern, escape="\\") for column in columns))


async def resolve_category_id(session: AsyncSession, value: str) -> int | None:
    """Resolve a category filter value to an active category ID.

    Tried in order: numeric ID, exact slug, slug ignoring case, name with `-`/`_` read
    as spaces, and finally `-and-` read as ` & ` (e.g. "dairy-and-bakery" ->
    "Dairy & Bakery"). Returns None when nothing matches.
    """
    value = value.strip()
    if value.isdigit():
        return int(value)

    lowered = value.lower()
    conditions = [
        Category.slug == value,
        func.lower(Category.slug) == lowered,
        func.lower(Category.name) == lowered.replace("-", " ").replace("_", " "),
    ]
    if "and" in lowered:
        conditions.append(
            func.lower(Category.name) == lowered.replace("-and-", " & ").replace("-", " ")
        )

    for condition in conditions:
        result = await session.execute(
            select(Category.id)
            .where(Category.status == "Active")
            .where(condition)
            .order_by(Category.id)
            .limit(1)
        )
        category_id = result.scalar_one_or_none()
        if category_id is not None:
            return category_id
    return None


@dataclass
class ProductFilters:
    category: str | None = None
    search: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_discount: int | None = None
    sort: str | None = None
    page: int = 1
    limit: int = 20


@dataclass
class ProductListResult:
    products: list[CustomerProduct]
    total: int
    outcome: AvailabilityOutcome


async def list_products(
    session: AsyncSession,
    filters: ProductFilters,
    *,
    point: GeoPoint | None,
    nearby: set[int],
    policy: AvailabilityPolicy = AvailabilityPolicy.MARK,
) -> ProductListResult:
    """Customer product listing.

    MARK lists everything and flags availability; STRICT lists only products of sellers
    in range and returns nothing (with a message) when that set is empty.
    """
    outcome = resolve_availability(point, nearby, policy)
    if outcome.is_empty:
        return ProductListResult(products=[], total=0, outcome=outcome)

    stmt = _visible(select(Product))
    if outcome.restrict_to is not None:
        stmt = stmt.where(Product.seller_id.in_(sorted(outcome.restrict_to)))

    if filters.category:
        # An unresolvable category leaves the listing unfiltered.
        category_id = await resolve_category_id(session, filters.category)
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)

    if filters.search and filters.search.strip():
        stmt = stmt.where(
            _matches(
                filters.search,
                Product.name,
                Product.small_description,
                Product.description,
                Product.pack,
                Product.tags_text,
            )
        )
    if filters.min_price is not None:
        stmt = stmt.where(Product.price >= filters.min_price)
    if filters.max_price is not None:
        stmt = stmt.where(Product.price <= filters.max_price)
    if filters.min_discount is not None:
        stmt = stmt.where(Product.discount >= filters.min_discount)

    order = SORT_OPTIONS.get(filters.sort or "", DEFAULT_SORT)
    rows, total = await _paginate(session, stmt.order_by(*order), filters.page, filters.limit)

    return ProductListResult(
        products=[to_customer_product(p, nearby) for p in rows],
        total=total,
        outcome=outcome,
    )


async def get_product_detail(
    session: AsyncSession,
    product_id: int,
    *,
    point: GeoPoint | None,
    nearby: set[int],
    similar_limit: int = 6,
) -> ProductDetail:
    """Visible product with availability and same-category suggestions.

    With a location, suggestions come only from sellers in range (none if no seller is).
    Without one, suggestions are unrestricted and all flagged unavailable.

    Raises:
        ProductNotFoundError: Missing, unpublished or not Active.
    """
    result = await session.execute(_visible(select(Product).where(Product.id == product_id)))
    product = result.scalar_one_or_none()
    if product is None:
        raise ProductNotFoundError(product_id)

    similar: list[CustomerProduct] = []
    if similar_limit > 0 and not (point is not None and not nearby):
        stmt = _visible(select(Product).where(Product.id != product.id))
        if product.category_id is not None:
            stmt = stmt.where(Product.category_id == product.category_id)
        if point is not None:
            stmt = stmt.where(Product.seller_id.in_(sorted(nearby)))
        rows = await session.execute(stmt.order_by(*DEFAULT_SORT).limit(similar_limit))
        similar = [to_customer_product(p, nearby) for p in rows.scalars().all()]

    available = is_available(product.seller_id, nearby)
    return ProductDetail(
        **_product_fields(product),
        is_available=available,
        is_available_at_location=available,
        similar_products=similar,
    )
