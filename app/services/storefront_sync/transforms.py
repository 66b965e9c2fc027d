"""ERPNext record -> storefront row mapping and change detection.

Everything here is pure. Id minting goes through an injectable ``id_factory``
so callers (and tests) decide how new ids are produced.
"""
import json
import re
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from app.schemas.erpnext import ERPNextBrand, ERPNextItem, ERPNextItemGroup, ERPNextItemPrice
from app.services.storefront_sync.types import BrandRecord, CategoryRecord, ProductRecord

KG_TO_LB = 2.20462

STANDARD_SELLING = "Standard Selling"
SALE_PRICE = "Sale Price"

IdFactory = Callable[[], str]

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")

BRAND_FIELDS = ("title", "slug", "logo_cf_image_id", "is_visible")
CATEGORY_FIELDS = ("title", "slug", "parent_id", "sort_order", "is_visible", "cf_image_id")
PRODUCT_FIELDS = (
    "sku", "title", "description", "brand_id", "item_group", "categories",
    "price", "sale_price", "stock_qty", "is_visible", "cf_image_id", "weight_lbs",
    "has_variants", "variant_of", "is_featured", "featured_category_id",
    "shipping_weight", "shipping_weight_uom", "shipping_length", "shipping_width",
    "shipping_height", "shipping_dimension_uom",
    "ships_usps", "ships_ups", "ships_ltl", "ships_pickup",
    "hazmat_flag", "hazmat_class", "oversized_flag", "inherit_shipping_from_parent",
    "search_boost",
)
PRODUCT_FLAGS = (
    "is_visible", "has_variants", "is_featured",
    "ships_usps", "ships_ups", "ships_ltl", "ships_pickup",
    "hazmat_flag", "oversized_flag", "inherit_shipping_from_parent",
)


def slugify(title: str) -> str:
    slug = _NON_SLUG_CHARS.sub("", (title or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


def clean_slug(slug: str) -> str:
    """Strip leading/trailing slashes from an imported storefront URL."""
    return (slug or "").strip("/")


def generate_id() -> str:
    return str(uuid.uuid4())


def find_price(prices: Optional[Iterable[ERPNextItemPrice]], price_list: str) -> Optional[float]:
    """Rate on ``price_list``, or None when the item has no entry there."""
    for price in prices or ():
        if price.price_list == price_list:
            return price.price_list_rate
    return None


def resolve_id(mapping: Optional[Mapping[str, str]], name: Optional[str]) -> Optional[str]:
    """Storefront id for an ERPNext name, or None when it is not mapped."""
    if not name or not mapping:
        return None
    return mapping.get(name)


def _flag(value: Optional[int]) -> bool:
    return value == 1


def _visible(disabled: Optional[int] = None, show_in_website: Optional[int] = None) -> bool:
    return disabled != 1 and show_in_website != 0


def _is_kg(uom: Optional[str]) -> bool:
    return (uom or "").strip().lower() == "kg"


def transform_item(
    item: ERPNextItem,
    existing_id: Optional[str] = None,
    prices: Optional[List[ERPNextItemPrice]] = None,
    brand_map: Optional[Mapping[str, str]] = None,
    category_map: Optional[Mapping[str, str]] = None,
    id_factory: IdFactory = generate_id,
) -> ProductRecord:
    retail_price = find_price(prices, STANDARD_SELLING)
    category_id = resolve_id(category_map, item.item_group)
    featured_category_id = resolve_id(category_map, item.custom_featured_in_category)

    weight_lbs = item.weight_per_unit
    if weight_lbs and _is_kg(item.weight_uom):
        weight_lbs = weight_lbs * KG_TO_LB

    shipping_weight = item.shipping_weight
    shipping_weight_uom = item.shipping_weight_uom or None
    if shipping_weight and _is_kg(shipping_weight_uom):
        shipping_weight = shipping_weight * KG_TO_LB
        shipping_weight_uom = "lb"
    elif shipping_weight and not shipping_weight_uom:
        shipping_weight_uom = "lb"

    dimension_uom = item.shipping_dimension_uom or None
    if not dimension_uom and (item.shipping_length or item.shipping_width or item.shipping_height):
        dimension_uom = "in"

    return ProductRecord(
        id=existing_id or id_factory(),
        erpnext_name=item.name,
        sku=item.item_code or None,
        title=item.item_name or item.name,
        description=item.description or None,
        brand_id=resolve_id(brand_map, item.brand),
        item_group=item.item_group or None,
        categories=[category_id] if category_id else None,
        price=retail_price if retail_price is not None else item.standard_rate,
        sale_price=find_price(prices, SALE_PRICE),
        # Stock is owned by a separate feed
        stock_qty=0,
        is_visible=_visible(item.disabled, item.custom_show_in_website),
        cf_image_id=item.custom_cf_image_id or None,
        weight_lbs=weight_lbs,
        has_variants=_flag(item.has_variants),
        variant_of=item.variant_of or None,
        is_featured=_flag(item.custom_is_featured) or featured_category_id is not None,
        featured_category_id=featured_category_id,
        shipping_weight=shipping_weight,
        shipping_weight_uom=shipping_weight_uom,
        shipping_length=item.shipping_length,
        shipping_width=item.shipping_width,
        shipping_height=item.shipping_height,
        shipping_dimension_uom=dimension_uom,
        ships_usps=_flag(item.ships_usps),
        ships_ups=_flag(item.ships_ups),
        ships_ltl=_flag(item.ships_ltl),
        ships_pickup=_flag(item.ships_pickup),
        hazmat_flag=_flag(item.hazmat_flag),
        hazmat_class=item.hazmat_class or None,
        oversized_flag=_flag(item.oversized_flag),
        inherit_shipping_from_parent=_flag(item.inherit_shipping_from_parent),
        search_boost=item.custom_search_boost if item.custom_search_boost is not None else 1.0,
    )


def transform_item_group(
    group: ERPNextItemGroup,
    existing_id: Optional[str] = None,
    parent_map: Optional[Mapping[str, str]] = None,
    id_factory: IdFactory = generate_id,
) -> CategoryRecord:
    title = group.item_group_name or group.name
    return CategoryRecord(
        id=existing_id or id_factory(),
        erpnext_name=group.name,
        title=title,
        slug=group.custom_slug or slugify(title),
        parent_id=resolve_id(parent_map, group.parent_item_group),
        sort_order=group.custom_sort_order or 0,
        is_visible=_visible(show_in_website=group.custom_show_in_website),
        cf_image_id=group.custom_cf_image_id or None,
    )


def transform_brand(
    brand: ERPNextBrand,
    existing_id: Optional[str] = None,
    id_factory: IdFactory = generate_id,
) -> BrandRecord:
    title = brand.brand or brand.name
    # A URL made only of slashes cleans to nothing
    slug = clean_slug(brand.custom_bc_custom_url) if brand.custom_bc_custom_url else ""
    return BrandRecord(
        id=existing_id or id_factory(),
        erpnext_name=brand.name,
        title=title,
        slug=slug or slugify(title),
        logo_cf_image_id=brand.custom_cf_image_id or None,
        is_visible=_visible(show_in_website=brand.custom_show_in_website),
    )


# ---------------------------------------------------------------------------
# Storage convention
# ---------------------------------------------------------------------------

def _int_flag(value) -> int:
    return 1 if value else 0


def _categories_json(categories: Optional[List[str]]) -> Optional[str]:
    return json.dumps(categories) if categories else None


def brand_row(record: BrandRecord) -> Dict[str, Any]:
    """Column values for ``storefront_brands``."""
    return {
        "title": record.title,
        "slug": record.slug,
        "logo_cf_image_id": record.logo_cf_image_id or None,
        "is_visible": _int_flag(record.is_visible),
    }


def category_row(record: CategoryRecord) -> Dict[str, Any]:
    return {
        "title": record.title,
        "slug": record.slug,
        "parent_id": record.parent_id or None,
        "sort_order": record.sort_order or 0,
        "is_visible": _int_flag(record.is_visible),
        "cf_image_id": record.cf_image_id or None,
    }


def product_row(record: ProductRecord) -> Dict[str, Any]:
    row = {name: getattr(record, name) for name in PRODUCT_FIELDS}
    for name in PRODUCT_FLAGS:
        row[name] = _int_flag(row[name])
    row["categories"] = _categories_json(record.categories)
    if row["search_boost"] is None:
        row["search_boost"] = 1.0
    return row


# ---------------------------------------------------------------------------
# Change detection
# ---------------------------------------------------------------------------

def _read(existing, name: str):
    if isinstance(existing, Mapping):
        return existing.get(name)
    return getattr(existing, name, None)


def _canonical_categories(value) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        value = json.loads(value)
    return sorted(str(v) for v in value)


def _stored(existing, name: str, flags: Iterable[str] = ()):
    value = _read(existing, name)
    if name in flags:
        return _int_flag(value)
    if name == "search_boost":
        return 1.0 if value is None else value
    if name == "sort_order":
        return value or 0
    if value == "":
        return None
    return value


def _differs(existing, incoming: Dict[str, Any], fields, flags=()) -> bool:
    for name in fields:
        if name == "categories":
            if _canonical_categories(_read(existing, name)) != _canonical_categories(incoming[name]):
                return True
            continue
        if _stored(existing, name, flags) != incoming[name]:
            return True
    return False


def has_product_changed(existing, incoming: ProductRecord) -> bool:
    return _differs(existing, product_row(incoming), PRODUCT_FIELDS, PRODUCT_FLAGS)


def has_category_changed(existing, incoming: CategoryRecord) -> bool:
    return _differs(existing, category_row(incoming), CATEGORY_FIELDS, ("is_visible",))


def has_brand_changed(existing, incoming: BrandRecord) -> bool:
    return _differs(existing, brand_row(incoming), BRAND_FIELDS, ("is_visible",))
