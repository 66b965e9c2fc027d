from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

ENTITY_BRAND = "brand"
ENTITY_CATEGORY = "category"
ENTITY_PRODUCT = "product"

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"

# Single-record outcomes
CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


@dataclass
class BrandRecord:
    id: str
    erpnext_name: str
    title: str
    slug: str
    logo_cf_image_id: Optional[str] = None
    is_visible: bool = True


@dataclass
class CategoryRecord:
    id: str
    erpnext_name: str
    title: str
    slug: str
    parent_id: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True
    cf_image_id: Optional[str] = None


@dataclass
class ProductRecord:
    id: str
    erpnext_name: str
    title: str
    sku: Optional[str] = None
    description: Optional[str] = None
    brand_id: Optional[str] = None
    item_group: Optional[str] = None
    # None means no category resolved, never an empty list
    categories: Optional[List[str]] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    stock_qty: int = 0
    is_visible: bool = True
    cf_image_id: Optional[str] = None
    weight_lbs: Optional[float] = None
    has_variants: bool = False
    variant_of: Optional[str] = None
    is_featured: bool = False
    featured_category_id: Optional[str] = None
    shipping_weight: Optional[float] = None
    shipping_weight_uom: Optional[str] = None
    shipping_length: Optional[float] = None
    shipping_width: Optional[float] = None
    shipping_height: Optional[float] = None
    shipping_dimension_uom: Optional[str] = None
    ships_usps: bool = False
    ships_ups: bool = False
    ships_ltl: bool = False
    ships_pickup: bool = False
    hazmat_flag: bool = False
    hazmat_class: Optional[str] = None
    oversized_flag: bool = False
    inherit_shipping_from_parent: bool = False
    search_boost: float = 1.0


@dataclass
class SyncResult:
    entity_type: str
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    duration_ms: int = 0

    def add_error(self, record_id: str, error: Any) -> None:
        self.errors.append({"id": record_id, "error": str(error)})

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SingleSyncResult:
    action: str
    id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "id": self.id}


@dataclass
class FullSyncResult:
    brands: SyncResult
    categories: SyncResult
    products: SyncResult
    total_duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brands": self.brands.to_dict(),
            "categories": self.categories.to_dict(),
            "products": self.products.to_dict(),
            "total_duration_ms": self.total_duration_ms,
        }
