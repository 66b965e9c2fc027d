"""Source records as returned by the ERPNext REST API.

Only ``name`` is guaranteed; ERPNext omits fields the API user cannot read,
so everything else is optional and unknown fields are ignored.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ERPNextRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)


class ERPNextItem(ERPNextRecord):
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    item_group: Optional[str] = None
    standard_rate: Optional[float] = None
    disabled: Optional[int] = None
    custom_cf_image_id: Optional[str] = None
    weight_per_unit: Optional[float] = None
    weight_uom: Optional[str] = None
    custom_show_in_website: Optional[int] = None
    has_variants: Optional[int] = None
    variant_of: Optional[str] = None
    custom_is_featured: Optional[int] = None
    custom_featured_in_category: Optional[str] = None

    # Shipping dimensions
    shipping_weight: Optional[float] = None
    shipping_weight_uom: Optional[str] = None
    shipping_length: Optional[float] = None
    shipping_width: Optional[float] = None
    shipping_height: Optional[float] = None
    shipping_dimension_uom: Optional[str] = None

    # Shipping qualifications
    ships_usps: Optional[int] = None
    ships_ups: Optional[int] = None
    ships_ltl: Optional[int] = None
    ships_pickup: Optional[int] = None

    hazmat_flag: Optional[int] = None
    hazmat_class: Optional[str] = None
    oversized_flag: Optional[int] = None
    inherit_shipping_from_parent: Optional[int] = None
    custom_search_boost: Optional[float] = None

    @property
    def price_key(self) -> str:
        """Key the price map is indexed by."""
        return self.item_code or self.name


class ERPNextItemGroup(ERPNextRecord):
    item_group_name: Optional[str] = None
    parent_item_group: Optional[str] = None
    is_group: Optional[int] = None
    custom_slug: Optional[str] = None
    custom_sort_order: Optional[int] = None
    custom_show_in_website: Optional[int] = None
    custom_cf_image_id: Optional[str] = None


class ERPNextBrand(ERPNextRecord):
    brand: Optional[str] = None
    custom_cf_image_id: Optional[str] = None
    custom_bc_custom_url: Optional[str] = None
    custom_show_in_website: Optional[int] = None


class ERPNextItemPrice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_code: str
    price_list: str
    price_list_rate: float


class Pagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int


class PaginatedItems(BaseModel):
    data: List[ERPNextItem]
    pagination: Pagination
