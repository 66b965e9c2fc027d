from .hierarchy import order_for_deletion, sort_categories_by_hierarchy  # noqa: F401
from .manager import DEFAULT_BATCH_SIZE, StorefrontSyncManager  # noqa: F401
from .transforms import (  # noqa: F401
    clean_slug,
    generate_id,
    has_brand_changed,
    has_category_changed,
    has_product_changed,
    slugify,
    transform_brand,
    transform_item,
    transform_item_group,
)
from .types import (  # noqa: F401
    BrandRecord,
    CategoryRecord,
    FullSyncResult,
    ProductRecord,
    SingleSyncResult,
    SyncResult,
)
