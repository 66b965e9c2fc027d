# --- models/storefront.py ---
from models import db, utcnow


class StorefrontBrand(db.Model):
    __tablename__ = "storefront_brands"

    id = db.Column(db.String(36), primary_key=True)
    erpnext_name = db.Column(db.String(140), unique=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, index=True)
    logo_cf_image_id = db.Column(db.String(255), nullable=True)
    is_visible = db.Column(db.Integer, nullable=False, default=1)        # 0 or 1

    def as_dict(self):
        return {
            "id": self.id,
            "erpnext_name": self.erpnext_name,
            "title": self.title,
            "slug": self.slug,
            "logo_cf_image_id": self.logo_cf_image_id,
            "is_visible": self.is_visible,
        }

    def __repr__(self):
        return f"<StorefrontBrand {self.erpnext_name} id={self.id}>"


class StorefrontCategory(db.Model):
    __tablename__ = "storefront_categories"

    id = db.Column(db.String(36), primary_key=True)
    erpnext_name = db.Column(db.String(140), unique=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, index=True)
    parent_id = db.Column(
        db.String(36), db.ForeignKey("storefront_categories.id"), nullable=True, index=True
    )
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_visible = db.Column(db.Integer, nullable=False, default=1)        # 0 or 1
    cf_image_id = db.Column(db.String(255), nullable=True)

    def as_dict(self):
        return {
            "id": self.id,
            "erpnext_name": self.erpnext_name,
            "title": self.title,
            "slug": self.slug,
            "parent_id": self.parent_id,
            "sort_order": self.sort_order,
            "is_visible": self.is_visible,
            "cf_image_id": self.cf_image_id,
        }

    def __repr__(self):
        return f"<StorefrontCategory {self.erpnext_name} id={self.id} parent={self.parent_id}>"


class StorefrontProduct(db.Model):
    __tablename__ = "storefront_products"

    id = db.Column(db.String(36), primary_key=True)
    erpnext_name = db.Column(db.String(140), unique=True, nullable=False)

    # Core details
    sku = db.Column(db.String(140), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    brand_id = db.Column(db.String(36), nullable=True, index=True)
    item_group = db.Column(db.String(140), nullable=True)                # ERPNext item group name
    categories = db.Column(db.Text, nullable=True)                       # JSON array of category ids

    # Pricing & stock
    price = db.Column(db.Float, nullable=True)
    sale_price = db.Column(db.Float, nullable=True)
    stock_qty = db.Column(db.Integer, nullable=False, default=0)

    # Media
    is_visible = db.Column(db.Integer, nullable=False, default=1)
    cf_image_id = db.Column(db.String(255), nullable=True)
    thumbnail_url = db.Column(db.String(500), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    weight_lbs = db.Column(db.Float, nullable=True)

    # Variants & merchandising
    has_variants = db.Column(db.Integer, nullable=False, default=0)
    variant_of = db.Column(db.String(140), nullable=True)                # item code of the template
    is_featured = db.Column(db.Integer, nullable=False, default=0)
    featured_category_id = db.Column(db.String(36), nullable=True)

    # Shipping dimensions
    shipping_weight = db.Column(db.Float, nullable=True)
    shipping_weight_uom = db.Column(db.String(20), nullable=True)
    shipping_length = db.Column(db.Float, nullable=True)
    shipping_width = db.Column(db.Float, nullable=True)
    shipping_height = db.Column(db.Float, nullable=True)
    shipping_dimension_uom = db.Column(db.String(20), nullable=True)

    # Shipping qualifications
    ships_usps = db.Column(db.Integer, nullable=False, default=0)
    ships_ups = db.Column(db.Integer, nullable=False, default=0)
    ships_ltl = db.Column(db.Integer, nullable=False, default=0)
    ships_pickup = db.Column(db.Integer, nullable=False, default=0)

    # Hazmat and oversized
    hazmat_flag = db.Column(db.Integer, nullable=False, default=0)
    hazmat_class = db.Column(db.String(50), nullable=True)
    oversized_flag = db.Column(db.Integer, nullable=False, default=0)
    inherit_shipping_from_parent = db.Column(db.Integer, nullable=False, default=0)

    # 0 or negative hides the product from search
    search_boost = db.Column(db.Float, nullable=False, default=1.0)

    # Timestamps
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    synced_at = db.Column(db.DateTime, nullable=True)

    def __repr__(self):
        return f"<StorefrontProduct {self.erpnext_name} id={self.id}>"
