"""Reconciles ERPNext collections against the storefront tables."""
import logging
import time
from collections import namedtuple
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import func

from app.metrics import record_sync_result
from app.schemas.erpnext import ERPNextBrand, ERPNextItem, ERPNextItemGroup, ERPNextItemPrice
from app.services.storefront_sync.hierarchy import order_for_deletion, sort_categories_by_hierarchy
from app.services.storefront_sync.transforms import (
    IdFactory,
    brand_row,
    category_row,
    generate_id,
    has_brand_changed,
    has_category_changed,
    has_product_changed,
    product_row,
    transform_brand,
    transform_item,
    transform_item_group,
)
from app.services.storefront_sync.types import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    CREATED,
    ENTITY_BRAND,
    ENTITY_CATEGORY,
    ENTITY_PRODUCT,
    SKIPPED,
    UPDATED,
    SingleSyncResult,
    SyncResult,
)
from app.utils.db import transactional
from models import db, utcnow
from models.storefront import StorefrontBrand, StorefrontCategory, StorefrontProduct
from models.sync import SyncLog, SyncState

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50

# Detached copy of a row slated for deletion; survives commits that expire ORM state
_Doomed = namedtuple("_Doomed", ["id", "erpnext_name", "parent_id"])

# (action, record, storage row)
_Write = Tuple[str, object, Dict]


def _chunks(seq: Sequence, size: int):
    for offset in range(0, len(seq), size):
        yield offset, seq[offset:offset + size]


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class StorefrontSyncManager:
    def __init__(self, session=None, id_factory: IdFactory = generate_id, batch_size: int = DEFAULT_BATCH_SIZE):
        self.session = session or db.session
        self.id_factory = id_factory
        self.batch_size = batch_size

    # ------------------------------------------------------------------
    # Brands
    # ------------------------------------------------------------------

    def sync_brands(self, brands: Iterable[ERPNextBrand], batch_size: Optional[int] = None, dry_run: bool = False) -> SyncResult:
        start = time.monotonic()
        result = SyncResult(ENTITY_BRAND)
        existing = self._load_existing(StorefrontBrand)
        seen = set()
        writes: List[_Write] = []

        for brand in brands:
            seen.add(brand.name)
            current = existing.get(brand.name)
            record = transform_brand(
                brand,
                existing_id=current.id if current else None,
                id_factory=self.id_factory,
            )
            self._plan(result, writes, current, record, brand_row(record), has_brand_changed)

        doomed = [row.id for name, row in existing.items() if name not in seen]
        result.deleted = len(doomed)

        if not dry_run:
            self._apply_writes(StorefrontBrand, ENTITY_BRAND, writes, result, batch_size, "brand-batch")
            self._delete_in_chunks(StorefrontBrand, ENTITY_BRAND, doomed, result, batch_size)
            self._touch_sync_state(ENTITY_BRAND)

        return self._finish(result, start, dry_run)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def sync_categories(self, groups: Iterable[ERPNextItemGroup], batch_size: Optional[int] = None, dry_run: bool = False) -> SyncResult:
        start = time.monotonic()
        result = SyncResult(ENTITY_CATEGORY)
        groups = list(groups)
        existing = self._load_existing(StorefrontCategory)

        # Every group needs its id before any child can point at it
        parent_map: Dict[str, str] = {}
        for group in groups:
            current = existing.get(group.name)
            parent_map[group.name] = current.id if current else self.id_factory()

        seen = set()
        writes: List[_Write] = []
        for group in sort_categories_by_hierarchy(groups):
            seen.add(group.name)
            current = existing.get(group.name)
            record = transform_item_group(
                group,
                existing_id=parent_map[group.name],
                parent_map=parent_map,
                id_factory=self.id_factory,
            )
            self._plan(result, writes, current, record, category_row(record), has_category_changed)

        doomed = [
            _Doomed(row.id, row.erpnext_name, row.parent_id)
            for name, row in existing.items()
            if name not in seen
        ]
        result.deleted = len(doomed)

        if not dry_run:
            self._apply_writes(StorefrontCategory, ENTITY_CATEGORY, writes, result, batch_size, "category-batch")
            for row in order_for_deletion(doomed):
                self._delete_category(row, result)
            self._touch_sync_state(ENTITY_CATEGORY)

        return self._finish(result, start, dry_run)

    def _delete_category(self, row: _Doomed, result: SyncResult) -> None:
        try:
            with transactional(f"Failed to delete category {row.erpnext_name}", self.session) as session:
                # Unlink first so no child ever points at a missing row
                session.query(StorefrontCategory).filter(
                    StorefrontCategory.parent_id == row.id
                ).update({"parent_id": None}, synchronize_session=False)
                session.query(StorefrontCategory).filter(
                    StorefrontCategory.id == row.id
                ).delete(synchronize_session=False)
                session.add(self._log_entry(ENTITY_CATEGORY, row.id, ACTION_DELETE))
        except Exception as e:
            result.add_error(row.erpnext_name, f"Delete failed: {e}")

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def sync_products(
        self,
        items: Iterable[ERPNextItem],
        prices: Mapping[str, List[ERPNextItemPrice]],
        batch_size: Optional[int] = None,
        dry_run: bool = False,
    ) -> SyncResult:
        start = time.monotonic()
        result = SyncResult(ENTITY_PRODUCT)
        existing = self._load_existing(StorefrontProduct)
        brand_map = self.get_brand_map()
        category_map = self.get_category_map()
        seen = set()
        writes: List[_Write] = []

        for item in items:
            seen.add(item.name)
            current = existing.get(item.name)
            record = transform_item(
                item,
                existing_id=current.id if current else None,
                prices=prices.get(item.price_key) or [],
                brand_map=brand_map,
                category_map=category_map,
                id_factory=self.id_factory,
            )
            self._plan(result, writes, current, record, product_row(record), has_product_changed)

        doomed = [row.id for name, row in existing.items() if name not in seen]
        result.deleted = len(doomed)

        if not dry_run:
            self._apply_writes(StorefrontProduct, ENTITY_PRODUCT, writes, result, batch_size, "product-batch")
            self._delete_in_chunks(StorefrontProduct, ENTITY_PRODUCT, doomed, result, batch_size)
            self._touch_sync_state(ENTITY_PRODUCT)

        return self._finish(result, start, dry_run)

    # ------------------------------------------------------------------
    # Single record (webhook) syncs; these never delete
    # ------------------------------------------------------------------

    def sync_single_product(self, item: ERPNextItem, prices: Optional[List[ERPNextItemPrice]] = None) -> SingleSyncResult:
        current = self._find(StorefrontProduct, item.name)
        record = transform_item(
            item,
            existing_id=current.id if current else None,
            prices=prices or [],
            brand_map=self.get_brand_map(),
            category_map=self.get_category_map(),
            id_factory=self.id_factory,
        )
        return self._sync_single(StorefrontProduct, ENTITY_PRODUCT, current, record, product_row(record), has_product_changed)

    def sync_single_brand(self, brand: ERPNextBrand) -> SingleSyncResult:
        current = self._find(StorefrontBrand, brand.name)
        record = transform_brand(
            brand,
            existing_id=current.id if current else None,
            id_factory=self.id_factory,
        )
        return self._sync_single(StorefrontBrand, ENTITY_BRAND, current, record, brand_row(record), has_brand_changed)

    def sync_single_category(self, group: ERPNextItemGroup) -> SingleSyncResult:
        current = self._find(StorefrontCategory, group.name)
        record = transform_item_group(
            group,
            existing_id=current.id if current else None,
            parent_map=self.get_category_map(),
            id_factory=self.id_factory,
        )
        return self._sync_single(StorefrontCategory, ENTITY_CATEGORY, current, record, category_row(record), has_category_changed)

    def _sync_single(self, model, entity_type, current, record, row, changed) -> SingleSyncResult:
        if current is not None and not changed(current, record):
            return SingleSyncResult(SKIPPED, current.id)

        action = ACTION_UPDATE if current is not None else ACTION_CREATE
        with transactional(f"Failed to sync {entity_type} {record.erpnext_name}", self.session) as session:
            self._upsert(model, record, row)
            session.add(self._log_entry(entity_type, record.id, action))
        logger.info({"event": "sync_single", "entity": entity_type, "action": action, "id": record.id})
        return SingleSyncResult(UPDATED if current is not None else CREATED, record.id)

    # ------------------------------------------------------------------
    # Lookups and state
    # ------------------------------------------------------------------

    def get_brand_map(self) -> Dict[str, str]:
        """ERPNext brand name -> storefront brand id."""
        rows = self.session.query(StorefrontBrand.erpnext_name, StorefrontBrand.id).all()
        return {name: brand_id for name, brand_id in rows}

    def get_category_map(self) -> Dict[str, str]:
        """ERPNext item group name -> storefront category id."""
        rows = self.session.query(StorefrontCategory.erpnext_name, StorefrontCategory.id).all()
        return {name: category_id for name, category_id in rows}

    def get_sync_state(self, entity_type: str) -> Optional[SyncState]:
        return self.session.get(SyncState, entity_type)

    def get_sync_stats(self) -> Dict:
        last_sync = {
            state.entity_type: state.last_sync_at.isoformat() if state.last_sync_at else None
            for state in self.session.query(SyncState).all()
        }
        return {
            "products": self.session.query(func.count(StorefrontProduct.id)).scalar() or 0,
            "categories": self.session.query(func.count(StorefrontCategory.id)).scalar() or 0,
            "brands": self.session.query(func.count(StorefrontBrand.id)).scalar() or 0,
            "last_sync": last_sync,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_existing(self, model) -> Dict[str, object]:
        return {row.erpnext_name: row for row in self.session.query(model).all()}

    def _find(self, model, erpnext_name: str):
        return self.session.query(model).filter_by(erpnext_name=erpnext_name).first()

    @staticmethod
    def _plan(result: SyncResult, writes: List[_Write], current, record, row, changed) -> None:
        if current is None:
            writes.append((ACTION_CREATE, record, row))
            result.created += 1
        elif changed(current, record):
            writes.append((ACTION_UPDATE, record, row))
            result.updated += 1
        else:
            result.skipped += 1

    def _upsert(self, model, record, row) -> None:
        instance = self.session.get(model, record.id)
        if instance is None:
            instance = model(id=record.id, erpnext_name=record.erpnext_name)
            self.session.add(instance)
        for name, value in row.items():
            setattr(instance, name, value)
        if model is StorefrontProduct:
            instance.synced_at = utcnow()
        # One flush per row keeps inserts in list order (parents before children)
        self.session.flush()

    def _apply_writes(self, model, entity_type, writes: List[_Write], result, batch_size, label) -> None:
        size = batch_size or self.batch_size
        for offset, batch in _chunks(writes, size):
            try:
                with transactional(f"{label}-{offset} failed", self.session) as session:
                    for action, record, row in batch:
                        self._upsert(model, record, row)
                        session.add(self._log_entry(entity_type, record.id, action))
            except Exception as e:
                result.add_error(f"{label}-{offset}", e)
                self._log_failures(entity_type, [(action, record.id) for action, record, _ in batch], e)

    def _delete_in_chunks(self, model, entity_type, ids: List[str], result, batch_size) -> None:
        size = batch_size or self.batch_size
        for offset, batch in _chunks(ids, size):
            try:
                with transactional(f"delete-batch-{offset} failed", self.session) as session:
                    session.query(model).filter(model.id.in_(batch)).delete(synchronize_session=False)
                    for record_id in batch:
                        session.add(self._log_entry(entity_type, record_id, ACTION_DELETE))
            except Exception as e:
                result.add_error(f"delete-batch-{offset}", e)
                self._log_failures(entity_type, [(ACTION_DELETE, record_id) for record_id in batch], e)

    def _log_failures(self, entity_type, entries, error) -> None:
        with transactional("Failed to record sync errors", self.session) as session:
            for action, record_id in entries:
                session.add(self._log_entry(entity_type, record_id, action, error=str(error)))

    @staticmethod
    def _log_entry(entity_type, entity_id, action, error: Optional[str] = None) -> SyncLog:
        return SyncLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            status="error" if error else "success",
            error_message=error,
        )

    def _touch_sync_state(self, entity_type: str) -> None:
        with transactional(f"Failed to update {entity_type} sync state", self.session) as session:
            state = session.get(SyncState, entity_type)
            if state is None:
                state = SyncState(entity_type=entity_type)
                session.add(state)
            state.last_sync_at = utcnow()

    def _finish(self, result: SyncResult, start: float, dry_run: bool) -> SyncResult:
        result.duration_ms = _elapsed_ms(start)
        if not dry_run:
            record_sync_result(result)
        logger.info({
            "event": "sync_complete",
            "entity": result.entity_type,
            "dry_run": dry_run,
            "created": result.created,
            "updated": result.updated,
            "deleted": result.deleted,
            "skipped": result.skipped,
            "errors": len(result.errors),
            "duration_ms": result.duration_ms,
        })
        return result
