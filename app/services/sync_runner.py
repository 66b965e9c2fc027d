"""Full ERPNext -> storefront sync pass and its two entry points."""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Tuple

from flask import current_app

from app.logging import sync_run_context
from app.schemas.erpnext import ERPNextItem, ERPNextItemPrice
from app.services.erpnext import ERPNextClient, client_from_config
from app.services.storefront_sync import DEFAULT_BATCH_SIZE, FullSyncResult, StorefrontSyncManager
from app.services.sync_lock import SyncAlreadyRunning, acquire_sync_lock, release_sync_lock, renew_sync_lock
from app.telemetry import sync_span
from models import db

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_PRICE_BATCH_SIZE = 50
DEFAULT_LOCK_TTL_SECONDS = 900


def get_erpnext_client() -> ERPNextClient:
    """Client registered on the app, or one built from config."""
    client = current_app.extensions.get("erpnext_client")
    if client is None:
        client = client_from_config(current_app.config)
    return client


def fetch_all_items(client, page_size: int = DEFAULT_PAGE_SIZE) -> List[ERPNextItem]:
    items: List[ERPNextItem] = []
    page = 1
    while True:
        result = client.get_items(page=page, limit=page_size)
        if not result.data:
            break
        items.extend(result.data)
        if len(items) >= result.pagination.total:
            break
        page += 1
    return items


def _fetch_prices(client, item_code: str) -> List[ERPNextItemPrice]:
    return client.get_item_prices(item_code)


def fetch_all_prices(client, items: List[ERPNextItem], batch_size: int = DEFAULT_PRICE_BATCH_SIZE) -> Dict[str, List[ERPNextItemPrice]]:
    """Price lists keyed by item code. A failed lookup yields an empty list."""
    prices: Dict[str, List[ERPNextItemPrice]] = {}
    codes = [item.price_key for item in items]
    for offset in range(0, len(codes), batch_size):
        batch = codes[offset:offset + batch_size]
        with ThreadPoolExecutor(max_workers=max(1, min(batch_size, len(batch)))) as executor:
            futures = {executor.submit(_fetch_prices, client, code): code for code in batch}
            for future in as_completed(futures):
                code = futures[future]
                try:
                    prices[code] = future.result()
                except Exception as e:
                    logger.warning({"event": "price_fetch_failed", "item_code": code, "error": str(e)})
                    prices[code] = []
    return prices


def run_full_sync(
    client,
    session=None,
    page_size: int = DEFAULT_PAGE_SIZE,
    price_batch_size: int = DEFAULT_PRICE_BATCH_SIZE,
    batch_size: int = DEFAULT_BATCH_SIZE,
    dry_run: bool = False,
    lock_ttl_seconds: int = DEFAULT_LOCK_TTL_SECONDS,
    id_factory=None,
) -> FullSyncResult:
    """Brands, then categories, then products. Raises SyncAlreadyRunning if a pass is in flight.

    The lease is renewed between stages, so the TTL only has to outlast the
    longest single stage. A pass whose lease was taken over stops at the
    next renewal.
    """
    session = session or db.session
    start = time.monotonic()
    owner = acquire_sync_lock(session, lock_ttl_seconds)
    manager_kwargs = {"batch_size": batch_size}
    if id_factory is not None:
        manager_kwargs["id_factory"] = id_factory
    manager = StorefrontSyncManager(session, **manager_kwargs)

    try:
        with sync_run_context(owner), sync_span("full_sync", run_id=owner, dry_run=dry_run):
            logger.info({"event": "full_sync_started", "dry_run": dry_run})

            with sync_span("sync_brands"):
                brands = manager.sync_brands(client.get_brands(), dry_run=dry_run)
            renew_sync_lock(session, owner, lock_ttl_seconds)
            with sync_span("sync_categories"):
                categories = manager.sync_categories(client.get_item_groups(), dry_run=dry_run)
            renew_sync_lock(session, owner, lock_ttl_seconds)

            with sync_span("fetch_items", page_size=page_size) as span:
                items = fetch_all_items(client, page_size=page_size)
                span.set_attribute("sync.item_count", len(items))
            with sync_span("fetch_prices", batch_size=price_batch_size):
                prices = fetch_all_prices(client, items, batch_size=price_batch_size)
            renew_sync_lock(session, owner, lock_ttl_seconds)
            with sync_span("sync_products"):
                products = manager.sync_products(items, prices, dry_run=dry_run)

            result = FullSyncResult(
                brands=brands,
                categories=categories,
                products=products,
                total_duration_ms=int((time.monotonic() - start) * 1000),
            )
            logger.info({"event": "full_sync_finished", "total_duration_ms": result.total_duration_ms})
            return result
    finally:
        session.rollback()
        release_sync_lock(session, owner)


def _run_from_config(dry_run: bool = False) -> FullSyncResult:
    config = current_app.config
    return run_full_sync(
        get_erpnext_client(),
        page_size=int(config.get("SYNC_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
        price_batch_size=int(config.get("SYNC_PRICE_BATCH_SIZE", DEFAULT_PRICE_BATCH_SIZE)),
        batch_size=int(config.get("SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE)),
        lock_ttl_seconds=int(config.get("SYNC_LOCK_TTL_SECONDS", DEFAULT_LOCK_TTL_SECONDS)),
        dry_run=dry_run,
    )


def _summary(result: FullSyncResult) -> Dict:
    summary = {"event": "scheduled_sync_complete", "total_duration_ms": result.total_duration_ms}
    for part in (result.brands, result.categories, result.products):
        summary[part.entity_type] = (
            f"{part.created} created, {part.updated} updated, "
            f"{part.deleted} deleted, {len(part.errors)} errors"
        )
    return summary


def handle_scheduled() -> Optional[FullSyncResult]:
    """Fire-and-forget wrapper. Logs the outcome and never raises."""
    try:
        result = _run_from_config()
    except SyncAlreadyRunning as e:
        logger.info({"event": "scheduled_sync_skipped", "reason": str(e)})
        return None
    except Exception:
        logger.exception("Scheduled sync failed")
        return None
    logger.info(_summary(result))
    return result


def handle_manual_sync(dry_run: bool = False) -> Tuple[Dict, int]:
    """Body and status code for the HTTP trigger."""
    try:
        result = _run_from_config(dry_run=dry_run)
    except SyncAlreadyRunning as e:
        return {"status": "error", "error": str(e)}, 409
    except Exception as e:
        logger.exception("Manual sync failed")
        return {"status": "error", "error": str(e)}, 500
    body = {"status": "success"}
    body.update(result.to_dict())
    return body, 200
