import logging
from flask import Blueprint, current_app, jsonify, request
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.version import API_PREFIX
from app.schemas.erpnext import ERPNextBrand, ERPNextItem, ERPNextItemGroup
from app.services.storefront_sync import StorefrontSyncManager
from app.services.sync_runner import get_erpnext_client, handle_manual_sync
from app.utils import ok, sync_key_required, validate_schema

sync_bp = Blueprint("sync", __name__, url_prefix=f"{API_PREFIX}/sync")

TRUTHY = ("1", "true", "yes")


def _manager() -> StorefrontSyncManager:
    return StorefrontSyncManager(batch_size=current_app.config.get("SYNC_BATCH_SIZE", 50))


@sync_bp.route("/run", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["SYNC_RUN_LIMIT"],
    key_func=get_remote_address,
    error_message="Too many sync runs from this IP",
)
@sync_key_required
def run_sync():
    dry_run = (request.args.get("dry_run") or "").lower() in TRUTHY
    body, status = handle_manual_sync(dry_run=dry_run)
    return jsonify(body), status


@sync_bp.route("/products", methods=["POST"])
@sync_key_required
@validate_schema(ERPNextItem)
def sync_product():
    item = request.validated_data
    try:
        prices = get_erpnext_client().get_item_prices(item.price_key)
    except Exception as e:
        logging.warning("Price fetch failed for %s: %s", item.price_key, e)
        prices = []
    result = _manager().sync_single_product(item, prices)
    return jsonify({"status": "success", **result.to_dict()}), 200


@sync_bp.route("/brands", methods=["POST"])
@sync_key_required
@validate_schema(ERPNextBrand)
def sync_brand():
    result = _manager().sync_single_brand(request.validated_data)
    return jsonify({"status": "success", **result.to_dict()}), 200


@sync_bp.route("/categories", methods=["POST"])
@sync_key_required
@validate_schema(ERPNextItemGroup)
def sync_category():
    result = _manager().sync_single_category(request.validated_data)
    return jsonify({"status": "success", **result.to_dict()}), 200


@sync_bp.route("/stats", methods=["GET"])
@sync_key_required
def sync_stats():
    return ok(_manager().get_sync_stats())
