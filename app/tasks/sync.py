import logging
from celery import shared_task
from flask import current_app

logger = logging.getLogger(__name__)


@shared_task(name="app.tasks.sync.scheduled_full_sync")
def scheduled_full_sync():
    """Run one full ERPNext sync pass. Never raises; the next beat is the retry."""
    from app import create_app
    from app.services.sync_runner import handle_scheduled

    app = current_app._get_current_object() if current_app else create_app()
    with app.app_context():
        result = handle_scheduled()
    return result.to_dict() if result else None
