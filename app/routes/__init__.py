from .sync import sync_bp


__all__ = [
    'sync_bp',
]
