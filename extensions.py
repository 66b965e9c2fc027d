from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os

# Shared limiter; the sync trigger adds its own stricter limit on top
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATELIMIT_STORAGE_URL", "memory://"),
    strategy="fixed-window",
    # Webhook bursts from ERPNext on bulk edits need generous headroom
    default_limits=[os.getenv("RATELIMIT_DEFAULT", "2000 per hour")],
)
