from contextlib import contextmanager
import logging
from models import db

@contextmanager
def transactional(message="DB transaction failed", session=None):
    """Context manager to wrap a database transaction."""
    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception as e:
        logging.error(f"{message}: %s", e, exc_info=True)
        session.rollback()
        raise
