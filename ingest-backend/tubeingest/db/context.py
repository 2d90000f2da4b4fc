from contextlib import contextmanager

from tubeingest.db.session import SessionLocal

@contextmanager
def get_db_session():
    """Session for scripts and worker jobs; rolls back on error, always closes."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
