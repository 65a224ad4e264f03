import contextlib
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from database.database import SessionLocal, get_engine
from database.repository import PlacementRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def placement_uow(session_factory: Optional[sessionmaker] = None):
    """Per-unit-of-work transaction scope.

    Yields a PlacementRepository bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    Usage:
        with placement_uow() as repo:
            result = router.submit(repo, application_id, now)
        # commit happens automatically on successful exit
    """
    if session_factory is None:
        get_engine()
        session_factory = SessionLocal
    session = session_factory()
    try:
        repo = PlacementRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
