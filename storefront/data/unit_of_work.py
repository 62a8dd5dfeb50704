# storefront/data/unit_of_work.py
from sqlalchemy.orm import Session, sessionmaker

from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    """
    One database transaction for one funnel call.

    Entering opens a session, leaving commits it when the block finished
    cleanly and rolls it back otherwise. The session is closed on every exit path.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.session: Session | None = None

    def __enter__(self) -> Session:
        self.session = self.session_factory()
        return self.session

    def __exit__(self, exc_type, exc, tb):
        session = self.session
        self.session = None
        try:
            if exc_type is None:
                session.commit()
            else:
                logger.info(f"Rolling back unit of work: {exc_type.__name__}: {exc}")
                session.rollback()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        return False
