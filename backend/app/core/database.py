from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import settings
from app.core.errors import ConflictError, TransientStoreError

engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)


def init_db() -> None:
    import app.models.conversation  # noqa: F401 - ensure models are registered
    import app.models.staff  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session):
    """Commit everything done inside the block as one unit, or nothing.

    Integrity violations surface as ConflictError and connectivity failures as
    TransientStoreError; the session is rolled back in every failure case.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(f"Integrity violation: {e.orig}") from e
    except OperationalError as e:
        session.rollback()
        raise TransientStoreError(f"Store unavailable: {e.orig}") from e
    except Exception:
        session.rollback()
        raise
