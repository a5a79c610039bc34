from sqlalchemy.orm import declarative_base

Base = declarative_base()


def init_db(bind) -> None:
    """Create all tables known to the metadata (idempotent)."""
    # Import models so they register on Base.metadata
    from adaptonia.reminders import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
