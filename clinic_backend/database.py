from threading import Lock

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_backend.core import config


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=config.DATABASE_ECHO, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False

INDEX_STATEMENTS = (
    'CREATE INDEX IF NOT EXISTS idx_availability_rules_therapist_day '
    'ON availability_rules(therapist_id, day_of_week)',
    'CREATE INDEX IF NOT EXISTS idx_bookings_therapist_start ON bookings(therapist_id, session_start)',
    'CREATE INDEX IF NOT EXISTS idx_busy_slots_therapist_range ON busy_slots(therapist_id, start_time, end_time)',
    'CREATE INDEX IF NOT EXISTS idx_feedback_therapist ON feedback(therapist_id)',
)


def ensure_schema(bind: Engine | None = None) -> None:
    """Create tables and lookup indexes once per process."""
    global _schema_checked

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        # Registers every table on Base.metadata.
        from clinic_backend.models import availability, booking, busy_slot, feedback, therapist, user  # noqa: F401

        target = bind or engine
        Base.metadata.create_all(bind=target)
        with target.begin() as connection:
            for statement in INDEX_STATEMENTS:
                connection.execute(text(statement))

        _schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
