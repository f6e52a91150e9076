from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sharelink.core.config import settings

# Pick connect_args by database type
db_url = settings.DATABASE_URL

if db_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
    engine = create_engine(
        db_url,
        echo=settings.DB_ECHO,
        connect_args=connect_args
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    # MySQL/PostgreSQL settings
    connect_args = {}
    if db_url.startswith("mysql"):
        connect_args = {"charset": "utf8mb4", "use_unicode": True}
    engine = create_engine(
        db_url,
        pool_pre_ping=True,  # check connections before use
        pool_recycle=3600,
        echo=settings.DB_ECHO,
        connect_args=connect_args
    )

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

def get_db():
    """Dependency yielding a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
