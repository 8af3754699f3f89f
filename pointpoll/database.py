# pointpoll/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from pointpoll.config import settings

# SQLite needs cross-thread access for the FastAPI threadpool
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # SQL echo
    connect_args=connect_args
)

if settings.database_url.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        """SQLite ignores ON DELETE CASCADE unless foreign keys are on"""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

# session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# declarative base for all models
Base = declarative_base()

def get_db():
    """Open a DB session per request and close it afterwards"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
