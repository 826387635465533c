from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from expense_budget.core.config import settings
import os

def normalize_database_url(db_url: str) -> str:
    # Heroku/Railway style URLs; SQLAlchemy wants an explicit dialect+driver
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql+psycopg://", 1)
    elif db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)

    # Relative SQLite paths resolve against backend/
    if db_url.startswith("sqlite:///./"):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        backend_dir = os.path.dirname(base_dir)
        db_file = db_url.replace("sqlite:///./", "")
        db_url = f"sqlite:///{os.path.join(backend_dir, db_file)}"

    return db_url


db_url = normalize_database_url(settings.DATABASE_URL)

if db_url.startswith("sqlite"):
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
else:
    engine = create_engine(db_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    """Create all tables registered on Base."""
    # Register models on Base.metadata
    from expense_budget.models import budget, master  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

def ping(db) -> bool:
    db.execute(text("SELECT 1"))
    return True
