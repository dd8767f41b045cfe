from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

import os

# --- Database URL from environment ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./naga_health.db")

# --- SQLAlchemy setup ---
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# --- DB Session Dependency ---
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
