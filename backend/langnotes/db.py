from __future__ import annotations
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./langnotes.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for databases created before notes carried
# intensity and visibility (plain ALTER TABLE, valid on SQLite and PostgreSQL)
def ensure_schema(bind=None) -> None:
	bind = bind or engine
	inspector = inspect(bind)
	tables = set(inspector.get_table_names())
	if "notes" in tables:
		cols = {c["name"] for c in inspector.get_columns("notes")}
		with bind.begin() as conn:
			if "intensity" not in cols:
				conn.exec_driver_sql("ALTER TABLE notes ADD COLUMN intensity INTEGER DEFAULT 0 NOT NULL")
			if "is_public" not in cols:
				conn.exec_driver_sql("ALTER TABLE notes ADD COLUMN is_public BOOLEAN DEFAULT FALSE NOT NULL")
