import asyncio
import logging

from fastapi import FastAPI

from .db import Base, SessionLocal, engine, ensure_schema
from .errors import register_error_handlers
from .guard import KNOWN_ROLES
from .maintenance import run_maintenance
from .settings import settings
from .routers import health, auth, roles
from .routers import languages
from .routers import items
from .routers import quiz_scores
from .routers import profiles
from .routers import preferences
from .routers import users
from .routers import social_posts
from .routers import dictionary

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Langnotes API")
register_error_handlers(app)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(roles.router)
app.include_router(languages.router)
app.include_router(items.router)
app.include_router(quiz_scores.router)
app.include_router(profiles.router)
app.include_router(preferences.router)
app.include_router(users.router)
app.include_router(social_posts.router)
app.include_router(dictionary.router)


@app.get("/info")
def root():
	return {"status": "ok", "dictionary_configured": bool(settings.dict_api_key)}


def _maintenance_once() -> None:
	db = SessionLocal()
	try:
		run_maintenance(db)
	except Exception:
		logger.exception("maintenance run failed")
	finally:
		db.close()


async def _maintenance_watcher(interval_hours: int):
	while True:
		await asyncio.sleep(interval_hours * 60 * 60)
		await asyncio.to_thread(_maintenance_once)


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight migrations for older databases
	ensure_schema()
	db = SessionLocal()
	try:
		roles.ensure_known_roles(db, KNOWN_ROLES)
	finally:
		db.close()
	# Snapshot at startup, then on the configured interval
	_maintenance_once()
	if settings.maintenance_interval_hours > 0:
		asyncio.create_task(_maintenance_watcher(settings.maintenance_interval_hours))
