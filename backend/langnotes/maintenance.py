from __future__ import annotations
import logging
from datetime import datetime
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .models import AuthSession, AverageIntensitySnapshot, Language, Note
from .guard import token_lifetime

logger = logging.getLogger(__name__)


def snapshot_average_intensity(db: Session) -> int:
	# One row per owner that has at least one note; owners without notes are skipped
	stmt = (
		select(Language.owner_id, func.avg(Note.intensity))
		.join(Note, Note.language_id == Language.id)
		.group_by(Language.owner_id)
	)
	written = 0
	for owner_id, average in db.execute(stmt).all():
		db.add(AverageIntensitySnapshot(owner_id=owner_id, average=float(average or 0)))
		written += 1
	db.commit()
	logger.info("wrote %d average intensity snapshots", written)
	return written


def purge_idle_sessions(db: Session) -> int:
	# Sessions untouched for longer than a token lives can no longer be used
	threshold = datetime.utcnow() - token_lifetime()
	res = db.execute(delete(AuthSession).where(AuthSession.last_activity_at < threshold))
	db.commit()
	removed = res.rowcount or 0
	if removed:
		logger.info("purged %d idle auth sessions", removed)
	return removed


def run_maintenance(db: Session) -> None:
	snapshot_average_intensity(db)
	purge_idle_sessions(db)
