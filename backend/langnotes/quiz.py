from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import intensity
from .errors import InvalidInput, NotFound
from .intensity import Band
from .models import Note, QuizScore
from .sampler import QuizQuestion, RandomSource, pool_from_rows, sample
from .settings import settings

logger = logging.getLogger(__name__)

_BAND_COUNT_KEYS = {
	Band.LOW: "low_intensity_count",
	Band.LOW_MEDIUM: "low_medium_intensity_count",
	Band.MEDIUM: "medium_intensity_count",
	Band.MEDIUM_HIGH: "medium_high_intensity_count",
	Band.HIGH: "high_intensity_count",
}


def get_note_counts(db: Session, language_id: str) -> Dict[str, int]:
	def count(*criteria) -> int:
		stmt = select(func.count(Note.id)).where(Note.language_id == language_id, *criteria)
		return db.execute(stmt).scalar_one()

	counts = {
		"total_count": count(),
		"is_public_count": count(Note.is_public.is_(True)),
	}
	for band, key in _BAND_COUNT_KEYS.items():
		counts[key] = count(intensity.band_filter(Note.intensity, band))
	return counts


def get_quiz_batch(
	db: Session,
	language_id: str,
	band: Optional[Band] = None,
	count: Optional[int] = None,
	rng: Optional[RandomSource] = None,
) -> List[QuizQuestion]:
	count = settings.quiz_question_count if count is None else count
	if count < 1:
		raise InvalidInput("count must be at least 1")
	# One read for the whole candidate pool; sampling happens in memory
	stmt = select(Note.id, Note.name, Note.translation).where(Note.language_id == language_id)
	if band is not None:
		stmt = stmt.where(intensity.band_filter(Note.intensity, band))
	pool = pool_from_rows(db.execute(stmt.order_by(Note.created_at, Note.id)).all())
	# Small collections still get a quiz, just a shorter one
	question_count = min(count, len(pool)) or count
	questions = sample(pool, question_count, settings.quiz_options_per_question, rng)
	logger.info(
		"quiz batch for language %s band=%s: %d questions from %d notes",
		language_id, band.value if band else "all", len(questions), len(pool),
	)
	return questions


def submit_answer(db: Session, note_id: str, submitted_answer: str) -> Dict[str, Any]:
	note = db.get(Note, note_id)
	if note is None:
		raise NotFound("Note not found")
	correct_answer = note.translation
	is_correct = submitted_answer == correct_answer
	intensity.adjust(db, note_id, intensity.CORRECT if is_correct else intensity.INCORRECT)
	return {"answer": correct_answer, "is_correct": is_correct}


def record_session(db: Session, owner_id: str, correct_answers: int, wrong_answers: int) -> QuizScore:
	if correct_answers < 0 or wrong_answers < 0:
		raise InvalidInput("answer counts must be >= 0")
	row = QuizScore(owner_id=owner_id, correct_answers=correct_answers, wrong_answers=wrong_answers)
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


def get_recent_sessions(db: Session, owner_id: str, limit: Optional[int] = None) -> List[QuizScore]:
	limit = settings.recent_sessions_limit if limit is None else limit
	stmt = (
		select(QuizScore)
		.where(QuizScore.owner_id == owner_id)
		.order_by(QuizScore.created_at.desc(), QuizScore.id.desc())
		.limit(limit)
	)
	return list(db.execute(stmt).scalars())
