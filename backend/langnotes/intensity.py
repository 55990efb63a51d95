"""Note intensity: the bounded 0-100 mastery score and its five bands."""
from __future__ import annotations
import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from sqlalchemy import and_, case, select, update
from sqlalchemy.orm import Session

from .errors import InvalidInput, NotFound
from .models import Note

logger = logging.getLogger(__name__)

MIN_INTENSITY = 0
MAX_INTENSITY = 100

CORRECT = 1
INCORRECT = -1


class Band(str, Enum):
	LOW = "low"
	LOW_MEDIUM = "low-medium"
	MEDIUM = "medium"
	MEDIUM_HIGH = "medium-high"
	HIGH = "high"


# (low exclusive, high inclusive); None leaves that side open.
# Stored intensities depend on these exact boundaries.
_BAND_RANGES: Dict[Band, Tuple[Optional[int], Optional[int]]] = {
	Band.LOW: (None, 20),
	Band.LOW_MEDIUM: (20, 40),
	Band.MEDIUM: (40, 60),
	Band.MEDIUM_HIGH: (60, 80),
	Band.HIGH: (80, None),
}


def classify(intensity: int) -> Band:
	for band, (low, high) in _BAND_RANGES.items():
		if (low is None or intensity > low) and (high is None or intensity <= high):
			return band
	raise AssertionError(f"unreachable: no band for {intensity}")


def range_for(band: Band) -> Tuple[Optional[int], Optional[int]]:
	return _BAND_RANGES[Band(band)]


def parse_band(value: str | None) -> Optional[Band]:
	"""Map a request value to a band; ``"all"`` (or nothing) means no filter."""
	if value is None or value == "all":
		return None
	try:
		return Band(value)
	except ValueError as exc:
		choices = ", ".join(["all"] + [b.value for b in Band])
		raise InvalidInput(f"type must be one of: {choices}") from exc


def band_filter(column, band: Band):
	low, high = range_for(band)
	clauses = []
	if low is not None:
		clauses.append(column > low)
	if high is not None:
		clauses.append(column <= high)
	return and_(*clauses)


def _check_direction(direction: int) -> None:
	if direction not in (CORRECT, INCORRECT):
		raise InvalidInput("direction must be +1 or -1")


def step(intensity: int, direction: int) -> int:
	"""One quiz answer's worth of movement, clamped to [0, 100].

	This is the reference rule; ``adjust`` applies the same rule in SQL so the
	read and the write happen in one statement.
	"""
	_check_direction(direction)
	return max(MIN_INTENSITY, min(MAX_INTENSITY, intensity + direction))


def adjust(db: Session, note_id: str, direction: int) -> int:
	"""Move a note's intensity one step and return the stored value.

	The clamp runs inside a single UPDATE so concurrent answers on the same
	note cannot push it out of range or lose each other's step.
	"""
	_check_direction(direction)
	if direction == CORRECT:
		new_value = case((Note.intensity >= MAX_INTENSITY, MAX_INTENSITY), else_=Note.intensity + 1)
	else:
		new_value = case((Note.intensity <= MIN_INTENSITY, MIN_INTENSITY), else_=Note.intensity - 1)
	result = db.execute(
		update(Note).where(Note.id == note_id).values(intensity=new_value).execution_options(synchronize_session=False)
	)
	if not result.rowcount:
		db.rollback()
		raise NotFound("Note not found")
	db.commit()
	intensity = db.execute(select(Note.intensity).where(Note.id == note_id)).scalar_one()
	logger.debug("note %s intensity %+d -> %s", note_id, direction, intensity)
	return intensity
