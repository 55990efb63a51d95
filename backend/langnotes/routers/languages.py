import logging
import random
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import quiz
from ..db import get_db
from ..errors import Conflict, NotFound
from ..guard import ROLE_ADMIN, ROLE_USER, AuthContext, authorize_owner, require_role
from ..intensity import parse_band
from ..models import Language, Note
from ..schemas import ApiModel, EntityId, PathId
from ..settings import settings

router = APIRouter(prefix="/collections", tags=["collections"])

logger = logging.getLogger(__name__)


class LanguageIn(ApiModel):
	name: str = Field(min_length=2, max_length=25)
	description: Optional[str] = Field(default=None, min_length=5, max_length=200)
	shadow_language: Optional[str] = None
	owner_id: EntityId


class LanguageUpdate(ApiModel):
	name: str = Field(min_length=2, max_length=25)
	description: Optional[str] = Field(default=None, min_length=5, max_length=200)


class LanguageOut(ApiModel):
	id: str
	owner_id: str
	name: str
	description: Optional[str]
	shadow_language: Optional[str]
	created_at: datetime
	updated_at: datetime


class NoteCounts(ApiModel):
	total_count: int
	is_public_count: int
	low_intensity_count: int
	low_medium_intensity_count: int
	medium_intensity_count: int
	medium_high_intensity_count: int
	high_intensity_count: int


class QuizRequest(ApiModel):
	type: str = "all"
	count: Optional[int] = Field(default=None, ge=1, le=100)


class QuizQuestionOut(ApiModel):
	note_id: str
	note_name: str
	options: List[str]


class QuizBatch(ApiModel):
	quiz_questions: List[QuizQuestionOut]


def get_rng():
	# Overridden in tests with a seeded random.Random
	return random


def load_language(db: Session, language_id: str) -> Language:
	language = db.get(Language, language_id)
	if language is None:
		raise NotFound("Language not found")
	return language


@router.get("", response_model=List[LanguageOut])
def list_languages(ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	return list(db.execute(select(Language).order_by(Language.created_at)).scalars())


@router.get("/user/{user_id}", response_model=List[LanguageOut])
def list_user_languages(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id)
	stmt = select(Language).where(Language.owner_id == user_id).order_by(Language.created_at)
	return list(db.execute(stmt).scalars())


@router.get("/{language_id}", response_model=LanguageOut)
def get_language(language_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	language = load_language(db, language_id)
	authorize_owner(ctx, language.owner_id)
	return language


@router.post("", response_model=LanguageOut, status_code=201)
def create_language(req: LanguageIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.owner_id)
	language = Language(
		owner_id=req.owner_id,
		name=req.name,
		description=req.description,
		shadow_language=req.shadow_language,
	)
	db.add(language)
	db.commit()
	db.refresh(language)
	return language


@router.put("/{language_id}", response_model=LanguageOut)
def update_language(
	language_id: PathId,
	req: LanguageUpdate,
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	language = load_language(db, language_id)
	authorize_owner(ctx, language.owner_id)
	language.name = req.name
	language.description = req.description
	db.commit()
	db.refresh(language)
	return language


@router.delete("/{language_id}", status_code=204)
def delete_language(language_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	language = load_language(db, language_id)
	authorize_owner(ctx, language.owner_id)
	if settings.collection_delete_policy == "reject":
		note_count = db.execute(select(func.count(Note.id)).where(Note.language_id == language.id)).scalar_one()
		if note_count:
			raise Conflict("Language still has notes")
	db.delete(language)
	db.commit()
	logger.info("deleted language %s", language_id)


@router.get("/{language_id}/note-counts", response_model=NoteCounts)
def note_counts(language_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	language = load_language(db, language_id)
	authorize_owner(ctx, language.owner_id, allow_moderator=True)
	return NoteCounts(**quiz.get_note_counts(db, language.id))


@router.post("/{language_id}/quiz", response_model=QuizBatch)
def quiz_batch(
	language_id: PathId,
	req: QuizRequest,
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
	rng=Depends(get_rng),
):
	band = parse_band(req.type)
	language = load_language(db, language_id)
	authorize_owner(ctx, language.owner_id)
	questions = quiz.get_quiz_batch(db, language.id, band, req.count, rng)
	return QuizBatch(quiz_questions=[
		QuizQuestionOut(note_id=q.note_id, note_name=q.note_name, options=list(q.options)) for q in questions
	])
