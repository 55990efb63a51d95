from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import quiz
from ..db import get_db
from ..errors import InvalidInput, NotFound
from ..guard import ROLE_ADMIN, ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import Language, Note, NoteProperty
from ..schemas import ApiModel, EntityId, PathId
from .languages import load_language

router = APIRouter(prefix="/items", tags=["items"])

_SORTABLE = {
	"createdAt": Note.created_at,
	"updatedAt": Note.updated_at,
	"name": Note.name,
	"translation": Note.translation,
	"intensity": Note.intensity,
}


class NoteIn(ApiModel):
	name: str = Field(min_length=1, max_length=150)
	translation: str = Field(min_length=1, max_length=150)
	language_id: EntityId
	is_public: bool = False


class NoteUpdate(ApiModel):
	name: str = Field(min_length=1, max_length=150)
	translation: str = Field(min_length=1, max_length=150)
	language_id: Optional[EntityId] = None
	is_public: Optional[bool] = None


class NoteOut(ApiModel):
	id: str
	language_id: str
	name: str
	translation: str
	intensity: int
	is_public: bool
	created_at: datetime
	updated_at: datetime


class PageMeta(ApiModel):
	total: int
	total_pages: int


class NotePage(ApiModel):
	notes: List[NoteOut]
	meta: PageMeta


class AnswerIn(ApiModel):
	answer: str


class AnswerOut(ApiModel):
	answer: str
	is_correct: bool


class PropertyIn(ApiModel):
	name: str = Field(min_length=1, max_length=64)
	value: str
	description: Optional[str] = None


class PropertyOut(ApiModel):
	id: str
	note_id: str
	name: str
	value: str
	description: Optional[str]


def load_owned_note(db: Session, ctx: AuthContext, note_id: str, *, allow_moderator: bool = False) -> Note:
	note = db.get(Note, note_id)
	if note is None:
		raise NotFound("Note not found")
	language = load_language(db, note.language_id)
	authorize_owner(ctx, language.owner_id, allow_moderator=allow_moderator)
	return note


def _load_owned_property(db: Session, ctx: AuthContext, property_id: str) -> NoteProperty:
	prop = db.get(NoteProperty, property_id)
	if prop is None:
		raise NotFound("Note property not found")
	load_owned_note(db, ctx, prop.note_id)
	return prop


@router.get("", response_model=List[NoteOut])
def list_notes(ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	return list(db.execute(select(Note).order_by(Note.created_at)).scalars())


@router.get("/user/{user_id}", response_model=List[NoteOut])
def list_user_notes(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id)
	stmt = select(Note).join(Language, Language.id == Note.language_id).where(Language.owner_id == user_id).order_by(Note.created_at)
	return list(db.execute(stmt).scalars())


@router.get("/collection/{language_id}", response_model=NotePage)
def list_language_notes(
	language_id: PathId,
	sort_by: str = Query(default="createdAt", alias="sortBy"),
	order: Literal["asc", "desc"] = "asc",
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=10, ge=1, le=100),
	search: str = "",
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	language = load_language(db, language_id)
	authorize_owner(ctx, language.owner_id)
	column = _SORTABLE.get(sort_by)
	if column is None:
		raise InvalidInput(f"sortBy must be one of: {', '.join(_SORTABLE)}")
	criteria = [Note.language_id == language.id]
	if search:
		criteria.append(Note.name.ilike(f"%{search}%"))
	total = db.execute(select(func.count(Note.id)).where(*criteria)).scalar_one()
	total_pages = -(-total // limit)
	if total_pages and page > total_pages:
		raise NotFound("Notes not found")
	stmt = (
		select(Note)
		.where(*criteria)
		.order_by(column.asc() if order == "asc" else column.desc(), Note.id)
		.offset((page - 1) * limit)
		.limit(limit)
	)
	notes = list(db.execute(stmt).scalars())
	return NotePage(
		notes=[NoteOut.model_validate(note) for note in notes],
		meta=PageMeta(total=total, total_pages=total_pages),
	)


@router.get("/{note_id}", response_model=NoteOut)
def get_note(note_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	return load_owned_note(db, ctx, note_id, allow_moderator=True)


@router.post("", response_model=NoteOut, status_code=201)
def create_note(req: NoteIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	language = load_language(db, req.language_id)
	authorize_owner(ctx, language.owner_id)
	note = Note(language_id=language.id, name=req.name, translation=req.translation, is_public=req.is_public)
	db.add(note)
	db.commit()
	db.refresh(note)
	return note


@router.put("/{note_id}", response_model=NoteOut)
def update_note(note_id: PathId, req: NoteUpdate, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	note = load_owned_note(db, ctx, note_id)
	if req.language_id is not None and req.language_id != note.language_id:
		raise InvalidInput("A note cannot be moved to another language")
	note.name = req.name
	note.translation = req.translation
	if req.is_public is not None:
		note.is_public = req.is_public
	db.commit()
	db.refresh(note)
	return note


@router.delete("/{note_id}", status_code=204)
def delete_note(note_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	note = load_owned_note(db, ctx, note_id)
	db.delete(note)
	db.commit()


@router.post("/{note_id}/answer", response_model=AnswerOut)
def answer_note(note_id: PathId, req: AnswerIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	load_owned_note(db, ctx, note_id)
	return AnswerOut(**quiz.submit_answer(db, note_id, req.answer))


@router.get("/{note_id}/properties", response_model=List[PropertyOut])
def list_properties(note_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	note = load_owned_note(db, ctx, note_id, allow_moderator=True)
	return note.properties


@router.post("/{note_id}/properties", response_model=PropertyOut, status_code=201)
def create_property(
	note_id: PathId,
	req: PropertyIn,
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	note = load_owned_note(db, ctx, note_id)
	prop = NoteProperty(note_id=note.id, name=req.name, value=req.value, description=req.description)
	db.add(prop)
	db.commit()
	db.refresh(prop)
	return prop


@router.put("/properties/{property_id}", response_model=PropertyOut)
def update_property(
	property_id: PathId,
	req: PropertyIn,
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	prop = _load_owned_property(db, ctx, property_id)
	prop.name = req.name
	prop.value = req.value
	prop.description = req.description
	db.commit()
	db.refresh(prop)
	return prop


@router.delete("/properties/{property_id}", status_code=204)
def delete_property(property_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	prop = _load_owned_property(db, ctx, property_id)
	db.delete(prop)
	db.commit()
