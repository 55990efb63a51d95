from datetime import datetime
from enum import Enum
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import Conflict, NotFound
from ..guard import ROLE_ADMIN, ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import Preference
from ..schemas import ApiModel, EntityId, PathId

router = APIRouter(prefix="/preferences", tags=["preferences"])


class Theme(str, Enum):
	LIGHT = "LIGHT"
	DARK = "DARK"


class InterfaceLanguage(str, Enum):
	EN = "EN"
	TR = "TR"


class PreferenceIn(ApiModel):
	theme: Theme
	language: InterfaceLanguage
	owner_id: EntityId


class PreferenceOut(ApiModel):
	id: str
	owner_id: str
	theme: Theme
	language: InterfaceLanguage
	created_at: datetime
	updated_at: datetime


def _by_owner(db: Session, owner_id: str):
	return db.execute(select(Preference).where(Preference.owner_id == owner_id)).scalar_one_or_none()


@router.get("", response_model=List[PreferenceOut])
def list_preferences(ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	return list(db.execute(select(Preference)).scalars())


@router.get("/user/{user_id}", response_model=PreferenceOut)
def get_user_preference(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id)
	preference = _by_owner(db, user_id)
	if preference is None:
		raise NotFound("Preference not found")
	return preference


@router.get("/{preference_id}", response_model=PreferenceOut)
def get_preference(preference_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	preference = db.get(Preference, preference_id)
	if preference is None:
		raise NotFound("Preference not found")
	authorize_owner(ctx, preference.owner_id)
	return preference


@router.post("", response_model=PreferenceOut, status_code=201)
def create_preference(req: PreferenceIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.owner_id)
	if _by_owner(db, req.owner_id) is not None:
		raise Conflict("Preference already exists")
	preference = Preference(owner_id=req.owner_id, theme=req.theme.value, language=req.language.value)
	db.add(preference)
	db.commit()
	db.refresh(preference)
	return preference


@router.put("", response_model=PreferenceOut)
def update_preference(req: PreferenceIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.owner_id)
	preference = _by_owner(db, req.owner_id)
	if preference is None:
		raise NotFound("Preference not found")
	preference.theme = req.theme.value
	preference.language = req.language.value
	db.commit()
	db.refresh(preference)
	return preference
