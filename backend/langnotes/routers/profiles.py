from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import AnyHttpUrl, Field, field_validator
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import Conflict, NotFound
from ..guard import ROLE_ADMIN, ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import Profile
from ..schemas import ApiModel, EntityId, PathId

router = APIRouter(prefix="/profiles", tags=["profiles"])


class ProfileIn(ApiModel):
	first_name: str = Field(min_length=2, max_length=30)
	last_name: Optional[str] = Field(default=None, min_length=2, max_length=30)
	bio: Optional[str] = Field(default=None, max_length=150)
	photo_url: Optional[AnyHttpUrl] = None
	username: str = Field(min_length=2, max_length=30)
	owner_id: EntityId

	@field_validator("username")
	@classmethod
	def lower_username(cls, v: str) -> str:
		return v.lower()


class ProfileOut(ApiModel):
	id: str
	owner_id: str
	username: str
	first_name: str
	last_name: Optional[str]
	bio: Optional[str]
	photo_url: Optional[str]
	created_at: datetime
	updated_at: datetime


def _username_taken(db: Session, username: str, exclude_owner: Optional[str] = None) -> bool:
	stmt = select(Profile.id).where(Profile.username == username)
	if exclude_owner is not None:
		stmt = stmt.where(Profile.owner_id != exclude_owner)
	return db.execute(stmt).first() is not None


def _apply(profile: Profile, req: ProfileIn) -> None:
	profile.username = req.username
	profile.first_name = req.first_name
	profile.last_name = req.last_name
	profile.bio = req.bio
	profile.photo_url = str(req.photo_url) if req.photo_url else None


@router.get("", response_model=List[ProfileOut])
def list_profiles(ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	return list(db.execute(select(Profile).order_by(Profile.created_at)).scalars())


@router.get("/user/{user_id}", response_model=ProfileOut)
def get_user_profile(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id, allow_moderator=True)
	profile = db.execute(select(Profile).where(Profile.owner_id == user_id)).scalar_one_or_none()
	if profile is None:
		raise NotFound("Profile not found")
	return profile


@router.get("/{profile_id}", response_model=ProfileOut)
def get_profile(profile_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	profile = db.get(Profile, profile_id)
	if profile is None:
		raise NotFound("Profile not found")
	authorize_owner(ctx, profile.owner_id, allow_moderator=True)
	return profile


@router.post("", response_model=ProfileOut, status_code=201)
def create_profile(req: ProfileIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.owner_id)
	if db.execute(select(Profile.id).where(Profile.owner_id == req.owner_id)).first():
		raise Conflict("Profile already exists")
	if _username_taken(db, req.username):
		raise Conflict("Username already exists")
	profile = Profile(owner_id=req.owner_id)
	_apply(profile, req)
	db.add(profile)
	db.commit()
	db.refresh(profile)
	return profile


@router.put("", response_model=ProfileOut)
def update_profile(req: ProfileIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.owner_id)
	profile = db.execute(select(Profile).where(Profile.owner_id == req.owner_id)).scalar_one_or_none()
	if profile is None:
		raise NotFound("Profile not found")
	if _username_taken(db, req.username, exclude_owner=req.owner_id):
		raise Conflict("Username already exists")
	_apply(profile, req)
	db.commit()
	db.refresh(profile)
	return profile
