from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from ..db import get_db
from ..errors import Conflict, NotFound
from ..guard import ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import Follow, Profile, User
from ..schemas import ApiModel, EntityId, PathId

router = APIRouter(prefix="/users", tags=["users"])


class FollowIn(ApiModel):
	followed_by_id: EntityId
	following_id: EntityId


class FollowState(ApiModel):
	followed: bool


class FollowedUser(ApiModel):
	id: str
	username: Optional[str] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	photo_url: Optional[str] = None
	follower_count: int
	followed_at: datetime


def _follow_row(db: Session, req: FollowIn) -> Optional[Follow]:
	return db.get(Follow, (req.followed_by_id, req.following_id))


def _list_related(db: Session, user_id: str, *, followers: bool) -> List[FollowedUser]:
	# followers: who follows user_id; otherwise: whom user_id follows
	other = Follow.followed_by_id if followers else Follow.following_id
	mine = Follow.following_id if followers else Follow.followed_by_id
	counted = aliased(Follow)
	follower_count = (
		select(func.count())
		.select_from(counted)
		.where(counted.following_id == other)
		.correlate(Follow)
		.scalar_subquery()
	)
	stmt = (
		select(other, Follow.followed_at, Profile, follower_count)
		.outerjoin(Profile, Profile.owner_id == other)
		.where(mine == user_id)
		.order_by(Follow.followed_at.desc())
	)
	out: List[FollowedUser] = []
	for other_id, followed_at, profile, count in db.execute(stmt).all():
		out.append(FollowedUser(
			id=other_id,
			username=profile.username if profile else None,
			first_name=profile.first_name if profile else None,
			last_name=profile.last_name if profile else None,
			photo_url=profile.photo_url if profile else None,
			follower_count=count,
			followed_at=followed_at,
		))
	return out


@router.post("/add-follow", response_model=FollowState, status_code=201)
def add_follow(req: FollowIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	if req.followed_by_id == req.following_id:
		raise Conflict("User cannot follow itself")
	authorize_owner(ctx, req.followed_by_id)
	if db.get(User, req.following_id) is None:
		raise NotFound("User not found")
	if _follow_row(db, req) is not None:
		raise Conflict("Follow already exists")
	db.add(Follow(followed_by_id=req.followed_by_id, following_id=req.following_id))
	db.commit()
	return FollowState(followed=True)


@router.post("/remove-follow", response_model=FollowState)
def remove_follow(req: FollowIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.followed_by_id)
	row = _follow_row(db, req)
	if row is None:
		raise NotFound("Follow not found")
	db.delete(row)
	db.commit()
	return FollowState(followed=False)


@router.post("/is-followed", response_model=FollowState)
def is_followed(req: FollowIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.followed_by_id, allow_moderator=True)
	return FollowState(followed=_follow_row(db, req) is not None)


@router.get("/followers/user/{user_id}", response_model=List[FollowedUser])
def followers(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id, allow_moderator=True)
	return _list_related(db, user_id, followers=True)


@router.get("/followed-users/user/{user_id}", response_model=List[FollowedUser])
def followed_users(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id, allow_moderator=True)
	return _list_related(db, user_id, followers=False)
