from datetime import datetime
from typing import Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import Conflict, NotFound
from ..guard import ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import Follow, PositiveActionOnSocialPost, Profile, SocialPost
from ..schemas import ApiModel, EntityId, PathId

router = APIRouter(prefix="/social-posts", tags=["social-posts"])


class SocialPostIn(ApiModel):
	content: str = Field(min_length=2, max_length=200)
	owner_id: EntityId
	is_generated: bool = False


class PositiveActionIn(ApiModel):
	social_post_id: EntityId
	user_id: EntityId


class PostOwner(ApiModel):
	owner_id: str
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	photo_url: Optional[str] = None
	username: Optional[str] = None


class PositiveActionBy(ApiModel):
	user_id: str
	user_first_name: Optional[str] = None
	user_last_name: Optional[str] = None
	user_username: Optional[str] = None
	user_photo_url: Optional[str] = None
	positive_action_at: datetime


class SocialPostOut(ApiModel):
	id: str
	content: str
	is_generated: bool
	created_at: datetime
	owner: PostOwner
	positive_action_count: int
	positive_actions_by: List[PositiveActionBy]


def _profiles(db: Session, user_ids: Iterable[str]) -> Dict[str, Profile]:
	ids = set(user_ids)
	if not ids:
		return {}
	return {p.owner_id: p for p in db.execute(select(Profile).where(Profile.owner_id.in_(ids))).scalars()}


def _render(db: Session, posts: List[SocialPost]) -> List[SocialPostOut]:
	# Two extra reads per page: every action on the page's posts, then every profile involved
	actions: Dict[str, List[PositiveActionOnSocialPost]] = {}
	if posts:
		stmt = (
			select(PositiveActionOnSocialPost)
			.where(PositiveActionOnSocialPost.post_id.in_([p.id for p in posts]))
			.order_by(PositiveActionOnSocialPost.positive_action_at.desc())
		)
		for action in db.execute(stmt).scalars():
			actions.setdefault(action.post_id, []).append(action)
	profiles = _profiles(
		db,
		[p.owner_id for p in posts] + [a.user_id for acted in actions.values() for a in acted],
	)

	out: List[SocialPostOut] = []
	for post in posts:
		owner = profiles.get(post.owner_id)
		by = []
		for action in actions.get(post.id, []):
			profile = profiles.get(action.user_id)
			by.append(PositiveActionBy(
				user_id=action.user_id,
				user_first_name=profile.first_name if profile else None,
				user_last_name=profile.last_name if profile else None,
				user_username=profile.username if profile else None,
				user_photo_url=profile.photo_url if profile else None,
				positive_action_at=action.positive_action_at,
			))
		out.append(SocialPostOut(
			id=post.id,
			content=post.content,
			is_generated=post.is_generated,
			created_at=post.created_at,
			owner=PostOwner(
				owner_id=post.owner_id,
				first_name=owner.first_name if owner else None,
				last_name=owner.last_name if owner else None,
				photo_url=owner.photo_url if owner else None,
				username=owner.username if owner else None,
			),
			positive_action_count=len(by),
			positive_actions_by=by,
		))
	return out


def _page(db: Session, page: int, limit: int, *criteria) -> List[SocialPostOut]:
	stmt = (
		select(SocialPost)
		.where(*criteria)
		.order_by(SocialPost.created_at.desc(), SocialPost.id)
		.offset((page - 1) * limit)
		.limit(limit)
	)
	return _render(db, list(db.execute(stmt).scalars()))


def _load_post(db: Session, post_id: str) -> SocialPost:
	post = db.get(SocialPost, post_id)
	if post is None:
		raise NotFound("Social post not found")
	return post


@router.get("", response_model=List[SocialPostOut])
def latest_posts(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=6, ge=1, le=50),
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	return _page(db, page, limit)


@router.get("/user/{user_id}", response_model=List[SocialPostOut])
def user_posts(
	user_id: PathId,
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=6, ge=1, le=50),
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	authorize_owner(ctx, user_id, allow_moderator=True)
	return _page(db, page, limit, SocialPost.owner_id == user_id)


@router.get("/following/user/{user_id}", response_model=List[SocialPostOut])
def followed_users_posts(
	user_id: PathId,
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=6, ge=1, le=50),
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	authorize_owner(ctx, user_id, allow_moderator=True)
	followed = select(Follow.following_id).where(Follow.followed_by_id == user_id)
	return _page(db, page, limit, SocialPost.owner_id.in_(followed))


@router.get("/positive-actioned/user/{user_id}", response_model=List[SocialPostOut])
def positive_actioned_posts(
	user_id: PathId,
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=6, ge=1, le=50),
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	db: Session = Depends(get_db),
):
	authorize_owner(ctx, user_id, allow_moderator=True)
	acted = select(PositiveActionOnSocialPost.post_id).where(PositiveActionOnSocialPost.user_id == user_id)
	return _page(db, page, limit, SocialPost.id.in_(acted))


@router.get("/{post_id}", response_model=SocialPostOut)
def get_post(post_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	return _render(db, [_load_post(db, post_id)])[0]


@router.post("", response_model=SocialPostOut, status_code=201)
def create_post(req: SocialPostIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.owner_id)
	post = SocialPost(owner_id=req.owner_id, content=req.content, is_generated=req.is_generated)
	db.add(post)
	db.commit()
	db.refresh(post)
	return _render(db, [post])[0]


@router.post("/add-positive-action", response_model=SocialPostOut, status_code=201)
def add_positive_action(req: PositiveActionIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.user_id)
	post = _load_post(db, req.social_post_id)
	if db.get(PositiveActionOnSocialPost, (post.id, req.user_id)) is not None:
		raise Conflict("Positive action already exists")
	db.add(PositiveActionOnSocialPost(post_id=post.id, user_id=req.user_id))
	db.commit()
	return _render(db, [post])[0]


@router.post("/remove-positive-action", response_model=SocialPostOut)
def remove_positive_action(req: PositiveActionIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, req.user_id)
	post = _load_post(db, req.social_post_id)
	action = db.get(PositiveActionOnSocialPost, (post.id, req.user_id))
	if action is None:
		raise NotFound("Positive action not found")
	db.delete(action)
	db.commit()
	return _render(db, [post])[0]
