from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import Conflict, NotFound
from ..guard import ROLE_ADMIN, ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import Role, User, UserRole
from ..schemas import ApiModel, EntityId, PathId

router = APIRouter(prefix="/roles", tags=["roles"])


class RoleIn(ApiModel):
	name: str = Field(min_length=3, max_length=64)
	description: Optional[str] = None


class RoleOut(ApiModel):
	id: str
	name: str
	description: Optional[str]
	created_at: datetime


class RoleAssignment(ApiModel):
	user_id: EntityId
	role_id: EntityId


def _get_role(db: Session, role_id: str) -> Role:
	role = db.get(Role, role_id)
	if role is None:
		raise NotFound("Role not found")
	return role


@router.post("", response_model=RoleOut, status_code=201)
def create_role(req: RoleIn, ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	name = req.name.upper()
	if db.execute(select(Role).where(Role.name == name)).scalar_one_or_none():
		raise Conflict("Role already exists")
	role = Role(name=name, description=req.description)
	db.add(role)
	db.commit()
	db.refresh(role)
	return role


@router.get("", response_model=List[RoleOut])
def list_roles(ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	return list(db.execute(select(Role).order_by(Role.name)).scalars())


@router.get("/user/{user_id}", response_model=List[RoleOut])
def list_user_roles(user_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, user_id, allow_moderator=True)
	stmt = select(Role).join(UserRole, UserRole.role_id == Role.id).where(UserRole.user_id == user_id).order_by(Role.name)
	return list(db.execute(stmt).scalars())


@router.get("/{role_id}", response_model=RoleOut)
def get_role(role_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	return _get_role(db, role_id)


@router.delete("/{role_id}", status_code=204)
def delete_role(role_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	role = _get_role(db, role_id)
	in_use = db.execute(select(func.count()).select_from(UserRole).where(UserRole.role_id == role.id)).scalar_one()
	if in_use:
		raise Conflict("Role is in use")
	db.delete(role)
	db.commit()


@router.post("/assign", status_code=204)
def assign_role(req: RoleAssignment, ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	if db.get(User, req.user_id) is None:
		raise NotFound("User not found")
	_get_role(db, req.role_id)
	if db.get(UserRole, (req.user_id, req.role_id)) is not None:
		raise Conflict("Role already assigned")
	db.add(UserRole(user_id=req.user_id, role_id=req.role_id))
	db.commit()


@router.post("/unassign", status_code=204)
def unassign_role(req: RoleAssignment, ctx: AuthContext = Depends(require_role(ROLE_ADMIN)), db: Session = Depends(get_db)):
	row = db.get(UserRole, (req.user_id, req.role_id))
	if row is None:
		raise NotFound("Role assignment not found")
	db.delete(row)
	db.commit()


def ensure_known_roles(db: Session, names) -> None:
	existing = set(db.execute(select(Role.name)).scalars())
	missing = [name for name in names if name not in existing]
	for name in missing:
		db.add(Role(name=name, description=f"built-in {name.lower()} role"))
	if missing:
		db.commit()
