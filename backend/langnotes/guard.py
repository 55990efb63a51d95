"""Request authentication and ownership checks.

A bearer token resolves to an immutable ``AuthContext``; endpoints declare the
role they need with ``require_role`` and compare the context against the
resource owner with ``authorize_owner`` before reading or mutating anything.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, FrozenSet, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import get_db
from .errors import Forbidden, Unauthorized
from .models import AuthSession, Role, UserRole
from .settings import settings

logger = logging.getLogger(__name__)

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
ROLE_MODERATOR = "MODERATOR"
KNOWN_ROLES = (ROLE_USER, ROLE_ADMIN, ROLE_MODERATOR)

# auto_error is off so a missing header goes through the Unauthorized handler
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


@dataclass(frozen=True)
class AuthContext:
	principal_id: str
	roles: FrozenSet[str] = frozenset()

	def has_role(self, role: str) -> bool:
		return role in self.roles

	@property
	def is_admin(self) -> bool:
		return ROLE_ADMIN in self.roles

	@property
	def is_moderator(self) -> bool:
		return ROLE_MODERATOR in self.roles


def token_lifetime() -> timedelta:
	"""How long an issued token (and its idle session) stays valid; 0 or less means 30 days."""
	minutes = settings.access_token_expire_minutes
	return timedelta(minutes=minutes) if minutes > 0 else timedelta(days=30)


def decode_token(token: str) -> tuple[str, str]:
	"""Return ``(user_id, session_id)`` from a signed token or raise Unauthorized."""
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError as exc:
		logger.debug("rejected token: %s", exc)
		raise Unauthorized("Invalid token") from exc
	user_id: str | None = payload.get("sub")
	jti: str | None = payload.get("jti")
	if user_id is None or jti is None:
		raise Unauthorized("Invalid token")
	return user_id, jti


def load_roles(db: Session, user_id: str) -> FrozenSet[str]:
	rows = db.execute(
		select(Role.name).join(UserRole, UserRole.role_id == Role.id).where(UserRole.user_id == user_id)
	).scalars()
	return frozenset(rows)


def get_auth_context(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> AuthContext:
	if not token:
		raise Unauthorized()
	user_id, jti = decode_token(token)
	# The session row must still exist so revoked tokens stop working
	row = db.get(AuthSession, jti)
	if row is None or row.user_id != user_id:
		raise Unauthorized("Session expired or revoked")
	row.last_activity_at = datetime.utcnow()
	db.commit()
	return AuthContext(principal_id=user_id, roles=load_roles(db, user_id))


def require_role(role: str) -> Callable[..., AuthContext]:
	def dependency(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
		if not ctx.has_role(role):
			logger.info("principal %s lacks role %s", ctx.principal_id, role)
			raise Forbidden()
		return ctx

	return dependency


def authorize_owner(ctx: AuthContext, owner_id: str, *, allow_moderator: bool = False) -> None:
	if ctx.is_admin or ctx.principal_id == owner_id:
		return
	if allow_moderator and ctx.is_moderator:
		return
	raise Forbidden()
