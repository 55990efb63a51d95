from datetime import datetime, timedelta, timezone
from typing import List, Optional
import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from jose import jwt
from passlib.context import CryptContext
from pydantic import EmailStr, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..settings import settings
from ..db import get_db
from ..errors import Conflict, NotFound, Unauthorized
from ..guard import ROLE_USER, AuthContext, decode_token, get_auth_context, oauth2_scheme, token_lifetime
from ..models import AuthSession, Role, User, UserRole
from ..schemas import ApiModel

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Token(ApiModel):
	access_token: str
	token_type: str = "bearer"
	user_id: str


class Credentials(ApiModel):
	email: EmailStr
	password: str = Field(min_length=6, max_length=30)


class Me(ApiModel):
	user_id: str
	roles: List[str]


def hash_password(password: str) -> str:
	return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
	user = db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
	if user and verify_password(password, user.password_hash):
		return user
	return None


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta if expires_delta is not None else token_lifetime()
	return datetime.now(timezone.utc) + delta


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_token(db: Session, user: User) -> Token:
	# Each token gets its own server-side session so it can be revoked
	session_id = uuid.uuid4().hex
	db.add(AuthSession(session_id=session_id, user_id=user.id))
	db.commit()
	access_token = create_access_token({"sub": user.id, "jti": session_id})
	return Token(access_token=access_token, user_id=user.id)


@router.post("/signup", response_model=Token, status_code=201)
def signup(req: Credentials, db: Session = Depends(get_db)):
	email = req.email.lower()
	existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
	if existing:
		raise Conflict("User already exists")
	role = db.execute(select(Role).where(Role.name == ROLE_USER)).scalar_one_or_none()
	if role is None:
		raise NotFound("Role not found")
	user = User(email=email, password_hash=hash_password(req.password))
	db.add(user)
	db.flush()
	db.add(UserRole(user_id=user.id, role_id=role.id))
	db.commit()
	logger.info("signed up user %s", user.id)
	return issue_token(db, user)


@router.post("/login", response_model=Token)
def login(req: Credentials, db: Session = Depends(get_db)):
	user = authenticate_user(db, req.email, req.password)
	if not user:
		raise Unauthorized("Invalid credentials")
	return issue_token(db, user)


@router.post("/token")
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	# OAuth2 password flow for the interactive docs; username carries the email
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise Unauthorized("Invalid credentials")
	issued = issue_token(db, user)
	return {"access_token": issued.access_token, "token_type": issued.token_type}


@router.get("/me", response_model=Me)
def me(ctx: AuthContext = Depends(get_auth_context)):
	return Me(user_id=ctx.principal_id, roles=sorted(ctx.roles))


@router.post("/logout", status_code=204)
def logout(
	ctx: AuthContext = Depends(get_auth_context),
	token: Optional[str] = Depends(oauth2_scheme),
	db: Session = Depends(get_db),
):
	_, jti = decode_token(token)
	row = db.get(AuthSession, jti)
	if row is not None:
		db.delete(row)
		db.commit()
