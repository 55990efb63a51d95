from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import (
	Boolean,
	CheckConstraint,
	Column,
	DateTime,
	Float,
	ForeignKey,
	Integer,
	String,
	Text,
)
from sqlalchemy.orm import relationship
from .db import Base


def _uuid() -> str:
	return str(uuid.uuid4())


class User(Base):
	__tablename__ = "users"
	id = Column(String(36), primary_key=True, default=_uuid)
	email = Column(String(256), unique=True, index=True, nullable=False)
	password_hash = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")
	profile = relationship("Profile", back_populates="owner", uselist=False, cascade="all, delete-orphan")
	preference = relationship("Preference", back_populates="owner", uselist=False, cascade="all, delete-orphan")
	languages = relationship("Language", back_populates="owner", cascade="all, delete-orphan")


class Role(Base):
	__tablename__ = "roles"
	id = Column(String(36), primary_key=True, default=_uuid)
	name = Column(String(64), unique=True, index=True, nullable=False)
	description = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	users = relationship("UserRole", back_populates="role")


class UserRole(Base):
	__tablename__ = "user_roles"
	user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
	role_id = Column(String(36), ForeignKey("roles.id"), primary_key=True)
	assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	user = relationship("User", back_populates="roles")
	role = relationship("Role", back_populates="users")


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# Primary key is the token's jti; deleting the row revokes the token
	session_id = Column(String(64), primary_key=True)
	user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Profile(Base):
	__tablename__ = "profiles"
	id = Column(String(36), primary_key=True, default=_uuid)
	owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
	username = Column(String(30), unique=True, index=True, nullable=False)
	first_name = Column(String(30), nullable=False)
	last_name = Column(String(30), nullable=True)
	bio = Column(String(150), nullable=True)
	photo_url = Column(String(512), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	owner = relationship("User", back_populates="profile")


class Preference(Base):
	__tablename__ = "preferences"
	id = Column(String(36), primary_key=True, default=_uuid)
	owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
	theme = Column(String(16), nullable=False)
	language = Column(String(8), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	owner = relationship("User", back_populates="preference")


class Follow(Base):
	__tablename__ = "follows"
	followed_by_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
	following_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
	followed_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Language(Base):
	__tablename__ = "languages"
	id = Column(String(36), primary_key=True, default=_uuid)
	owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
	name = Column(String(25), nullable=False)
	description = Column(String(200), nullable=True)
	shadow_language = Column(String(64), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	owner = relationship("User", back_populates="languages")
	notes = relationship("Note", back_populates="language", cascade="all, delete-orphan")


class Note(Base):
	__tablename__ = "notes"
	__table_args__ = (
		CheckConstraint("intensity >= 0 AND intensity <= 100", name="ck_notes_intensity_range"),
	)
	id = Column(String(36), primary_key=True, default=_uuid)
	# Set once at creation; notes never move between languages
	language_id = Column(String(36), ForeignKey("languages.id", ondelete="CASCADE"), index=True, nullable=False)
	name = Column(String(150), nullable=False)
	translation = Column(String(150), nullable=False)
	intensity = Column(Integer, default=0, nullable=False)
	is_public = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	language = relationship("Language", back_populates="notes")
	properties = relationship("NoteProperty", back_populates="note", cascade="all, delete-orphan")


class NoteProperty(Base):
	__tablename__ = "note_properties"
	id = Column(String(36), primary_key=True, default=_uuid)
	note_id = Column(String(36), ForeignKey("notes.id", ondelete="CASCADE"), index=True, nullable=False)
	name = Column(String(64), nullable=False)
	value = Column(Text, nullable=False)
	description = Column(Text, nullable=True)

	note = relationship("Note", back_populates="properties")


class QuizScore(Base):
	__tablename__ = "quiz_scores"
	# Append-only; integer key keeps insertion order stable for equal timestamps
	id = Column(Integer, primary_key=True, autoincrement=True)
	owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
	correct_answers = Column(Integer, nullable=False)
	wrong_answers = Column(Integer, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AverageIntensitySnapshot(Base):
	__tablename__ = "average_intensity_snapshots"
	id = Column(Integer, primary_key=True, autoincrement=True)
	owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
	average = Column(Float, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SocialPost(Base):
	__tablename__ = "social_posts"
	id = Column(String(36), primary_key=True, default=_uuid)
	owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
	content = Column(String(200), nullable=False)
	is_generated = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	positive_actions = relationship("PositiveActionOnSocialPost", back_populates="post", cascade="all, delete-orphan")


class PositiveActionOnSocialPost(Base):
	__tablename__ = "positive_actions_on_social_posts"
	post_id = Column(String(36), ForeignKey("social_posts.id", ondelete="CASCADE"), primary_key=True)
	user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
	positive_action_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	post = relationship("SocialPost", back_populates="positive_actions")
