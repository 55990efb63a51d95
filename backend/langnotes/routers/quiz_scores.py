from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import quiz
from ..db import get_db
from ..guard import ROLE_USER, AuthContext, authorize_owner, require_role
from ..models import AverageIntensitySnapshot
from ..schemas import ApiModel, EntityId, PathId

router = APIRouter(prefix="/quiz-scores", tags=["quiz-scores"])


class QuizScoreIn(ApiModel):
	correct_answers: int = Field(ge=0)
	wrong_answers: int = Field(ge=0)
	# Admins may record a session for someone else; defaults to the caller
	owner_id: Optional[EntityId] = None


class QuizScoreOut(ApiModel):
	id: int
	owner_id: str
	correct_answers: int
	wrong_answers: int
	created_at: datetime


class AverageIntensityOut(ApiModel):
	owner_id: str
	average: float
	created_at: datetime


@router.post("", response_model=QuizScoreOut, status_code=201)
def add_quiz_score(req: QuizScoreIn, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	owner_id = req.owner_id or ctx.principal_id
	authorize_owner(ctx, owner_id)
	return quiz.record_session(db, owner_id, req.correct_answers, req.wrong_answers)


@router.get("/recent/{owner_id}", response_model=List[QuizScoreOut])
def recent_quiz_scores(owner_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, owner_id, allow_moderator=True)
	return quiz.get_recent_sessions(db, owner_id)


@router.get("/average-intensity/{owner_id}", response_model=List[AverageIntensityOut])
def average_intensity_history(owner_id: PathId, ctx: AuthContext = Depends(require_role(ROLE_USER)), db: Session = Depends(get_db)):
	authorize_owner(ctx, owner_id, allow_moderator=True)
	stmt = (
		select(AverageIntensitySnapshot)
		.where(AverageIntensitySnapshot.owner_id == owner_id)
		.order_by(AverageIntensitySnapshot.created_at.desc(), AverageIntensitySnapshot.id.desc())
		.limit(7)
	)
	return list(db.execute(stmt).scalars())
