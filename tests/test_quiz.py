import random
from datetime import datetime, timedelta

import pytest

from langnotes import maintenance, quiz
from langnotes.errors import InsufficientPool, NotFound
from langnotes.intensity import Band
from langnotes.models import AuthSession, AverageIntensitySnapshot, Note, QuizScore, User
from langnotes.settings import settings


def test_note_counts_one_per_band(db, make_language):
    language = make_language([10, 30, 50, 70, 90])
    counts = quiz.get_note_counts(db, language.id)
    assert counts == {
        "total_count": 5,
        "is_public_count": 0,
        "low_intensity_count": 1,
        "low_medium_intensity_count": 1,
        "medium_intensity_count": 1,
        "medium_high_intensity_count": 1,
        "high_intensity_count": 1,
    }


def test_note_counts_boundaries_and_visibility(db, make_language):
    language = make_language([0, 20, 21, 40, 100])
    db.query(Note).filter(Note.intensity == 0).update({"is_public": True})
    db.commit()
    counts = quiz.get_note_counts(db, language.id)
    assert counts["low_intensity_count"] == 2
    assert counts["low_medium_intensity_count"] == 2
    assert counts["high_intensity_count"] == 1
    assert counts["is_public_count"] == 1


def test_quiz_batch_filters_by_band(db, make_language):
    language = make_language([5, 10, 15, 90, 95])
    questions = quiz.get_quiz_batch(db, language.id, Band.LOW, 10, random.Random(2))
    low_ids = {n.id for n in db.query(Note).filter(Note.intensity <= 20)}
    assert len(questions) == 3
    assert {q.note_id for q in questions} == low_ids


def test_quiz_batch_is_capped_at_pool_size(db, make_language):
    language = make_language([0, 0, 0, 0])
    questions = quiz.get_quiz_batch(db, language.id, None, 10, random.Random(2))
    assert len(questions) == 4


def test_quiz_batch_with_too_few_notes(db, make_language):
    language = make_language([5, 10, 90])
    with pytest.raises(InsufficientPool):
        quiz.get_quiz_batch(db, language.id, Band.HIGH, 10, random.Random(2))
    empty = make_language([])
    with pytest.raises(InsufficientPool):
        quiz.get_quiz_batch(db, empty.id, None, 10, random.Random(2))


def test_submit_correct_answer_increments(db, make_language):
    language = make_language([41], translations=["gato"])
    note = db.query(Note).filter(Note.language_id == language.id).one()
    result = quiz.submit_answer(db, note.id, "gato")
    assert result == {"answer": "gato", "is_correct": True}
    db.refresh(note)
    assert note.intensity == 42


def test_submit_wrong_answer_reveals_answer_and_decrements(db, make_language):
    language = make_language([41], translations=["gato"])
    note = db.query(Note).filter(Note.language_id == language.id).one()
    result = quiz.submit_answer(db, note.id, "Gato")
    assert result == {"answer": "gato", "is_correct": False}
    db.refresh(note)
    assert note.intensity == 40


def test_submit_answer_to_missing_note(db):
    with pytest.raises(NotFound):
        quiz.submit_answer(db, "nope", "x")


def test_recent_sessions_returns_seven_newest_first(db):
    owner = User(email="scores@example.com", password_hash="x")
    db.add(owner)
    db.commit()
    for i in range(9):
        quiz.record_session(db, owner.id, i, 9 - i)
    recent = quiz.get_recent_sessions(db, owner.id)
    assert len(recent) == 7
    assert [r.correct_answers for r in recent] == [8, 7, 6, 5, 4, 3, 2]


def test_recent_sessions_only_for_owner(db):
    a = User(email="a@example.com", password_hash="x")
    b = User(email="b@example.com", password_hash="x")
    db.add_all([a, b])
    db.commit()
    quiz.record_session(db, a.id, 1, 1)
    assert quiz.get_recent_sessions(db, b.id) == []
    assert db.query(QuizScore).count() == 1


def test_snapshot_average_intensity(db, make_language):
    language = make_language([10, 30])
    make_language([50], owner_id=language.owner_id)
    make_language([100])
    assert maintenance.snapshot_average_intensity(db) == 2
    snap = db.query(AverageIntensitySnapshot).filter_by(owner_id=language.owner_id).one()
    assert snap.average == pytest.approx(30.0)


def test_purge_idle_sessions(db):
    user = User(email="idle@example.com", password_hash="x")
    db.add(user)
    db.commit()
    old = datetime.utcnow() - timedelta(days=30)
    db.add(AuthSession(session_id="old", user_id=user.id, last_activity_at=old))
    db.add(AuthSession(session_id="fresh", user_id=user.id))
    db.commit()
    assert maintenance.purge_idle_sessions(db) == 1
    assert [s.session_id for s in db.query(AuthSession)] == ["fresh"]


def test_purge_keeps_sessions_when_tokens_never_expire(db, monkeypatch):
    monkeypatch.setattr(settings, "access_token_expire_minutes", 0)
    user = User(email="forever@example.com", password_hash="x")
    db.add(user)
    db.commit()
    db.add(AuthSession(session_id="week-old", user_id=user.id, last_activity_at=datetime.utcnow() - timedelta(days=7)))
    db.add(AuthSession(session_id="ancient", user_id=user.id, last_activity_at=datetime.utcnow() - timedelta(days=31)))
    db.commit()
    assert maintenance.purge_idle_sessions(db) == 1
    assert [s.session_id for s in db.query(AuthSession)] == ["week-old"]
