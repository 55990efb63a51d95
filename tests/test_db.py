from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from langnotes.db import ensure_schema


def test_ensure_schema_adds_missing_note_columns():
    engine = create_engine("sqlite://", poolclass=StaticPool, future=True)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE notes (id VARCHAR(36) PRIMARY KEY, name VARCHAR(150))"))
        conn.execute(text("INSERT INTO notes (id, name) VALUES ('n1', 'gato')"))

    ensure_schema(engine)

    columns = {c["name"] for c in inspect(engine).get_columns("notes")}
    assert {"intensity", "is_public"} <= columns
    with engine.connect() as conn:
        row = conn.execute(text("SELECT intensity, is_public FROM notes WHERE id = 'n1'")).one()
    assert row.intensity == 0
    assert not row.is_public
    engine.dispose()


def test_ensure_schema_is_a_no_op_when_up_to_date():
    engine = create_engine("sqlite://", poolclass=StaticPool, future=True)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE notes (id VARCHAR(36) PRIMARY KEY, intensity INTEGER, is_public BOOLEAN)"))
    ensure_schema(engine)
    ensure_schema(engine)
    assert len(inspect(engine).get_columns("notes")) == 3
    engine.dispose()
