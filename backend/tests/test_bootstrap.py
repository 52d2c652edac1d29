from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from registrar.db import bootstrap


def test_adds_missing_section_version_column():
    engine = create_engine("sqlite+pysqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE sections (id VARCHAR(36) PRIMARY KEY, name VARCHAR(100), adviser_id VARCHAR(36))"))
        connection.execute(text("INSERT INTO sections (id, name) VALUES ('s1', 'Rizal')"))

    bootstrap.ensure_runtime_schema_compatibility(engine)

    columns = {item["name"] for item in inspect(engine).get_columns("sections")}
    assert "version" in columns
    with engine.connect() as connection:
        assert connection.execute(text("SELECT version FROM sections WHERE id = 's1'")).scalar_one() == 1


def test_reports_missing_schema(engine):
    assert bootstrap.missing_schema_parts(engine) == []

    bare = create_engine("sqlite+pysqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    missing = bootstrap.missing_schema_parts(bare)
    assert "quarter_packages" in missing
    assert "record_approvals" in missing
