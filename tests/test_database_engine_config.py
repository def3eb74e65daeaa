import os


def test_get_engine_kwargs_sqlite_has_check_same_thread(monkeypatch):
    # Import lazily so monkeypatch can affect env usage deterministically.
    from taskboard.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./taskboard.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_has_conservative_pooling(monkeypatch):
    from taskboard.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "7")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "3")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "15")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 7
    assert kwargs["max_overflow"] == 3
    assert kwargs["pool_timeout"] == 15


def test_debug_enables_echo(monkeypatch):
    from taskboard.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite://")["echo"] is True
    monkeypatch.setenv("DEBUG", "False")
    assert db.get_engine_kwargs("sqlite://")["echo"] is False


def test_sqlite_pragmas_listener_is_guarded():
    from taskboard.database import database as db

    assert db._is_sqlite_url("sqlite:///./taskboard.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_init_db_creates_schema_on_file_database(tmp_path):
    """init_db should create every table on a fresh SQLite file."""
    from sqlalchemy import inspect
    from taskboard.database import database as db

    url = f"sqlite:///{tmp_path / 'fresh.db'}"
    engine = db.build_engine(url)
    try:
        db.init_db(bind=engine)
        # A second call is a no-op on an existing schema.
        db.init_db(bind=engine)

        tables = set(inspect(engine).get_table_names())
        assert {"users", "tasks", "user_pending_tasks"} <= tables
        assert os.path.exists(tmp_path / "fresh.db")
    finally:
        engine.dispose()
