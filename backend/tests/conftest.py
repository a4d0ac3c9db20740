"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside an outer transaction against an in-memory SQLite
database. Services commit into SAVEPOINTs, and the outer transaction is
rolled back afterwards, so data changes never leak between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from solips_auth.core.config import TestingConfig
from solips_auth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from solips_auth.core.extensions import get_password_hasher, get_token_provider
from solips_auth.factory import create_app  # application factory under test


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session."""
    with app.app_context():
        _db.create_all()
    yield _db
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Push a fresh application context (and so a fresh ``g``) for every test.

    Services and repositories reach ``db.session`` through it outside of
    requests; requests made by the test client reuse it.
    """
    with app.app_context() as ctx:
        yield ctx


@pytest.fixture(scope="session")
def connection(app, db):
    """Keep a dedicated connection open for the whole session.

    pysqlite defers ``BEGIN`` until the first DML statement, which breaks
    SAVEPOINT nesting; the driver's own transaction handling is switched off
    and ``BEGIN`` is emitted explicitly instead.
    """
    with app.app_context():
        engine = db.engine
    is_sqlite = engine.dialect.name == "sqlite"
    if is_sqlite:

        @event.listens_for(engine, "begin")
        def _do_begin(conn):  # pragma: no cover - driver hook
            conn.exec_driver_sql("BEGIN")

    conn = engine.connect()
    if is_sqlite:
        conn.connection.driver_connection.isolation_level = None
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection, app_context):
    """Provide a SQLAlchemy session joined to an outer transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection. ``commit()`` only
        releases a SAVEPOINT; everything is rolled back after the test.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session whose commits/rollbacks map to SAVEPOINTs
    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # 3) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture()
def token_provider(app):
    return get_token_provider(app)


@pytest.fixture()
def password_hasher(app):
    return get_password_hasher(app)


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper to the transactional session fixture.

    Pure unit tests that never request ``session`` stay database-free.
    """
    from tests.factories import SQLAlchemySession

    if "session" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
