"""
auth/store.py -- SQLAlchemy Core persistence layer for users and apps.

Pattern: Repository + Data Mapper.
SqlStore is the repository; _row_to_user / _row_to_app are the mappers.
Engine and route code never touches SQL directly.

SqlStore satisfies both capabilities the engine consumes (UserStore and
AppRegistry in auth/engine.py). Lookups raise StorageError subclasses rather
than returning None so the engine can tell "missing" from "broken".

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is enforced by a UNIQUE constraint, never by a
  check-then-insert in code. Two concurrent registrations for the same email
  race on the index; the loser gets IntegrityError, mapped here to
  DuplicateEmailError.

  App secrets live in the apps table. They are returned to the engine for
  signing and never logged.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, LargeBinary, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AppRecordNotFoundError, DuplicateEmailError, UserRecordNotFoundError
from auth.models import App, User, new_user_id

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid hex
    Column("email", String(255), nullable=False, unique=True),
    Column("pass_hash", LargeBinary, nullable=False),  # bcrypt output
    Column("is_admin", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

_apps = Table(
    "apps",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),  # caller-supplied
    Column("name", String(255), nullable=False),
    Column("secret", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SqlStore:
    """Repository for User and App entities.

    Usage:
        store = SqlStore("sqlite:///sso_auth.db")
        uid = store.save_user("a@x.com", hasher.hash("secret1"))
        user = store.user_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def save_user(self, email: str, pass_hash: bytes) -> uuid.UUID:
        """Insert a new user and return its assigned ID.

        Raises DuplicateEmailError if the email is already registered.
        """
        user_id = new_user_id()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id.hex,
                        email=email,
                        pass_hash=pass_hash,
                        is_admin=0,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateEmailError(email) from exc
        return user_id

    def user_by_email(self, email: str) -> User:
        """Look up a user by exact email (case-sensitive).

        Raises UserRecordNotFoundError if no row matches.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        if row is None:
            raise UserRecordNotFoundError("no user with that email")
        return _row_to_user(row)

    def is_admin(self, user_id: uuid.UUID) -> bool:
        """Return the admin flag for user_id. Raises UserRecordNotFoundError if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id.hex)).fetchone()
        if row is None:
            raise UserRecordNotFoundError(user_id.hex)
        return bool(row.is_admin)

    def set_admin(self, user_id: uuid.UUID, is_admin: bool = True) -> bool:
        """Grant or revoke the admin flag. Operator tooling only.

        Returns True if a row was updated, False if user_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id.hex).values(is_admin=1 if is_admin else 0)
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Apps
    # ------------------------------------------------------------------

    def app(self, app_id: int) -> App:
        """Resolve an app by ID. Raises AppRecordNotFoundError if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_apps.select().where(_apps.c.id == app_id)).fetchone()
        if row is None:
            raise AppRecordNotFoundError(str(app_id))
        return _row_to_app(row)

    def save_app(self, app: App) -> None:
        """Insert a new app. Raises sqlalchemy IntegrityError if the ID is taken."""
        with self.engine.connect() as conn:
            conn.execute(
                _apps.insert().values(
                    id=app.id,
                    name=app.name,
                    secret=app.secret,
                    created_at=_now_iso(),
                )
            )
            conn.commit()

    def list_apps(self) -> list[App]:
        """Return all apps ordered by ID."""
        with self.engine.connect() as conn:
            rows = conn.execute(_apps.select().order_by(_apps.c.id)).fetchall()
        return [_row_to_app(r) for r in rows]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=uuid.UUID(hex=row.id),
        email=row.email,
        pass_hash=bytes(row.pass_hash),
        is_admin=bool(row.is_admin),
        created_at=row.created_at,
    )


def _row_to_app(row) -> App:
    return App(
        id=row.id,
        name=row.name,
        secret=row.secret,
        created_at=row.created_at,
    )
