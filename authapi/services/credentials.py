# =============================================================================================
# AUTHAPI/SERVICES/CREDENTIALS.PY - CREDENTIAL STORE (SQLALCHEMY)
# =============================================================================================
# The only shared mutable resource of the auth core. Each method opens its own short
# transaction, so the service never holds a session across a bcrypt call.
#
# CONTRACT:
# - find_user_by_email / find_user_by_id → User or None
# - create_user → User with its generated id (available immediately, sign once after insert)
# - update_user → field-level UPDATE of only the given columns
#
# Field-level updates matter: a profile write (name) must never clobber a concurrent
# refresh-token rotation, and vice versa.
# =============================================================================================

from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from authapi.models.user import User

UPDATABLE_FIELDS = frozenset({"name", "password_hash", "refresh_token"})


class CredentialStore:
    """Persistence collaborator of AuthService. Returned User objects are detached snapshots."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def find_user_by_email(self, email: str) -> User | None:
        with self._session_factory() as db:
            return db.scalars(select(User).where(User.email == email)).first()

    def find_user_by_id(self, user_id: str) -> User | None:
        with self._session_factory() as db:
            return db.get(User, user_id)

    def create_user(self, email: str, name: str | None, password_hash: str) -> User:
        """
        Insert a new user and return it with id and timestamps populated.

        Raises:
            sqlalchemy.exc.IntegrityError: email already taken (unique constraint)
        """
        user = User(email=email, name=name, password_hash=password_hash)
        with self._session_factory.begin() as db:
            db.add(user)
            db.flush()  # Assigns defaults (id, created_at) before commit
        return user

    def update_user(self, user_id: str, **fields) -> bool:
        """
        UPDATE users SET <fields> WHERE id = :user_id

        Returns True when a row matched. ``refresh_token=None`` clears the session slot.

        Raises:
            ValueError: unknown or empty field set
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown or not fields:
            raise ValueError(f"Cannot update user fields: {sorted(unknown) or 'none given'}")

        with self._session_factory.begin() as db:
            result = db.execute(
                update(User).where(User.id == user_id).values(**fields)
            )
            return result.rowcount > 0
