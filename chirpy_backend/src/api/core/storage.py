import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from src.api.core.auth import hash_password, verify_password
from src.api.core.errors import (
    ConfigurationError,
    EmailTakenError,
    InternalStoreError,
    InvalidUserIDError,
    NotFoundError,
    TokenRevokedError,
    UnregisteredEmailError,
    WrongPasswordError,
)
from src.api.models import Chirp, Document, User, UserView

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _next_id(ids) -> int:
    return max(ids, default=0) + 1


class JsonChirpStore:
    """Chirps, users and revoked tokens kept in a single JSON document.

    Every call re-reads the whole file; every mutation rewrites it. Reads share
    the lock, writes hold it exclusively for the full read-modify-write cycle.
    Nothing protects the file against other processes.
    """

    def __init__(
        self,
        file_path: str,
        atomic_writes: bool = False,
        enforce_unique_email_on_update: bool = False,
    ):
        self._file_path = file_path
        self._lock = ReadWriteLock()
        self._atomic_writes = atomic_writes
        self._enforce_unique_email_on_update = enforce_unique_email_on_update
        self._ensure_file()

    def _ensure_file(self) -> None:
        if os.path.isdir(self._file_path):
            raise ConfigurationError(f"Store path is a directory: {self._file_path}")
        if os.path.exists(self._file_path):
            return
        parent = os.path.dirname(self._file_path)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as e:
                raise ConfigurationError(f"Cannot create store directory {parent}: {e}") from e
        self._save(Document())
        logger.info(f"Created new store: {self._file_path}")

    # -- raw document access, caller must hold the lock --------------------

    def _load(self) -> Document:
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                return Document.model_validate_json(f.read())
        except OSError as e:
            raise InternalStoreError(f"Failed to read {self._file_path}: {e}") from e
        except ValidationError as e:
            raise InternalStoreError(f"Malformed store document {self._file_path}: {e}") from e
        except UnicodeDecodeError as e:
            raise InternalStoreError(f"Store document {self._file_path} is not UTF-8: {e}") from e

    def _save(self, document: Document) -> None:
        try:
            payload = document.model_dump_json(indent=2)
        except PydanticSerializationError as e:
            raise InternalStoreError(f"Cannot encode store document: {e}") from e

        target = self._file_path + ".tmp" if self._atomic_writes else self._file_path
        try:
            with open(target, "w", encoding="utf-8") as f:
                f.write(payload)
            if self._atomic_writes:
                os.replace(target, self._file_path)
        except OSError as e:
            if self._atomic_writes and os.path.exists(target):
                os.remove(target)
            raise InternalStoreError(f"Failed to write {self._file_path}: {e}") from e

    def _read(self) -> Document:
        with self._lock.read_locked():
            return self._load()

    # -- chirps -------------------------------------------------------------

    # PUBLIC_INTERFACE
    def list_chirps(self) -> list[Chirp]:
        """Return all chirps sorted ascending by id."""
        document = self._read()
        return [document.chirps[k] for k in sorted(document.chirps)]

    # PUBLIC_INTERFACE
    def get_chirp(self, chirp_id: int) -> Chirp:
        """Return a chirp by id or raise NotFoundError."""
        chirp = self._read().chirps.get(chirp_id)
        if chirp is None:
            raise NotFoundError(f"Chirp {chirp_id} not found")
        return chirp

    # PUBLIC_INTERFACE
    def create_chirp(self, author_id: int, body: str) -> Chirp:
        """Store a new chirp under the next free id and return it."""
        with self._lock.write_locked():
            document = self._load()
            chirp = Chirp(id=_next_id(document.chirps), author_id=author_id, body=body)
            document.chirps[chirp.id] = chirp
            self._save(document)
        logger.debug(f"Chirp created: {chirp.id} by user {author_id}")
        return chirp

    # PUBLIC_INTERFACE
    def delete_chirp(self, chirp_id: int) -> None:
        """Remove a chirp or raise NotFoundError, leaving the file unchanged."""
        with self._lock.write_locked():
            document = self._load()
            if chirp_id not in document.chirps:
                raise NotFoundError(f"Chirp {chirp_id} not found")
            del document.chirps[chirp_id]
            self._save(document)
        logger.debug(f"Chirp deleted: {chirp_id}")

    # -- users --------------------------------------------------------------

    # PUBLIC_INTERFACE
    def list_users(self) -> list[UserView]:
        """Return all users sorted ascending by id, without password hashes."""
        document = self._read()
        return [document.users[k].to_view() for k in sorted(document.users)]

    # PUBLIC_INTERFACE
    def get_user(self, user_id: int) -> UserView:
        """Return a user by id or raise InvalidUserIDError."""
        user = self._read().users.get(user_id)
        if user is None:
            raise InvalidUserIDError(f"User {user_id} not found")
        return user.to_view()

    # PUBLIC_INTERFACE
    def create_user(self, email: str, password: str) -> UserView:
        """Register a user; the email must not be taken yet."""
        # Hashing happens before the lock so a failure leaves the document untouched.
        hashed = self._hash(password)
        with self._lock.write_locked():
            document = self._load()
            if any(u.email == email for u in document.users.values()):
                raise EmailTakenError(f"Email already registered: {email}")
            user = User(id=_next_id(document.users), email=email, hashed_password=hashed)
            document.users[user.id] = user
            self._save(document)
        logger.debug(f"User created: {user.id}")
        return user.to_view()

    # PUBLIC_INTERFACE
    def update_user(self, user_id: int, new_email: str, new_password: str) -> UserView:
        """Replace a user's email and password.

        The email is only checked against other users when the store was built
        with ``enforce_unique_email_on_update``.
        """
        # Hashing precedes the id check, so a hashing failure wins over InvalidUserIDError.
        hashed = self._hash(new_password)
        with self._lock.write_locked():
            document = self._load()
            if user_id not in document.users:
                raise InvalidUserIDError(f"User {user_id} not found")
            if self._enforce_unique_email_on_update and any(
                u.email == new_email and u.id != user_id for u in document.users.values()
            ):
                raise EmailTakenError(f"Email already registered: {new_email}")
            user = User(id=user_id, email=new_email, hashed_password=hashed)
            document.users[user_id] = user
            self._save(document)
        logger.debug(f"User updated: {user_id}")
        return user.to_view()

    # PUBLIC_INTERFACE
    def validate_credentials(self, email: str, password: str) -> UserView:
        """Return the user owning ``email`` if ``password`` matches its hash."""
        document = self._read()
        for user in document.users.values():
            if user.email != email:
                continue
            try:
                matches = verify_password(password, user.hashed_password)
            except (ValueError, TypeError) as e:
                raise InternalStoreError(f"Unreadable password hash for user {user.id}") from e
            if not matches:
                raise WrongPasswordError("Password does not match")
            return user.to_view()
        raise UnregisteredEmailError(f"Email is not registered: {email}")

    @staticmethod
    def _hash(password: str) -> str:
        try:
            return hash_password(password)
        except (ValueError, TypeError, MemoryError) as e:
            raise InternalStoreError(f"Password hashing failed: {e}") from e

    # -- revoked tokens -----------------------------------------------------

    # PUBLIC_INTERFACE
    def check_token_revoked(self, token: str) -> None:
        """Raise TokenRevokedError if the token was revoked."""
        if token in self._read().revoked_tokens:
            raise TokenRevokedError("Token is revoked")

    # PUBLIC_INTERFACE
    def add_token_revocation(self, token: str) -> None:
        """Mark a token revoked now; revoking again refreshes the timestamp."""
        with self._lock.write_locked():
            document = self._load()
            document.revoked_tokens[token] = datetime.now(timezone.utc)
            self._save(document)
        logger.debug("Token revoked")
