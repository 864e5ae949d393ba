import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Set
from uuid import uuid4

import bcrypt

from expenses.domain import Identity
from expenses.functional import Either, Left, Right

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """Session lifecycle. Every operation returns ``Right(None)`` or ``Left(reason)``."""

    @property
    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        pass

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Either[str, None]:
        pass

    @abstractmethod
    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Either[str, None]:
        pass

    @abstractmethod
    def sign_out(self) -> Either[str, None]:
        pass

    @abstractmethod
    def request_password_reset(self, email: str) -> Either[str, None]:
        pass


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


class InMemoryAuthProvider(AuthProvider):
    """Accounts kept in a dict; a successful sign-up also signs the user in.

    Only bcrypt hashes of the passwords are stored. ``rounds`` is the bcrypt
    cost factor.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._accounts: Dict[str, dict] = {}
        self._current: Optional[Identity] = None
        self.reset_requests: Set[str] = set()

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._current

    def sign_up(self, email, password, display_name=None):
        key = email.strip().lower()
        if key in self._accounts:
            return Left("The email address is already in use by another account.")

        identity = Identity(uid=uuid4().hex, email=email.strip(), display_name=display_name)
        self._accounts[key] = {"identity": identity, "hash": hash_password(password, self.rounds)}
        self._current = identity
        logger.info("Account created for %s", identity.email)
        return Right(None)

    def sign_in(self, email, password):
        account = self._accounts.get(email.strip().lower())
        if account is None or not verify_password(password, account["hash"]):
            logger.info("Rejected sign-in for %s", email)
            return Left("The email or password is incorrect.")

        self._current = account["identity"]
        logger.info("Signed in %s", self._current.email)
        return Right(None)

    def sign_out(self):
        if self._current is not None:
            logger.info("Signed out %s", self._current.email)
        self._current = None
        return Right(None)

    def request_password_reset(self, email):
        # succeeds whether or not the account exists
        key = (email or "").strip().lower()
        if key in self._accounts:
            self.reset_requests.add(key)
            logger.info("Password reset requested for %s", key)
        return Right(None)
