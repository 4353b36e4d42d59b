"""
Auth Service: Credential verification and JWT creation/verification.
"""

import abc
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from admonitor.config import Settings, get_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)

# JWT config
ALGORITHM = "HS256"


class Identity(BaseModel):
    username: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


class CredentialStore(abc.ABC):
    """Source of truth for who may log in."""

    @abc.abstractmethod
    def verify(self, username: str, secret: str) -> Optional[Identity]:
        ...


class StaticCredentialStore(CredentialStore):
    """Fixed set of users with bcrypt password hashes."""

    def __init__(self, users: dict[str, str]):
        self._users = dict(users)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticCredentialStore":
        """Parse ADMIN_USERS: comma-separated ``username:bcrypt_hash`` pairs."""
        users = {}
        for entry in settings.admin_users.split(","):
            entry = entry.strip()
            if not entry:
                continue
            username, sep, password_hash = entry.partition(":")
            if not sep or not username or not password_hash:
                logger.warning("Ignoring malformed ADMIN_USERS entry")
                continue
            users[username.strip()] = password_hash.strip()
        if not users:
            logger.warning("ADMIN_USERS is empty, nobody can log in")
        return cls(users)

    def verify(self, username: str, secret: str) -> Optional[Identity]:
        password_hash = self._users.get(username)
        if not password_hash:
            return None
        try:
            if not verify_password(secret, password_hash):
                return None
        except ValueError:
            logger.error(f"Stored password hash for '{username}' is not a valid bcrypt hash")
            return None
        return Identity(username=username)


def create_access_token(identity: Identity) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identity.username,
        "exp": now + timedelta(days=settings.access_token_expire_days),
        "iat": now,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Identity]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    username = payload.get("sub")
    return Identity(username=username) if username else None
