"""
Local identity store.

Accounts live in one JSON file keyed by lower-cased email. Passwords are
stored as salted PBKDF2 hashes; the role chosen at sign-up is kept with the
account and returned on every sign-in.
"""
import os
import json
import uuid
import hmac
import hashlib
import logging
import secrets
from typing import Dict, Any, Optional

from ...config import PBKDF2_ITERATIONS
from ...errors import AuthError
from ...interview.models import User, UserRole

logger = logging.getLogger("identity")

MIN_PASSWORD_LENGTH = 6


class LocalIdentityStore:
    """Sign-up, sign-in, sign-out and current-user lookup backed by a JSON file."""

    def __init__(self, path: str, iterations: int = PBKDF2_ITERATIONS):
        self.path = path
        self.iterations = iterations
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {"users": {}, "current_user": None}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise AuthError(f"Account store is unreadable: {e}") from e
        data.setdefault("users", {})
        data.setdefault("current_user", None)
        return data

    def _save(self) -> None:
        tmp_path = self.path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def _hash(self, password: str, salt: str) -> str:
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), self.iterations)
        return digest.hex()

    @staticmethod
    def _to_user(record: Dict[str, Any]) -> User:
        return User(
            id=record["id"],
            email=record["email"],
            role=UserRole(record.get("role") or UserRole.INTERVIEWEE.value),
            name=record.get("name"),
            phone=record.get("phone"),
        )

    def sign_up(self, email: str, password: str, name: Optional[str] = None,
                role: UserRole = UserRole.INTERVIEWEE) -> User:
        """
        Create an account and sign it in.

        Raises:
            AuthError: Invalid email or password, or the email is already registered
        """
        key = email.strip().lower()
        if "@" not in key or key.startswith("@") or key.endswith("@"):
            raise AuthError("Please enter a valid email address.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")

        existing = self._data["users"].get(key)
        if existing:
            if existing.get("role") and existing["role"] != role.value:
                raise AuthError(
                    f"Account already exists as {existing['role']}. Please sign in with your existing role."
                )
            raise AuthError("An account with this email already exists. Please sign in.")

        salt = secrets.token_hex(16)
        record = {
            "id": uuid.uuid4().hex,
            "email": key,
            "name": name,
            "phone": None,
            "role": role.value,
            "salt": salt,
            "password_hash": self._hash(password, salt),
        }
        self._data["users"][key] = record
        self._data["current_user"] = key
        self._save()
        logger.info("Created %s account for %s", role.value, key)
        return self._to_user(record)

    def sign_in(self, email: str, password: str) -> User:
        """
        Raises:
            AuthError: Unknown email or wrong password
        """
        key = email.strip().lower()
        record = self._data["users"].get(key)
        if not record or not hmac.compare_digest(record["password_hash"], self._hash(password, record["salt"])):
            logger.warning("Failed sign-in for %s", key)
            raise AuthError("Invalid email or password.")

        self._data["current_user"] = key
        self._save()
        logger.info("Signed in %s", key)
        return self._to_user(record)

    def sign_out(self) -> None:
        if self._data["current_user"] is None:
            return
        logger.info("Signed out %s", self._data["current_user"])
        self._data["current_user"] = None
        self._save()

    def current_user(self) -> Optional[User]:
        key = self._data.get("current_user")
        record = self._data["users"].get(key) if key else None
        return self._to_user(record) if record else None
