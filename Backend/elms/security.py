# security.py
"""Password hashing, bearer tokens and credential checks."""
import binascii
import hashlib
import hmac
import logging
import os
from datetime import datetime, timedelta
from typing import Optional

import jwt  # PyJWT
from sqlalchemy.orm import Session

from elms.config import JWT_ALGORITHM, JWT_EXP_DAYS, get_jwt_secret
from elms.exceptions import InvalidCredentialsError, InvalidTokenError
from elms.models.user_model import User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000
DEACTIVATED_MESSAGE = "Account is deactivated. Please contact administrator."


def hash_password(password: str, salt: Optional[str] = None):
    """
    PBKDF2-HMAC-SHA256 password hashing with salt.
    Returns (hash, salt).
    """
    if salt is None:
        salt = binascii.hexlify(os.urandom(16)).decode()
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return binascii.hexlify(dk).decode(), salt


def verify_password(password: str, expected_hash: Optional[str], salt: Optional[str]) -> bool:
    if not expected_hash or not salt or password is None:
        return False
    pwd_hash, _ = hash_password(password, salt)
    return hmac.compare_digest(pwd_hash, expected_hash)


def set_password(user: User, password: str) -> None:
    user.password_hash, user.password_salt = hash_password(password)


def issue_token(identity, claims: Optional[dict] = None, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token carrying ``identity`` as ``id`` plus any extra claims."""
    to_encode = dict(claims or {})
    if expires_delta is None:
        expires_delta = timedelta(days=JWT_EXP_DAYS)
    now = datetime.utcnow()
    to_encode.update({"id": identity, "iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: Optional[str]) -> dict:
    """Decode and validate a token; any failure raises InvalidTokenError."""
    if not token:
        raise InvalidTokenError("Not authorized, no token")
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("Not authorized, token expired")
    except jwt.InvalidTokenError:
        raise InvalidTokenError("Not authorized, token failed")
    if payload.get("id") is None:
        raise InvalidTokenError("Not authorized, token failed")
    return payload


def token_for_user(user: User) -> str:
    return issue_token(user.id, {"role": user.role, "department": user.department})


def authenticate(db: Session, email: str, password: str) -> User:
    """Check an email/password pair and refresh the user's last login."""
    email = (email or "").strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        logger.info("Login failed, no user for %s", email)
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.info("Login refused, account deactivated: %s", email)
        raise InvalidCredentialsError(DEACTIVATED_MESSAGE)

    if not verify_password(password, user.password_hash, user.password_salt):
        logger.info("Login failed, password mismatch for %s", email)
        raise InvalidCredentialsError()

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user
