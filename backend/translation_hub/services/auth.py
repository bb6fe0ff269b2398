from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from translation_hub.config import Settings
from translation_hub.database import transaction
from translation_hub.errors import EmailAlreadyRegisteredError, InvalidCredentialsError
from translation_hub.models import UserModel
from translation_hub.tables import access_tokens_table, users_table, utcnow

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 240_000
TOKEN_TYPE = "Bearer"


def hash_password(raw: str, *, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", (raw or "").encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    )
    return f"{salt}${digest.hex()}"


def verify_password(raw: str, hashed: str) -> bool:
    salt, _, expected = (hashed or "").partition("$")
    if not salt or not expected:
        return False
    return hmac.compare_digest(hash_password(raw, salt=salt), hashed)


@dataclass(frozen=True)
class AuthResult:
    user: UserModel
    access_token: str
    token_type: str = TOKEN_TYPE


class AuthService:
    def __init__(self, session_factory: sessionmaker, settings: Settings) -> None:
        self.session_factory = session_factory
        self.settings = settings

    def register(self, *, name: str, email: str, password: str) -> AuthResult:
        normalized_email = email.strip().lower()
        try:
            with transaction(self.session_factory) as session:
                if self._find_user_row(session, normalized_email) is not None:
                    raise EmailAlreadyRegisteredError(normalized_email)
                row = session.execute(
                    insert(users_table)
                    .values(
                        name=name.strip(),
                        email=normalized_email,
                        password_hash=hash_password(password),
                    )
                    .returning(
                        users_table.c.id,
                        users_table.c.name,
                        users_table.c.email,
                        users_table.c.created_at,
                    )
                ).mappings().one()
                user = UserModel.model_validate(dict(row))
                token = self._issue_token(session, user.id)
        except IntegrityError as exc:
            raise EmailAlreadyRegisteredError(normalized_email) from exc
        logger.info("User registered id=%s", user.id)
        return AuthResult(user=user, access_token=token)

    def login(self, *, email: str, password: str) -> AuthResult:
        normalized_email = email.strip().lower()
        with transaction(self.session_factory) as session:
            row = self._find_user_row(session, normalized_email)
            if row is None or not verify_password(password, row["password_hash"]):
                logger.info("Login rejected for email=%s", normalized_email)
                raise InvalidCredentialsError()
            user = UserModel.model_validate(dict(row))
            # One active token per user: earlier tokens are revoked on login.
            session.execute(
                delete(access_tokens_table).where(access_tokens_table.c.user_id == user.id)
            )
            token = self._issue_token(session, user.id)
        logger.info("User logged in id=%s", user.id)
        return AuthResult(user=user, access_token=token)

    def logout(self, user_id: int) -> bool:
        with transaction(self.session_factory) as session:
            exists = session.execute(
                select(users_table.c.id).where(users_table.c.id == user_id)
            ).first()
            if exists is None:
                return False
            session.execute(
                delete(access_tokens_table).where(access_tokens_table.c.user_id == user_id)
            )
        logger.info("User logged out id=%s", user_id)
        return True

    def authenticate(self, token: str) -> UserModel:
        try:
            payload = jwt.decode(
                token,
                key=self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
        except JWTError:
            raise InvalidCredentialsError() from None
        jti = payload.get("jti")
        subject = payload.get("sub")
        if not jti or not subject:
            raise InvalidCredentialsError()
        with transaction(self.session_factory) as session:
            row = session.execute(
                select(
                    users_table.c.id,
                    users_table.c.name,
                    users_table.c.email,
                    users_table.c.created_at,
                )
                .select_from(
                    users_table.join(
                        access_tokens_table,
                        access_tokens_table.c.user_id == users_table.c.id,
                    )
                )
                .where(
                    access_tokens_table.c.jti == jti,
                    users_table.c.id == int(subject),
                )
            ).mappings().one_or_none()
        if row is None:
            raise InvalidCredentialsError()
        return UserModel.model_validate(dict(row))

    def _issue_token(self, session: Session, user_id: int) -> str:
        jti = uuid.uuid4().hex
        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(
            minutes=self.settings.jwt_access_token_expires_minutes
        )
        session.execute(
            insert(access_tokens_table).values(
                user_id=user_id,
                jti=jti,
                created_at=utcnow(),
                expires_at=expires_at,
            )
        )
        payload = {
            "sub": str(user_id),
            "jti": jti,
            "iat": issued_at,
            "exp": expires_at,
        }
        return jwt.encode(
            payload,
            key=self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
        )

    @staticmethod
    def _find_user_row(session: Session, email: str):
        return session.execute(
            select(
                users_table.c.id,
                users_table.c.name,
                users_table.c.email,
                users_table.c.password_hash,
                users_table.c.created_at,
            ).where(users_table.c.email == email)
        ).mappings().one_or_none()
