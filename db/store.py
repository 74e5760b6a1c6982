# db/store.py
"""
Entity store for users, sessions and messages.

One instance is built at startup and handed to whoever needs it; tests build
a fresh one over an in-memory engine. Identities come from the database's
autoincrement counters and every operation runs under one store mutex, so
concurrent requests never race on allocation.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from common.errors import NotFoundError, ValidationError, ForbiddenError
from db.models import User, ChatSession, Message

logger = logging.getLogger(__name__)


def _require_text(value: str, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} must not be empty", details={"field": field})
    return value


class EntityStore:
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = datetime.utcnow):
        self._session_factory = session_factory
        self._clock = clock
        self._lock = threading.RLock()

    # -------------------------
    # Users
    # -------------------------

    def create_user(self, username: str, password: str) -> User:
        _require_text(username, "username")
        _require_text(password, "password")
        if len(password.encode("utf-8")) > 72:
            raise ValidationError("password must be at most 72 bytes", details={"field": "password"})
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

        with self._lock, self._session_factory() as db:
            user = User(username=username.strip(), password_hash=hashed, created_at=self._clock())
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise ValidationError("Username already taken", details={"username": username})
            db.refresh(user)
            logger.info(f"Created user {user.id} ({user.username})")
            return user

    def get_user(self, user_id: int) -> User:
        with self._lock, self._session_factory() as db:
            user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return user

    def get_user_by_username(self, username: str) -> User:
        with self._lock, self._session_factory() as db:
            user = db.execute(
                select(User).where(User.username == username)
            ).scalar_one_or_none()
        if not user:
            raise NotFoundError("User not found", details={"username": username})
        return user

    def verify_credentials(self, username: str, password: str) -> User:
        try:
            user = self.get_user_by_username(username)
        except NotFoundError:
            raise ForbiddenError("Invalid credentials")
        candidate = password.encode("utf-8")
        if len(candidate) > 72 or not bcrypt.checkpw(candidate, user.password_hash.encode("utf-8")):
            raise ForbiddenError("Invalid credentials")
        return user

    # -------------------------
    # Sessions
    # -------------------------

    def create_session(self, user_id: int, name: str) -> ChatSession:
        _require_text(name, "name")
        self.get_user(user_id)

        with self._lock, self._session_factory() as db:
            session = ChatSession(
                user_id=user_id,
                name=name.strip(),
                is_archived=False,
                created_at=self._clock(),
            )
            db.add(session)
            db.commit()
            db.refresh(session)
            logger.debug(f"Created session {session.id} for user {user_id}")
            return session

    def get_sessions(self, user_id: int, include_archived: bool = True) -> List[ChatSession]:
        with self._lock, self._session_factory() as db:
            qry = select(ChatSession).where(ChatSession.user_id == user_id)
            if not include_archived:
                qry = qry.where(ChatSession.is_archived.is_(False))
            return list(db.execute(qry.order_by(ChatSession.id.asc())).scalars().all())

    def get_session(self, session_id: int) -> ChatSession:
        with self._lock, self._session_factory() as db:
            session = db.get(ChatSession, session_id)
        if not session:
            raise NotFoundError("Session not found", details={"session_id": session_id})
        return session

    def rename_session(self, session_id: int, name: str) -> ChatSession:
        _require_text(name, "name")
        with self._lock, self._session_factory() as db:
            session = db.get(ChatSession, session_id)
            if not session:
                raise NotFoundError("Session not found", details={"session_id": session_id})
            session.name = name.strip()
            db.commit(); db.refresh(session)
            return session

    def archive_session(self, session_id: int) -> ChatSession:
        with self._lock, self._session_factory() as db:
            session = db.get(ChatSession, session_id)
            if not session:
                raise NotFoundError("Session not found", details={"session_id": session_id})
            if not session.is_archived:
                session.is_archived = True
                db.commit(); db.refresh(session)
            return session

    # -------------------------
    # Messages
    # -------------------------

    def create_message(self, session_id: int, content: str, is_model: bool) -> Message:
        with self._lock, self._session_factory() as db:
            if not db.get(ChatSession, session_id):
                raise NotFoundError("Session not found", details={"session_id": session_id})
            msg = Message(
                session_id=session_id,
                content=content,
                is_model=bool(is_model),
                created_at=self._clock(),
            )
            db.add(msg)
            try:
                db.commit()
            except IntegrityError:
                # session row vanished between the check and the insert
                db.rollback()
                logger.error(f"Message insert for session {session_id} violated integrity")
                raise NotFoundError("Session not found", details={"session_id": session_id})
            db.refresh(msg)
            return msg

    def get_messages(self, session_id: int) -> List[Message]:
        with self._lock, self._session_factory() as db:
            if not db.get(ChatSession, session_id):
                raise NotFoundError("Session not found", details={"session_id": session_id})
            return list(db.execute(
                select(Message)
                .where(Message.session_id == session_id)
                .order_by(Message.id.asc())
            ).scalars().all())
