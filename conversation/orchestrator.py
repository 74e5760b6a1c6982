# conversation/orchestrator.py
import re
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Protocol, Tuple, List

from common.errors import ExternalServiceError, ForbiddenError, ValidationError
from db.models import ChatSession, Message
from db.store import EntityStore
from llm.prompts import FALLBACK_TEXT, build_model_turns

logger = logging.getLogger(__name__)

DEFAULT_SESSION_NAME = "New Session"


class ChatModel(Protocol):
    def generate(self, turns: List[Dict[str, str]]) -> str: ...


# --- Helpers for session auto-naming ----------------------------------------

def derive_session_name(user_text: str, max_len: int = 60) -> str:
    base = (user_text or "").strip()
    if not base:
        return DEFAULT_SESSION_NAME
    first = re.split(r"(?<=[.!?])\s+", base, maxsplit=1)[0].strip()
    cand = (first or base).lstrip("-• ").rstrip(" .!?")
    if not cand:
        return DEFAULT_SESSION_NAME
    if len(cand) > max_len:
        cand = cand[:max_len].rstrip() + "…"
    return cand[:1].upper() + cand[1:]


class SessionLocks:
    """
    One lock per session id, created on demand and dropped once no caller
    holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # session id -> [lock, callers holding or waiting]
        self._locks: Dict[int, list] = {}

    @contextmanager
    def hold(self, session_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = self._locks[session_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[session_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class ConversationOrchestrator:
    def __init__(self, store: EntityStore, model: ChatModel):
        self.store = store
        self.model = model
        self._locks = SessionLocks()

    def ensure_owned(self, user_id: int, session_id: int) -> ChatSession:
        session = self.store.get_session(session_id)
        if session.user_id != user_id:
            raise ForbiddenError(
                "Session belongs to another user",
                details={"session_id": session_id},
            )
        return session

    def handle_user_message(self, user_id: int, session_id: int, content: str) -> Tuple[Message, Message]:
        if content is None or not content.strip():
            raise ValidationError("content must not be empty", details={"field": "content"})
        self.ensure_owned(user_id, session_id)

        with self._locks.hold(session_id):
            # saved before the model call so the input survives any failure
            user_msg = self.store.create_message(session_id, content, is_model=False)

            history = self.store.get_messages(session_id)
            if not history or history[-1].id != user_msg.id:
                logger.error(
                    f"Session {session_id} history does not end with message {user_msg.id}"
                )
            turns = build_model_turns(history)

            # any model failure becomes the fallback reply; the log stays paired
            try:
                reply = self.model.generate(turns)
                if not isinstance(reply, str) or not reply.strip():
                    raise ExternalServiceError("Empty response from model")
            except ExternalServiceError as e:
                logger.warning(f"Model call failed for session {session_id}, using fallback: {e.message}")
                reply = FALLBACK_TEXT
            except Exception:
                logger.exception(f"Unexpected model error for session {session_id}, using fallback")
                reply = FALLBACK_TEXT

            model_msg = self.store.create_message(session_id, reply, is_model=True)

        return user_msg, model_msg

    def start_conversation(
        self, user_id: int, content: str, name: Optional[str] = None
    ) -> Tuple[ChatSession, Tuple[Message, Message]]:
        if content is None or not content.strip():
            raise ValidationError("content must not be empty", details={"field": "content"})
        session = self.store.create_session(user_id, name or derive_session_name(content))
        pair = self.handle_user_message(user_id, session.id, content)
        return session, pair
