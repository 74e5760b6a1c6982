# api/sessions.py
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from analytics.engine import SessionReport, build_report
from api.deps import get_store, get_orchestrator
from api.security import current_user_id
from conversation.orchestrator import ConversationOrchestrator
from db.store import EntityStore

router = APIRouter(prefix="/sessions", tags=["sessions"])

# --- Schemas
class SessionOut(BaseModel):
    id: int
    user_id: int
    name: str
    is_archived: bool
    created_at: datetime
    class Config:
        from_attributes = True

class SessionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

class SessionRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

class MessageIn(BaseModel):
    content: str = Field(..., min_length=1)

class MessageOut(BaseModel):
    id: int
    session_id: int
    content: str
    is_model: bool
    created_at: datetime
    class Config:
        from_attributes = True

class ConversationStart(BaseModel):
    content: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=200)

class ConversationStarted(BaseModel):
    session: SessionOut
    messages: List[MessageOut]


@router.get("", response_model=List[SessionOut])
def list_sessions(
    archived: Optional[bool] = Query(None, description="Filter by archived flag; omit for all"),
    user_id: int = Depends(current_user_id),
    store: EntityStore = Depends(get_store),
):
    sessions = store.get_sessions(user_id, include_archived=archived is not False)
    if archived:
        sessions = [s for s in sessions if s.is_archived]
    return sessions

@router.post("", response_model=SessionOut, status_code=201)
def create_session(
    body: SessionCreate,
    user_id: int = Depends(current_user_id),
    store: EntityStore = Depends(get_store),
):
    return store.create_session(user_id, body.name)

@router.post("/start", response_model=ConversationStarted, status_code=201)
def start_conversation(
    body: ConversationStart,
    user_id: int = Depends(current_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    session, (user_msg, model_msg) = orchestrator.start_conversation(user_id, body.content, body.name)
    return {"session": session, "messages": [user_msg, model_msg]}

@router.get("/{session_id}", response_model=SessionOut)
def get_session(
    session_id: int,
    user_id: int = Depends(current_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.ensure_owned(user_id, session_id)

@router.patch("/{session_id}", response_model=SessionOut)
def rename_session(
    session_id: int,
    body: SessionRename,
    user_id: int = Depends(current_user_id),
    store: EntityStore = Depends(get_store),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.ensure_owned(user_id, session_id)
    return store.rename_session(session_id, body.name)

@router.post("/{session_id}/archive", response_model=SessionOut)
def archive_session(
    session_id: int,
    user_id: int = Depends(current_user_id),
    store: EntityStore = Depends(get_store),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.ensure_owned(user_id, session_id)
    return store.archive_session(session_id)

@router.get("/{session_id}/messages", response_model=List[MessageOut])
def list_messages(
    session_id: int,
    user_id: int = Depends(current_user_id),
    store: EntityStore = Depends(get_store),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.ensure_owned(user_id, session_id)
    return store.get_messages(session_id)

@router.post("/{session_id}/messages", response_model=List[MessageOut])
def post_message(
    session_id: int,
    body: MessageIn,
    user_id: int = Depends(current_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    user_msg, model_msg = orchestrator.handle_user_message(user_id, session_id, body.content)
    return [user_msg, model_msg]

@router.get("/{session_id}/report", response_model=SessionReport)
def session_report(
    session_id: int,
    user_id: int = Depends(current_user_id),
    store: EntityStore = Depends(get_store),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    session = orchestrator.ensure_owned(user_id, session_id)
    return build_report(session, store.get_messages(session_id))
