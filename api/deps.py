# api/deps.py
from fastapi import Request

from conversation.orchestrator import ConversationOrchestrator
from db.store import EntityStore

def get_store(request: Request) -> EntityStore:
    return request.app.state.store

def get_orchestrator(request: Request) -> ConversationOrchestrator:
    return request.app.state.orchestrator
