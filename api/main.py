# api/main.py
import os
import logging
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_error_handlers
from api.security import check_key
from api.sessions import router as sessions_router
from api.users import router as users_router
from conversation.orchestrator import ConversationOrchestrator, ChatModel
from db.session import DB_URL, make_engine, make_session_factory, init_db
from db.store import EntityStore
from llm.client import OllamaChatModel

# -------- Settings --------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS origins (dev Vite)
ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
extra = os.getenv("FRONTEND_ORIGINS")
if extra:
    ALLOWED_ORIGINS += [o.strip() for o in extra.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(store: Optional[EntityStore] = None, model: Optional[ChatModel] = None) -> FastAPI:
    """Build the API around an injected store/model; defaults come from env."""
    engine = None
    if store is None:
        engine = make_engine(DB_URL)
        store = EntityStore(make_session_factory(engine))
    if model is None:
        model = OllamaChatModel()

    app = FastAPI(title="Therapy Chat API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.orchestrator = ConversationOrchestrator(store, model)
    register_error_handlers(app)

    if engine is not None:
        @app.on_event("startup")
        def _startup():
            init_db(engine)
            logger.info(f"Database ready at {engine.url.render_as_string(hide_password=True)}")

    @app.get("/health", dependencies=[Depends(check_key)])
    def health():
        return {"ok": True}

    app.include_router(users_router)
    app.include_router(sessions_router)
    return app


app = create_app()
