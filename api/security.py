# api/security.py
import os
from typing import Optional
from fastapi import Depends, Header, HTTPException

from api.deps import get_store
from common.errors import NotFoundError
from db.store import EntityStore

API_KEY = os.getenv("THERAPY_API_KEY", "")

def check_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Raise 401 if header doesn't match."""
    if API_KEY and x_api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")

def current_user_id(
    x_user_id: Optional[int] = Header(None),
    x_api_key: Optional[str] = Header(None),
    store: EntityStore = Depends(get_store),
) -> int:
    """
    Identity is established upstream; the auth proxy forwards it as X-User-Id.
    We only check that the user exists.
    """
    check_key(x_api_key)
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing user identity")
    try:
        store.get_user(x_user_id)
    except NotFoundError:
        raise HTTPException(status_code=401, detail="Unknown user")
    return x_user_id
