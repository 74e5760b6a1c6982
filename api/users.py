# api/users.py
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_store
from api.security import check_key, current_user_id
from db.store import EntityStore

router = APIRouter(prefix="/users", tags=["users"])

class UserCredentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1, max_length=72)

class UserOut(BaseModel):
    id: int
    username: str
    created_at: datetime
    class Config:
        from_attributes = True


@router.post("", response_model=UserOut, status_code=201, dependencies=[Depends(check_key)])
def register(body: UserCredentials, store: EntityStore = Depends(get_store)):
    return store.create_user(body.username, body.password)

@router.post("/login", response_model=UserOut, dependencies=[Depends(check_key)])
def login(body: UserCredentials, store: EntityStore = Depends(get_store)):
    # token/cookie issuance belongs to the auth proxy in front of us
    return store.verify_credentials(body.username, body.password)

@router.get("/me", response_model=UserOut)
def me(user_id: int = Depends(current_user_id), store: EntityStore = Depends(get_store)):
    return store.get_user(user_id)
