from fastapi import APIRouter, Depends

from splitledger import services
from splitledger.models import UserCreate
from splitledger.store import get_store

router = APIRouter(prefix="/api/users")


@router.post("", status_code=201, summary="Create a user", tags=["Users"])
def create_user(user: UserCreate, store=Depends(get_store)):
    return {"user": services.create_user(store, user)}


@router.get("", summary="List users, newest first", tags=["Users"])
def list_users(store=Depends(get_store)):
    return {"users": services.list_users(store)}


@router.get("/{user_id}", summary="Get a single user", tags=["Users"])
def get_user(user_id: str, store=Depends(get_store)):
    return {"user": services.get_user(store, user_id)}
