from fastapi import APIRouter, Depends

from splitledger import services
from splitledger.models import GroupCreate, MemberAdd
from splitledger.store import get_store

router = APIRouter(prefix="/api/groups")


# Endpoint to create a new group; the creator is always a member
@router.post("", status_code=201, summary="Create a group", tags=["Groups"])
def create_group(group: GroupCreate, store=Depends(get_store)):
    return {"group": services.create_group(store, group)}


@router.get("/user/{user_id}", summary="List groups a user belongs to", tags=["Groups"])
def list_user_groups(user_id: str, store=Depends(get_store)):
    return {"groups": services.list_user_groups(store, user_id)}


@router.get("/{group_id}", summary="Get group details with members", tags=["Groups"])
def get_group(group_id: str, store=Depends(get_store)):
    return {"group": services.get_group(store, group_id)}


@router.post("/{group_id}/members", status_code=201, summary="Add member to a group", tags=["Members"])
def add_member(group_id: str, member: MemberAdd, store=Depends(get_store)):
    return {"member": services.add_member(store, group_id, member.user_id)}
