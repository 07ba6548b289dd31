from fastapi import APIRouter, Depends

from splitledger.balances import get_group_balances, get_user_balances
from splitledger.models import GroupBalances, UserBalances
from splitledger.store import get_store

router = APIRouter(prefix="/api/balances")


@router.get("/group/{group_id}", response_model=GroupBalances,
            summary="Simplified who-owes-whom in a group", tags=["Balances"])
def group_balances(group_id: str, store=Depends(get_store)):
    return GroupBalances(balances=get_group_balances(store, group_id))


@router.get("/user/{user_id}", response_model=UserBalances,
            summary="What a user owes and is owed across groups", tags=["Balances"])
def user_balances(user_id: str, store=Depends(get_store)):
    return get_user_balances(store, user_id)
