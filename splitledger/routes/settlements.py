from fastapi import APIRouter, Depends

from splitledger import services
from splitledger.models import SettlementCreate
from splitledger.store import get_store

router = APIRouter(prefix="/api/settlements")


@router.post("", status_code=201, summary="Record a settlement payment", tags=["Settlements"])
def create_settlement(body: SettlementCreate, store=Depends(get_store)):
    settlement = services.create_settlement(
        store,
        group_id=body.group_id,
        paid_by=body.paid_by,
        paid_to=body.paid_to,
        amount=body.amount,
    )
    return {"settlement": settlement}


@router.get("/group/{group_id}", summary="List settlements", tags=["Settlements"])
def list_settlements(group_id: str, store=Depends(get_store)):
    return {"settlements": services.list_group_settlements(store, group_id)}
