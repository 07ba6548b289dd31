"""Expense routes: create, list and inspect expenses, and preview splits."""

from fastapi import APIRouter, Depends

from splitledger import services
from splitledger.models import ExpenseCreate, SplitPreviewRequest
from splitledger.splits import compute_splits
from splitledger.store import get_store
from splitledger.utils import format_money

router = APIRouter(prefix="/api/expenses")


@router.post("", status_code=201, summary="Create an expense and its splits", tags=["Expenses"])
def create_expense(expense: ExpenseCreate, store=Depends(get_store)):
    created = services.create_expense(
        store,
        group_id=expense.group_id,
        description=expense.description,
        amount=expense.amount,
        paid_by=expense.paid_by,
        split_type=expense.split_type,
        splits=expense.splits,
    )
    return {"expense": created}


# Runs the split calculator only; nothing is written
@router.post("/split/preview", summary="Preview split calculation", tags=["Splits"])
def preview_split(body: SplitPreviewRequest):
    shares = compute_splits(body.amount, body.split_type, body.splits)
    return {"total": format_money(body.amount), "splits": shares}


@router.get("/group/{group_id}", summary="List expenses for a group", tags=["Expenses"])
def list_group_expenses(group_id: str, store=Depends(get_store)):
    return {"expenses": services.list_group_expenses(store, group_id)}


@router.get("/{expense_id}", summary="Get a single expense with splits", tags=["Expenses"])
def get_expense(expense_id: str, store=Depends(get_store)):
    return {"expense": services.get_expense(store, expense_id)}
