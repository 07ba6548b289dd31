from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, PlainSerializer, field_validator

from splitledger.utils import format_money

SplitKind = Literal["equal", "exact", "percentage"]

# Amounts cross the wire as fixed 2-place decimal strings
Money = Annotated[float, PlainSerializer(format_money, return_type=str)]


# This model validates user creation input
class UserCreate(BaseModel):
    name: str
    email: EmailStr

    @field_validator('name')
    def name_not_blank(cls, v: str):
        if not v.strip():
            raise ValueError('name is required')
        return v.strip()


# This model represents a user (member) record
class User(BaseModel):
    id: str
    name: str
    email: str
    created_at: Optional[datetime] = None


# This model validates group creation input
# - created_by is always added to the roster, even if missing from member_ids
class GroupCreate(BaseModel):
    name: Optional[str] = None
    description: str = ''
    created_by: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)


# This model validates member addition input
class MemberAdd(BaseModel):
    user_id: Optional[str] = None


# This model represents a group record
class Group(BaseModel):
    id: str
    name: str
    description: Optional[str] = ''
    created_by: str
    created_at: Optional[datetime] = None
    members: List[User] = Field(default_factory=list)


# One member's owed portion of one expense, as computed by the split calculator
class SplitShare(BaseModel):
    user_id: str
    amount: Money
    percentage: Optional[float] = None


# Request payload for creating an expense.
# Every field is optional here so a missing one is reported as a 400 with
# the full list of required fields instead of a schema error.
# splits holds user ids for "equal", {user_id, amount} for "exact" and
# {user_id, percentage} for "percentage".
class ExpenseCreate(BaseModel):
    group_id: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = None
    paid_by: Optional[str] = None
    split_type: Optional[str] = None
    splits: Optional[List[Union[str, dict]]] = None


class SplitPreviewRequest(BaseModel):
    amount: Optional[float] = None
    split_type: Optional[str] = None
    splits: List[Union[str, dict]] = Field(default_factory=list)


# This model represents a persisted split row
class ExpenseSplit(BaseModel):
    id: Optional[str] = None
    expense_id: str
    user_id: str
    amount: Money
    percentage: Optional[float] = None


# This model represents an expense record
class Expense(BaseModel):
    id: str
    group_id: str
    description: str
    amount: Money
    paid_by: str
    split_type: SplitKind
    created_at: Optional[datetime] = None
    splits: List[ExpenseSplit] = Field(default_factory=list)


class SettlementCreate(BaseModel):
    group_id: Optional[str] = None
    paid_by: Optional[str] = None
    paid_to: Optional[str] = None
    amount: Optional[float] = None


# This model represents a settlement record
class Settlement(BaseModel):
    id: str
    group_id: str
    paid_by: str
    paid_to: str
    amount: Money
    settled_at: Optional[datetime] = None


# Display record attached to balance results; name/email stay empty when
# the member row is missing from the users table
class MemberRef(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


# Derived, never stored: from_user owes to_user amount, net of everything
class BalanceEdge(BaseModel):
    from_user: str
    to_user: str
    amount: str


class GroupBalance(BaseModel):
    from_user: MemberRef
    to_user: MemberRef
    amount: str


class GroupBalances(BaseModel):
    balances: List[GroupBalance] = Field(default_factory=list)


class CounterpartyBalance(BaseModel):
    user: MemberRef
    amount: str


class BalanceSummary(BaseModel):
    total_owes: str = "0.00"
    total_owed: str = "0.00"


class UserBalances(BaseModel):
    owes: List[CounterpartyBalance] = Field(default_factory=list)
    owed: List[CounterpartyBalance] = Field(default_factory=list)
    summary: BalanceSummary = Field(default_factory=BalanceSummary)
