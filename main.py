import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from splitledger import config
from splitledger.routes import balances, expenses, groups, settlements, users

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="SplitLedger API",
    description="Shared-expense ledger: users, groups, expenses with equal/exact/percentage splits, "
                "settlements, and simplified balances.",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(users.router)
app.include_router(groups.router)
app.include_router(expenses.router)
app.include_router(settlements.router)
app.include_router(balances.router)


@app.get("/")
def read_root():
    return {
        "message": "Expense Sharing API",
        "version": app.version,
        "endpoints": {
            "users": "/api/users",
            "groups": "/api/groups",
            "expenses": "/api/expenses",
            "balances": "/api/balances",
            "settlements": "/api/settlements",
        },
    }


@app.get("/health")
def health():
    return {"status": "ok"}
