"""Error types raised by the ledger service.

Each error is an HTTPException so FastAPI turns it into the right status
code wherever it is raised, from the split calculator up to the routes.
"""

from fastapi import HTTPException


class ValidationError(HTTPException):
    """Malformed or semantically invalid input. Never retried."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class NotFoundError(HTTPException):
    """A referenced user, group or expense does not exist."""

    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class ConflictError(HTTPException):
    """A uniqueness rule in the store rejected the write."""

    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)


class StoreError(HTTPException):
    """The persistence call failed.

    The caller only ever sees a generic message; the underlying cause is
    logged where the error is raised and kept on ``cause`` for inspection.
    """

    def __init__(self, cause: Exception | None = None):
        super().__init__(status_code=500, detail="Internal server error")
        self.cause = cause
