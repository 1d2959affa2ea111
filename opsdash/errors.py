"""Error taxonomy shared by the API, the data accessors and the pages."""

from __future__ import annotations

from typing import List, Optional


class OpsdashError(Exception):
    """Base class; `status_code` is what the API answers with."""

    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class UnauthorizedError(OpsdashError):
    status_code = 401
    public_message = "Unauthorized"


class NotFoundError(OpsdashError):
    status_code = 404
    public_message = "Not found"

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.record_id = record_id


class StoreError(OpsdashError):
    """Store failure; the detail is logged, callers only see the generic message."""

    status_code = 500
    public_message = "Internal Server Error"


class ValidationError(OpsdashError):
    """Form input rejected before anything is sent over the network."""

    status_code = 422
    public_message = "Invalid input"

    def __init__(self, problems: List[str]) -> None:
        super().__init__("; ".join(problems) or self.public_message)
        self.problems = list(problems)


class OnboardingTimeout(OpsdashError):
    public_message = "The analysis is taking longer than expected."


class CalendarConfigError(OpsdashError):
    public_message = "Calendar integration is not configured"
