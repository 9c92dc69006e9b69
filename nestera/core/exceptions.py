"""
Ledger exceptions.

One subclass per error kind. Codes are stable and shared by the Python API
and the HTTP binding; callers match on the class (or on `kind`) to decide
whether to retry.
"""

from __future__ import annotations


class SavingsError(Exception):
    """Base class for every typed ledger failure."""

    code: int = 0
    kind: str = "SavingsError"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.kind
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, object]:
        return {"error": self.kind, "code": self.code, "detail": self.detail}


class AlreadyInitialized(SavingsError):
    code = 1
    kind = "AlreadyInitialized"


class NotInitialized(SavingsError):
    code = 2
    kind = "NotInitialized"


class SignatureInvalid(SavingsError):
    code = 3
    kind = "SignatureInvalid"


class SignatureExpired(SavingsError):
    code = 4
    kind = "SignatureExpired"


class UserNotFound(SavingsError):
    code = 5
    kind = "UserNotFound"


class UserAlreadyExists(SavingsError):
    code = 6
    kind = "UserAlreadyExists"


class PlanNotFound(SavingsError):
    code = 7
    kind = "PlanNotFound"


class InvalidAmount(SavingsError):
    code = 8
    kind = "InvalidAmount"


class InvalidGroupConfig(SavingsError):
    code = 9
    kind = "InvalidGroupConfig"


class GroupFull(SavingsError):
    code = 10
    kind = "GroupFull"


class NotGroupMember(SavingsError):
    code = 11
    kind = "NotGroupMember"


class InsufficientBalance(SavingsError):
    code = 12
    kind = "InsufficientBalance"


class Overflow(SavingsError):
    code = 13
    kind = "Overflow"


class Underflow(SavingsError):
    code = 14
    kind = "Underflow"


class PlanAlreadyWithdrawn(SavingsError):
    code = 15
    kind = "PlanAlreadyWithdrawn"


class PlanLocked(SavingsError):
    code = 16
    kind = "PlanLocked"


class Unauthorized(SavingsError):
    code = 17
    kind = "Unauthorized"


class SignatureAlreadyUsed(SavingsError):
    code = 18
    kind = "SignatureAlreadyUsed"


ERRORS_BY_CODE: dict[int, type[SavingsError]] = {
    cls.code: cls
    for cls in (
        AlreadyInitialized,
        NotInitialized,
        SignatureInvalid,
        SignatureExpired,
        UserNotFound,
        UserAlreadyExists,
        PlanNotFound,
        InvalidAmount,
        InvalidGroupConfig,
        GroupFull,
        NotGroupMember,
        InsufficientBalance,
        Overflow,
        Underflow,
        PlanAlreadyWithdrawn,
        PlanLocked,
        Unauthorized,
        SignatureAlreadyUsed,
    )
}
