"""
Caller authorization bindings.

The ledger calls require_auth(address) before mutating state on that
principal's behalf. Verifying *how* the principal authorized the call
(signatures, sessions, gateway tokens) belongs to the host.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from nestera.core.exceptions import Unauthorized


class Authorizer(Protocol):
    def require_auth(self, address: str) -> None:
        ...


class MockAuthorizer:
    """
    Test/tool authorizer.

    allow_all=True authorizes every principal; otherwise only `allowed`.
    Every successful check is appended to `auths` in call order.
    """

    def __init__(self, allowed: Iterable[str] | None = None, *, allow_all: bool = False) -> None:
        self.allow_all = allow_all
        self.allowed: set[str] = set(allowed or ())
        self.auths: list[str] = []

    def allow(self, *addresses: str) -> None:
        self.allowed.update(addresses)

    def revoke(self, *addresses: str) -> None:
        self.allowed.difference_update(addresses)

    def require_auth(self, address: str) -> None:
        if not self.allow_all and address not in self.allowed:
            raise Unauthorized(f"{address} did not authorize this call")
        self.auths.append(address)

    def clear(self) -> None:
        self.auths.clear()


class HeaderAuthorizer:
    """
    Principals asserted for the current request by the fronting gateway
    (X-Nestera-Principal, comma separated). One instance per request.
    """

    def __init__(self, header_value: str | None) -> None:
        self.principals = {p.strip() for p in (header_value or "").split(",") if p.strip()}

    def require_auth(self, address: str) -> None:
        if address not in self.principals:
            raise Unauthorized(f"{address} did not authorize this call")
