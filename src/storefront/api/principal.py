"""Request principal extraction.

Token issuance and verification happen upstream; by the time a request
reaches this service the gateway has resolved the caller into headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from storefront.utils.logging import add_context

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    id: str
    role: str
    name: str | None = None
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def current_principal(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default="customer"),
    x_user_name: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Principal:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    add_context(principal_id=x_user_id)
    return Principal(id=x_user_id, role=x_user_role or "customer", name=x_user_name, email=x_user_email)


def require_admin(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


def current_agent_id(x_agent_id: str = Header(default="")) -> str:
    if not x_agent_id:
        raise HTTPException(status_code=401, detail="Agent authentication required")
    add_context(agent_id=x_agent_id)
    return x_agent_id
