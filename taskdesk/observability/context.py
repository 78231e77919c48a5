"""
Invocation ids for log correlation.

Every TaskCreator.create_task call runs inside an InvocationContext. The id
lives in a ContextVar, so concurrent API requests each see their own, and
both log formatters read it back through get_invocation_id().
"""

import contextvars
import uuid
from typing import Optional

_invocation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "invocation_id", default=None
)


def get_invocation_id() -> Optional[str]:
    """Id of the invocation in progress, or None outside one."""
    return _invocation_id_var.get()


def set_invocation_id(invocation_id: str) -> contextvars.Token:
    """Bind an id directly. Prefer InvocationContext, which also unbinds it."""
    return _invocation_id_var.set(invocation_id)


def generate_invocation_id() -> str:
    return f"inv-{uuid.uuid4().hex[:16]}"


class InvocationContext:
    """
    Bind an invocation id for the duration of a `with` block.

    The id forwarded by the caller (the X-Invocation-Id header on the API)
    is used as-is; otherwise a fresh "inv-..." id is generated. Leaving the
    block restores whatever id was bound before, including on exceptions.

        with InvocationContext(request_header_id) as inv:
            creator.resolve_request(request)   # logs carry inv.invocation_id
    """

    def __init__(self, invocation_id: Optional[str] = None):
        self.invocation_id = invocation_id or generate_invocation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "InvocationContext":
        self._token = set_invocation_id(self.invocation_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is None:
            return
        _invocation_id_var.reset(self._token)
        self._token = None
