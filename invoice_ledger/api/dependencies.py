"""
Request-scoped dependencies shared by the routers.

Authentication happens upstream. By the time a request reaches
this service the gateway has resolved the caller and forwards
their numeric id in the X-User-Id header. Every query is
scoped by that id.
"""

from dataclasses import dataclass

from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class UserContext:
    user_id: int


def get_user_context(x_user_id: int | None = Header(default=None)) -> UserContext:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return UserContext(user_id=x_user_id)
