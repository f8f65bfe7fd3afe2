"""Bearer-token authentication and role gates for the order endpoints."""

from fastapi import Depends, Header, HTTPException

from marketplace.directory import get_directory


def current_actor(authorization: str | None = Header(default=None)) -> dict:
    """Resolve the caller from the ``Authorization: Bearer <token>`` header.

    Returns:
        dict with keys: user_id, role, vendor_id
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")

    actor = get_directory().authenticate(authorization[len("bearer ") :].strip())
    if actor is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return actor


def require_role(*roles: str):
    """Dependency factory letting only the given roles through."""

    def dependency(actor: dict = Depends(current_actor)) -> dict:
        if actor["role"] not in roles:
            raise HTTPException(status_code=403, detail="Not allowed for this role")
        return actor

    return dependency
