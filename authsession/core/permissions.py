"""Role-based access checks."""

from collections.abc import Iterable
from typing import Optional

from authsession.core.exceptions import AuthorizationError
from authsession.models.account import AccountRole


def is_role_allowed(role: Optional[AccountRole], required_roles: Iterable[AccountRole]) -> bool:
    """
    Decide whether a role satisfies a role requirement.

    An empty requirement allows every authenticated role. The check is a pure
    function of its arguments and holds no state.

    Args:
        role: Role of the verified subject
        required_roles: Roles that may access the resource

    Returns:
        True if access is allowed, False otherwise
    """
    if role is None:
        return False

    required = set(required_roles)
    if not required:
        return True
    return role in required


def ensure_role(role: Optional[AccountRole], required_roles: Iterable[AccountRole]) -> None:
    """Raise AuthorizationError unless the role is allowed."""
    required = list(required_roles)
    if not is_role_allowed(role, required):
        raise AuthorizationError(
            message="You don't have permission to access this resource",
            details=[
                {
                    "required_roles": [r.value for r in required],
                    "user_role": role.value if role is not None else None,
                }
            ],
        )
