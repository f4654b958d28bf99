# services/authz.py
"""Authorization guard for budget-scoped operations.

Every budget-scoped service call goes through one of these two checks before
it touches data. Each check reads the current membership row; nothing is
cached between calls, so a role change or removal applies to the very next
request.
"""

import logging

from sqlalchemy.orm import Session

from ..errors import Forbidden
from ..models.role import Role
from . import membership

logger = logging.getLogger(__name__)


def ensure_role(db: Session, budget_id: str, user_id: str, required: Role) -> Role:
    """Return the caller's role if it is at least `required`, else raise Forbidden."""
    role = membership.get_role(db, budget_id, user_id)
    if role is None:
        logger.warning(f"User {user_id} is not a member of budget {budget_id}")
        raise Forbidden()
    if not role.at_least(required):
        logger.warning(
            f"User {user_id} has role {role.value} in budget {budget_id}, "
            f"{required.value} required"
        )
        raise Forbidden()
    return role


def ensure_owner(db: Session, budget_id: str, user_id: str) -> None:
    """Raise Forbidden unless the caller is exactly an Owner of the budget."""
    role = membership.get_role(db, budget_id, user_id)
    if role is not Role.OWNER:
        logger.warning(f"User {user_id} is not an owner of budget {budget_id}")
        raise Forbidden("Only the budget owner can do this")
