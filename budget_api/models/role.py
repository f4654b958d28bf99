# models/role.py
"""Budget membership roles."""

from enum import Enum
from typing import Optional


_RANKS = {
    "owner": 3,
    "manager": 2,
    "contributor": 1,
    "viewer": 0,
}


class Role(str, Enum):
    """Per-budget permission level, ordered Owner > Manager > Contributor > Viewer.

    Stored and transmitted as the lowercase token; compared by rank.
    """

    OWNER = "owner"
    MANAGER = "manager"
    CONTRIBUTOR = "contributor"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        return _RANKS[self.value]

    def at_least(self, required: "Role") -> bool:
        """True when this role meets the `required` floor (ties included)."""
        return self.rank >= required.rank

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Case-sensitive lookup; unknown tokens yield None, never a default."""
        if not isinstance(value, str):
            return None
        for role in cls:
            if role.value == value:
                return role
        return None
