from .budget import (  # noqa: F401
    Budget, BudgetMember, BudgetTransfer, Category, Entry, new_id, utc_now,
)
from .comment import CommentMention, EntryAttachment, EntryComment  # noqa: F401
from .notification import Notification  # noqa: F401
from .role import Role  # noqa: F401
from .user import User  # noqa: F401
