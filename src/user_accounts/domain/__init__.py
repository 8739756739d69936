"""Domain layer: the change-tracking user aggregate and its metadata.

Nothing here imports storage or transport code.
"""

from user_accounts.domain.meta import Meta
from user_accounts.domain.users import User

__all__ = ["Meta", "User"]
