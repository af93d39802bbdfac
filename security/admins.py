from __future__ import annotations

from typing import Optional

from config.settings import settings
from security.operator_auth import split_csv
from watches.errors import AdminOnly


# Chat-side admins come from a static allow-list; an empty list means nobody.
def is_admin(user_id: str, allow_list: Optional[str] = None) -> bool:
    allowed = split_csv(settings.ADMIN_USER_IDS if allow_list is None else allow_list)
    return bool(user_id) and str(user_id) in allowed


def require_admin(user_id: str, allow_list: Optional[str] = None) -> None:
    if not is_admin(user_id, allow_list):
        raise AdminOnly()
