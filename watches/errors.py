from __future__ import annotations


class WatchError(Exception):
    """Base for errors that map to a user-facing reply.

    `code` is the stable machine identifier, `user_message` is safe to show in
    chat and never carries upstream query text or storage details.
    """

    code = "watch_error"
    status_code = 400

    def __init__(self, user_message: str = "Something went wrong."):
        super().__init__(self.code)
        self.user_message = user_message


class DirectoryEmpty(WatchError):
    code = "directory_empty"
    status_code = 409

    def __init__(self):
        super().__init__(
            "⚠️ Item dictionary is empty.\nRun `/syncitems` (admin) once to import all items."
        )


class ItemNotFound(WatchError):
    code = "item_not_found"
    status_code = 404

    def __init__(self, raw_name: str):
        self.raw_name = raw_name
        super().__init__(
            f"❓ Couldn't match **{raw_name}** in the local dictionary.\n"
            "Try a more exact name, or run `/syncitems` if it's outdated."
        )


class LimitExceeded(WatchError):
    code = "watch_limit_reached"
    status_code = 403

    def __init__(self, scope: str, limit: int):
        self.scope = scope
        self.limit = limit
        if scope == "user":
            msg = f"⛔ You already have {limit} watches here. Remove one with `/unwatch` first."
        else:
            msg = f"⛔ This server has reached its limit of {limit} watches."
        super().__init__(msg)


class InvalidWatchRequest(WatchError):
    code = "invalid_request"
    status_code = 400


class AdminOnly(WatchError):
    code = "admin_only"
    status_code = 403

    def __init__(self):
        super().__init__("⛔ This command is admin-only.")


class TransientFetchFailure(Exception):
    """Price or catalog source unreachable, timed out, or returned a malformed response."""


class DispatchFailure(Exception):
    """The chat platform rejected or did not acknowledge a notification."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class StorageConflict(Exception):
    """A concurrent insert won the unique (scope, user, item_key) slot."""
