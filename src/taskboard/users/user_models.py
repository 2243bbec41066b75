# src/taskboard/users/user_models.py

from __future__ import annotations

from dataclasses import dataclass


class UserNotFoundError(LookupError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    image: str | None = None  # base64-encoded avatar
    color: str | None = None
