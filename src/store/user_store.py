from __future__ import annotations

from typing import Protocol

from domain.models import CustodianId, User

from .locking import ReadWriteLock


class UserNotFoundError(LookupError):
    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class UserAlreadyExistsError(ValueError):
    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} exists already")


class UserStore(Protocol):
    def get_user(self, user_id: int) -> User: ...

    def add_user(self, user: User) -> None: ...


class InMemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._lock = ReadWriteLock()

    def populate(self) -> None:
        self.add_user(User(id=1, custodians=[CustodianId(i) for i in (1, 2, 3, 4)]))

    def get_user(self, user_id: int) -> User:
        with self._lock.read():
            try:
                return self._users[user_id]
            except KeyError as exc:
                raise UserNotFoundError(user_id) from exc

    def add_user(self, user: User) -> None:
        with self._lock.write():
            if user.id in self._users:
                raise UserAlreadyExistsError(user.id)
            self._users[user.id] = user

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._users)


__all__ = ["InMemoryUserStore", "UserAlreadyExistsError", "UserNotFoundError", "UserStore"]
