"""
Mock authentication for the dashboard.

Any credentials are accepted; the "logged in" user is simply whatever is
stored under AUTH_KEY in the session mapping (st.session_state in the app).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, MutableMapping, Optional

AUTH_KEY = "optiplus_auth_user"


@dataclass(frozen=True)
class User:
    name: str
    email: str


class SessionStore:
    def __init__(self, backend: MutableMapping[str, Any]) -> None:
        self.backend = backend

    def get(self) -> Optional[User]:
        raw = self.backend.get(AUTH_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return User(name=str(raw["name"]), email=str(raw["email"]))
        except KeyError:
            return None

    def set(self, user: User) -> None:
        self.backend[AUTH_KEY] = asdict(user)

    def clear(self) -> None:
        self.backend.pop(AUTH_KEY, None)

    def is_authenticated(self) -> bool:
        return self.get() is not None


def login(store: SessionStore, email: str, password: str) -> User:
    user = User(name="Demo User", email=email.strip())
    store.set(user)
    return user


def register(store: SessionStore, name: str, email: str, password: str) -> User:
    user = User(name=name.strip(), email=email.strip())
    store.set(user)
    return user


def logout(store: SessionStore) -> None:
    store.clear()
