"""Tests for the mock session store behind login/register/logout."""

from session_store import AUTH_KEY, SessionStore, User, login, logout, register


def test_login_accepts_any_credentials() -> None:
    backend: dict = {}
    store = SessionStore(backend)

    user = login(store, "someone@example.com", "whatever")

    assert user == User(name="Demo User", email="someone@example.com")
    assert store.get() == user
    assert store.is_authenticated()
    assert backend[AUTH_KEY] == {"name": "Demo User", "email": "someone@example.com"}


def test_register_keeps_name() -> None:
    store = SessionStore({})

    register(store, " Ada ", "ada@example.com", "pw")

    assert store.get() == User(name="Ada", email="ada@example.com")


def test_logout_clears() -> None:
    store = SessionStore({})
    login(store, "a@b.c", "pw")

    logout(store)
    logout(store)

    assert store.get() is None
    assert not store.is_authenticated()


def test_garbage_in_backend_is_ignored() -> None:
    assert SessionStore({AUTH_KEY: "not-a-dict"}).get() is None
    assert SessionStore({AUTH_KEY: {"name": "x"}}).get() is None
