import pytest

from cofre.services import AccessTokenStore


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_issue_and_resolve() -> None:
    clock = FakeClock()
    store = AccessTokenStore(ttl_seconds=60, clock=clock)

    token = store.issue("chat-1", "vault-1")
    grant = store.resolve(token)

    assert len(token) == 12
    assert grant.vault_id == "vault-1"
    assert grant.chat_id == "chat-1"
    assert grant.expires_at == 1060


def test_expired_token_is_dropped_on_read() -> None:
    clock = FakeClock()
    store = AccessTokenStore(ttl_seconds=60, clock=clock)
    token = store.issue("chat-1", "vault-1")

    clock.now += 60

    assert store.resolve(token) is None
    assert len(store) == 0


def test_unknown_token() -> None:
    store = AccessTokenStore(ttl_seconds=60)

    assert store.resolve("nope") is None


def test_revoke() -> None:
    store = AccessTokenStore(ttl_seconds=60)
    token = store.issue("chat-1", "vault-1")

    assert store.revoke(token) is True
    assert store.revoke(token) is False
    assert store.resolve(token) is None


def test_sweep_removes_only_expired() -> None:
    clock = FakeClock()
    store = AccessTokenStore(ttl_seconds=60, clock=clock)
    old = store.issue("chat-1", "vault-1")
    clock.now += 30
    fresh = store.issue("chat-2", "vault-2")
    clock.now += 40

    assert store.sweep() == 1
    assert store.resolve(old) is None
    assert store.resolve(fresh) is not None


@pytest.mark.parametrize("ttl", [0, -5])
def test_ttl_must_be_positive(ttl) -> None:
    with pytest.raises(ValueError):
        AccessTokenStore(ttl_seconds=ttl)


def test_issue_drops_stale_tokens() -> None:
    clock = FakeClock()
    store = AccessTokenStore(ttl_seconds=60, clock=clock)
    store.issue("chat-1", "vault-1")
    store.issue("chat-2", "vault-2")

    clock.now += 61
    fresh = store.issue("chat-3", "vault-3")

    assert len(store) == 1
    assert store.resolve(fresh).vault_id == "vault-3"
