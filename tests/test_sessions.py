import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from errors import InvalidCredentials
from sessions import ANONYMOUS, Identity, SessionManager

ALICE = Identity(user_id=1, username="alice")


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_establish_then_resolve_returns_identity():
    manager = SessionManager()
    token = manager.establish(ALICE)

    assert manager.resolve(token) == ALICE
    assert manager.active_count() == 1


def test_tokens_are_unique_per_session():
    manager = SessionManager()
    assert manager.establish(ALICE) != manager.establish(ALICE)


@pytest.mark.parametrize("token", [None, "", "not-a-token"])
def test_unknown_tokens_resolve_to_anonymous(token):
    assert SessionManager().resolve(token) is ANONYMOUS


def test_terminate_is_idempotent():
    manager = SessionManager()
    token = manager.establish(ALICE)

    manager.terminate(token)
    manager.terminate(token)
    manager.terminate(None)

    assert manager.resolve(token).is_anonymous
    assert manager.active_count() == 0


def test_sessions_expire():
    clock = FakeClock()
    manager = SessionManager(lifetime=60, clock=clock)
    token = manager.establish(ALICE)

    clock.now += 59
    assert manager.resolve(token) == ALICE

    clock.now += 1
    assert manager.resolve(token) is ANONYMOUS
    assert manager.active_count() == 0


def test_anonymous_identity_cannot_open_a_session():
    with pytest.raises(ValueError):
        SessionManager().establish(ANONYMOUS)


def test_terminate_user_drops_all_their_sessions():
    manager = SessionManager()
    first = manager.establish(ALICE)
    second = manager.establish(ALICE)
    other = manager.establish(Identity(user_id=2, username="bob"))

    assert manager.terminate_user(ALICE.user_id) == 2

    assert manager.resolve(first).is_anonymous
    assert manager.resolve(second).is_anonymous
    assert manager.resolve(other).user_id == 2


def test_no_stale_identity_after_terminate_under_concurrency():
    manager = SessionManager()
    token = manager.establish(ALICE)
    terminated = threading.Event()
    start = threading.Barrier(9)

    def hammer():
        stale = 0
        start.wait()
        for _ in range(2000):
            after_terminate = terminated.is_set()
            identity = manager.resolve(token)
            if after_terminate and identity.is_authenticated:
                stale += 1
        return stale

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(hammer) for _ in range(8)]
        start.wait()
        manager.terminate(token)
        terminated.set()
        results = [f.result() for f in futures]

    assert results == [0] * 8
    assert manager.resolve(token) is ANONYMOUS


def test_authenticate_with_username_or_email(make_user):
    user = make_user("alice", email="alice@example.com")
    manager = SessionManager()

    assert manager.authenticate("alice", "Secret123!") == Identity(user.id, "alice")
    assert manager.authenticate("alice@example.com", "Secret123!") == Identity(user.id, "alice")


def test_authenticate_failures_share_one_message(make_user):
    make_user("alice")
    manager = SessionManager()

    with pytest.raises(InvalidCredentials) as wrong_password:
        manager.authenticate("alice", "nope")
    with pytest.raises(InvalidCredentials) as unknown_user:
        manager.authenticate("nobody", "Secret123!")

    assert wrong_password.value.message == unknown_user.value.message == "Incorrect username or password"


def test_opening_a_session_sweeps_expired_ones():
    clock = FakeClock()
    manager = SessionManager(lifetime=60, clock=clock)
    for _ in range(1000):
        manager.establish(ALICE)
    assert len(manager) == 1000

    clock.now += 10000
    fresh = manager.establish(Identity(user_id=2, username="bob"))

    assert len(manager) == 1
    assert manager.active_count() == 1
    assert manager.resolve(fresh).user_id == 2
