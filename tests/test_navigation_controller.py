from unittest.mock import Mock

import pytest

from imgsort.ui.controllers.navigation_controller import NavigationController


class DummyCtx:
    def __init__(self, session):
        self.session = session
        self.statuses = []

    def get_session(self):
        return self.session

    def status_message(self, msg, timeout=3000):
        self.statuses.append(msg)


def make_session(index=1, moved=True):
    session = Mock()
    session.cursor.index = index
    session.next.return_value = moved
    session.prev.return_value = moved
    session.first.return_value = moved
    session.last.return_value = moved
    return session


@pytest.mark.parametrize("direction", ["right", "down", "next"])
def test_forward_directions_call_next(direction):
    session = make_session()
    nc = NavigationController(DummyCtx(session))
    assert nc.navigate(direction) is True
    session.next.assert_called_once()
    session.prev.assert_not_called()


@pytest.mark.parametrize("direction", ["left", "up", "prev"])
def test_backward_directions_call_prev(direction):
    session = make_session()
    nc = NavigationController(DummyCtx(session))
    assert nc.navigate(direction) is True
    session.prev.assert_called_once()


def test_home_and_end():
    session = make_session()
    nc = NavigationController(DummyCtx(session))
    nc.navigate("home")
    nc.navigate("end")
    session.first.assert_called_once()
    session.last.assert_called_once()


def test_clamped_move_posts_status():
    session = make_session(moved=False)
    ctx = DummyCtx(session)
    nc = NavigationController(ctx)

    assert nc.navigate("right") is False
    assert nc.navigate("left") is False
    assert ctx.statuses == ["Already at the last image", "Already at the first image"]


def test_no_session_or_empty_catalog_does_nothing():
    assert NavigationController(DummyCtx(None)).navigate("right") is False
    session = make_session(index=None)
    assert NavigationController(DummyCtx(session)).navigate("right") is False
    session.next.assert_not_called()


def test_unknown_direction_is_ignored():
    session = make_session()
    assert NavigationController(DummyCtx(session)).navigate("sideways") is False


def test_retry_current_posts_status_only_when_retried():
    session = make_session()
    ctx = DummyCtx(session)
    nc = NavigationController(ctx)

    session.retry_current.return_value = False
    assert nc.retry_current() is False
    session.retry_current.return_value = True
    assert nc.retry_current() is True
    assert ctx.statuses == ["Retrying image load..."]
