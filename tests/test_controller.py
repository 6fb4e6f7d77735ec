import pytest

from agriscan.controller import ANALYSIS_FAILED, ScreenFlowController
from agriscan.errors import ParseError, TransitionError, TransportError, ValidationError
from agriscan.models import CropDetails, Screen
from agriscan.storage import AppStore, MemoryStorage
from conftest import TINY_JPEG_URI

OTHER_IMAGE = "data:image/png;base64,iVBORw0KGgo="


class StubClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def analyze_plant_image(self, image, details):
        self.calls.append((image, details))
        if self.error:
            raise self.error
        return self.result


class Clock:
    def __init__(self, start=1700000000000):
        self.now = start

    def __call__(self):
        self.now += 1000
        return self.now


@pytest.fixture
def ctl(store):
    c = ScreenFlowController(store, clock=Clock())
    c.login("farmer@example.com", "secret")
    return c


def at_details(ctl):
    ctl.select_image(TINY_JPEG_URI)
    return ctl


def test_starts_at_login_when_not_authenticated(store):
    assert ScreenFlowController(store).screen == Screen.LOGIN


def test_starts_at_upload_when_authenticated(store):
    store.set_authenticated(True)
    assert ScreenFlowController(store).screen == Screen.UPLOAD


def test_login_persists_flag(store):
    ctl = ScreenFlowController(store)
    ctl.login("farmer@example.com", "secret")
    assert ctl.screen == Screen.UPLOAD
    assert ctl.state.authenticated
    assert store.is_authenticated()


@pytest.mark.parametrize("email, password", [("", "secret"), ("farmer@example.com", "")])
def test_login_requires_both_fields(store, email, password):
    ctl = ScreenFlowController(store)
    with pytest.raises(ValidationError):
        ctl.login(email, password)
    assert ctl.screen == Screen.LOGIN
    assert not store.is_authenticated()


def test_upload_details_back_keeps_image(ctl):
    at_details(ctl)
    assert ctl.screen == Screen.DETAILS
    ctl.back()
    assert ctl.screen == Screen.UPLOAD
    assert ctl.state.image == TINY_JPEG_URI


def test_successful_submission(ctl, result, details, store):
    at_details(ctl)
    client = StubClient(result=result)
    assert ctl.submit_details(details, client)
    assert ctl.screen == Screen.DASHBOARD
    assert ctl.state.result == result
    assert not ctl.state.busy
    assert client.calls == [(TINY_JPEG_URI, details)]

    item = ctl.state.history[0]
    assert item.disease == result.disease
    assert item.image_url == TINY_JPEG_URI
    assert item.crop_details == details
    assert item.id == str(item.timestamp)
    assert store.load_history() == ctl.state.history


@pytest.mark.parametrize("error", [TransportError("offline"), ParseError("garbage")])
def test_failed_submission_shows_generic_alert(ctl, details, store, error):
    at_details(ctl)
    assert not ctl.submit_details(details, StubClient(error=error))
    assert ctl.screen == Screen.DETAILS
    assert ctl.state.alert == ANALYSIS_FAILED
    assert not ctl.state.busy
    assert store.load_history() == []
    ctl.dismiss_alert()
    assert ctl.state.alert is None


def test_unexpected_error_propagates_and_clears_busy(ctl, details):
    at_details(ctl)
    with pytest.raises(RuntimeError):
        ctl.submit_details(details, StubClient(error=RuntimeError("bug")))
    assert not ctl.state.busy


def test_submission_requires_all_details(ctl):
    at_details(ctl)
    client = StubClient()
    with pytest.raises(ValidationError):
        ctl.submit_details(CropDetails(cropType="Tomato", soilType="", plantAge="1 week"), client)
    assert client.calls == []


def test_busy_blocks_reentrant_submission(ctl, result, details):
    at_details(ctl)
    token = ctl.begin_analysis()
    assert token is not None
    assert ctl.state.busy
    client = StubClient(result=result)
    assert not ctl.submit_details(details, client)
    assert client.calls == []
    assert ctl.complete_analysis(token, result, details)
    assert not ctl.state.busy


def test_history_prepends_newest_first(ctl, result, details):
    for _ in range(3):
        at_details(ctl)
        ctl.submit_details(details, StubClient(result=result))
        ctl.new_scan()
    stamps = [i.timestamp for i in ctl.state.history]
    assert stamps == sorted(stamps, reverse=True)
    assert len(ctl.state.history) == 3


def test_history_survives_restart(ctl, result, details, store):
    at_details(ctl)
    ctl.submit_details(details, StubClient(result=result))
    restarted = ScreenFlowController(store)
    assert restarted.screen == Screen.UPLOAD
    assert restarted.state.history == ctl.state.history


def test_new_scan_clears_image_and_result(ctl, result, details):
    at_details(ctl)
    ctl.submit_details(details, StubClient(result=result))
    ctl.new_scan()
    assert ctl.screen == Screen.UPLOAD
    assert ctl.state.image is None
    assert ctl.state.result is None


def test_select_history_item_loads_stored_result_and_image(ctl, result, details):
    at_details(ctl)
    ctl.submit_details(details, StubClient(result=result))
    ctl.new_scan()
    ctl.select_image(OTHER_IMAGE)
    ctl.submit_details(details, StubClient(result=result))
    ctl.navigate(Screen.HISTORY)
    older = ctl.state.history[1]
    assert older.image_url == TINY_JPEG_URI
    ctl.select_history_item(older)
    assert ctl.screen == Screen.DASHBOARD
    assert ctl.state.result == result
    assert ctl.state.image == TINY_JPEG_URI


def test_select_history_item_after_new_scan_shows_its_image(ctl, result, details):
    at_details(ctl)
    ctl.submit_details(details, StubClient(result=result))
    ctl.new_scan()
    assert ctl.state.image is None
    ctl.navigate(Screen.HISTORY)
    ctl.select_history_item(ctl.state.history[0])
    assert ctl.state.image == TINY_JPEG_URI


def test_navigation_targets(ctl):
    at_details(ctl)
    ctl.navigate(Screen.HISTORY)
    assert ctl.screen == Screen.HISTORY
    assert ctl.state.image == TINY_JPEG_URI
    ctl.navigate("UPLOAD")
    assert ctl.screen == Screen.UPLOAD
    with pytest.raises(TransitionError):
        ctl.navigate(Screen.DASHBOARD)


def test_invalid_transitions(store, ctl):
    with pytest.raises(TransitionError):
        ctl.back()
    with pytest.raises(TransitionError):
        ctl.new_scan()
    with pytest.raises(TransitionError):
        ctl.begin_analysis()
    fresh = ScreenFlowController(AppStore(MemoryStorage()))
    with pytest.raises(TransitionError):
        fresh.logout()
    with pytest.raises(TransitionError):
        fresh.navigate(Screen.HISTORY)


def test_logout_clears_everything(ctl, store, result, details):
    at_details(ctl)
    ctl.submit_details(details, StubClient(result=result))
    ctl.logout()
    assert ctl.screen == Screen.LOGIN
    assert not ctl.state.authenticated
    assert ctl.state.image is None
    assert ctl.state.result is None
    assert not store.is_authenticated()
    assert len(ctl.state.history) == 1


def test_result_after_logout_is_discarded(ctl, store, result, details):
    at_details(ctl)
    token = ctl.begin_analysis()
    ctl.logout()
    assert ctl.is_stale(token)
    assert not ctl.complete_analysis(token, result, details, TINY_JPEG_URI)
    assert ctl.screen == Screen.LOGIN
    assert ctl.state.history == []
    assert store.load_history() == []


def test_last_response_wins_after_navigating_away(ctl, result, details):
    at_details(ctl)
    token = ctl.begin_analysis()
    ctl.navigate(Screen.HISTORY)
    assert not ctl.is_stale(token)
    assert ctl.complete_analysis(token, result, details)
    assert ctl.screen == Screen.DASHBOARD
