"""Screen-flow state machine.

Screens: LOGIN -> UPLOAD -> DETAILS -> DASHBOARD, plus HISTORY. The
controller owns an ``AppState`` and writes through ``AppStore`` whenever the
auth flag or the history list changes.

Only one analysis may be in flight. Each submission takes a request token
from a generation counter; logging out advances the generation, so a result
that completes afterwards is dropped. Navigating away does not: the last
response still wins.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import AgriScanError, TransitionError, ValidationError
from .models import AnalysisResult, CropDetails, HistoryItem, Screen
from .storage import AppStore

logger = logging.getLogger(__name__)

ANALYSIS_FAILED = "Analysis failed. Please try again."

AUTHENTICATED_SCREENS = {Screen.UPLOAD, Screen.DETAILS, Screen.DASHBOARD, Screen.HISTORY}
NAV_TARGETS = {Screen.UPLOAD, Screen.HISTORY}


@dataclass
class AppState:
    authenticated: bool = False
    screen: Screen = Screen.LOGIN
    image: Optional[str] = None
    result: Optional[AnalysisResult] = None
    history: List[HistoryItem] = field(default_factory=list)
    busy: bool = False
    generation: int = 0
    alert: Optional[str] = None


def now_millis() -> int:
    return int(time.time() * 1000)


class ScreenFlowController:
    def __init__(self, store: AppStore, clock=now_millis):
        self.store = store
        self.clock = clock
        authenticated = store.is_authenticated()
        self.state = AppState(
            authenticated=authenticated,
            screen=Screen.UPLOAD if authenticated else Screen.LOGIN,
            history=store.load_history(),
        )

    @property
    def screen(self) -> Screen:
        return self.state.screen

    def _require(self, *screens):
        if self.state.screen not in screens:
            allowed = ", ".join(s.value for s in screens)
            raise TransitionError(f"Action not allowed on {self.state.screen.value} (needs {allowed})")

    # ---------------- auth ----------------
    def login(self, email: str, password: str):
        """Demo login: any non-empty email and password is accepted."""
        self._require(Screen.LOGIN)
        if not email or not password:
            raise ValidationError("Please fill in all fields")
        self.state.authenticated = True
        self.store.set_authenticated(True)
        self.state.screen = Screen.UPLOAD
        logger.info("Signed in as %s", email)

    def logout(self):
        self._require(*AUTHENTICATED_SCREENS)
        self.state.authenticated = False
        self.store.set_authenticated(False)
        self.state.screen = Screen.LOGIN
        self.state.image = None
        self.state.result = None
        self.state.generation += 1

    # ---------------- navigation ----------------
    def navigate(self, screen: Screen):
        self._require(*AUTHENTICATED_SCREENS)
        screen = Screen(screen)
        if screen not in NAV_TARGETS:
            raise TransitionError(f"Cannot navigate directly to {screen.value}")
        self.state.screen = screen

    def select_image(self, data_uri: str):
        self._require(Screen.UPLOAD)
        self.state.image = data_uri
        self.state.screen = Screen.DETAILS

    def back(self):
        self._require(Screen.DETAILS)
        self.state.screen = Screen.UPLOAD

    def new_scan(self):
        self._require(Screen.DASHBOARD)
        self.state.image = None
        self.state.result = None
        self.state.screen = Screen.UPLOAD

    def select_history_item(self, item: HistoryItem):
        self._require(Screen.HISTORY)
        self.state.image = item.image_url
        self.state.result = item.result()
        self.state.screen = Screen.DASHBOARD

    def dismiss_alert(self):
        self.state.alert = None

    # ---------------- analysis ----------------
    def begin_analysis(self) -> Optional[int]:
        """Mark an analysis as in flight; None when one already is or no image is set."""
        self._require(Screen.DETAILS)
        if self.state.busy:
            logger.warning("Analysis already in progress, ignoring submit")
            return None
        if not self.state.image:
            logger.warning("Submit without an image, ignoring")
            return None
        self.state.busy = True
        self.state.alert = None
        return self.state.generation

    def is_stale(self, token: int) -> bool:
        return token != self.state.generation

    def complete_analysis(self, token: int, result: AnalysisResult, details: CropDetails,
                          image: Optional[str] = None) -> bool:
        self.state.busy = False
        if self.is_stale(token):
            logger.info("Dropping analysis result from a previous session")
            return False
        stamp = self.clock()
        item = HistoryItem(
            **result.model_dump(),
            id=str(stamp),
            timestamp=stamp,
            imageUrl=image or self.state.image,
            cropDetails=details,
        )
        self.state.history = [item] + self.state.history
        self.store.save_history(self.state.history)
        self.state.result = result
        self.state.screen = Screen.DASHBOARD
        return True

    def fail_analysis(self, token: int, error: Exception):
        self.state.busy = False
        logger.error("Analysis failed: %s", error)
        if not self.is_stale(token):
            self.state.alert = ANALYSIS_FAILED

    def submit_details(self, details: CropDetails, client) -> bool:
        """Run one analysis through ``client`` and move to the dashboard on success."""
        if not details.crop_type or not details.soil_type or not details.plant_age:
            raise ValidationError("Please fill in all crop details.")
        token = self.begin_analysis()
        if token is None:
            return False
        image = self.state.image
        try:
            result = client.analyze_plant_image(image, details)
        except AgriScanError as e:
            self.fail_analysis(token, e)
            return False
        except Exception:
            self.state.busy = False
            raise
        return self.complete_analysis(token, result, details, image)
