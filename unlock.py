"""
Hidden admin access.

The admin view is reached by clicking the logo five times in quick succession
(or through the "Admin Access" link) and then entering the shared 6-digit
code. `AdminGate` is the state machine a presentation layer drives; the API's
unlock endpoint reuses `sanitize_code` and `verify_code` for the same check.

AdminSettings.session_expiry is display-only: nothing here re-locks on time.
"""
import hmac
import logging
import string
import time
from enum import Enum
from typing import Callable, Optional

from admin_store import AdminStore
from errors import ValidationError, StoreError

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
LOGO_CLICKS_REQUIRED = 5
LOGO_CLICK_WINDOW = 2.0  # seconds

MSG_CODE_FORMAT = "Please enter a 6-digit code"
MSG_CODE_INVALID = "Invalid secret code! Please try again."
MSG_LOOKUP_FAILED = "An error occurred. Please try again."


def sanitize_code(raw: str) -> str:
    """Keep digits only, at most six of them."""
    return "".join(ch for ch in (raw or "") if ch in string.digits)[:CODE_LENGTH]


def is_code_format(code: str) -> bool:
    return len(code) == CODE_LENGTH and all(ch in string.digits for ch in code)


def verify_code(code: str, secret: str) -> bool:
    return hmac.compare_digest(code.encode(), secret.encode())


class GateState(str, Enum):
    LOCKED = "locked"
    CODE_ENTRY_OPEN = "code_entry_open"
    UNLOCKED = "unlocked"


class ResetTimer:
    """Fire-once countdown; restart() replaces any pending deadline."""

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.clock = clock
        self.deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self.deadline is not None

    def restart(self) -> None:
        self.deadline = self.clock() + self.delay

    def cancel(self) -> None:
        self.deadline = None

    def expired(self) -> bool:
        return self.deadline is not None and self.clock() >= self.deadline


class AdminGate:
    def __init__(self, secret_lookup: Callable[[], str], clock: Callable[[], float] = time.monotonic):
        self.secret_lookup = secret_lookup
        self.timer = ResetTimer(LOGO_CLICK_WINDOW, clock)
        self.state = GateState.LOCKED
        self.click_count = 0
        self.code = ""
        self.error = ""

    # logo clicks
    def on_timer_expired(self) -> None:
        self.click_count = 0
        self.timer.cancel()

    def poll(self) -> None:
        if self.timer.expired():
            self.on_timer_expired()

    def logo_click(self) -> GateState:
        self.poll()
        self.click_count += 1
        if self.click_count >= LOGO_CLICKS_REQUIRED:
            self.click_count = 0
            if self.state == GateState.LOCKED:
                self.open_code_entry()
        self.timer.restart()
        return self.state

    # code entry
    def open_code_entry(self) -> None:
        if self.state == GateState.LOCKED:
            self.state = GateState.CODE_ENTRY_OPEN
            self.code = ""
            self.error = ""

    def enter(self, raw: str) -> str:
        self.code = sanitize_code(raw)
        self.error = ""
        return self.code

    def submit(self) -> bool:
        if self.state != GateState.CODE_ENTRY_OPEN:
            return self.state == GateState.UNLOCKED
        if len(self.code) != CODE_LENGTH:
            self.error = MSG_CODE_FORMAT
            return False
        try:
            secret = self.secret_lookup()
        except Exception:
            logger.exception("Failed to verify secret code")
            self.error = MSG_LOOKUP_FAILED
            return False
        if not verify_code(self.code, secret):
            logger.warning("Rejected admin code attempt")
            self.error = MSG_CODE_INVALID
            return False
        self.state = GateState.UNLOCKED
        self.code = ""
        self.error = ""
        logger.info("Admin view unlocked")
        return True

    def cancel(self) -> None:
        if self.state == GateState.CODE_ENTRY_OPEN:
            self.state = GateState.LOCKED
            self.code = ""
            self.error = ""

    def close(self) -> None:
        if self.state == GateState.UNLOCKED:
            self.state = GateState.LOCKED


class SettingsService:
    def __init__(self, gateway, store: AdminStore):
        self.gateway = gateway
        self.store = store

    def update_secret_code(self, code: str) -> None:
        if not code or len(code) < CODE_LENGTH:
            raise ValidationError("Secret code must be at least 6 characters")
        if not self.gateway.update_admin_settings(code):
            raise StoreError("Failed to update secret code")
        self.store.settings = self.store.settings.model_copy(update={"secret_code": code})
        logger.info("Secret code updated")
