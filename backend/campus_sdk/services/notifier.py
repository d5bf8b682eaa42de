"""
One-time passcode notifier interface

Delivery of OTPs (email, SMS, ...) happens outside the SDK. AuthManager only
hands each passcode to a ResetNotifier; deployments plug in their own.
"""
import datetime as dt
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ResetNotifier(ABC):
    """OTP delivery collaborator"""

    @abstractmethod
    async def send_otp(self, email: str, otp: str, purpose: str, expires_at: dt.datetime) -> None:
        """
        Deliver a passcode

        Parameters:
        - email: Recipient account email
        - otp: The passcode itself
        - purpose: "password_reset" or "login"
        - expires_at: When the passcode stops being accepted
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass


class LoggingNotifier(ResetNotifier):
    """Development notifier: writes the passcode to the application log"""

    @property
    def name(self) -> str:
        return "log"

    async def send_otp(self, email: str, otp: str, purpose: str, expires_at: dt.datetime) -> None:
        logger.warning("[otp] %s code for %s: %s (valid until %s)",
                       purpose, email, otp, expires_at.isoformat())


def get_notifier() -> ResetNotifier:
    """Default notifier used when the caller does not inject one"""
    return LoggingNotifier()
