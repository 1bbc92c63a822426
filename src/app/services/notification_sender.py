"""
Notification collaborator contract.

Delivery is fire-and-forget from the reset flow's point of view.
"""

import logging
from abc import ABC, abstractmethod

from src.app.services.credential_crypto import mask_sensitive

logger = logging.getLogger(__name__)


class INotificationSender(ABC):
    @abstractmethod
    async def send_password_reset(self, email: str, reset_link: str) -> None:
        pass


class LoggingNotificationSender(INotificationSender):
    """Default sender: records the notification in the log without the secret"""

    async def send_password_reset(self, email: str, reset_link: str) -> None:
        base, _, token = reset_link.rpartition("token=")
        logger.info(f"Password reset link for {email}: {base}token={mask_sensitive(token)}")
