"""
SocialHub Backend: Password Reset Delivery Interface
======================================================

What:  Abstract contract for delivering password-reset links, plus the
       default implementation that only logs them.
How:   Concrete implementations inherit from Mailer and implement
       send_password_reset(). IdentityService receives one at construction.
Who:   Called by IdentityService.request_password_reset().

The plaintext reset token only ever exists inside the URL handed to the
mailer; the database stores its SHA-256 digest.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from socialhub.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class Mailer(ABC):
    """
    Contract:
        - send_password_reset() is awaited inside the request; an exception
          raised here fails the request and rolls back the stored token
        - Implementations must not log or persist the token anywhere else

    Implementations:
        - LoggingMailer: writes the link to the application log outside
          production; in production only the recipient is logged
    """

    @abstractmethod
    async def send_password_reset(self, email: str, reset_url: str) -> None:
        """
        Delivers a reset link to `email`.

        Args:
            email:      Recipient address (already normalized to lowercase)
            reset_url:  Absolute URL containing the plaintext reset token
        """
        ...


class LoggingMailer(Mailer):
    """Development mailer: the reset URL shows up in the server log."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    async def send_password_reset(self, email: str, reset_url: str) -> None:
        if self.config.is_production:
            # The URL carries a live token; no delivery channel is configured
            logger.warning("Password reset link for %s not delivered: no mailer configured", email)
            return
        logger.info("Password reset requested for %s: %s", email, reset_url)
