import logging

from tenantgate.app.services.notifier import Notifier

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """Notifier that writes outgoing emails to the log instead of sending them"""

    async def send_magic_link(self, email: str, url: str, expires_minutes: int) -> None:
        logger.info(
            f"Magic link email to {email} (valid {expires_minutes} minutes): {url}"
        )

    async def send_verification_email(self, email: str, name: str, url: str) -> None:
        logger.info(f"Verification email to {name} <{email}>: {url}")
