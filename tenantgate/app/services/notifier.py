from abc import ABC, abstractmethod


class Notifier(ABC):
    """Outbound email seam - application layer"""

    @abstractmethod
    async def send_magic_link(self, email: str, url: str, expires_minutes: int) -> None:
        """Deliver a passwordless login link"""
        pass

    @abstractmethod
    async def send_verification_email(self, email: str, name: str, url: str) -> None:
        """Deliver a signed email-verification link"""
        pass
