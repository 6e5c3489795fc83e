"""
Email notifications for challenge links.

Sends two kinds of transactional email through the Brevo HTTP API:
- "challenge created": the link to a newly started challenge
- "link requested": the link again, for users who lost it

Delivery is fire-and-forget. Every failure (missing API key, network error,
non-2xx response) is logged and swallowed so it can never affect the
request that triggered it.
"""

import html
import logging
from typing import Optional

import httpx

from ..config import get_settings
from ..models.challenge import Challenge


logger = logging.getLogger(__name__)

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"


class EmailNotifier:
    """
    Brevo transactional email client.

    Usage:
        notifier = EmailNotifier(api_key="xkeysib-...", app_url="https://example.com")
        await notifier.send_challenge_created("user@example.com", challenge)
    """

    def __init__(
        self,
        api_key: str = "",
        from_email: str = "noreply@example.com",
        from_name: str = "Challenge Tracker",
        app_url: str = "http://localhost:3000",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.app_url = app_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def challenge_url(self, challenge_id: str) -> str:
        return f"{self.app_url}/challenge/{challenge_id}"

    def _render(self, challenge: Challenge, is_new: bool) -> tuple[str, str]:
        """Subject and HTML body for a challenge email."""
        url = html.escape(self.challenge_url(challenge.id))
        activities = ", ".join(html.escape(a) for a in challenge.activities)

        if is_new:
            subject = "Your challenge has started!"
            heading = "Challenge Started!"
            intro = (
                f"You've just started a <strong>{challenge.duration}-day challenge</strong> "
                f"tracking {activities}."
            )
            tip = "Bookmark this link or keep this email. The URL is your personal access to your challenge."
        else:
            subject = "Here's your challenge link"
            heading = "Your Challenge Link"
            intro = (
                f"Here's the link to your <strong>{challenge.duration}-day challenge</strong> "
                f"tracking {activities}:"
            )
            tip = "Bookmark this link to get back to your challenge anytime."

        body = f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{subject}</title></head>
  <body style="font-family: sans-serif; line-height: 1.6; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1>{heading}</h1>
    <p>{intro}</p>
    <p><a href="{url}">{url}</a></p>
    <p style="font-size: 14px;">{tip}</p>
  </body>
</html>"""
        return subject, body

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }
        if self._client is not None:
            return await self._client.post(BREVO_SEND_URL, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(BREVO_SEND_URL, json=payload, headers=headers)

    async def send_challenge_email(self, to: str, challenge: Challenge, is_new: bool) -> bool:
        """
        Send a challenge link email.

        Returns:
            True if the provider accepted the message, False otherwise
        """
        kind = "created" if is_new else "link"
        if not self.enabled:
            logger.info(f"Email disabled (no API key); skipping {kind} email for {challenge.id}")
            return False

        subject, body = self._render(challenge, is_new)
        payload = {
            "sender": {"email": self.from_email, "name": self.from_name},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": body,
        }

        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to send {kind} email for challenge {challenge.id}: {e}")
            return False

        if response.status_code >= 300:
            logger.warning(
                f"Email provider rejected {kind} email for challenge {challenge.id}: "
                f"{response.status_code} {response.text[:200]}"
            )
            return False

        logger.info(f"Sent {kind} email for challenge {challenge.id} to {to}")
        return True

    async def send_challenge_created(self, to: str, challenge: Challenge) -> bool:
        return await self.send_challenge_email(to, challenge, is_new=True)

    async def send_link_requested(self, to: str, challenge: Challenge) -> bool:
        return await self.send_challenge_email(to, challenge, is_new=False)


def create_notifier() -> EmailNotifier:
    """Build a notifier from application settings."""
    settings = get_settings()
    return EmailNotifier(
        api_key=settings.brevo_api_key,
        from_email=settings.brevo_from_email,
        from_name=settings.brevo_from_name,
        app_url=settings.app_url,
        timeout=settings.email_timeout_seconds,
    )
