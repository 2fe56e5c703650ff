"""Out-of-band messaging: employer verification emails via Resend.

``ResendMessenger.send`` returns the provider's delivery id; any transport
or provider failure surfaces as ``UpstreamUnavailable`` so the caller can
record it against the request without rolling anything back.
"""

from __future__ import annotations

import html
import logging
from typing import Protocol
from urllib.parse import urlencode

import httpx

from verihire.core.constants import VERIFY_PATH
from verihire.core.errors import UpstreamUnavailable
from verihire.models.verification import RequestClaim

logger = logging.getLogger(__name__)


class Messenger(Protocol):
    def send(self, to: str, subject: str, body: str) -> str: ...


class ResendMessenger:
    def __init__(
        self,
        api_key: str,
        api_url: str,
        sender: str,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._sender = sender
        self._timeout = timeout

    def send(self, to: str, subject: str, body: str) -> str:
        if not self._api_key:
            raise UpstreamUnavailable("messaging is not configured (RESEND_API_KEY)")
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    self._api_url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self._sender,
                        "to": [to],
                        "subject": subject,
                        "html": body,
                    },
                )
                response.raise_for_status()
                reply = response.json()
            delivery_id = reply.get("id") if isinstance(reply, dict) else None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "message_send_failed",
                extra={
                    "recipient": to,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
            )
            raise UpstreamUnavailable(f"email delivery failed ({type(exc).__name__})") from exc

        if not delivery_id:
            raise UpstreamUnavailable("email provider returned no delivery id")
        logger.info("message_sent", extra={"recipient": to, "delivery_id": delivery_id})
        return str(delivery_id)


def verification_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{VERIFY_PATH}?{urlencode({'token': token})}"


def render_verification_email(
    claim: RequestClaim, link: str, ttl_days: int = 15
) -> tuple[str, str]:
    """Return ``(subject, html_body)`` asking the employer to attest *claim*."""
    name = html.escape(claim.candidate_name)
    company = html.escape(claim.company)
    position = html.escape(claim.position)
    period = " - ".join(
        html.escape(part) for part in (claim.start_date, claim.end_date) if part
    )
    subject = f"Employment verification request for {claim.candidate_name}"
    body = f"""\
<h2>Employment verification request</h2>
<p><strong>{name}</strong> listed the following role and named you as a contact:</p>
<ul>
  <li><strong>Company:</strong> {company}</li>
  <li><strong>Position:</strong> {position}</li>
  <li><strong>Period:</strong> {period or 'not stated'}</li>
</ul>
<p>Please confirm or deny this claim. You will be asked to prove you are a
unique person; your identity is not shared with the candidate.</p>
<p><a href="{html.escape(link, quote=True)}">Verify employment</a></p>
<p>This link expires in {ttl_days} days.</p>
"""
    return subject, body
