"""Email queue: producers append rows, a periodic task sends them through Resend."""

from __future__ import annotations

import logging
import re
import uuid

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.config import settings
from nextmove.models.email_queue import EmailQueue
from nextmove.models.enums import EmailStatus, ProfileRole, RecipientGroup
from nextmove.models.profile import Profile

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailDeliveryError(Exception):
    pass


class ResendClient:
    """Thin async wrapper over the Resend ``/emails`` endpoint."""

    def __init__(self) -> None:
        self.api_key = settings.resend_api_key
        self.base_url = settings.resend_base_url
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=15.0)
        return self._client

    async def send(self, bcc: list[str], subject: str, html: str) -> None:
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured")
        client = await self._get_client()
        response = await client.post(
            "/emails",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "from": settings.email_from_address,
                "to": [settings.email_sink_address],
                "bcc": bcc,
                "subject": subject,
                "html": html,
            },
        )
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise EmailDeliveryError(f"Resend error {response.status_code}: {message}")

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


class EmailService:
    def __init__(self, db: AsyncSession, client: ResendClient | None = None):
        self.db = db
        self.client = client or ResendClient()

    # ------------------------------------------------------------------
    # Enqueue
    # ------------------------------------------------------------------

    async def queue_email(
        self,
        subject: str,
        body: str,
        recipients: list[str],
        recipient_group: RecipientGroup = RecipientGroup.SPECIFIC,
        sender_id: uuid.UUID | None = None,
    ) -> EmailQueue:
        """Append a pending email. ``recipients`` may hold addresses or profile ids."""
        row = EmailQueue(
            sender_id=sender_id,
            subject=subject,
            body=body,
            recipient_group=recipient_group,
            recipient_emails=[str(r) for r in recipients],
            status=EmailStatus.PENDING,
        )
        self.db.add(row)
        await self.db.flush()
        return row

    # ------------------------------------------------------------------
    # Recipient resolution
    # ------------------------------------------------------------------

    async def resolve_recipients(self, row: EmailQueue) -> list[str]:
        if row.recipient_group == RecipientGroup.SPECIFIC:
            addresses: list[str] = []
            profile_ids: list[uuid.UUID] = []
            for raw in row.recipient_emails or []:
                if _EMAIL_RE.match(raw):
                    addresses.append(raw)
                    continue
                try:
                    profile_ids.append(uuid.UUID(raw))
                except ValueError:
                    logger.warning("Dropping unrecognised recipient %r on email %s", raw, row.id)
            if profile_ids:
                result = await self.db.execute(
                    select(Profile.email).where(Profile.id.in_(profile_ids))
                )
                addresses.extend(e for e in result.scalars().all() if e)
        else:
            query = select(Profile.email).where(Profile.email.is_not(None))
            if row.recipient_group == RecipientGroup.CLIENTS:
                query = query.where(Profile.role == ProfileRole.CLIENT)
            elif row.recipient_group == RecipientGroup.FORWARDERS:
                query = query.where(Profile.role == ProfileRole.FORWARDER)
            result = await self.db.execute(query)
            addresses = list(result.scalars().all())

        # De-duplicate, keep order
        return list(dict.fromkeys(addresses))

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def process_queue(self, batch_size: int | None = None) -> dict:
        """Claim up to ``batch_size`` pending rows and send them.

        A row with partial failures still counts as sent; the failed count
        is kept in ``error_message``.
        """
        stats = {"processed": 0, "sent": 0, "failed": 0}
        limit = batch_size or settings.email_queue_batch_size

        result = await self.db.execute(
            select(EmailQueue)
            .where(EmailQueue.status == EmailStatus.PENDING)
            .order_by(EmailQueue.created_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        rows = list(result.scalars().all())
        for row in rows:
            row.status = EmailStatus.PROCESSING
        await self.db.flush()

        for row in rows:
            stats["processed"] += 1
            recipients = await self.resolve_recipients(row)
            if not recipients:
                row.status = EmailStatus.SENT
                row.error_message = "No recipients"
                stats["sent"] += 1
                continue

            sent, failed = 0, 0
            chunk = settings.email_bcc_batch_size
            for start in range(0, len(recipients), chunk):
                batch = recipients[start:start + chunk]
                try:
                    await self.client.send(batch, row.subject, row.body)
                    sent += len(batch)
                except (EmailDeliveryError, httpx.HTTPError) as exc:
                    logger.error("Email %s batch send failed: %s", row.id, exc)
                    failed += len(batch)

            row.status = EmailStatus.SENT if sent > 0 else EmailStatus.FAILED
            row.error_message = f"Failed recipients: {failed}" if failed else None
            stats["sent" if sent > 0 else "failed"] += 1

        await self.db.flush()
        logger.info("Email queue run: %s", stats)
        return stats
