# app/services/notification_service.py
import asyncio
import logging
from typing import Awaitable, Callable

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import NotificationError
from app.core.sms_client import create_sms_http_client, is_sms_configured, send_sms
from app.database import new_session
from app.repositories.profile_repo import ProfileRepository
from app.schemas.sale import LowStockEvent

logger = logging.getLogger(__name__)

SmsSender = Callable[[httpx.AsyncClient, str, str], Awaitable[str]]


def low_stock_message(variant_name: str, remaining_stock: int, product_name: str) -> str:
    return (
        f"LOW STOCK ALERT: {product_name} - {variant_name} is running low. "
        f"Only {remaining_stock} left in stock."
    )


class NotificationService:
    """
    Low stock SMS alerts for admins.

    Runs outside the request that recorded the sale (FastAPI background
    task), so it opens its own DB session. Nothing here may affect the
    outcome of a sale.
    """

    def __init__(
        self,
        profile_repo: ProfileRepository,
        session_factory: Callable[[], Session] = new_session,
        sms_sender: SmsSender = send_sms,
        sms_configured: Callable[[], bool] = is_sms_configured,
        http_client_factory: Callable[[], httpx.AsyncClient] = create_sms_http_client,
    ):
        self.profile_repo = profile_repo
        self.session_factory = session_factory
        self.sms_sender = sms_sender
        self.sms_configured = sms_configured
        self.http_client_factory = http_client_factory

    async def send_low_stock_alert(
        self,
        variant_name: str,
        remaining_stock: int,
        product_name: str,
    ) -> int:
        """
        Text every admin that has a phone number.

        Returns the number of messages sent. Missing SMS configuration or
        no recipients is a no-op returning 0.

        All sends are issued concurrently and awaited together; one failed
        recipient does not stop the others.

        Raises:
            NotificationError: recipient lookup failed, or at least one
            send failed (raised after every send has completed).
        """
        if not self.sms_configured():
            logger.info("SMS not configured, skipping low stock alert for %s - %s", product_name, variant_name)
            return 0

        try:
            with self.session_factory() as session:
                recipients = self.profile_repo.list_admin_phone_numbers(session)
        except SQLAlchemyError as exc:
            raise NotificationError(f"Could not load admin phone numbers: {exc}") from exc

        if not recipients:
            logger.info("No admin phone numbers found, skipping low stock alert")
            return 0

        body = low_stock_message(variant_name, remaining_stock, product_name)

        async with self.http_client_factory() as client:
            results = await asyncio.gather(
                *(self.sms_sender(client, number, body) for number in recipients),
                return_exceptions=True,
            )

        failures = [
            (number, result)
            for number, result in zip(recipients, results)
            if isinstance(result, Exception)
        ]
        for number, error in failures:
            logger.error("Low stock SMS to %s failed: %s", number, error)

        sent = len(recipients) - len(failures)
        if failures:
            raise NotificationError(
                f"{len(failures)} of {len(recipients)} low stock SMS failed"
            )

        logger.info("Low stock alert sent to %d admin(s) for %s - %s", sent, product_name, variant_name)
        return sent

    async def alert_low_stock(self, event: LowStockEvent) -> None:
        """
        Fire-and-forget entry point: failures are logged, never raised.
        """
        try:
            await self.send_low_stock_alert(
                event.variant_name,
                event.remaining_stock,
                event.product_name or "Unknown Product",
            )
        except NotificationError as exc:
            logger.warning("Low stock alert for %s not fully delivered: %s", event.sku, exc)
