# src/services/payment_client.py

"""Client for the external payment-sheet endpoint."""

import logging
import time
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import (
    PaymentRequestError,
    PaymentServiceError,
    PaymentUnavailableError,
    ValidationError,
)

logger = logging.getLogger("gearzone.payments")


@dataclass(frozen=True)
class PaymentSheet:
    """Secrets needed by the client-side payment sheet."""

    payment_intent_secret: str
    ephemeral_key_secret: str
    customer_id: str
    publishable_key: str = ""


def validate_payment_request(
    total_in_cents: Any, currency: Any,
) -> tuple[int, str]:
    """Check amount and currency before any network call.

    Returns the normalised ``(amount, currency)`` pair.
    """
    if isinstance(total_in_cents, bool) or not isinstance(
        total_in_cents, int
    ):
        msg = f"amount {total_in_cents!r} is not an integer number of cents"
        raise ValidationError(msg)
    if total_in_cents < Settings.PAYMENT_MIN_AMOUNT_CENTS:
        msg = (
            f"amount {total_in_cents} is below the minimum of "
            f"{Settings.PAYMENT_MIN_AMOUNT_CENTS} cents"
        )
        raise ValidationError(msg)
    if not isinstance(currency, str):
        msg = f"currency {currency!r} is not a string"
        raise ValidationError(msg)
    normalised = currency.strip().lower()
    if normalised not in Settings.SUPPORTED_CURRENCIES:
        msg = (
            f"unsupported currency {currency!r} "
            f"(expected one of {', '.join(Settings.SUPPORTED_CURRENCIES)})"
        )
        raise ValidationError(msg)
    return total_in_cents, normalised


def _error_message(resp: curl_requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {resp.status_code}"


def _parse_sheet(resp: curl_requests.Response) -> PaymentSheet:
    try:
        body = resp.json()
    except ValueError as exc:
        msg = "payment sheet response is not JSON"
        raise PaymentServiceError(msg, status_code=200) from exc
    if not isinstance(body, dict):
        msg = f"payment sheet response is not an object: {body!r}"
        raise PaymentServiceError(msg, status_code=200)

    # Older servers answer with clientSecret / ephemeralKey
    try:
        return PaymentSheet(
            payment_intent_secret=str(
                body.get("paymentIntentSecret") or body["clientSecret"]
            ),
            ephemeral_key_secret=str(
                body.get("ephemeralKeySecret") or body["ephemeralKey"]
            ),
            customer_id=str(body["customerId"]),
            publishable_key=str(body.get("publishableKey", "")),
        )
    except KeyError as exc:
        msg = f"payment sheet response missing {exc}"
        raise PaymentServiceError(msg, status_code=200) from exc


class PaymentSheetClient:
    """POSTs ``/payment-sheet`` and maps the response contract.

    400 -> :class:`PaymentRequestError`, 503 -> retried, then
    :class:`PaymentUnavailableError`, anything else non-200 ->
    :class:`PaymentServiceError`.
    """

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = (base_url or Settings.PAYMENT_API_URL).rstrip("/")
        self.session = curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )
        self._timeout: int = Settings.PAYMENT_TIMEOUT

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/payment-sheet"

    def create_payment_sheet(
        self, total_in_cents: int, currency: str,
    ) -> PaymentSheet:
        """Request a payment sheet for *total_in_cents* in *currency*."""
        amount, code = validate_payment_request(total_in_cents, currency)
        payload = {"totalInCents": amount, "currency": code}

        last_error = "no attempt made"
        for attempt in range(Settings.PAYMENT_MAX_RETRIES):
            try:
                resp = self.session.post(
                    self.endpoint,
                    headers=Settings.DEFAULT_HEADERS,
                    json=payload,
                    timeout=self._timeout,
                )
            except Exception as exc:
                last_error = str(exc)
                logger.warning(
                    "Payment request error on attempt %d: %s",
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                time.sleep(Settings.PAYMENT_RETRY_DELAY * (attempt + 1))
                continue

            if resp.status_code == 200:
                sheet = _parse_sheet(resp)
                logger.info(
                    "Payment sheet created (%d %s)", amount, code
                )
                return sheet

            message = _error_message(resp)
            if resp.status_code == 400:
                raise PaymentRequestError(message, status_code=400)
            if resp.status_code != 503:
                logger.error(
                    "Payment endpoint returned HTTP %d: %s",
                    resp.status_code,
                    message,
                )
                raise PaymentServiceError(
                    message, status_code=resp.status_code
                )

            last_error = message
            logger.warning(
                "Payment provider unavailable on attempt %d: %s",
                attempt + 1,
                message,
            )
            time.sleep(Settings.PAYMENT_RETRY_DELAY * (attempt + 1))

        raise PaymentUnavailableError(last_error, status_code=503)

    def close(self) -> None:
        self.session.close()
