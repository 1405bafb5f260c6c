"""Payment gateway adapter for a JSON-over-HTTP payment provider.

The provider exposes ``POST /charges`` and ``POST /refunds``. Both accept an
``Idempotency-Key`` header and answer with a JSON body carrying ``status``
(``succeeded`` or ``declined``), ``id`` and, on decline, ``failure_reason``.
"""

from decimal import Decimal

import requests
import structlog

from storefront.payments.gateway.port import ChargeResult, PaymentGateway, PaymentUnavailable, RefundResult

logger = structlog.get_logger(__name__)


class HttpPaymentGateway(PaymentGateway):
    def __init__(self, base_url: str, api_key: str | None = None, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()

    def _headers(self, idempotency_key: str | None = None) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    def _post(self, path: str, payload: dict, timeout: float, idempotency_key: str | None = None) -> dict:
        """POST ``payload`` and return the decoded body of a usable answer.

        Timeouts, rate limits, rejected credentials and every 5xx mean the
        gateway never decided on the card, so they raise ``PaymentUnavailable``.
        Other 4xx answers are returned with ``http_status`` added so the
        caller can read the decline.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(idempotency_key),
                timeout=timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise PaymentUnavailable(f"Payment gateway timed out after {timeout}s", timed_out=True) from exc
        except requests.exceptions.RequestException as exc:
            raise PaymentUnavailable(f"Payment gateway unreachable: {exc}") from exc

        if response.status_code == 408:
            raise PaymentUnavailable("Payment gateway timed out handling the request", timed_out=True)

        if response.status_code in (401, 403):
            logger.error("payment_gateway_auth_rejected", url=url, status_code=response.status_code)
            raise PaymentUnavailable(f"Payment gateway rejected our credentials (HTTP {response.status_code})")

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("payment_gateway_error", url=url, status_code=response.status_code)
            raise PaymentUnavailable(f"Payment gateway returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentUnavailable("Payment gateway returned a malformed response") from exc

        if not isinstance(body, dict):
            raise PaymentUnavailable("Payment gateway returned a malformed response")

        body["http_status"] = response.status_code
        return body

    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        token: str,
        idempotency_key: str,
        timeout: float,
    ) -> ChargeResult:
        body = self._post(
            "/charges",
            {"amount": str(amount), "currency": currency, "token": token},
            timeout=timeout,
            idempotency_key=idempotency_key,
        )

        http_status = body["http_status"]
        status = body.get("status")

        if http_status < 400 and status == "succeeded":
            return ChargeResult(
                success=True,
                provider_reference=body.get("id"),
                gateway_status="succeeded",
            )

        # Only an explicit refusal of the card is a decline
        if http_status == 402 or status in ("declined", "failed"):
            return ChargeResult(
                success=False,
                provider_reference=body.get("id"),
                gateway_status=status or "declined",
                failure_reason=body.get("failure_reason") or body.get("message") or "Payment declined",
            )

        raise PaymentUnavailable(f"Payment gateway returned HTTP {http_status} with status {status!r}")

    def create_refund(
        self,
        provider_reference: str,
        amount: Decimal,
        reason: str,
        timeout: float,
    ) -> RefundResult:
        body = self._post(
            "/refunds",
            {"charge": provider_reference, "amount": str(amount), "reason": reason},
            timeout=timeout,
            idempotency_key=f"refund-{provider_reference}",
        )

        if body["http_status"] < 400 and body.get("status") == "succeeded":
            return RefundResult(success=True, gateway_refund_id=body.get("id"))
        return RefundResult(success=False, failure_reason=body.get("failure_reason") or "Refund rejected")
