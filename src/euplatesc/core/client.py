"""
HTTP client for the EuPlatesc gateway and manager API.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Union

import requests

from .config import ClientConfig
from .fields import make_nonce, utc_now
from .operations import Auth, Operation, get_operation
from .payloads import (
    CallbackPayload,
    Order,
    build_callback_fields,
    build_operation_fields,
    build_payment_url,
)
from .signing import select_signing_key, verify_signature

__all__ = [
    "CallbackResult",
    "EuPlatescClient",
    "GatewayResponse",
    "TransportError",
    "post_form",
    "verify_callback",
]

APPROVED_ACTION = "0"


class TransportError(RuntimeError):
    """Raised when the manager API answers with an HTTP error or an unreadable body."""


def _decode_body(response: requests.Response, url: str) -> Any:
    try:
        payload = response.json()
    except ValueError as exc:
        raise TransportError(
            f"Failed to parse JSON from the manager API at {url}: {response.text}"
        ) from exc
    # Some endpoints wrap their JSON document in a JSON string.
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise TransportError(
                f"Failed to parse JSON from the manager API at {url}: {payload}"
            ) from exc
    return payload


def post_form(
    session: requests.Session,
    url: str,
    body: Mapping[str, str],
    *,
    timeout: Optional[float] = None,
) -> Any:
    response = session.post(
        url,
        data=dict(body),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=timeout,
    )
    if response.status_code >= 400:
        raise TransportError(
            f"Manager API responded with {response.status_code}: {response.text}"
        )
    return _decode_body(response, url)


@dataclass(frozen=True)
class GatewayResponse:
    """
    Manager API answer. ``error`` and ``ecode`` are passed through untouched.
    """

    success: Any
    error: Optional[str]
    ecode: Optional[str]
    message: Optional[str]
    raw: Any

    @property
    def ok(self) -> bool:
        return self.error is None and self.success is not None

    @classmethod
    def from_response(cls, payload: Any) -> "GatewayResponse":
        if not isinstance(payload, dict):
            return cls(success=payload, error=None, ecode=None, message=None, raw=payload)
        ecode = payload.get("ecode")
        return cls(
            success=payload.get("success"),
            error=payload.get("error"),
            ecode=None if ecode is None else str(ecode),
            message=payload.get("message"),
            raw=payload,
        )


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of checking a payment return callback."""

    status: str
    action: str
    message: str
    payload: CallbackPayload

    COMPLETE = "complete"
    FAILED = "failed"
    INVALID = "invalid"

    @property
    def success(self) -> bool:
        return self.status == self.COMPLETE

    @property
    def trusted(self) -> bool:
        return self.status != self.INVALID


def verify_callback(
    config: ClientConfig,
    payload: Union[CallbackPayload, Mapping[str, Any]],
) -> CallbackResult:
    """
    Authenticate a return callback and classify it.

    A signature mismatch yields an ``invalid`` result whatever action code the
    callback claims; nothing is raised for untrusted input.
    """
    if not isinstance(payload, CallbackPayload):
        payload = CallbackPayload.from_mapping(payload)

    trusted = verify_signature(
        build_callback_fields(payload),
        payload.signature,
        select_signing_key(config, Auth.MERCHANT),
        uppercase=True,
    )
    if not trusted:
        logging.warning(
            "Rejected callback for invoice %s: signature mismatch", payload.invoice_id
        )
        status = CallbackResult.INVALID
    elif payload.action == APPROVED_ACTION:
        status = CallbackResult.COMPLETE
    else:
        logging.info(
            "Callback for invoice %s reports action %s: %s",
            payload.invoice_id,
            payload.action,
            payload.message,
        )
        status = CallbackResult.FAILED
    return CallbackResult(
        status=status,
        action=payload.action,
        message=payload.message,
        payload=payload,
    )


DateLike = Union[date, datetime]


class EuPlatescClient:
    """
    Thin convenience wrapper around the payment page and the manager API.

    ``clock`` and ``nonce_factory`` default to the UTC wall clock and a
    CSPRNG backed nonce; tests can pin both.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
        nonce_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self._clock = clock or utc_now
        self._nonce_factory = nonce_factory or make_nonce

    @property
    def merchant_id(self) -> str:
        return self.config.merchant_id

    @property
    def secret_key(self) -> str:
        return self.config.secret_key

    @property
    def test_mode(self) -> bool:
        return self.config.test_mode

    def payment_url(self, order: Order) -> str:
        return build_payment_url(
            self.config, order, now=self._clock(), nonce=self._nonce_factory()
        )

    def build_request(self, operation: Union[str, Operation], **params: Any) -> Dict[str, str]:
        """
        Return the signed form body for ``operation`` without sending it.
        """
        if isinstance(operation, str):
            operation = get_operation(operation)
        return build_operation_fields(
            self.config,
            operation,
            params,
            now=self._clock(),
            nonce=self._nonce_factory(),
        )

    def call(self, operation: Union[str, Operation], **params: Any) -> GatewayResponse:
        body = self.build_request(operation, **params)
        url = self.config.manager_url
        logging.info("Submitting %s request to %s", body["method"], url)
        payload = post_form(self.session, url, body, timeout=self.config.timeout_seconds)
        result = GatewayResponse.from_response(payload)
        if result.error is not None:
            logging.warning(
                "Manager API rejected %s: %s (ecode %s)",
                body["method"],
                result.error,
                result.ecode,
            )
        return result

    def check_status(
        self,
        *,
        epid: Optional[str] = None,
        invoice_id: Optional[str] = None,
    ) -> GatewayResponse:
        return self.call("check_status", epid=epid, invoice_id=invoice_id)

    def capture(self, epid: str) -> GatewayResponse:
        return self.call("capture", epid=epid)

    def reversal(self, epid: str) -> GatewayResponse:
        return self.call("reversal", epid=epid)

    def partial_capture(self, epid: str, amount: Any) -> GatewayResponse:
        return self.call("partial_capture", epid=epid, amount=amount)

    def refund(self, epid: str, amount: Any, reason: str) -> GatewayResponse:
        return self.call("refund", epid=epid, amount=amount, reason=reason)

    def cancel_recurring(self, epid: str, reason: Optional[str] = None) -> GatewayResponse:
        return self.call("cancel_recurring", epid=epid, reason=reason)

    def update_invoice_id(self, epid: str, invoice_id: str) -> GatewayResponse:
        return self.call("update_iid", epid=epid, invoice_id=invoice_id)

    def list_invoices(
        self,
        date_from: DateLike,
        date_to: DateLike,
        *,
        merchant_id: Optional[str] = None,
    ) -> GatewayResponse:
        return self.call(
            "invoices", merchant_id=merchant_id, date_from=date_from, date_to=date_to
        )

    def list_invoice_transactions(self, invoice_id: str) -> GatewayResponse:
        return self.call("invoice", invoice_id=invoice_id)

    def captured_total(
        self,
        date_from: DateLike,
        date_to: DateLike,
        *,
        merchant_ids: Optional[str] = None,
    ) -> GatewayResponse:
        return self.call(
            "captured_total",
            merchant_ids=merchant_ids,
            date_from=date_from,
            date_to=date_to,
        )

    def card_art(self, epid: str) -> GatewayResponse:
        return self.call("cardart", epid=epid)

    def list_saved_cards(self, client_id: str) -> GatewayResponse:
        return self.call("c2p_cards", c2p_cid=client_id)

    def remove_saved_card(self, client_id: str, card_id: str) -> GatewayResponse:
        return self.call("c2p_delete", c2p_cid=client_id, c2p_id=card_id)

    def check_merchant_id(self) -> GatewayResponse:
        return self.call("check_mid")

    def verify_callback(
        self, payload: Union[CallbackPayload, Mapping[str, Any]]
    ) -> CallbackResult:
        return verify_callback(self.config, payload)


