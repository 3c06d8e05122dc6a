"""
Builders for the ordered field sets exchanged with the EuPlatesc gateway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from .config import ClientConfig, ValidationError
from .fields import (
    add_years,
    format_amount,
    format_date,
    format_datetime,
    is_present,
    make_nonce,
    make_timestamp,
    utc_date,
    utc_now,
)
from .operations import Auth, FieldKind, Operation
from .signing import compute_signature, select_signing_key

__all__ = [
    "BillingDetails",
    "CallbackPayload",
    "ExtraParameters",
    "Frequency",
    "LANGUAGES",
    "Order",
    "ShippingDetails",
    "SIGNATURE_FIELD",
    "build_callback_fields",
    "build_operation_fields",
    "build_payment_fields",
    "build_payment_url",
]

SIGNATURE_FIELD = "fp_hash"
TEST_AMOUNT = "1.00"
DEFAULT_FREQUENCY_DAYS = 30
LANGUAGES = frozenset({"ro", "en", "fr", "de", "it", "es", "hu"})


@dataclass(frozen=True)
class Frequency:
    """Recurring payment schedule. ``expires_at`` defaults to one year from today."""

    days: Optional[int] = DEFAULT_FREQUENCY_DAYS
    expires_at: Optional[date] = None


@dataclass(frozen=True)
class BillingDetails:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class ShippingDetails(BillingDetails):
    pass


@dataclass(frozen=True)
class ExtraParameters:
    """Redirect and callback options forwarded to the hosted payment page."""

    extra: Optional[str] = None
    silent_url: Optional[str] = None
    success_url: Optional[str] = None
    failed_url: Optional[str] = None
    ep_target: Optional[str] = None
    ep_method: Optional[str] = None
    back_to_site: Optional[str] = None
    back_to_site_method: Optional[str] = None
    expire_url: Optional[str] = None
    rate: Optional[str] = None
    filter_rate: Optional[str] = None
    channel: Optional[str] = None
    generate_epid: Optional[str] = None
    lang: Optional[str] = None


@dataclass(frozen=True)
class Order:
    amount: Any
    currency: str
    invoice_id: str
    description: str
    frequency: Optional[Frequency] = None
    valability: Optional[datetime] = None
    c2p_id: Optional[str] = None
    c2p_cid: Optional[str] = None
    billing: BillingDetails = field(default_factory=BillingDetails)
    shipping: ShippingDetails = field(default_factory=ShippingDetails)
    extra: ExtraParameters = field(default_factory=ExtraParameters)


_ADDRESS_FIELDS = (
    ("first_name", "fname"),
    ("last_name", "lname"),
    ("company", "company"),
    ("address", "add"),
    ("city", "city"),
    ("state", "state"),
    ("zip", "zip"),
    ("country", "country"),
    ("phone", "phone"),
    ("email", "email"),
)

_EXTRA_FIELDS = (
    ("extra", "ExtraData"),
    ("silent_url", "ExtraData[silenturl]"),
    ("success_url", "ExtraData[successurl]"),
    ("failed_url", "ExtraData[failedurl]"),
    ("ep_target", "ExtraData[ep_target]"),
    ("ep_method", "ExtraData[ep_method]"),
    ("back_to_site", "ExtraData[backtosite]"),
    ("back_to_site_method", "ExtraData[backtosite_method]"),
    ("expire_url", "ExtraData[expireurl]"),
    ("rate", "ExtraData[rate]"),
    ("filter_rate", "ExtraData[filtru_rate]"),
    ("channel", "ExtraData[ep_channel]"),
    ("generate_epid", "generate_epid"),
    ("lang", "lang"),
)


def _require_text(value: Any, field_name: str) -> str:
    if not is_present(value):
        raise ValidationError(f"The field {field_name} is missing.")
    return str(value)


def _copy_present(
    target: Dict[str, str],
    source: Any,
    mapping: Tuple[Tuple[str, str], ...],
    prefix: str = "",
) -> None:
    for attribute, wire_name in mapping:
        value = getattr(source, attribute)
        if is_present(value):
            target[prefix + wire_name] = str(value)


def _recurrence_fields(frequency: Frequency, today: date) -> Dict[str, str]:
    days = frequency.days if frequency.days is not None else DEFAULT_FREQUENCY_DAYS
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValidationError("The frequency.days value should be a positive integer.")

    if frequency.expires_at is None:
        expires = format_date(add_years(today, 1))
    else:
        expires = format_date(frequency.expires_at, "frequency.expires_at")
    return {"recurent_freq": str(days), "recurent_exp": expires}


def build_payment_fields(
    config: ClientConfig,
    order: Order,
    *,
    now: Optional[datetime] = None,
    nonce: Optional[str] = None,
) -> Dict[str, str]:
    """
    Build the signed field set for the hosted payment page redirect.

    Only the head of the mapping (up to and including the stored card ids) is
    covered by ``fp_hash``; billing, shipping and extra parameters follow it.
    """
    amount = format_amount(order.amount)
    currency = _require_text(order.currency, "currency").strip()
    invoice_id = _require_text(order.invoice_id, "invoice_id").strip()
    description = _require_text(order.description, "description")

    if is_present(order.extra.lang) and order.extra.lang not in LANGUAGES:
        raise ValidationError(
            f"The field lang should be one of {', '.join(sorted(LANGUAGES))}."
        )

    current = utc_now() if now is None else now
    payload: Dict[str, str] = {
        "amount": TEST_AMOUNT if config.test_mode else amount,
        "curr": currency,
        "invoice_id": invoice_id,
        "order_desc": description,
        "merch_id": config.effective_merchant_id,
        "timestamp": make_timestamp(current),
        "nonce": nonce if nonce is not None else make_nonce(),
    }

    if order.frequency is not None:
        payload.update(_recurrence_fields(order.frequency, utc_date(current)))
    if order.valability is not None:
        payload["valability"] = format_datetime(order.valability, "valability")
    if is_present(order.c2p_id):
        payload["c2p_id"] = str(order.c2p_id)
    if is_present(order.c2p_cid):
        payload["c2p_cid"] = str(order.c2p_cid)

    payload[SIGNATURE_FIELD] = compute_signature(
        payload, select_signing_key(config, Auth.MERCHANT)
    )

    if order.frequency is not None:
        payload["recurent"] = "Base"
    _copy_present(payload, order.billing, _ADDRESS_FIELDS)
    _copy_present(payload, order.shipping, _ADDRESS_FIELDS, prefix="s")
    _copy_present(payload, order.extra, _EXTRA_FIELDS)
    return payload


def build_payment_url(
    config: ClientConfig,
    order: Order,
    *,
    now: Optional[datetime] = None,
    nonce: Optional[str] = None,
) -> str:
    payload = build_payment_fields(config, order, now=now, nonce=nonce)
    logging.info(
        "Built payment URL for invoice %s (test mode: %s)",
        payload["invoice_id"],
        config.test_mode,
    )
    return f"{config.gateway_url}?{urlencode(payload)}"


def _encode_param(value: Any, kind: FieldKind, field_name: str) -> str:
    if kind is FieldKind.AMOUNT:
        return format_amount(value, field_name)
    if kind is FieldKind.DATE:
        return format_date(value, field_name)
    return str(value).strip()


def build_operation_fields(
    config: ClientConfig,
    operation: Operation,
    params: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    nonce: Optional[str] = None,
) -> Dict[str, str]:
    """
    Build the signed form body for a manager API ``operation``.

    Account-management operations are rejected with :class:`ConfigError` when
    the user credentials are missing, before anything else is validated.
    """
    if operation.is_account_management:
        config.require_user_credentials()

    unknown = set(params) - set(operation.params)
    if unknown:
        raise ValidationError(
            f"Unexpected parameter(s) for {operation.method}: {', '.join(sorted(unknown))}"
        )

    chosen: Optional[str] = None
    if operation.one_of:
        chosen = next((name for name in operation.one_of if is_present(params.get(name))), None)
        if chosen is None:
            raise ValidationError(
                f"Please pass either {' or '.join(operation.one_of)} for {operation.method}."
            )

    if operation.auth is Auth.USER:
        identifier = config.user_key
    else:
        identifier = config.effective_merchant_id

    payload: Dict[str, str] = {
        "method": operation.method,
        operation.auth.identifier_field: identifier,  # type: ignore[dict-item]
    }
    for spec in operation.fields:
        if spec.param in operation.one_of and spec.param != chosen:
            continue
        value = params.get(spec.param)
        if not is_present(value):
            if spec.required:
                raise ValidationError(f"The field {spec.param} is missing.")
            continue
        payload[spec.name] = _encode_param(value, spec.kind, spec.param)

    payload["timestamp"] = make_timestamp(now)
    payload["nonce"] = nonce if nonce is not None else make_nonce()
    payload[SIGNATURE_FIELD] = compute_signature(
        payload,
        select_signing_key(config, operation.auth),
        uppercase=operation.uppercase,
    )
    return payload


_CALLBACK_WIRE_NAMES = {
    "amount": "amount",
    "currency": "curr",
    "invoice_id": "invoice_id",
    "ep_id": "ep_id",
    "merchant_id": "merch_id",
    "action": "action",
    "message": "message",
    "approval": "approval",
    "timestamp": "timestamp",
    "nonce": "nonce",
    "signature": SIGNATURE_FIELD,
}


@dataclass(frozen=True)
class CallbackPayload:
    """Fields the gateway posts back to the merchant after a payment attempt."""

    amount: str
    currency: str
    invoice_id: str
    ep_id: str
    merchant_id: str
    action: str
    message: str
    approval: str
    timestamp: str
    nonce: str
    signature: str

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "CallbackPayload":
        """Accept either the gateway's wire names or the attribute names."""
        kwargs = {}
        for attribute, wire_name in _CALLBACK_WIRE_NAMES.items():
            value = values.get(wire_name, values.get(attribute))
            kwargs[attribute] = "" if value is None else str(value)
        return cls(**kwargs)


def build_callback_fields(payload: CallbackPayload) -> Dict[str, str]:
    """Rebuild the field set the gateway signed for a return callback."""
    return {
        "amount": payload.amount,
        "curr": payload.currency,
        "invoice_id": payload.invoice_id,
        "ep_id": payload.ep_id,
        "merch_id": payload.merchant_id,
        "action": payload.action,
        "message": payload.message,
        "approval": payload.approval,
        "timestamp": payload.timestamp,
        "nonce": payload.nonce,
    }
