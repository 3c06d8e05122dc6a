"""
Descriptors for the server-to-server operations of the EuPlatesc manager API.

Each :class:`Operation` lists the fields it sends in wire order and the
credentials it is authenticated with. :func:`euplatesc.core.payloads.build_operation_fields`
turns a descriptor plus keyword parameters into a signed field set.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Tuple

from .config import ValidationError

__all__ = [
    "Auth",
    "FieldKind",
    "FieldSpec",
    "OPERATIONS",
    "Operation",
    "get_operation",
]


class Auth(enum.Enum):
    """Which credential identifies and signs a request."""

    MERCHANT = "mid"
    USER = "ukey"

    @property
    def identifier_field(self) -> str:
        return self.value


class FieldKind(enum.Enum):
    TEXT = "text"
    AMOUNT = "amount"
    DATE = "date"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    param: str
    required: bool = True
    kind: FieldKind = FieldKind.TEXT


@dataclass(frozen=True)
class Operation:
    method: str
    auth: Auth
    fields: Tuple[FieldSpec, ...] = ()
    # At least one of these params must be supplied; only the first present one is sent.
    one_of: Tuple[str, ...] = ()
    uppercase: bool = True

    @property
    def is_account_management(self) -> bool:
        return self.auth is Auth.USER

    @property
    def params(self) -> Tuple[str, ...]:
        return tuple(spec.param for spec in self.fields)


def _text(name: str, param: str | None = None, *, required: bool = True) -> FieldSpec:
    return FieldSpec(name=name, param=param or name, required=required)


_EPID = _text("epid")

_OPERATION_LIST = (
    Operation(
        "check_status",
        Auth.MERCHANT,
        (_text("epid", required=False), _text("invoice_id", required=False)),
        one_of=("epid", "invoice_id"),
    ),
    Operation("capture", Auth.USER, (_EPID,)),
    Operation("reversal", Auth.USER, (_EPID,)),
    Operation(
        "partial_capture",
        Auth.USER,
        (_EPID, FieldSpec("amount", "amount", kind=FieldKind.AMOUNT)),
    ),
    Operation(
        "refund",
        Auth.USER,
        (_EPID, FieldSpec("amount", "amount", kind=FieldKind.AMOUNT), _text("reason")),
    ),
    Operation(
        "cancel_recurring",
        Auth.USER,
        (_EPID, _text("reason", required=False)),
    ),
    Operation("update_iid", Auth.USER, (_EPID, _text("invoice_id"))),
    Operation(
        "invoices",
        Auth.USER,
        (
            _text("mid", "merchant_id", required=False),
            FieldSpec("from", "date_from", kind=FieldKind.DATE),
            FieldSpec("to", "date_to", kind=FieldKind.DATE),
        ),
    ),
    Operation("invoice", Auth.USER, (_text("invoice_id"),)),
    Operation(
        "captured_total",
        Auth.USER,
        (
            _text("mids", "merchant_ids", required=False),
            FieldSpec("from", "date_from", kind=FieldKind.DATE),
            FieldSpec("to", "date_to", kind=FieldKind.DATE),
        ),
    ),
    Operation("cardart", Auth.USER, (_EPID,)),
    Operation("c2p_cards", Auth.MERCHANT, (_text("c2p_cid"),)),
    Operation("c2p_delete", Auth.MERCHANT, (_text("c2p_cid"), _text("c2p_id"))),
    Operation("check_mid", Auth.MERCHANT),
)

OPERATIONS: Dict[str, Operation] = {op.method: op for op in _OPERATION_LIST}


def get_operation(name: str) -> Operation:
    try:
        return OPERATIONS[name]
    except KeyError:
        known = ", ".join(sorted(OPERATIONS))
        raise ValidationError(f"Unknown operation '{name}'. Known operations: {known}") from None
