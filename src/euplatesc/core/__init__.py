"""
Core primitives: configuration, canonical signing, field-set builders and transport.
"""

from .client import (
    CallbackResult,
    EuPlatescClient,
    GatewayResponse,
    TransportError,
    verify_callback,
)
from .config import (
    ClientConfig,
    ClientParameters,
    ConfigError,
    TEST_MERCHANT_ID,
    TEST_SECRET_KEY,
    ValidationError,
    load_client_config,
)
from .environment import ClientEnvironment, build_environment, load_env_file
from .operations import OPERATIONS, Auth, Operation, get_operation
from .payloads import (
    BillingDetails,
    CallbackPayload,
    ExtraParameters,
    Frequency,
    Order,
    ShippingDetails,
    build_callback_fields,
    build_operation_fields,
    build_payment_fields,
    build_payment_url,
)
from .signing import canonical_message, compute_signature, verify_signature

__all__ = [
    "Auth",
    "BillingDetails",
    "CallbackPayload",
    "CallbackResult",
    "ClientConfig",
    "ClientEnvironment",
    "ClientParameters",
    "ConfigError",
    "EuPlatescClient",
    "ExtraParameters",
    "Frequency",
    "GatewayResponse",
    "OPERATIONS",
    "Operation",
    "Order",
    "ShippingDetails",
    "TEST_MERCHANT_ID",
    "TEST_SECRET_KEY",
    "TransportError",
    "ValidationError",
    "build_callback_fields",
    "build_environment",
    "build_operation_fields",
    "build_payment_fields",
    "build_payment_url",
    "canonical_message",
    "compute_signature",
    "get_operation",
    "load_client_config",
    "load_env_file",
    "verify_callback",
    "verify_signature",
]
