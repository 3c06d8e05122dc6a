"""
Public facade for the EuPlatesc gateway client.

Integrators can ``from euplatesc import ...`` everything they need to build
payment links, call the manager API and check return callbacks.
"""

from .api import create_client, payment_url, verify_callback
from .core import (
    BillingDetails,
    CallbackPayload,
    CallbackResult,
    ClientConfig,
    ClientParameters,
    ConfigError,
    EuPlatescClient,
    ExtraParameters,
    Frequency,
    GatewayResponse,
    OPERATIONS,
    Order,
    ShippingDetails,
    TransportError,
    ValidationError,
    canonical_message,
    compute_signature,
    load_client_config,
    verify_signature,
)

__all__ = (
    "BillingDetails",
    "CallbackPayload",
    "CallbackResult",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "EuPlatescClient",
    "ExtraParameters",
    "Frequency",
    "GatewayResponse",
    "OPERATIONS",
    "Order",
    "ShippingDetails",
    "TransportError",
    "ValidationError",
    "canonical_message",
    "compute_signature",
    "create_client",
    "load_client_config",
    "payment_url",
    "verify_callback",
    "verify_signature",
)
