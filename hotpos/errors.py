"""Exception types raised outside the table/order state engine."""

from __future__ import annotations


class HotPosError(Exception):
    """Base error for the POS front end."""


class GatewayError(HotPosError):
    """A backend call failed; the message is safe to show to the operator."""


class AuthenticationError(GatewayError):
    """The backend rejected the supplied credentials."""


class CheckoutNotAllowed(HotPosError):
    """Payment was requested for an order that is not payable."""
