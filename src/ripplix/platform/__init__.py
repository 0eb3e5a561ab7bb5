"""
Ripplix Platform - membership core.

This package provides the subscription side of the Ripplix library:
- Pricing plan catalog and board entitlements
- Subscription state, expiry processing and notifications
- Payment reconciliation and operator tooling
"""

__version__ = "1.0.0"
__author__ = "Ripplix Team"
