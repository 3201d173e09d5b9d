"""
marketplace — Seller onboarding backend.

Bridges Firebase Authentication (identity), PostgreSQL (user records) and
Stripe Connect (seller payment accounts) behind a small FastAPI surface.
"""

__version__ = "0.3.0"
