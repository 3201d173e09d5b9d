"""
marketplace/models/common.py — Base types of the marketplace domain.
"""

from pydantic import BaseModel


class MarketplaceBase(BaseModel):
    """Base Pydantic model for marketplace schemas."""

    model_config = {"str_strip_whitespace": True}
