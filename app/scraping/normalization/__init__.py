"""
Normalization layer exports.
"""

from app.scraping.normalization.shop_normalizer import (
    ShopNormalizer,
    ShopPayloadError,
    convert_price,
)

__all__ = ["ShopNormalizer", "ShopPayloadError", "convert_price"]
