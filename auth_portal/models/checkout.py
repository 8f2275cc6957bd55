"""
Checkout Schemas
Request and response bodies for checkout-session creation
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from auth_portal.utils.creem_client import ProductType


class CheckoutRequest(BaseModel):
    """Checkout session request"""
    product_id: str = Field(..., min_length=1)
    email: EmailStr
    user_id: str = Field(..., min_length=1)
    product_type: ProductType
    credits_amount: Optional[int] = Field(None, ge=0)
    discount_code: Optional[str] = None


class CheckoutResponse(BaseModel):
    """Hosted checkout URL to send the customer to"""
    checkout_url: str
