"""
Checkout Routes
Hosted checkout sessions for subscriptions and credit packs
"""

from fastapi import APIRouter, HTTPException, status
import logging

from auth_portal.models.checkout import CheckoutRequest, CheckoutResponse
from auth_portal.utils.creem_client import CheckoutCreationError
from auth_portal.utils.dependencies import CreemClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(checkout_data: CheckoutRequest, creem_client: CreemClientDep):
    """
    Create a checkout session

    Returns the payment provider's hosted checkout URL
    """
    try:
        checkout_url = await creem_client.create_checkout_session(
            product_id=checkout_data.product_id,
            email=checkout_data.email,
            user_id=checkout_data.user_id,
            product_type=checkout_data.product_type,
            credits_amount=checkout_data.credits_amount,
            discount_code=checkout_data.discount_code,
        )
    except CheckoutCreationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        ) from e

    return CheckoutResponse(checkout_url=checkout_url)
