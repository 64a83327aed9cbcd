import logging

import stripe

from config import get_settings

logger = logging.getLogger(__name__)


def configure(api_key: str) -> None:
    stripe.api_key = api_key


def to_minor_units(price: float) -> int:
    return int(round(price * 100))


def create_payment_intent(price: float) -> str:
    """Create a card PaymentIntent and return its client secret."""
    amount = to_minor_units(price)
    intent = stripe.PaymentIntent.create(
        amount=amount,
        currency=get_settings().PAYMENT_CURRENCY,
        payment_method_types=["card"],
    )
    logger.info("Created payment intent %s for amount %d", intent.id, amount)
    return intent.client_secret
