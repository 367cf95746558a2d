"""
Plan checkout and payment verification.
"""
import logging
import time
from decimal import Decimal
from typing import Any, Dict, Tuple

from django.db import transaction

from apps.accounts import plans
from apps.accounts.models import Account
from apps.core.exceptions import ConflictException, NotFoundException, ValidationException
from apps.messaging.email import send_payment_confirmation
from .gateway import RazorpayGateway
from .models import CREATED, PENDING, SUCCESS, Payment

logger = logging.getLogger(__name__)


def get_gateway() -> RazorpayGateway:
    from django.apps import apps
    return apps.get_app_config('billing').gateway


def create_checkout(account: Account, plan: str, gateway: RazorpayGateway) -> Tuple[Payment, Dict[str, Any]]:
    if plan not in plans.PLAN_PRICES:
        raise ValidationException("Invalid plan selected", field="plan")

    amount = plans.PLAN_PRICES[plan]['amount']
    receipt = f"receipt_{int(time.time() * 1000)}"
    gateway_order = gateway.create_order(
        amount=amount,
        receipt=receipt,
        notes={'accountId': str(account.id), 'plan': plan},
    )

    payment = Payment.objects.create(
        account=account,
        gateway_order_id=gateway_order['id'],
        plan=plan,
        amount=Decimal(amount) / 100,
        currency=gateway_order.get('currency', 'INR'),
        receipt=receipt,
        status=CREATED,
    )
    logger.info(f"Checkout {payment.gateway_order_id} created for account {account.id} ({plan})")
    return payment, gateway_order


def verify_payment(account: Account, order_id: str, payment_id: str, signature: str,
                   gateway: RazorpayGateway) -> Payment:
    """
    Confirm a checkout and move the account onto the paid plan.

    Only created or pending payments change state: a bad signature marks
    them failed and is rejected. Replaying a valid verification of a
    successful payment returns it unchanged.
    """
    verified = gateway.verify(order_id, payment_id, signature)

    with transaction.atomic():
        payment = (
            Payment.objects.select_for_update()
            .filter(gateway_order_id=order_id, account=account)
            .first()
        )
        if payment is None:
            raise NotFoundException("Payment record")

        if payment.status == SUCCESS:
            if not verified:
                raise ValidationException("Invalid payment signature", field="razorpaySignature")
            logger.info(f"Payment {order_id} already verified")
            return payment
        if payment.status not in (CREATED, PENDING):
            raise ConflictException(f"Payment is already {payment.status}")

        if verified:
            payment.mark_success(payment_id, signature)
            payment.save()

            account.plan = payment.plan
            account.plan_expiry = payment.valid_until
            account.apply_plan_limits()
            account.save()
        else:
            payment.mark_failed("Invalid payment signature")
            payment.save(update_fields=['status', 'failure_reason', 'updated_at'])

    if not verified:
        logger.warning(f"Invalid signature for payment {order_id}")
        raise ValidationException("Invalid payment signature", field="razorpaySignature")

    logger.info(f"Account {account.id} upgraded to {payment.plan} until {payment.valid_until}")
    send_payment_confirmation(
        account.email,
        plan=plans.PLAN_PRICES[payment.plan]['name'],
        amount=payment.amount,
        valid_until=payment.valid_until,
    )
    return payment
