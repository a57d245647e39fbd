"""
Payments

FLOW OVERVIEW
- create_payment(user, package_id, billing_cycle, payment_method, voucher_code)
  • Validates plan, cycle, method, and optional voucher.
  • Inserts a pending PaymentTransaction (gateway xendit, generated invoice number).
  • Invokes the `create-xendit-payment` remote function; stores invoice id/url.
  • A remote failure marks the transaction `failed` and re-raises.
- process_webhook(payload)
  • PAID → completed, EXPIRED/FAILED → failed, PENDING → pending, else 400.
  • Missing external_id → 400; unknown invoice → 404.
  • Malformed paid_amount → 400 before anything is written.
  • The status change, subscription activation, voucher redemption and audit
    row are committed together, or rolled back together on any failure.
    Replayed PAID callbacks are ignored.
- payment_analytics(start, end): rpc figures + monthly revenue + active subscriptions.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy import func, or_

from ..models import db, PaymentTransaction, SubscriptionPackage, UserSubscription, VoucherCode
from .audit import audit_admin_action
from .backend import BackendClient
from .error_handlers import RecordNotFound, RemoteFunctionError, ValidationError, PermissionDenied
from .remote import RemoteFunctionClient
from .subscription import BILLING_MONTHS, activate_subscription
from .vouchers import redeem_voucher, validate_voucher

logger = logging.getLogger(__name__)

PAYMENT_FUNCTION = 'create-xendit-payment'

# Gateway surcharge per method, in IDR
PAYMENT_METHODS = {
    'bank_transfer': 0,
    'e_wallet': 0,
    'credit_card': 3000,
    'qr_code': 0,
}

WEBHOOK_STATUS_MAP = {
    'PAID': 'completed',
    'EXPIRED': 'failed',
    'FAILED': 'failed',
    'PENDING': 'pending',
}


def create_payment(user, package_id, billing_cycle: str = 'monthly',
                   payment_method: str = 'bank_transfer', voucher_code: Optional[str] = None,
                   functions: Optional[RemoteFunctionClient] = None,
                   backend: Optional[BackendClient] = None) -> PaymentTransaction:
    """
    Open an invoice at the payment gateway for one plan.

    Returns:
        The pending PaymentTransaction with invoice_url set
    """
    backend = backend or BackendClient()

    package = backend.get('subscription_packages', package_id) if package_id else None
    if package is None or not package.is_active:
        raise RecordNotFound("Subscription plan not found.")
    if billing_cycle not in BILLING_MONTHS:
        raise ValidationError("Billing cycle must be 'monthly' or 'yearly'.")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Unsupported payment method.")

    price = float(package.price_for(billing_cycle) or 0)
    discount = 0.0
    voucher_id = None
    if voucher_code:
        check = validate_voucher(voucher_code, user.id, package, billing_cycle)
        discount = check.discount
        voucher_id = check.voucher.id

    amount = max(price - discount, 0) + PAYMENT_METHODS[payment_method]
    transaction = backend.insert('payment_transactions', {
        'user_id': user.id,
        'subscription_id': package.id,
        'voucher_id': voucher_id,
        'transaction_type': 'subscription',
        'billing_cycle': billing_cycle,
        'amount': amount,
        'discount_amount': discount,
        'currency': current_app.config.get('PAYMENT_CURRENCY', 'IDR'),
        'status': 'pending',
        'payment_gateway': 'xendit',
        'payment_method': payment_method,
    })

    functions = functions or RemoteFunctionClient()
    try:
        result = functions.invoke(PAYMENT_FUNCTION, {
            'planId': package.id,
            'userId': user.user_id,
            'email': user.email,
            'amount': amount,
            'paymentMethod': payment_method,
            'billingCycle': billing_cycle,
            'voucherId': voucher_id,
            'transactionId': transaction.id,
            'invoiceNumber': transaction.invoice_number,
        })
    except RemoteFunctionError:
        backend.rpc('update_transaction_status', transaction_id=transaction.id, new_status='failed')
        raise

    backend.rpc('update_transaction_status', transaction_id=transaction.id,
                new_status='pending', external_id=result.get('invoice_id'))
    transaction = backend.update('payment_transactions', transaction.id,
                                 {'invoice_url': result.get('invoice_url')})
    logger.info(f"Payment {transaction.invoice_number} created for user {user.id}: {amount} {transaction.currency}")
    return transaction


def get_transaction_for_user(user, transaction_id) -> PaymentTransaction:
    transaction = db.session.get(PaymentTransaction, transaction_id)
    if transaction is None:
        raise RecordNotFound("Transaction not found.")
    if transaction.user_id != user.id:
        raise PermissionDenied("You can only view your own transactions.")
    return transaction


def _find_transaction(payload: Dict[str, Any]) -> Optional[PaymentTransaction]:
    invoice_id = payload.get('id')
    external_id = str(payload.get('external_id'))
    candidates = [PaymentTransaction.external_transaction_id == external_id,
                  PaymentTransaction.invoice_number == external_id]
    if invoice_id:
        candidates.append(PaymentTransaction.external_transaction_id == str(invoice_id))
    return PaymentTransaction.query.filter(or_(*candidates)).first()


def _paid_amount(payload: Dict[str, Any], transaction: PaymentTransaction) -> float:
    raw = payload.get('paid_amount')
    if raw is None or raw == '':
        return float(transaction.amount)
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid paid_amount.")
    if not math.isfinite(amount) or amount < 0:
        raise ValidationError("Invalid paid_amount.")
    return amount


def process_webhook(payload: Dict[str, Any], backend: Optional[BackendClient] = None) -> PaymentTransaction:
    """Apply one gateway callback"""
    backend = backend or BackendClient()
    payload = payload or {}

    if not payload.get('external_id'):
        raise ValidationError("Missing external_id.")

    status = str(payload.get('status') or '').upper()
    new_status = WEBHOOK_STATUS_MAP.get(status)
    if new_status is None:
        logger.warning(f"Unknown payment status in webhook: {status!r}")
        raise ValidationError("Unknown status.")

    transaction = _find_transaction(payload)
    if transaction is None:
        raise RecordNotFound("Transaction not found.")

    if transaction.status == 'completed':
        logger.info(f"Webhook for already completed transaction {transaction.id} ignored")
        return transaction

    package = None
    amount_paid = None
    if new_status == 'completed':
        amount_paid = _paid_amount(payload, transaction)
        package = db.session.get(SubscriptionPackage, transaction.subscription_id) \
            if transaction.subscription_id else None
        if package is None:
            raise RecordNotFound("Plan not found.")

    try:
        backend.rpc('update_transaction_status', transaction_id=transaction.id,
                    new_status=new_status, external_id=payload.get('id'), commit=False)

        if package is not None:
            activate_subscription(
                transaction.user, package,
                billing_cycle=transaction.billing_cycle or 'monthly',
                amount_paid=amount_paid,
                payment_method=payload.get('payment_method') or transaction.payment_method,
            )
            if transaction.voucher_id:
                voucher = db.session.get(VoucherCode, transaction.voucher_id)
                if voucher is not None:
                    redeem_voucher(voucher, transaction.user_id, transaction, transaction.discount_amount or 0)

        audit_admin_action(f'payment_{new_status}', 'payment_transactions', transaction.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error(f"Webhook for transaction {transaction.id} failed; nothing was applied")
        raise

    logger.info(f"Transaction {transaction.id} → {new_status}")
    return transaction


def list_transactions(limit: int = 100):
    """Newest transactions, sanitized for the admin listing"""
    rows = BackendClient().select('payment_transactions', order_by='created_at',
                                  descending=True, limit=limit)
    return [row.to_sanitized_dict() for row in rows]


def payment_analytics(start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                      now: Optional[datetime] = None) -> Dict[str, Any]:
    backend = BackendClient()
    now = now or datetime.utcnow()
    figures = backend.rpc('get_payment_analytics', start_date=start_date, end_date=end_date)

    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    monthly_revenue = (
        db.session.query(func.coalesce(func.sum(PaymentTransaction.amount), 0))
        .filter(PaymentTransaction.status == 'completed',
                PaymentTransaction.created_at >= month_start)
        .scalar()
    )
    active_subscriptions = backend.count('user_subscriptions', filters={'status': 'active'})

    figures['monthly_revenue'] = float(monthly_revenue or 0)
    figures['active_subscriptions'] = active_subscriptions
    figures['total_subscriptions'] = UserSubscription.query.count()
    return figures
