"""
Voucher Codes

FLOW OVERVIEW
- validate_voucher(code, user_id, package, billing_cycle, now) → VoucherCheck
  • Code is matched upper-cased among active vouchers.
  • Rejects: outside [valid_from, valid_until], max_uses reached, already used by
    this user, plan not in applicable_packages, plan price under min_purchase_amount.
  • Discount: percentage → floor(price * value / 100); fixed → min(value, price).
- redeem_voucher(voucher, user_id, transaction, discount): usage row + current_uses += 1.
  • Re-checks max_uses and earlier use by the same user (several pending payments
    can carry one voucher); a voucher that no longer qualifies is skipped, logged
    and noted on the transaction, and None is returned.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models import db, VoucherCode, VoucherUsage
from .error_handlers import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class VoucherCheck:
    """A voucher that passed validation and the discount it gives"""
    voucher: VoucherCode
    price: float
    discount: float

    @property
    def final_amount(self) -> float:
        return max(self.price - self.discount, 0)

    def to_dict(self):
        return {
            'voucher_id': self.voucher.id,
            'code': self.voucher.code,
            'name': self.voucher.name,
            'discount_type': self.voucher.discount_type,
            'discount_value': self.voucher.discount_value,
            'discount_amount': self.discount,
            'original_amount': self.price,
            'final_amount': self.final_amount,
        }


def compute_discount(voucher: VoucherCode, price: float) -> float:
    if voucher.discount_type == 'percentage':
        return float(math.floor(price * voucher.discount_value / 100))
    return float(min(voucher.discount_value, price))


def _applies_to(voucher: VoucherCode, package) -> bool:
    allowed = voucher.applicable_packages
    if not allowed:
        return True
    allowed = {str(value).lower() for value in allowed}
    return str(package.id) in allowed or (package.type or '').lower() in allowed


def validate_voucher(code: str, user_id: int, package, billing_cycle: str = 'monthly',
                     now: Optional[datetime] = None) -> VoucherCheck:
    """Raises ValidationError with a user-facing reason when the voucher cannot be used"""
    if not code or not code.strip():
        raise ValidationError("Voucher code is required.")
    now = now or datetime.utcnow()

    voucher = VoucherCode.query.filter_by(code=code.strip().upper(), is_active=True).first()
    if voucher is None:
        raise ValidationError("Voucher code is invalid or not found.")

    if (voucher.valid_from and now < voucher.valid_from) or (voucher.valid_until and now > voucher.valid_until):
        raise ValidationError("Voucher is expired or not yet valid.")

    if voucher.max_uses and (voucher.current_uses or 0) >= voucher.max_uses:
        raise ValidationError("Voucher usage limit has been reached.")

    already_used = VoucherUsage.query.filter_by(voucher_id=voucher.id, user_id=user_id).first()
    if already_used is not None:
        raise ValidationError("You have already used this voucher.")

    if package is None:
        raise ValidationError("Select a plan before applying a voucher.")

    if not _applies_to(voucher, package):
        raise ValidationError("Voucher does not apply to this plan.")

    price = float(package.price_for(billing_cycle) or 0)
    if voucher.min_purchase_amount and price < voucher.min_purchase_amount:
        raise ValidationError(f"Minimum purchase of {voucher.min_purchase_amount:,.0f} required for this voucher.")

    return VoucherCheck(voucher=voucher, price=price, discount=compute_discount(voucher, price))


def redeem_voucher(voucher: VoucherCode, user_id: int, transaction=None,
                   discount: float = 0) -> Optional[VoucherUsage]:
    """Record usage; caller commits"""
    reason = None
    if voucher.max_uses and (voucher.current_uses or 0) >= voucher.max_uses:
        reason = "usage limit reached"
    elif VoucherUsage.query.filter_by(voucher_id=voucher.id, user_id=user_id).first() is not None:
        reason = "already used by this user"
    if reason:
        logger.warning(f"Voucher {voucher.code} not redeemed for user {user_id}: {reason}")
        if transaction is not None:
            transaction.notes = f"Voucher {voucher.code} not redeemed: {reason}"
        return None

    usage = VoucherUsage(
        voucher_id=voucher.id,
        user_id=user_id,
        transaction_id=transaction.id if transaction is not None else None,
        discount_applied=discount,
    )
    db.session.add(usage)
    voucher.current_uses = (voucher.current_uses or 0) + 1
    logger.info(f"Voucher {voucher.code} redeemed by user {user_id}")
    return usage
