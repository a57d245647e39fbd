"""
Payment Models

FLOW OVERVIEW
- SubscriptionPackage: plans shown on the pricing page and sold through the gateway.
- VoucherCode / VoucherUsage: discount codes and their per-user redemption.
- PaymentTransaction: one invoice at the payment gateway.
- UserSubscription: a user's single current subscription (unique per user).
"""

from datetime import datetime
from .database import db, SerializerMixin
from .utils import generate_invoice_number


class SubscriptionPackage(SerializerMixin, db.Model):
    __tablename__ = 'subscription_packages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(40), nullable=False, default='individual')  # individual, premium, school
    price_monthly = db.Column(db.Float, nullable=False, default=0)
    price_yearly = db.Column(db.Float, nullable=False, default=0)
    features = db.Column(db.JSON, default=list)
    max_courses = db.Column(db.Integer)
    max_opportunities = db.Column(db.Integer)
    max_users = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def price_for(self, billing_cycle):
        """Plan price for 'monthly' or 'yearly' billing"""
        return self.price_yearly if billing_cycle == 'yearly' else self.price_monthly


class VoucherCode(SerializerMixin, db.Model):
    __tablename__ = 'voucher_codes'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text)
    discount_type = db.Column(db.String(20), nullable=False, default='percentage')  # percentage, fixed
    discount_value = db.Column(db.Float, nullable=False)
    min_purchase_amount = db.Column(db.Float)
    max_uses = db.Column(db.Integer)
    current_uses = db.Column(db.Integer, default=0)
    applicable_packages = db.Column(db.JSON)
    valid_from = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    valid_until = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class VoucherUsage(SerializerMixin, db.Model):
    __tablename__ = 'voucher_usage'

    id = db.Column(db.Integer, primary_key=True)
    voucher_id = db.Column(db.Integer, db.ForeignKey('voucher_codes.id'))
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    transaction_id = db.Column(db.Integer, db.ForeignKey('payment_transactions.id'))
    discount_applied = db.Column(db.Float, nullable=False, default=0)
    used_at = db.Column(db.DateTime, default=datetime.utcnow)


class PaymentTransaction(SerializerMixin, db.Model):
    __tablename__ = 'payment_transactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subscription_id = db.Column(db.Integer, db.ForeignKey('subscription_packages.id'))
    voucher_id = db.Column(db.Integer, db.ForeignKey('voucher_codes.id'))
    transaction_type = db.Column(db.String(30), nullable=False, default='subscription')
    billing_cycle = db.Column(db.String(20), default='monthly')
    amount = db.Column(db.Float, nullable=False)
    discount_amount = db.Column(db.Float, default=0)
    currency = db.Column(db.String(3), nullable=False, default='IDR')
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, completed, failed
    payment_gateway = db.Column(db.String(30), default='xendit')
    payment_method = db.Column(db.String(30))
    external_transaction_id = db.Column(db.String(255), index=True)
    invoice_number = db.Column(db.String(40), unique=True, default=generate_invoice_number)
    invoice_url = db.Column(db.String(1000))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', lazy=True)
    package = db.relationship('SubscriptionPackage', lazy=True)

    def to_sanitized_dict(self):
        """Transaction without gateway identifiers or payment method, safe for logs and listings"""
        return {
            'id': self.id,
            'amount': self.amount,
            'currency': self.currency,
            'status': self.status,
            'transaction_type': self.transaction_type,
            'invoice_number': self.invoice_number,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'user_email': self.user.email if self.user else None,
            'package_name': self.package.name if self.package else None,
        }


class UserSubscription(SerializerMixin, db.Model):
    __tablename__ = 'user_subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    package_id = db.Column(db.Integer, db.ForeignKey('subscription_packages.id'))
    status = db.Column(db.String(20), nullable=False, default='active')  # active, expired, cancelled
    billing_cycle = db.Column(db.String(20), nullable=False, default='monthly')
    amount_paid = db.Column(db.Float, nullable=False, default=0)
    payment_method = db.Column(db.String(30))
    auto_renew = db.Column(db.Boolean, default=False)
    starts_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    package = db.relationship('SubscriptionPackage', lazy=True)
