"""
Generic Backend Client

FLOW OVERVIEW
- BackendClient addresses the relational store by table *name*, the same way every
  manager and dashboard view talks to it:
  • select(table, filters, order_by, descending, limit) → list of model rows
  • get(table, record_id) / count(table, filters, since)
  • insert(table, values) / update(table, record_id, values) / delete(table, record_id)
    (commit=False flushes instead, so the caller can add more rows to the same commit)
  • rpc(name, **params) → named stored-procedure style helpers
- Values are filtered to the table's columns before writing; `id` is never written.
- Any SQLAlchemyError rolls the session back, is logged and re-raised as BackendError.
- Every call is counted in prometheus (table, operation, outcome).
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..models import (
    db, User, Article, InterestCategory, Course, CommunityChallenge, CommunityEvent, UserChallenge,
    ScrapedContent, LearningCategory, LearningContent, LearningProgress, QuizCategory,
    Quiz, QuizAttempt, QuizLeaderboard, Mentor, MentorshipSession, SubscriptionPackage,
    VoucherCode, VoucherUsage, PaymentTransaction, UserSubscription, UserXP, UserStreak,
    Achievement, AssessmentResult, AuditLog,
)
from .error_handlers import BackendError, RecordNotFound
from .prom_metrics import observe_backend_call


TABLES = {
    'users': User,
    'articles': Article,
    'interest_categories': InterestCategory,
    'courses': Course,
    'community_challenges': CommunityChallenge,
    'community_events': CommunityEvent,
    'user_challenges': UserChallenge,
    'scraped_content': ScrapedContent,
    'learning_categories': LearningCategory,
    'learning_content': LearningContent,
    'learning_progress': LearningProgress,
    'quiz_categories': QuizCategory,
    'quizzes': Quiz,
    'quiz_attempts': QuizAttempt,
    'quiz_leaderboard': QuizLeaderboard,
    'mentors': Mentor,
    'mentorship_sessions': MentorshipSession,
    'subscription_packages': SubscriptionPackage,
    'voucher_codes': VoucherCode,
    'voucher_usage': VoucherUsage,
    'payment_transactions': PaymentTransaction,
    'user_subscriptions': UserSubscription,
    'user_xp': UserXP,
    'user_streaks': UserStreak,
    'achievements': Achievement,
    'assessment_results': AssessmentResult,
    'audit_logs': AuditLog,
}


class BackendClient:
    """Table-name addressed CRUD and rpc over the SQLAlchemy session."""

    def __init__(self, session=None):
        self.session = session or db.session
        self.logger = logging.getLogger(__name__)
        self._procedures: Dict[str, Callable[..., Any]] = {
            'get_payment_analytics': self._get_payment_analytics,
            'increment_article_view_count': self._increment_article_view_count,
            'update_transaction_status': self._update_transaction_status,
        }

    def model_for(self, table: str):
        """Model class registered for a table name."""
        model = TABLES.get(table)
        if model is None:
            raise BackendError(f"Unknown table '{table}'")
        return model

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None,
               order_by: Optional[str] = None, descending: bool = False,
               limit: Optional[int] = None) -> List[Any]:
        """
        Read rows from a table.

        Args:
            table: Registered table name
            filters: Equality filters on column names
            order_by: Column to order by
            descending: Sort direction
            limit: Maximum number of rows

        Returns:
            List of model instances
        """
        model = self.model_for(table)
        try:
            query = self.session.query(model)
            for column, value in self._known_columns(model, filters or {}).items():
                query = query.filter(getattr(model, column) == value)
            if order_by:
                column = getattr(model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            if limit:
                query = query.limit(limit)
            rows = query.all()
        except SQLAlchemyError as e:
            self._fail(table, 'select', e)
        observe_backend_call(table, 'select', True)
        return rows

    def get(self, table: str, record_id: Any):
        """Single row by primary key, None when missing."""
        model = self.model_for(table)
        try:
            row = self.session.get(model, record_id)
        except SQLAlchemyError as e:
            self._fail(table, 'get', e)
        observe_backend_call(table, 'get', True)
        return row

    def count(self, table: str, filters: Optional[Dict[str, Any]] = None,
              since: Optional[datetime] = None, since_column: str = 'created_at') -> int:
        """Row count, optionally restricted to rows newer than `since`."""
        model = self.model_for(table)
        try:
            query = self.session.query(model)
            for column, value in self._known_columns(model, filters or {}).items():
                query = query.filter(getattr(model, column) == value)
            if since is not None:
                query = query.filter(getattr(model, since_column) >= since)
            total = query.count()
        except SQLAlchemyError as e:
            self._fail(table, 'count', e)
        observe_backend_call(table, 'count', True)
        return total

    def insert(self, table: str, values: Dict[str, Any], commit: bool = True):
        """Insert one row and commit (or flush). Unknown keys are dropped."""
        model = self.model_for(table)
        data = self._writable(model, values)
        try:
            record = model(**data)
            self.session.add(record)
            self._finish(commit)
        except SQLAlchemyError as e:
            self._fail(table, 'insert', e)
        observe_backend_call(table, 'insert', True)
        self.logger.debug(f"Inserted {table}:{record.id}")
        return record

    def update(self, table: str, record_id: Any, values: Dict[str, Any], commit: bool = True):
        """Update one row by id and commit (or flush)."""
        model = self.model_for(table)
        data = self._writable(model, values)
        try:
            record = self.session.get(model, record_id)
            if record is None:
                observe_backend_call(table, 'update', False)
                raise RecordNotFound(f"Record {record_id} not found in {table}")
            for column, value in data.items():
                setattr(record, column, value)
            self._finish(commit)
        except SQLAlchemyError as e:
            self._fail(table, 'update', e)
        observe_backend_call(table, 'update', True)
        self.logger.debug(f"Updated {table}:{record_id}")
        return record

    def delete(self, table: str, record_id: Any, commit: bool = True) -> bool:
        """Delete one row by id and commit (or flush)."""
        model = self.model_for(table)
        try:
            record = self.session.get(model, record_id)
            if record is None:
                observe_backend_call(table, 'delete', False)
                raise RecordNotFound(f"Record {record_id} not found in {table}")
            self.session.delete(record)
            self._finish(commit)
        except SQLAlchemyError as e:
            self._fail(table, 'delete', e)
        observe_backend_call(table, 'delete', True)
        self.logger.debug(f"Deleted {table}:{record_id}")
        return True

    def rpc(self, name: str, **params):
        """Call a named procedure."""
        procedure = self._procedures.get(name)
        if procedure is None:
            raise BackendError(f"Unknown procedure '{name}'")
        try:
            result = procedure(**params)
        except SQLAlchemyError as e:
            self._fail(name, 'rpc', e)
        observe_backend_call(name, 'rpc', True)
        return result

    # Procedures

    def _get_payment_analytics(self, start_date=None, end_date=None):
        """Revenue and transaction counts, optionally within [start_date, end_date]."""
        query = self.session.query(PaymentTransaction)
        if start_date:
            query = query.filter(PaymentTransaction.created_at >= start_date)
        if end_date:
            query = query.filter(PaymentTransaction.created_at <= end_date)

        transaction_count = query.count()
        completed = query.filter(PaymentTransaction.status == 'completed')
        successful_transactions = completed.count()
        total_revenue = completed.with_entities(func.coalesce(func.sum(PaymentTransaction.amount), 0)).scalar()
        avg_amount = completed.with_entities(func.avg(PaymentTransaction.amount)).scalar()

        return {
            'total_revenue': float(total_revenue or 0),
            'transaction_count': transaction_count,
            'avg_transaction_amount': round(float(avg_amount or 0), 2),
            'successful_transactions': successful_transactions,
        }

    def _increment_article_view_count(self, article_id):
        article = self.session.get(Article, article_id)
        if article is None:
            raise RecordNotFound(f"Article {article_id} not found")
        article.view_count = (article.view_count or 0) + 1
        self.session.commit()
        return article.view_count

    def _update_transaction_status(self, transaction_id, new_status, external_id=None, commit=True):
        transaction = self.session.get(PaymentTransaction, transaction_id)
        if transaction is None:
            raise RecordNotFound(f"Transaction {transaction_id} not found")
        transaction.status = new_status
        if external_id:
            transaction.external_transaction_id = external_id
        self._finish(commit)
        return transaction

    # Helpers

    def _finish(self, commit: bool):
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    @staticmethod
    def _known_columns(model, values: Dict[str, Any]) -> Dict[str, Any]:
        columns = model.column_names()
        return {key: value for key, value in values.items() if key in columns}

    def _writable(self, model, values: Dict[str, Any]) -> Dict[str, Any]:
        data = self._known_columns(model, values or {})
        data.pop('id', None)
        return data

    def _fail(self, target: str, operation: str, error: Exception):
        self.session.rollback()
        observe_backend_call(target, operation, False)
        self.logger.error(f"Backend {operation} on {target} failed: {error}")
        raise BackendError(f"Could not {operation} {target}") from error


def rows_to_dicts(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    """Serialize model rows for JSON responses."""
    return [row.to_dict() for row in rows]
