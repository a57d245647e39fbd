"""
Admin Managers

FLOW OVERVIEW
- Manager wraps one table of the generic backend client:
  • load(search) → ordered list of row dicts (optionally narrowed by a search term).
  • save(form) → update when the form carries an existing `id`, otherwise insert.
    Required fields are checked first; every value is coerced per FieldSpec.kind.
  • delete(record_id, confirmed) → refuses without explicit confirmation;
    soft-delete managers flip `is_active` instead of removing the row.
  • Every write and its audit log row are committed together.
- MANAGERS: registry addressed by the admin API (`/admin/api/<name>`).
- Per-table rules (article slugs, voucher codes, manual opportunities) live in
  before_save hooks so the save flow stays identical for every table.
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..models import db
from ..models.utils import slugify
from .audit import audit_admin_action
from .backend import BackendClient, rows_to_dicts
from .error_handlers import ConfirmationRequired, RecordNotFound, ValidationError
from .validators import (
    parse_bool, parse_datetime, parse_list, sanitize_input, validate_required_fields
)

logger = logging.getLogger(__name__)

FIELD_KINDS = ('str', 'text', 'int', 'float', 'bool', 'list', 'datetime', 'json')


@dataclass
class FieldSpec:
    """One editable form field of a manager"""
    name: str
    kind: str = 'str'
    required: bool = False
    default: Any = None

    def __post_init__(self):
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field kind '{self.kind}' for {self.name}")

    def coerce(self, raw: Any) -> Any:
        """Convert a submitted form value to the column's Python type"""
        if self.kind == 'bool':
            return parse_bool(raw)
        if self.kind == 'list':
            return parse_list(raw)
        if raw is None or (isinstance(raw, str) and raw.strip() == ''):
            return None
        if self.kind == 'str':
            return sanitize_input(raw, max_length=1000)
        if self.kind == 'text':
            return sanitize_input(raw, max_length=100000)
        if self.kind == 'int':
            return int(_finite(raw))
        if self.kind == 'float':
            return _finite(raw)
        if self.kind == 'datetime':
            return parse_datetime(raw)
        # json
        return json.loads(raw) if isinstance(raw, str) else raw


def _finite(raw: Any) -> float:
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"Not a finite number: {raw!r}")
    return value


class Manager:
    """Load/save/delete flow for one table"""

    SEARCH_COLUMNS = ('title', 'name', 'description', 'code')

    def __init__(self, table: str, label: str, fields: Iterable[FieldSpec],
                 order_by: str = 'created_at', descending: bool = True,
                 soft_delete: bool = False,
                 before_save: Optional[Callable[[Dict[str, Any], Any], Dict[str, Any]]] = None,
                 lookup_table: Optional[str] = None):
        self.table = table
        self.label = label
        self.fields = list(fields)
        self.order_by = order_by
        self.descending = descending
        self.soft_delete = soft_delete
        self.before_save = before_save
        self.lookup_table = lookup_table
        self._backend = None

    @property
    def backend(self) -> BackendClient:
        # Bound lazily: the session only exists inside an app context
        if self._backend is None:
            return BackendClient()
        return self._backend

    def bind(self, backend: BackendClient) -> 'Manager':
        self._backend = backend
        return self

    @property
    def required_fields(self) -> List[str]:
        return [f.name for f in self.fields if f.required]

    def load(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """All rows of the table, ordered, optionally filtered by a search term"""
        rows = rows_to_dicts(self.backend.select(
            self.table, order_by=self.order_by, descending=self.descending))
        if search:
            needle = search.strip().lower()
            rows = [row for row in rows if self._matches(row, needle)]
        return rows

    def load_lookup(self) -> List[Dict[str, Any]]:
        """Rows of the lookup table used to fill the category select"""
        if not self.lookup_table:
            return []
        return rows_to_dicts(self.backend.select(self.lookup_table, order_by='name'))

    def save(self, form: Dict[str, Any], user_id: Optional[int] = None) -> Tuple[Any, bool]:
        """
        Insert or update one record from a submitted form.

        Args:
            form: Submitted values; a truthy `id` selects update
            user_id: Acting admin, recorded in the audit log

        Returns:
            (record, created) tuple
        """
        record_id = form.get('id')
        creating = not record_id

        existing = None
        if not creating:
            existing = self.backend.get(self.table, record_id)
            if existing is None:
                raise RecordNotFound(f"{self.label} not found.")

        values = self._coerce_form(form, creating)
        if self.before_save:
            values = self.before_save(values, existing)

        operation = 'insert' if creating else 'update'
        try:
            if creating:
                record = self.backend.insert(self.table, values, commit=False)
            else:
                record = self.backend.update(self.table, record_id, values, commit=False)
            audit_admin_action(operation, self.table, record.id, user_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info(f"{self.label} {operation}: id={record.id}")
        return record, creating

    def delete(self, record_id: Any, confirmed: bool = False, user_id: Optional[int] = None) -> bool:
        """Delete (or deactivate) one record after explicit confirmation"""
        if not confirmed:
            raise ConfirmationRequired(f"Please confirm deleting this {self.label.lower()}.")

        operation = 'deactivate' if self.soft_delete else 'delete'
        try:
            if self.soft_delete:
                self.backend.update(self.table, record_id, {'is_active': False}, commit=False)
            else:
                self.backend.delete(self.table, record_id, commit=False)
            audit_admin_action(operation, self.table, record_id, user_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info(f"{self.label} {operation}: id={record_id}")
        return True

    def _coerce_form(self, form: Dict[str, Any], creating: bool) -> Dict[str, Any]:
        if creating:
            check = validate_required_fields(form, self.required_fields)
        else:
            # Partial updates only need the submitted required fields to be non-blank
            submitted = [name for name in self.required_fields if name in form]
            check = validate_required_fields(form, submitted)
        if not check.is_valid:
            raise ValidationError(check.error_message, details={'missing_fields': check.missing_fields})

        values = {}
        for spec in self.fields:
            if spec.name not in form:
                if creating and spec.default is not None:
                    values[spec.name] = spec.default() if callable(spec.default) else spec.default
                continue
            try:
                values[spec.name] = spec.coerce(form[spec.name])
            except (TypeError, ValueError, OverflowError):
                raise ValidationError(f"Invalid value for {spec.name.replace('_', ' ')}.")
        return values

    def _matches(self, row: Dict[str, Any], needle: str) -> bool:
        for column in self.SEARCH_COLUMNS:
            value = row.get(column)
            if value and needle in str(value).lower():
                return True
        return False


# Per-table save hooks

def _prepare_article(values, existing):
    if values.get('slug'):
        values['slug'] = slugify(values['slug'])
    elif existing is None or 'slug' in values:
        title = values.get('title') or (existing.title if existing else '')
        values['slug'] = slugify(title)

    if values.get('is_published'):
        already_published = existing is not None and existing.published_at is not None
        if not already_published:
            values['published_at'] = datetime.utcnow()
    return values


def _prepare_opportunity(values, existing):
    if existing is None:
        values['is_manual'] = True
        values.setdefault('source_website', 'manual')
    if values.get('category'):
        values['category'] = values['category'].lower()
        if existing is None and not values.get('content_type'):
            values['content_type'] = values['category']
    return values


def _prepare_voucher(values, existing):
    if values.get('code'):
        values['code'] = values['code'].strip().upper()
    if values.get('discount_type') and values['discount_type'] not in ('percentage', 'fixed'):
        raise ValidationError("Discount type must be 'percentage' or 'fixed'.")
    if values.get('discount_type') == 'percentage' and (values.get('discount_value') or 0) > 100:
        raise ValidationError("Percentage discount cannot exceed 100.")
    return values


def _prepare_quiz(values, existing):
    options = values.get('options')
    if isinstance(options, list) and len(options) == 0:
        values['options'] = None
    if values.get('correct_answer'):
        values['correct_answer'] = values['correct_answer'].strip()
    return values


MANAGERS = {
    'articles': Manager('articles', 'Article', [
        FieldSpec('title', required=True),
        FieldSpec('slug'),
        FieldSpec('content', 'text', required=True),
        FieldSpec('excerpt', 'text'),
        FieldSpec('featured_image_url'),
        FieldSpec('category', default='karir'),
        FieldSpec('tags', 'list'),
        FieldSpec('is_published', 'bool'),
        FieldSpec('is_featured', 'bool'),
        FieldSpec('reading_time_minutes', 'int', default=5),
        FieldSpec('seo_title'),
        FieldSpec('seo_description'),
    ], before_save=_prepare_article),

    'courses': Manager('courses', 'Course', [
        FieldSpec('title', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('category_id', 'int'),
        FieldSpec('difficulty_level', default='beginner'),
        FieldSpec('duration_hours', 'int'),
        FieldSpec('price', 'float', default=0),
        FieldSpec('thumbnail_url'),
        FieldSpec('is_featured', 'bool'),
    ], lookup_table='interest_categories'),

    'interest_categories': Manager('interest_categories', 'Interest category', [
        FieldSpec('name', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('icon'),
    ], order_by='name', descending=False),

    'challenges': Manager('community_challenges', 'Challenge', [
        FieldSpec('title', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('challenge_type', default='weekly'),
        FieldSpec('difficulty', default='beginner'),
        FieldSpec('xp_reward', 'int', default=100),
        FieldSpec('max_participants', 'int'),
        FieldSpec('start_date', 'datetime'),
        FieldSpec('end_date', 'datetime'),
        FieldSpec('is_active', 'bool', default=True),
    ]),

    'events': Manager('community_events', 'Event', [
        FieldSpec('title', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('event_type', default='webinar'),
        FieldSpec('event_date', 'datetime', required=True),
        FieldSpec('duration_minutes', 'int', default=60),
        FieldSpec('location'),
        FieldSpec('max_participants', 'int'),
        FieldSpec('is_premium_only', 'bool'),
        FieldSpec('is_active', 'bool', default=True),
    ], order_by='event_date'),

    'opportunities': Manager('scraped_content', 'Opportunity', [
        FieldSpec('title', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('url', required=True),
        FieldSpec('category', required=True),
        FieldSpec('content_type'),
        FieldSpec('tags', 'list'),
        FieldSpec('location'),
        FieldSpec('organizer'),
        FieldSpec('deadline', 'datetime'),
        FieldSpec('registration_start_date', 'datetime'),
        FieldSpec('registration_end_date', 'datetime'),
        FieldSpec('requirements', 'list'),
        FieldSpec('prize_info', 'text'),
        FieldSpec('poster_url'),
        FieldSpec('contact_info', 'json'),
        FieldSpec('is_active', 'bool', default=True),
    ], before_save=_prepare_opportunity),

    'learning_content': Manager('learning_content', 'Learning content', [
        FieldSpec('title', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('content_type', default='article'),
        FieldSpec('content_url'),
        FieldSpec('thumbnail_url'),
        FieldSpec('category_id', 'int'),
        FieldSpec('difficulty_level', default='beginner'),
        FieldSpec('duration_minutes', 'int', default=0),
        FieldSpec('tags', 'list'),
        FieldSpec('target_personas', 'list'),
        FieldSpec('priority_score', 'int', default=0),
        FieldSpec('is_featured', 'bool'),
        FieldSpec('is_premium', 'bool'),
        FieldSpec('is_active', 'bool', default=True),
    ], lookup_table='learning_categories'),

    'learning_categories': Manager('learning_categories', 'Learning category', [
        FieldSpec('name', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('icon'),
        FieldSpec('color'),
        FieldSpec('parent_id', 'int'),
        FieldSpec('is_active', 'bool', default=True),
    ], order_by='name', descending=False),

    'quizzes': Manager('quizzes', 'Quiz', [
        FieldSpec('title', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('category_id', 'int'),
        FieldSpec('difficulty', default='easy'),
        FieldSpec('question_type', default='multiple_choice'),
        FieldSpec('question', 'text', required=True),
        FieldSpec('options', 'list'),
        FieldSpec('correct_answer', required=True),
        FieldSpec('explanation', 'text'),
        FieldSpec('clue_location'),
        FieldSpec('media_url'),
        FieldSpec('points_reward', 'int', default=10),
        FieldSpec('is_isc_exclusive', 'bool'),
        FieldSpec('is_active', 'bool', default=True),
    ], before_save=_prepare_quiz, lookup_table='quiz_categories'),

    'quiz_categories': Manager('quiz_categories', 'Quiz category', [
        FieldSpec('name', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('icon'),
        FieldSpec('color'),
        FieldSpec('is_active', 'bool', default=True),
    ], order_by='name', descending=False),

    'mentors': Manager('mentors', 'Mentor', [
        FieldSpec('name', required=True),
        FieldSpec('title', required=True),
        FieldSpec('bio', 'text'),
        FieldSpec('avatar_url'),
        FieldSpec('expertise_areas', 'list'),
        FieldSpec('experience_years', 'int', default=0),
        FieldSpec('rating', 'float', default=0),
        FieldSpec('hourly_rate', 'float', default=0),
        FieldSpec('is_available', 'bool', default=True),
    ], order_by='rating'),

    'plans': Manager('subscription_packages', 'Subscription plan', [
        FieldSpec('name', required=True),
        FieldSpec('type', required=True),
        FieldSpec('price_monthly', 'float', required=True),
        FieldSpec('price_yearly', 'float', required=True),
        FieldSpec('features', 'list'),
        FieldSpec('max_courses', 'int'),
        FieldSpec('max_opportunities', 'int'),
        FieldSpec('max_users', 'int'),
        FieldSpec('is_active', 'bool', default=True),
    ], order_by='price_monthly', descending=False, soft_delete=True),

    'vouchers': Manager('voucher_codes', 'Voucher', [
        FieldSpec('code', required=True),
        FieldSpec('name', required=True),
        FieldSpec('description', 'text'),
        FieldSpec('discount_type', required=True),
        FieldSpec('discount_value', 'float', required=True),
        FieldSpec('min_purchase_amount', 'float'),
        FieldSpec('max_uses', 'int'),
        FieldSpec('applicable_packages', 'list'),
        FieldSpec('valid_from', 'datetime', default=datetime.utcnow),
        FieldSpec('valid_until', 'datetime', required=True),
        FieldSpec('is_active', 'bool', default=True),
    ], soft_delete=True, before_save=_prepare_voucher),
}


def get_manager(name: str) -> Manager:
    """Registered manager by name"""
    manager = MANAGERS.get(name)
    if manager is None:
        raise RecordNotFound(f"Unknown manager '{name}'.")
    return manager
