"""
Dashboard API Routes

FLOW OVERVIEW
Every route except the payment webhook and plan listing requires a session.
- Feeds
  • /api/feed/opportunities [GET]: active opportunities scored for the user.
  • /api/feed/learning [GET]: learning content scored for the user, plus for-you/trending picks.
  • /api/opportunities/stats [GET]: total, added today, trending (10 % of total).
  • /api/courses [GET]: course catalog; rows past the plan limit are `is_locked`.
- Learning and profile
  • /api/learning/progress [GET, POST]: progress upsert; completion awards XP, the learning
    streak and the first_course achievement.
  • /api/profile [GET], /api/profile/interests [PUT], /api/assessment [GET, POST].
  • /api/community/challenges [GET], /api/community/challenges/<id>/join [POST].
  • /api/community/events [GET].
- Gamification and quizzes
  • /api/gamification [GET], /api/gamification/checkin [POST], /api/achievements [GET].
  • /api/quiz/categories, /api/quiz/categories/<id>/quizzes, /api/quiz/random [GET].
  • /api/quiz/<id>/answer [POST], /api/quiz/history, /api/quiz/leaderboard, /api/quiz/stats [GET].
- Mentorship
  • /api/mentors, /api/mentorship/slots [GET].
  • /api/mentorship/sessions [GET, POST], /api/mentorship/sessions/<id>/cancel [POST].
- Payments
  • /api/subscription/plans [GET], /api/subscription [GET].
  • /api/vouchers/validate [POST], /api/payments [POST], /api/payments/<id> [GET].
  • /api/payments/webhook [POST]: gateway callback, X-Callback-Token checked when configured.
"""

import hmac
from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from ..models import (
    db, AssessmentResult, CommunityEvent, LearningContent,
    LearningProgress, SubscriptionPackage, UserSubscription
)
from ..utils import community, gamification, mentorship, quiz_system
from ..utils.api_utils import APIResponseFormatter, request_validator
from ..utils.auth_utils import login_required, current_user
from ..utils.backend import BackendClient, rows_to_dicts
from ..utils.error_handlers import PermissionDenied, RecordNotFound, ValidationError, json_error
from ..utils.payments import create_payment, get_transaction_for_user, process_webhook
from ..utils.scoring import (
    LEARNING_WEIGHTS, OPPORTUNITY_WEIGHTS, UserProfile, filter_items, rank_items
)
from ..utils.subscription import (
    check_subscription_access, effective_status, get_subscription_limits
)
from ..utils.validators import parse_list, sanitize_input
from ..utils.vouchers import validate_voucher

api_bp = Blueprint('api', __name__)

FEED_FETCH_LIMIT = 50
LEARNING_COMPLETION_XP = 50
FOR_YOU_MIN_SCORE = 2
PICKS_LIMIT = 12


def _profile_for(user):
    return UserProfile.from_user(user, AssessmentResult.latest_for_user(user.id))


def _apply_limit(items, limit, status):
    """Mark every item past the plan limit as locked"""
    for index, item in enumerate(items):
        can_access, _ = check_subscription_access(index, limit, status)
        item['is_locked'] = not can_access
    return items


def _limits_for(user):
    status = effective_status(user)
    return status, get_subscription_limits(status, user.subscription_type)


# Feeds

@api_bp.route('/feed/opportunities', methods=['GET'])
@login_required
def opportunity_feed():
    user = current_user()
    filters = {'is_active': True}
    category = (request.args.get('category') or '').strip().lower()
    if category and category != 'all':
        filters['category'] = category

    rows = BackendClient().select('scraped_content', filters=filters, order_by='created_at',
                                  descending=True, limit=FEED_FETCH_LIMIT)
    items = rank_items(rows_to_dicts(rows), _profile_for(user), OPPORTUNITY_WEIGHTS,
                       sort_by=request.args.get('sort', 'relevance'))
    items = filter_items(items, request.args.get('search'))

    status, limits = _limits_for(user)
    items = _apply_limit(items, limits.max_opportunities, status)
    return jsonify(APIResponseFormatter.success(items=items, count=len(items), limits=limits.to_dict()))


@api_bp.route('/feed/learning', methods=['GET'])
@login_required
def learning_feed():
    user = current_user()
    filters = {'is_active': True}
    for arg, column in (('content_type', 'content_type'), ('difficulty', 'difficulty_level'),
                        ('category_id', 'category_id')):
        value = request.args.get(arg)
        if value and value != 'all':
            filters[column] = int(value) if column == 'category_id' and value.isdigit() else value

    rows = BackendClient().select('learning_content', filters=filters)
    items = rank_items(rows_to_dicts(rows), _profile_for(user), LEARNING_WEIGHTS,
                       sort_by=request.args.get('sort', 'relevance'))
    items = filter_items(items, request.args.get('search'))

    progress = {p.content_id: p for p in LearningProgress.query.filter_by(user_id=user.id).all()}
    status, limits = _limits_for(user)
    for item in items:
        entry = progress.get(item['id'])
        item['user_progress'] = {
            'status': entry.status,
            'progress_percentage': entry.progress_percentage,
            'rating': entry.rating,
        } if entry else None
        item['is_locked'] = bool(item.get('is_premium')) and not limits.can_access_premium_content

    for_you = [i for i in items if i['relevance_score'] > FOR_YOU_MIN_SCORE][:PICKS_LIMIT]
    trending = [i for i in items if i.get('is_featured') or (i.get('average_rating') or 0) >= 4.0][:PICKS_LIMIT]
    return jsonify(APIResponseFormatter.success(
        items=items, for_you=for_you, trending=trending, limits=limits.to_dict()))


@api_bp.route('/opportunities/stats', methods=['GET'])
@login_required
def opportunity_stats():
    backend = BackendClient()
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    total = backend.count('scraped_content', filters={'is_active': True})
    added_today = backend.count('scraped_content', filters={'is_active': True}, since=today)
    return jsonify(APIResponseFormatter.success(
        stats={'total': total, 'today': added_today, 'trending': int(total * 0.1)}))


@api_bp.route('/courses', methods=['GET'])
@login_required
def courses():
    user = current_user()
    rows = BackendClient().select('courses', order_by='created_at', descending=True)
    rows.sort(key=lambda course: not course.is_featured)
    status, limits = _limits_for(user)
    items = _apply_limit(rows_to_dicts(rows), limits.max_courses, status)
    return jsonify(APIResponseFormatter.success(items=items, limits=limits.to_dict()))


# Learning progress and profile

@api_bp.route('/learning/progress', methods=['GET'])
@login_required
def learning_progress():
    user = current_user()
    rows = (
        LearningProgress.query
        .filter_by(user_id=user.id)
        .order_by(LearningProgress.last_accessed_at.desc())
        .all()
    )
    items = rows_to_dicts(rows)
    completed = sum(1 for row in rows if row.status == 'completed')
    return jsonify(APIResponseFormatter.success(
        items=items, completed=completed, in_progress=len(rows) - completed,
        total_minutes=sum(row.time_spent_minutes or 0 for row in rows)))


@api_bp.route('/learning/progress', methods=['POST'])
@login_required
def update_learning_progress():
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    ok, error = request_validator.require_fields(data, ['content_id'])
    if not ok:
        return jsonify(error), 400

    content = db.session.get(LearningContent, data['content_id'])
    if content is None or not content.is_active:
        raise RecordNotFound('Learning content not found.')
    _, limits = _limits_for(user)
    if content.is_premium and not limits.can_access_premium_content:
        raise PermissionDenied('This content is available for subscribers only.')

    try:
        percentage = max(0, min(int(data.get('progress_percentage', 0)), 100))
        minutes = max(0, int(data.get('time_spent_minutes', 0)))
        rating = int(data['rating']) if data.get('rating') not in (None, '') else None
    except (TypeError, ValueError):
        raise ValidationError('Progress values must be numbers.')
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError('Rating must be between 1 and 5.')

    progress = LearningProgress.query.filter_by(user_id=user.id, content_id=content.id).first()
    newly_enrolled = progress is None
    if progress is None:
        progress = LearningProgress(user_id=user.id, content_id=content.id, status='not_started',
                                    progress_percentage=0, time_spent_minutes=0)
        db.session.add(progress)
        content.total_enrollments = (content.total_enrollments or 0) + 1

    was_completed = progress.status == 'completed'
    progress.progress_percentage = max(progress.progress_percentage or 0, percentage)
    progress.time_spent_minutes = (progress.time_spent_minutes or 0) + minutes
    progress.last_accessed_at = datetime.utcnow()
    if rating is not None:
        progress.rating = rating
    if data.get('feedback'):
        progress.feedback = sanitize_input(data['feedback'], max_length=2000)

    completing = data.get('status') == 'completed' or progress.progress_percentage >= 100
    if completing:
        progress.status = 'completed'
        progress.progress_percentage = 100
        progress.completed_at = progress.completed_at or datetime.utcnow()
    elif not was_completed:
        progress.status = 'in_progress'
    db.session.commit()

    level_up = False
    if completing and not was_completed:
        level_up, _ = gamification.award_xp(user.id, LEARNING_COMPLETION_XP, f"Completed {content.title}")
        gamification.update_streak(user.id, 'learning')
        gamification.grant_achievement(user.id, 'first_course')

    return jsonify(APIResponseFormatter.success(
        'Progress saved.', progress=progress.to_dict(), enrolled=newly_enrolled, level_up=level_up))


@api_bp.route('/profile', methods=['GET'])
@login_required
def profile():
    user = current_user()
    status, limits = _limits_for(user)
    assessment = AssessmentResult.latest_for_user(user.id)
    return jsonify(APIResponseFormatter.success(
        user=user.to_dict(),
        subscription_status=status,
        limits=limits.to_dict(),
        assessment=assessment.to_dict() if assessment else None,
    ))


@api_bp.route('/profile/interests', methods=['PUT'])
@login_required
def update_interests():
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    interests = [sanitize_input(i, max_length=50) for i in parse_list(data.get('interests'))]
    user.interests = interests[:20]
    db.session.commit()
    return jsonify(APIResponseFormatter.success('Interests updated.', interests=user.interests))


@api_bp.route('/assessment', methods=['GET'])
@login_required
def latest_assessment():
    user = current_user()
    assessment = AssessmentResult.latest_for_user(user.id)
    return jsonify(APIResponseFormatter.success(assessment=assessment.to_dict() if assessment else None))


@api_bp.route('/assessment', methods=['POST'])
@login_required
def save_assessment():
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    ok, error = request_validator.require_fields(data, ['personality_type'])
    if not ok:
        return jsonify(error), 400

    result = AssessmentResult(
        user_id=user.id,
        assessment_type=data.get('assessment_type') or 'riasec',
        personality_type=sanitize_input(data['personality_type'], max_length=30).lower(),
        career_recommendations=parse_list(data.get('career_recommendations')),
        talent_areas=parse_list(data.get('talent_areas')),
        interest_categories=parse_list(data.get('interest_categories')),
        learning_style=data.get('learning_style'),
        questions_answers=data.get('questions_answers') or {},
        score_breakdown=data.get('score_breakdown'),
    )
    db.session.add(result)
    db.session.commit()
    gamification.award_xp(user.id, 100, 'Completed assessment')
    current_app.logger.info(f"Assessment saved for user {user.id}: {result.personality_type}")
    return jsonify(APIResponseFormatter.success('Assessment saved.', assessment=result.to_dict())), 201


@api_bp.route('/community/challenges', methods=['GET'])
@login_required
def community_challenges():
    user = current_user()
    return jsonify(APIResponseFormatter.success(items=community.challenges_for_user(user)))


@api_bp.route('/community/challenges/<int:challenge_id>/join', methods=['POST'])
@login_required
def join_challenge(challenge_id):
    user = current_user()
    joined = community.join_challenge(user, challenge_id)
    return jsonify(APIResponseFormatter.success('Challenge joined. Good luck!', participation=joined.to_dict())), 201


@api_bp.route('/community/events', methods=['GET'])
@login_required
def community_events():
    user = current_user()
    _, limits = _limits_for(user)
    rows = (
        CommunityEvent.query
        .filter(CommunityEvent.is_active.is_(True), CommunityEvent.event_date >= datetime.utcnow())
        .order_by(CommunityEvent.event_date.asc())
        .all()
    )
    items = rows_to_dicts(rows)
    for item in items:
        item['is_locked'] = bool(item.get('is_premium_only')) and not limits.can_access_premium_content
    return jsonify(APIResponseFormatter.success(items=items))


# Gamification

@api_bp.route('/gamification', methods=['GET'])
@login_required
def gamification_summary():
    user = current_user()
    return jsonify(APIResponseFormatter.success(**gamification.summary(user.id)))


@api_bp.route('/gamification/checkin', methods=['POST'])
@login_required
def daily_checkin():
    user = current_user()
    streak = gamification.update_streak(user.id, 'login')
    return jsonify(APIResponseFormatter.success(
        streak=streak.to_dict(), **gamification.summary(user.id)))


@api_bp.route('/achievements', methods=['GET'])
@login_required
def achievements():
    user = current_user()
    return jsonify(APIResponseFormatter.success(**gamification.achievements_summary(user.id)))


# Quizzes

@api_bp.route('/quiz/categories', methods=['GET'])
@login_required
def quiz_categories():
    return jsonify(APIResponseFormatter.success(items=rows_to_dicts(quiz_system.list_categories())))


@api_bp.route('/quiz/categories/<int:category_id>/quizzes', methods=['GET'])
@login_required
def quizzes_for_category(category_id):
    quizzes = quiz_system.quizzes_for_category(category_id)
    return jsonify(APIResponseFormatter.success(items=[q.to_public_dict() for q in quizzes]))


@api_bp.route('/quiz/random', methods=['GET'])
@login_required
def random_quiz():
    quiz = quiz_system.random_quiz(request.args.get('category_id', type=int),
                                   request.args.get('difficulty'))
    if quiz is None:
        return json_error('No quiz available for this selection.', 404, 'NOT_FOUND')
    return jsonify(APIResponseFormatter.success(quiz=quiz.to_public_dict()))


@api_bp.route('/quiz/<int:quiz_id>/answer', methods=['POST'])
@login_required
def answer_quiz(quiz_id):
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    try:
        time_taken = int(data.get('time_taken_seconds') or 0)
    except (TypeError, ValueError):
        time_taken = 0
    result = quiz_system.submit_answer(user.id, quiz_id, data.get('answer'), time_taken)
    return jsonify(APIResponseFormatter.success(**result))


@api_bp.route('/quiz/history', methods=['GET'])
@login_required
def quiz_history():
    user = current_user()
    return jsonify(APIResponseFormatter.success(items=rows_to_dicts(quiz_system.history(user.id))))


@api_bp.route('/quiz/leaderboard', methods=['GET'])
@login_required
def quiz_leaderboard():
    return jsonify(APIResponseFormatter.success(items=rows_to_dicts(quiz_system.leaderboard())))


@api_bp.route('/quiz/stats', methods=['GET'])
@login_required
def quiz_stats():
    user = current_user()
    return jsonify(APIResponseFormatter.success(stats=quiz_system.stats(user.id)))


# Mentorship

@api_bp.route('/mentors', methods=['GET'])
@login_required
def mentors():
    return jsonify(APIResponseFormatter.success(items=rows_to_dicts(mentorship.available_mentors())))


@api_bp.route('/mentorship/slots', methods=['GET'])
@login_required
def mentorship_slots():
    user = current_user()
    return jsonify(APIResponseFormatter.success(
        slots=mentorship.available_time_slots(), plan=mentorship.user_plan(user)))


@api_bp.route('/mentorship/sessions', methods=['GET'])
@login_required
def mentorship_sessions():
    user = current_user()
    return jsonify(APIResponseFormatter.success(items=rows_to_dicts(mentorship.user_sessions(user))))


@api_bp.route('/mentorship/sessions', methods=['POST'])
@login_required
def book_mentorship_session():
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    booked = mentorship.book_session(
        user,
        data.get('mentor_id'),
        data.get('session_date'),
        data.get('time_slot'),
        session_type=data.get('session_type') or 'consultation',
        notes=sanitize_input(data.get('notes') or '', max_length=2000) or None,
    )
    return jsonify(APIResponseFormatter.success('Session booked.', session=booked.to_dict())), 201


@api_bp.route('/mentorship/sessions/<int:session_id>/cancel', methods=['POST'])
@login_required
def cancel_mentorship_session(session_id):
    user = current_user()
    cancelled = mentorship.cancel_session(user, session_id)
    return jsonify(APIResponseFormatter.success('Session cancelled.', session=cancelled.to_dict()))


# Subscriptions and payments

@api_bp.route('/subscription/plans', methods=['GET'])
def subscription_plans():
    plans = (
        SubscriptionPackage.query
        .filter_by(is_active=True)
        .order_by(SubscriptionPackage.price_monthly.asc())
        .all()
    )
    return jsonify(APIResponseFormatter.success(items=rows_to_dicts(plans)))


@api_bp.route('/subscription', methods=['GET'])
@login_required
def my_subscription():
    user = current_user()
    subscription = UserSubscription.query.filter_by(user_id=user.id).first()
    status, limits = _limits_for(user)
    data = subscription.to_dict() if subscription else None
    if subscription and subscription.package:
        data['package_name'] = subscription.package.name
    return jsonify(APIResponseFormatter.success(
        subscription=data, subscription_status=status, limits=limits.to_dict()))


@api_bp.route('/vouchers/validate', methods=['POST'])
@login_required
def check_voucher():
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    ok, error = request_validator.require_fields(data, ['code', 'plan_id'])
    if not ok:
        return jsonify(error), 400

    package = db.session.get(SubscriptionPackage, data['plan_id'])
    if package is None or not package.is_active:
        raise RecordNotFound('Subscription plan not found.')
    check = validate_voucher(data['code'], user.id, package, data.get('billing_cycle') or 'monthly')
    return jsonify(APIResponseFormatter.success('Voucher applied.', voucher=check.to_dict()))


@api_bp.route('/payments', methods=['POST'])
@login_required
def start_payment():
    user = current_user()
    ok, data, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400
    ok, error = request_validator.require_fields(data, ['plan_id', 'payment_method'])
    if not ok:
        return jsonify(error), 400

    transaction = create_payment(
        user,
        data['plan_id'],
        billing_cycle=data.get('billing_cycle') or 'monthly',
        payment_method=data['payment_method'],
        voucher_code=data.get('voucher_code') or None,
    )
    return jsonify(APIResponseFormatter.success(
        'Payment created. Complete it on the invoice page.',
        transaction_id=transaction.id,
        invoice_number=transaction.invoice_number,
        invoice_url=transaction.invoice_url,
        amount=transaction.amount,
    )), 201


@api_bp.route('/payments/<int:transaction_id>', methods=['GET'])
@login_required
def payment_status(transaction_id):
    user = current_user()
    transaction = get_transaction_for_user(user, transaction_id)
    return jsonify(APIResponseFormatter.success(transaction=transaction.to_sanitized_dict()))


@api_bp.route('/payments/webhook', methods=['POST'])
def payment_webhook():
    expected = current_app.config.get('PAYMENT_CALLBACK_TOKEN')
    if expected:
        supplied = request.headers.get('X-Callback-Token', '')
        if not hmac.compare_digest(supplied.encode('utf-8'), expected.encode('utf-8')):
            current_app.logger.warning('Payment webhook rejected: bad callback token')
            return json_error('Invalid callback token.', 401, 'UNAUTHORIZED')

    payload = request.get_json(silent=True) or {}
    current_app.logger.info(f"Payment webhook: external_id={payload.get('external_id')} status={payload.get('status')}")
    transaction = process_webhook(payload)
    return jsonify(APIResponseFormatter.success('Webhook processed.', status=transaction.status))
