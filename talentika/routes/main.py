"""
Main Routes

FLOW OVERVIEW
- / [GET]
  • Landing page with featured courses and the newest opportunities.
- /pricing [GET]
  • Active subscription plans, cheapest first.
- /articles [GET]
  • Published articles, optional ?category= filter.
- /articles/<slug> [GET]
  • Published article only; bumps the view counter through the backend rpc.
- /dashboard [GET]
  • Auth gate; XP, streaks and subscription limits for the signed in user.
- /health [GET]
  • JSON health check.
- /metrics [GET]
  • Prometheus exposition.
- /init-db [GET]
  • Initialize DB tables (dev utility).
"""

from flask import Blueprint, render_template, jsonify, request, Response, current_app
from datetime import datetime
from ..models import db, Article, Course, ScrapedContent, SubscriptionPackage
from ..utils.auth_utils import login_required, current_user
from ..utils.backend import BackendClient
from ..utils.error_handlers import render_error_page, TalentikaError
from ..utils.gamification import summary as gamification_summary
from ..utils.prom_metrics import metrics_latest, CONTENT_TYPE_LATEST
from ..utils.subscription import effective_status, get_subscription_limits

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def home():
    """Home page route"""
    courses = Course.query.order_by(Course.is_featured.desc(), Course.created_at.desc()).limit(6).all()
    opportunities = (
        ScrapedContent.query
        .filter_by(is_active=True)
        .order_by(ScrapedContent.created_at.desc())
        .limit(6)
        .all()
    )
    return render_template('index.html', courses=courses, opportunities=opportunities)


@main_bp.route('/pricing')
def pricing():
    plans = (
        SubscriptionPackage.query
        .filter_by(is_active=True)
        .order_by(SubscriptionPackage.price_monthly.asc())
        .all()
    )
    return render_template('pricing.html', plans=plans)


@main_bp.route('/articles')
def articles():
    category = request.args.get('category') or None
    return render_template('articles.html', articles=Article.get_published(category), category=category)


@main_bp.route('/articles/<slug>')
def article_detail(slug):
    article = Article.query.filter_by(slug=slug, is_published=True).first()
    if article is None:
        return render_error_page('Article Not Found',
            'The article you are looking for does not exist.', 404)

    try:
        BackendClient().rpc('increment_article_view_count', article_id=article.id)
    except TalentikaError as e:
        # A failed counter update must not hide the article
        current_app.logger.warning(f"View count not updated for article {article.id}: {e.message}")

    related = (
        Article.query
        .filter(Article.is_published.is_(True), Article.category == article.category, Article.id != article.id)
        .order_by(Article.published_at.desc())
        .limit(3)
        .all()
    )
    return render_template('article_detail.html', article=article, related=related)


@main_bp.route('/dashboard')
@login_required
def dashboard():
    user = current_user()
    status = effective_status(user)
    return render_template(
        'dashboard.html',
        user=user,
        game=gamification_summary(user.id),
        limits=get_subscription_limits(status, user.subscription_type),
        subscription_status=status,
    )


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    return jsonify({'status': 'healthy', 'timestamp': datetime.utcnow().isoformat()})


@main_bp.route('/metrics')
def metrics():
    """Prometheus metrics endpoint."""
    return Response(metrics_latest(), mimetype=CONTENT_TYPE_LATEST)


@main_bp.route('/init-db')
def init_database():
    """Initialize database tables"""
    try:
        db.create_all()
        return jsonify({'message': 'Database initialized successfully!'}), 200
    except Exception as e:
        current_app.logger.error(f"Database initialization failed: {e}")
        return jsonify({'error': 'Failed to initialize database.'}), 500
