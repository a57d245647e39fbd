"""
Admin Routes

FLOW OVERVIEW
All routes require an active admin session.
- /admin [GET]
  • Admin console page; lists the registered managers with row counts.
- /admin/api/<manager> [GET, POST]
  • GET: manager.load(search) plus lookup rows for category selects.
  • POST: manager.save(form) → update when `id` is present, otherwise insert.
- /admin/api/<manager>/<id> [PUT, DELETE]
  • PUT: update the record. DELETE: requires confirm=true, otherwise 409.
- /admin/api/opportunities/<id>/toggle [POST]
  • Flip an opportunity's is_active flag.
- /admin/api/scraping/run [POST]
  • Invoke the remote web-scraper per category and sum the scraped items.
- /admin/api/uploads [POST]
  • Multipart image upload into a storage bucket; returns the public URL.
- /admin/api/payments/transactions [GET] / /admin/api/payments/analytics [GET]
- /admin/api/audit-logs [GET]
"""

from flask import Blueprint, render_template, jsonify, request, current_app
from ..models import AuditLog, db
from ..utils.api_utils import APIResponseFormatter, request_validator
from ..utils.audit import audit_admin_action
from ..utils.auth_utils import admin_required, current_user
from ..utils.backend import BackendClient
from ..utils.error_handlers import RemoteFunctionError, ValidationError
from ..utils.managers import MANAGERS, get_manager
from ..utils.payments import list_transactions, payment_analytics
from ..utils.remote import RemoteFunctionClient, StorageClient, UPLOAD_BUCKETS
from ..utils.validators import parse_bool, parse_datetime

admin_bp = Blueprint('admin', __name__)

SCRAPER_FUNCTION = 'web-scraper'


def _admin_id():
    user = current_user()
    return user.id if user else None


@admin_bp.route('')
@admin_bp.route('/')
@admin_required
def admin_home():
    backend = BackendClient()
    sections = [
        {'name': name, 'label': manager.label, 'count': backend.count(manager.table)}
        for name, manager in MANAGERS.items()
    ]
    return render_template('admin.html', sections=sections, buckets=UPLOAD_BUCKETS,
                           categories=current_app.config.get('SCRAPING_CATEGORIES', []))


@admin_bp.route('/api/<name>', methods=['GET'])
@admin_required
def list_records(name):
    manager = get_manager(name)
    items = manager.load(search=request.args.get('search'))
    return jsonify(APIResponseFormatter.success(
        items=items, count=len(items), lookup=manager.load_lookup()))


@admin_bp.route('/api/<name>', methods=['POST'])
@admin_required
def save_record(name):
    manager = get_manager(name)
    ok, form, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400

    record, created = manager.save(form, user_id=_admin_id())
    action = 'created' if created else 'updated'
    return jsonify(APIResponseFormatter.success(
        f"{manager.label} {action} successfully.",
        record=record.to_dict(), created=created, items=manager.load())), 201 if created else 200


@admin_bp.route('/api/<name>/<int:record_id>', methods=['PUT'])
@admin_required
def update_record(name, record_id):
    manager = get_manager(name)
    ok, form, error = request_validator.validate_json_request()
    if not ok:
        return jsonify(error), 400

    form['id'] = record_id
    record, _ = manager.save(form, user_id=_admin_id())
    return jsonify(APIResponseFormatter.success(
        f"{manager.label} updated successfully.",
        record=record.to_dict(), created=False, items=manager.load()))


@admin_bp.route('/api/<name>/<int:record_id>', methods=['DELETE'])
@admin_required
def delete_record(name, record_id):
    manager = get_manager(name)
    body = request.get_json(silent=True) or {}
    confirmed = parse_bool(request.args.get('confirm', body.get('confirm')))

    manager.delete(record_id, confirmed=confirmed, user_id=_admin_id())
    return jsonify(APIResponseFormatter.success(
        f"{manager.label} deleted successfully.", items=manager.load()))


@admin_bp.route('/api/opportunities/<int:record_id>/toggle', methods=['POST'])
@admin_required
def toggle_opportunity(record_id):
    backend = BackendClient()
    record = backend.get('scraped_content', record_id)
    if record is None:
        return jsonify(APIResponseFormatter.failure('Opportunity not found.', 'NOT_FOUND')), 404

    record = backend.update('scraped_content', record_id, {'is_active': not record.is_active})
    audit_admin_action('toggle', 'scraped_content', record_id, _admin_id())
    db.session.commit()
    state = 'activated' if record.is_active else 'deactivated'
    return jsonify(APIResponseFormatter.success(f"Opportunity {state}.", record=record.to_dict()))


@admin_bp.route('/api/scraping/run', methods=['POST'])
@admin_required
def run_scraping():
    ok, body, error = request_validator.validate_json_request(allow_empty=True)
    if not ok:
        return jsonify(error), 400

    requested = body.get('categories') or body.get('category') or current_app.config.get('SCRAPING_CATEGORIES', [])
    if isinstance(requested, str):
        requested = [requested]
    categories = [str(c).strip().upper() for c in requested if str(c).strip()]
    if not categories:
        raise ValidationError('Choose at least one category to scrape.')

    functions = RemoteFunctionClient()
    results = []
    total = 0
    for category in categories:
        try:
            payload = functions.invoke(SCRAPER_FUNCTION, {'category': category})
        except RemoteFunctionError as e:
            results.append({'category': category, 'success': False, 'message': e.message})
            continue
        scraped = len(payload.get('data') or [])
        total += scraped
        results.append({'category': category, 'success': True, 'scraped': scraped})

    audit_admin_action('scrape', 'scraped_content', None, _admin_id())
    db.session.commit()

    if not any(r['success'] for r in results):
        raise RemoteFunctionError('Scraping failed for every category.')

    current_app.logger.info(f"Scraping run: {total} items across {', '.join(categories)}")
    return jsonify(APIResponseFormatter.success(
        f"Scraped {total} new items.", total=total, results=results))


@admin_bp.route('/api/uploads', methods=['POST'])
@admin_required
def upload_image():
    bucket = request.form.get('bucket', 'content-media')
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        raise ValidationError('No file selected.')

    data = upload.read()
    url = StorageClient().upload(bucket, upload.filename, data, upload.mimetype)
    audit_admin_action('upload', bucket, None, _admin_id())
    db.session.commit()
    return jsonify(APIResponseFormatter.success('Image uploaded.', url=url)), 201


@admin_bp.route('/api/payments/transactions', methods=['GET'])
@admin_required
def transactions():
    limit = request_validator.get_int_arg('limit', 100, maximum=500)
    items = list_transactions(limit)
    return jsonify(APIResponseFormatter.success(items=items, count=len(items)))


@admin_bp.route('/api/payments/analytics', methods=['GET'])
@admin_required
def analytics():
    try:
        start_date = parse_datetime(request.args.get('start_date'))
        end_date = parse_datetime(request.args.get('end_date'))
    except ValueError:
        raise ValidationError('Dates must be ISO-8601.')
    return jsonify(APIResponseFormatter.success(analytics=payment_analytics(start_date, end_date)))


@admin_bp.route('/api/audit-logs', methods=['GET'])
@admin_required
def audit_logs():
    limit = request_validator.get_int_arg('limit', 100, maximum=500)
    entries = AuditLog.get_recent(limit=limit, table_name=request.args.get('table'))
    return jsonify(APIResponseFormatter.success(items=[e.to_dict() for e in entries]))
