import logging
from datetime import datetime

import redis
from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

import access_control
import interview_logic
import interview_records
import plans
from errors import ServiceError, ValidationError
from question_bank import QuestionBankRepository

logger = logging.getLogger(__name__)

# Store connection objects from the app factory
r = None
db = None
generator = None
repository = None


def _now() -> datetime:
    """Wall clock for window checks. Naive local time, like stored interview slots."""
    return datetime.now()


def _json() -> dict:
    data = request.get_json(silent=True)
    if data is not None and not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data or {}


def _email(data=None):
    """Caller email from the query string, the JSON body or the X-User-Email header."""
    return (request.args.get('email')
            or (data or {}).get('email')
            or request.headers.get('X-User-Email'))


def _register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({'success': False, 'error': 'Internal server error'}), 500


def init_app(app, redis_conn, db_conn, question_generator):
    """Initializes the routes and registers the blueprint with the Flask app."""
    global r, db, generator, repository
    r = redis_conn
    db = db_conn
    generator = question_generator
    repository = QuestionBankRepository(question_generator)

    # A fresh blueprint per app so the factory can run more than once
    api_bp = Blueprint('api', __name__, url_prefix='/api')

    # === Interviews ===

    @api_bp.route('/interviews', methods=['POST'])
    def create_interview():
        interview = interview_logic.create_interview(_json(), generator)
        return jsonify({
            'success': True,
            'message': 'Interview created successfully',
            'data': interview_logic.creation_summary(interview),
        }), 201

    @api_bp.route('/interviews', methods=['GET'])
    def list_interviews():
        args = request.args
        interviews = interview_logic.list_interviews(
            _email(),
            status=args.get('status'),
            job_title=args.get('jobTitle'),
            applicant_name=args.get('applicantName'),
            company_name=args.get('companyName'),
            interview_type=args.get('interviewType'),
            sort_by=args.get('sortBy', 'createdAt'),
            sort_order=args.get('sortOrder', 'desc'),
        )
        data = [interview_logic.interview_details(i) for i in interviews]
        return jsonify({'success': True, 'count': len(data), 'data': data})

    @api_bp.route('/interviews/validate', methods=['GET'])
    def validate_interviews():
        result = access_control.validate_batch(_email(), _now())
        return jsonify({'success': True, **result})

    @api_bp.route('/interviews/verify-token', methods=['POST'])
    def verify_token():
        data = _json()
        interview = access_control.verify_access(data.get('interviewLink'), data.get('accessToken'), _now())
        return jsonify({
            'success': True,
            'message': 'Access granted',
            'interviewId': interview.id,
        })

    @api_bp.route('/interviews/<interview_id>', methods=['GET'])
    def get_interview(interview_id):
        interview = interview_logic.get_interview(interview_id)
        return jsonify({'success': True, 'data': interview_logic.interview_details(interview)})

    @api_bp.route('/interviews/link/<slug>', methods=['GET'])
    def get_interview_by_link(slug):
        interview = interview_logic.get_interview_by_link(slug)
        return jsonify({'success': True, 'data': interview_logic.interview_details(interview)})

    @api_bp.route('/interviews/<interview_id>', methods=['PUT'])
    def update_interview(interview_id):
        interview = interview_logic.update_interview(interview_id, _json())
        return jsonify({'success': True, 'data': interview_logic.interview_details(interview)})

    @api_bp.route('/interviews/<interview_id>/questions', methods=['PUT'])
    def update_questions(interview_id):
        data = _json()
        interview = interview_logic.update_questions(interview_id, data.get('action'), data.get('question'))
        return jsonify({
            'success': True,
            'message': 'Questions updated successfully',
            'data': interview_logic.interview_details(interview),
        })

    @api_bp.route('/interviews/<identifier>/status', methods=['PUT'])
    def update_status(identifier):
        interview = interview_logic.update_interview_status(identifier, _json().get('status'))
        return jsonify({'success': True, 'data': interview_logic.interview_details(interview)})

    @api_bp.route('/interviews/<identifier>/start', methods=['PUT'])
    def start_interview(identifier):
        interview = interview_logic.mark_in_progress(identifier)
        return jsonify({'success': True, 'data': interview_logic.interview_details(interview)})

    @api_bp.route('/interviews/<identifier>/complete', methods=['PUT'])
    def complete_interview(identifier):
        interview = interview_logic.complete_interview(identifier, _json().get('score'), _now())
        return jsonify({
            'success': True,
            'message': 'Interview completed successfully',
            'data': interview_logic.interview_details(interview),
        })

    # === Interview records ===

    @api_bp.route('/interview-records', methods=['POST'])
    def create_record():
        record = interview_records.create_record(_json(), generator, _now())
        return jsonify({'success': True, 'data': record.to_dict()}), 201

    @api_bp.route('/interview-records', methods=['GET'])
    def list_records():
        args = request.args
        result = interview_records.list_records(
            page=args.get('page'),
            limit=args.get('limit'),
            sort_by=args.get('sortBy', 'createdAt'),
            sort_order=args.get('sortOrder', 'desc'),
            status=args.get('status'),
            job_title=args.get('jobTitle'),
            company_name=args.get('companyName'),
        )
        return jsonify({'success': True, **result})

    @api_bp.route('/interview-records/<slug>', methods=['GET'])
    def records_for_interview(slug):
        records = interview_records.records_for_link(slug)
        return jsonify({'success': True, 'data': [rec.to_dict() for rec in records]})

    # === Plans ===

    @api_bp.route('/user/plan', methods=['GET', 'POST'])
    def get_plan():
        email = _email(_json())
        if not email:
            raise ValidationError('Email is required')
        plan = plans.get_user_plan(email)
        return jsonify({'success': True, 'plan': plan, 'limits': plans.get_plan_limits(plan).to_dict()})

    @api_bp.route('/user/plan', methods=['PUT'])
    def set_plan():
        data = _json()
        record = plans.set_user_plan(_email(data), data.get('plan'))
        return jsonify({
            'success': True,
            'message': 'Plan updated successfully',
            'data': record.to_dict(),
            'limits': plans.get_plan_limits(record.plan).to_dict(),
        })

    # === Question banks ===

    @api_bp.route('/question-banks/job-title/<job_title>', methods=['GET'])
    def banks_by_job_title(job_title):
        args = request.args
        result = repository.find_by_job_title(
            job_title, plans.resolve_plan(_email()),
            category=args.get('category'), difficulty=args.get('difficulty'), limit=args.get('limit'),
        )
        return jsonify({'success': True, **result})

    @api_bp.route('/question-banks/category/<category>', methods=['GET'])
    def banks_by_category(category):
        args = request.args
        result = repository.find_by_category(
            category, plans.resolve_plan(_email()),
            job_title=args.get('jobTitle'), difficulty=args.get('difficulty'), limit=args.get('limit'),
        )
        return jsonify({'success': True, **result})

    @api_bp.route('/question-banks/search', methods=['GET'])
    def search_banks():
        args = request.args
        result = repository.search(
            args.get('q'), plans.resolve_plan(_email()),
            category=args.get('category'), difficulty=args.get('difficulty'), limit=args.get('limit'),
        )
        return jsonify({'success': True, **result})

    @api_bp.route('/question-banks/popular', methods=['GET'])
    def popular_banks():
        result = repository.popular(plans.resolve_plan(_email()), limit=request.args.get('limit'))
        return jsonify({'success': True, **result})

    @api_bp.route('/question-banks/job-titles', methods=['GET'])
    def job_titles():
        email = _email()
        result = repository.job_titles(plans.resolve_plan(email), email)
        return jsonify({'success': True, **result})

    @api_bp.route('/question-banks/generate', methods=['POST'])
    def generate_banks():
        data = _json()
        plan = plans.resolve_plan(_email(data))
        banks = repository.generate_for_job_title(
            data.get('jobTitle'), plan,
            industry=data.get('industry'),
            skills=data.get('skills'),
            difficulty=data.get('difficulty', 'intermediate'),
        )
        return jsonify({
            'success': True,
            'message': f"Question banks ready for {banks[0].job_title}" if banks else 'No question banks generated',
            'data': [repository.present(bank, plan) for bank in banks],
        }), 201

    @api_bp.route('/question-banks/rate/<bank_id>', methods=['POST'])
    def rate_bank(bank_id):
        ratings = repository.rate(bank_id, _json().get('rating'))
        return jsonify({'success': True, 'message': 'Rating submitted successfully', 'data': {'ratings': ratings}})

    @app.route('/health')
    def health():
        redis_ok = False
        if r is not None:
            try:
                redis_ok = bool(r.ping())
            except redis.exceptions.RedisError as e:
                logger.warning("Redis health check failed: %s", e)
        return jsonify({'status': 'ok', 'redis': redis_ok, 'aiEnabled': generator.ai_enabled})

    _register_error_handlers(app)

    # Register the blueprint with the main Flask app
    app.register_blueprint(api_bp)
