"""
Main Flask application for the 100-day challenge journal
"""
from flask import Flask, request, jsonify, abort
from functools import wraps
import logging
import os
import re
import markdown

from config import config
from models import db, User
from flask_login import LoginManager, login_user, logout_user, login_required, current_user

import challenge_service
import entry_service
import stats_service
from challenge_service import ChallengeError
from progress_engine import week_end_unit


def render_markdown(text):
    """Render prompt text; ==highlight== marks a scripture phrase"""
    if not text:
        return ''
    text = re.sub(r'==([^=]+)==', r'<mark>\1</mark>', str(text))
    md = markdown.Markdown(extensions=['nl2br', 'sane_lists'])
    return md.convert(text)


def create_app(config_name=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize database
    db.init_app(app)

    # Initialize Flask-Login
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    # Create database tables
    with app.app_context():
        db.create_all()

    app.add_template_filter(render_markdown, 'markdown')

    # ========== ERRORS ==========

    @app.errorhandler(ChallengeError)
    def handle_challenge_error(error):
        return jsonify({'error': str(error)}), error.status_code

    @app.errorhandler(ValueError)
    def handle_value_error(error):
        return jsonify({'error': str(error)}), 400

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'Not found'}), 404

    # ========== HELPERS ==========

    def owned_enrollment(f):
        """Resolve <enrollment_id> to the current user's enrollment or 404"""
        @wraps(f)
        def decorated_function(enrollment_id, *args, **kwargs):
            enrollment = challenge_service.get_enrollment(enrollment_id)
            if enrollment is None or enrollment.user_id != current_user.id:
                abort(404)
            return f(enrollment, *args, **kwargs)
        return decorated_function

    def payload():
        return request.get_json(silent=True) or request.form.to_dict()

    # ========== AUTH ROUTES ==========

    @app.route('/auth/signup', methods=['POST'])
    def signup():
        data = payload()
        username = (data.get('username') or '').strip()
        password = data.get('password') or ''
        if not username or not password:
            return jsonify({'error': 'Username and password are required'}), 400
        if User.query.filter_by(username=username).first():
            return jsonify({'error': 'Username exists'}), 409

        user = User(username=username, email=data.get('email'))
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        login_user(user)
        return jsonify(user.to_dict()), 201

    @app.route('/auth/login', methods=['POST'])
    def login():
        data = payload()
        user = User.query.filter_by(username=data.get('username')).first()
        if user and user.check_password(data.get('password') or ''):
            login_user(user)
            return jsonify(user.to_dict())
        return jsonify({'error': 'Invalid credentials.'}), 401

    @app.route('/auth/logout', methods=['POST'])
    @login_required
    def logout():
        logout_user()
        return jsonify({'success': True})

    # ========== CHALLENGES ==========

    @app.route('/api/challenges')
    @login_required
    def api_challenges():
        return jsonify([c.to_dict() for c in challenge_service.get_challenges()])

    @app.route('/api/challenges/<int:challenge_id>/start', methods=['POST'])
    @login_required
    def api_start_challenge(challenge_id):
        data = payload()
        enrollment = challenge_service.start_challenge(
            challenge_id, data.get('schedule_type', 'morning'), current_user.id
        )
        return jsonify(enrollment.to_dict()), 201

    @app.route('/api/enrollments/current')
    @login_required
    def api_current_enrollment():
        enrollment = challenge_service.get_current_challenge(current_user.id)
        if enrollment is None:
            return jsonify({'enrollment': None})
        return jsonify({'enrollment': enrollment.to_dict()})

    @app.route('/api/enrollments')
    @login_required
    def api_active_enrollments():
        enrollments = challenge_service.get_all_active_challenges(current_user.id)
        return jsonify([e.to_dict() for e in enrollments])

    # ========== TODAY & ENTRIES ==========

    @app.route('/api/enrollments/<int:enrollment_id>/today')
    @login_required
    @owned_enrollment
    def api_today(enrollment):
        content = challenge_service.get_todays_content(enrollment.id)
        if content is None:
            abort(404)
        prompt = content['prompt']
        content['context_html'] = render_markdown(prompt['context_text']) if prompt else ''
        return jsonify(content)

    @app.route('/api/enrollments/<int:enrollment_id>/entries/<int:unit_number>')
    @login_required
    @owned_enrollment
    def api_get_entry(enrollment, unit_number):
        entry = entry_service.get_entry(enrollment.id, unit_number)
        return jsonify({'entry': entry.to_dict() if entry else None})

    @app.route('/api/enrollments/<int:enrollment_id>/entries/<int:unit_number>', methods=['POST'])
    @login_required
    @owned_enrollment
    def api_save_entry(enrollment, unit_number):
        data = payload()
        entry = entry_service.save_entry(
            enrollment.id, unit_number, data.get('entry_type'), data.get('content')
        )
        if entry is None:
            return jsonify({'saved': False, 'entry': None})
        return jsonify({'saved': True, 'entry': entry.to_dict()})

    @app.route(
        '/api/enrollments/<int:enrollment_id>/entries/<int:unit_number>/<entry_type>',
        methods=['DELETE']
    )
    @login_required
    @owned_enrollment
    def api_clear_entry_field(enrollment, unit_number, entry_type):
        entry = entry_service.clear_entry_field(enrollment.id, unit_number, entry_type)
        return jsonify({'entry': entry.to_dict() if entry else None})

    @app.route('/api/enrollments/<int:enrollment_id>/entries/<int:unit_number>/offline', methods=['POST'])
    @login_required
    @owned_enrollment
    def api_mark_offline(enrollment, unit_number):
        entry = entry_service.mark_offline_complete(enrollment.id, unit_number)
        return jsonify({'saved': True, 'entry': entry.to_dict()})

    @app.route('/api/enrollments/<int:enrollment_id>/entries/<int:unit_number>/review-notes', methods=['POST'])
    @login_required
    @owned_enrollment
    def api_review_notes(enrollment, unit_number):
        entry = entry_service.add_review_notes(
            enrollment.id, unit_number, payload().get('review_notes')
        )
        return jsonify({'entry': entry.to_dict()})

    @app.route('/api/enrollments/<int:enrollment_id>/review')
    @login_required
    @owned_enrollment
    def api_weekly_review(enrollment):
        week_end = request.args.get('week_end', type=int)
        if week_end is None:
            week_end = week_end_unit(challenge_service.get_current_unit(enrollment))
        rows = entry_service.get_weekly_review(enrollment.id, week_end)
        return jsonify({'week_end': week_end, 'entries': rows})

    # ========== STATS ==========

    @app.route('/api/enrollments/<int:enrollment_id>/calendar')
    @login_required
    @owned_enrollment
    def api_calendar(enrollment):
        return jsonify(stats_service.get_calendar_data(enrollment.id, request.args.get('month')))

    @app.route('/api/enrollments/<int:enrollment_id>/stats')
    @login_required
    @owned_enrollment
    def api_stats(enrollment):
        return jsonify(stats_service.get_progress_stats(enrollment.id))

    @app.route('/api/enrollments/<int:enrollment_id>/achievements')
    @login_required
    @owned_enrollment
    def api_achievements(enrollment):
        return jsonify(stats_service.get_achievements(enrollment.id))

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
