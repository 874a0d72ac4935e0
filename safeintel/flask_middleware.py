"""
Request logging and JSON errors for the Flask app.

Every request is timed into the watchdog. HTTP errors and anything
unhandled come back as {success: false, error, message?} so API clients
never see an HTML error page.
"""

import time

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException

from safeintel.watchdog import watchdog


def _register_timing(app):
    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def log_request(response):
        started = g.pop('request_started', None)
        duration = time.time() - started if started else 0.0
        watchdog.log_request(request.method, request.path, response.status_code, duration)
        return response


def _register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({'success': False, 'error': e.name, 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def unhandled_error(e):
        watchdog.log_exception(e, context='UNHANDLED_REQUEST_ERROR',
                               extra_data={'method': request.method, 'path': request.path})
        return jsonify({'success': False, 'error': 'Internal server error'}), 500


def init_watchdog(app):
    """
    Hook request timing and JSON error handlers into app.

    Usage:
        app = Flask(__name__)
        init_watchdog(app)
    """
    _register_timing(app)
    _register_error_handlers(app)
    watchdog.log_startup('SafeIntel API')
    return app
