import os
import logging
from flask import Flask, jsonify

from safeintel import __version__
from safeintel.watchdog import watchdog
from safeintel.flask_middleware import init_watchdog
from safeintel.liveintel.routes import intel_bp

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(service=None, profiles=None):
    """
    Build the Flask app.

    Args:
        service: IntelligenceService to serve from. Defaults to the
            process-wide service, built on first request.
        profiles: ProfileStore for route safety checks.
    """
    app = Flask(__name__)
    app.config['INTEL_SERVICE'] = service
    app.config['PROFILE_STORE'] = profiles

    init_watchdog(app)

    app.register_blueprint(intel_bp, url_prefix='/api')

    @app.route('/health')
    def healthcheck():
        """Health check endpoint for monitoring and load balancers."""
        return jsonify({
            'status': 'healthy',
            'app': 'SafeIntel',
            'version': __version__
        })

    @app.route('/api/watchdog/stats', methods=['GET'])
    def watchdog_stats():
        return jsonify({'success': True, 'stats': watchdog.get_performance_stats()})

    return app


app = create_app()


if __name__ == '__main__':
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))
    app.run(host=host, port=port, debug=True)
