"""
Stub MyMobile gateway for local development

Emulates the Authentication, Balance, BulkMessages and GroupMessages
endpoints so the client and CLI can be exercised without a real account.
Point a client config's "endpoint" at http://localhost:5000/v1/.
"""

import os

from flask import Flask, jsonify

from blueprints.authentication import auth_bp
from blueprints.messages import messages_bp
from mymobile_client.logging_config import get_logger, setup_logging
from src.tokens import DATABASE_PATH, TOKEN_TTL_MINUTES, init_db


def create_app(config=None):
    """Create and configure the Flask application"""
    logger = get_logger(__name__)
    logger.info("Creating stub gateway application")

    app = Flask(__name__)
    app.config.update(
        MOCK_CLIENT_ID=os.environ.get('MOCK_CLIENT_ID', 'test-client'),
        MOCK_CLIENT_SECRET=os.environ.get('MOCK_CLIENT_SECRET', 'test-secret'),
        MOCK_BALANCE=int(os.environ.get('MOCK_BALANCE', 1000)),
        MOCK_TOKEN_TTL_MINUTES=TOKEN_TTL_MINUTES,
        MOCK_DATABASE_PATH=DATABASE_PATH,
    )
    if config:
        app.config.update(config)

    app.register_blueprint(auth_bp)
    app.register_blueprint(messages_bp)
    logger.info("Registered authentication and messages blueprints")

    init_db(app.config['MOCK_DATABASE_PATH'])

    @app.route('/health')
    def health_check():
        logger.debug("Health check requested")
        return jsonify({"status": "healthy"})

    return app


if __name__ == '__main__':
    setup_logging()
    app = create_app()
    logger = get_logger(__name__)

    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('DEBUG', 'false').lower() == 'true'

    logger.info(f"Starting stub MyMobile gateway on {host}:{port} (debug={debug})")
    app.run(host=host, port=port, debug=debug)
