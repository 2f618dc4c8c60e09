"""Flask application factory."""
import traceback

from flask import Flask, jsonify, request


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize Redis Cache
    from bookstore.services.cache_service import init_cache
    init_cache(app)

    # Setup Prometheus metrics instrumentation
    from bookstore.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix for HTTPS behind a reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Bookstore API client per request, bound to the caller's token.
    # Tests replace this factory with one returning a mock.
    from bookstore.services.bookstore_client import BookstoreApiClient
    app.extensions.setdefault('api_client_factory', lambda token: BookstoreApiClient(access_token=token))

    from bookstore.middleware import load_api_session

    @app.before_request
    def before_request_handler():
        """Load the API token for each request."""
        load_api_session()

    # Error Handlers
    from bookstore.exceptions import BookstoreError

    @app.errorhandler(BookstoreError)
    def handle_bookstore_error(error):
        """Handle custom application exceptions."""
        app.logger.error(f"BookstoreError [{error.status_code}] {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from bookstore.blueprints.main import main_bp
    from bookstore.blueprints.order_flow import order_flow_bp
    from bookstore.blueprints.my_orders import my_orders_bp
    from bookstore.blueprints.admin_drafts import admin_drafts_bp
    from bookstore.blueprints.admin_orders import admin_orders_bp
    from bookstore.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(order_flow_bp)
    app.register_blueprint(my_orders_bp)
    app.register_blueprint(admin_drafts_bp)
    app.register_blueprint(admin_orders_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from bookstore.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"BOOKSTORE_API_BASE={app.config.get('BOOKSTORE_API_BASE')}")

    return app
