# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import time
import uuid
from typing import Any, Dict, Optional

from flask import Flask, g, jsonify


def create_app(test_config: Optional[Dict[str, Any]] = None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # =============================================================================
    # CONFIGURATION
    # =============================================================================
    from .config import get_settings
    settings = get_settings()

    app.config.from_mapping(
        JSON_SORT_KEYS=False,
        HOST=settings.host,
        PORT=settings.port,
        DEBUG=settings.debug,
        TYPE_MAPPING_FILE=settings.type_mapping_file,
        SOURCES_CONFIG_FILE=settings.sources_config_file,
    )
    if test_config:
        app.config.update(test_config)
    # Non-ASCII category names stay readable in responses
    app.json.ensure_ascii = False

    # =============================================================================
    # LOGGING
    # =============================================================================
    from .log import log

    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'message': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'message': 'Method not allowed'}), 405

    # =============================================================================
    # APPLICATION EXTENSIONS (Source registry, Type mapping)
    # =============================================================================
    from . import extensions

    if test_config and ('REGISTRY' in test_config or 'TYPE_MAPPING_MANAGER' in test_config):
        extensions.install(
            registry=test_config.get('REGISTRY'),
            manager=test_config.get('TYPE_MAPPING_MANAGER'),
        )

    # =============================================================================
    # BLUEPRINTS & ROUTES
    # =============================================================================
    from .routes.main_api import main_bp
    from .routes.sources_api import sources_bp
    from .routes.type_mapping_api import type_mapping_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(sources_bp)
    app.register_blueprint(type_mapping_bp)

    # =============================================================================
    # INITIALIZATION
    # =============================================================================
    with app.app_context():
        # Register logging callback for sources
        from sources.base import set_log_callback
        set_log_callback(log)

        registry = extensions.get_registry()
        manager = extensions.get_type_mapping_manager()
        document = manager.get_document()

        if not app.config.get('TESTING'):
            print("=" * 60)
            print("  VastProxy - Type Mapping")
            print("=" * 60)
            print(f"\n📚 Loaded {len(registry.sources)} sources:")
            for source in registry.sources:
                status = "✅" if source.enabled else "❌"
                mapped = "🗂️" if manager.has_source(source.code) else "  "
                print(f"   {status} {mapped} {source.name} ({source.code})")
            print(f"\n🏷️ {len(document.global_types)} global types, "
                  f"{len(document.source_mappings)} source mappings")
            print(f"\n🌐 Server: http://{app.config['HOST']}:{app.config['PORT']}")
            if app.config['DEBUG']:
                print("⚠️  Debug mode is ON - do not use in production!")
            print("=" * 60)

    return app

# App instance should be created by the caller (run.py or WSGI entrypoint)
