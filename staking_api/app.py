"""
Application factory for the Staking API.

Builds the Flask app, binds the database, and constructs the process-wide
collaborators (registry, chain reader, record store, refresh service) once,
storing them in `app.extensions["staking_api"]` for the request handlers.
Any collaborator can be passed in, which is how tests swap in fakes.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import click
from flask import Flask, jsonify, request
from flask_migrate import Migrate

from .api.chain_reader import Web3ChainReader
from .config import ServiceConfig
from .database.config import DatabaseConfig, db
from .database.init_db import initialize_database
from .database.repository import StakingRepository
from .registry import ProtocolSource, load_protocol_sources, load_token_bundle
from .routes.health import health_bp
from .routes.staking import staking_bp
from .routes.token import token_bp
from .services.refresh_service import StakingRefreshService

LOGGER = logging.getLogger(__name__)

migrate = Migrate()


@dataclass
class StakingServices:
    """Process-wide collaborators shared by every request"""

    registry: List[ProtocolSource]
    token_bundle: Dict[str, Any]
    chain_reader: Any
    repository: Any
    refresh_service: StakingRefreshService
    database_info: Dict[str, Any] = field(default_factory=dict)


def create_app(
    service_config: Optional[ServiceConfig] = None,
    database_url: Optional[str] = None,
    registry: Optional[List[ProtocolSource]] = None,
    token_bundle: Optional[Dict[str, Any]] = None,
    chain_reader=None,
    repository=None,
) -> Flask:
    """
    Create and configure the Flask application

    Args:
        service_config: Settings; read from the environment when omitted
        database_url: SQLAlchemy URL overriding DATABASE_URL / ENVIRONMENT
        registry: Protocol sources; loaded from the registry file when omitted
        token_bundle: Token bundle; loaded from the token file when omitted
        chain_reader: Object with `read_staking_state(rpc_url, address)`
        repository: Staking record store; built on the app's engine when omitted
    """
    config = service_config or ServiceConfig()
    db_config = DatabaseConfig(database_url)

    app = Flask(__name__)
    app.json.sort_keys = False
    app.config['SQLALCHEMY_DATABASE_URI'] = db_config.database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = db_config.get_engine_options()

    db.init_app(app)
    migrate.init_app(app, db)

    if registry is None:
        registry = load_protocol_sources(config.protocol_registry_path)
    if token_bundle is None:
        token_bundle = load_token_bundle(config.token_registry_path)
    if chain_reader is None:
        chain_reader = Web3ChainReader()

    with app.app_context():
        if config.auto_create_tables:
            init_result = initialize_database(create_tables=True)
            if init_result['success']:
                LOGGER.info(f"Database initialization completed in {init_result['total_time_ms']}ms.")
            else:
                LOGGER.error(f"Database initialization failed at step: {init_result.get('step', 'unknown')}")
                LOGGER.error(f"Error: {init_result.get('error', 'Unknown error')}")

        if repository is None:
            repository = StakingRepository.from_engine(db.engine, serialize_writes=db_config.is_sqlite)

    refresh_service = StakingRefreshService(
        registry,
        chain_reader,
        repository,
        max_workers=config.refresh_max_workers,
    )

    app.extensions["staking_api"] = StakingServices(
        registry=list(registry),
        token_bundle=token_bundle,
        chain_reader=chain_reader,
        repository=repository,
        refresh_service=refresh_service,
        database_info=db_config.get_connection_info(),
    )
    app.config["SERVICE_CONFIG"] = config

    app.register_blueprint(staking_bp)
    app.register_blueprint(token_bp)
    app.register_blueprint(health_bp)

    _register_cors(app)
    _register_error_handlers(app)
    _register_commands(app)

    LOGGER.info(f"Database: {db_config.get_connection_info()}")
    LOGGER.info(f"Staking API initialized with {len(registry)} protocol sources")
    return app


def close_services(app: Flask):
    """Release the chain reader's HTTP sessions; call once at process exit"""
    services = app.extensions.get("staking_api")
    if services is None:
        return
    close = getattr(services.chain_reader, "close", None)
    if callable(close):
        close()
        LOGGER.info("Chain reader connections closed")


def _register_cors(app: Flask):
    @app.after_request
    def add_cors_headers(response):
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
        response.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        return response


def _register_error_handlers(app: Flask):
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found', 'status': 404}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'error': 'Method not allowed', 'status': 405}), 405

    @app.errorhandler(500)
    def internal_error(error):
        LOGGER.error(f"Internal Server Error on {request.path}: {error}", exc_info=True)
        return jsonify({'error': 'Internal server error', 'status': 500}), 500


def _register_commands(app: Flask):
    @app.cli.command("refresh-staking")
    def refresh_staking_command():
        """Run one staking refresh batch and print the outcomes."""
        result = app.extensions["staking_api"].refresh_service.refresh_all()
        click.echo(json.dumps({
            "failedUpdates": [o.to_dict() for o in result.failed],
            "results": [o.to_dict() for o in result.outcomes],
            "durationMs": result.duration_ms,
        }, indent=2))
