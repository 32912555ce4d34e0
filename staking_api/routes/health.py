from datetime import datetime

from flask import Blueprint, current_app, jsonify

from ..api.error_handling import StoreError

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Database connectivity and registry size."""
    services = current_app.extensions["staking_api"]
    health_status = {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "protocols": len(services.registry),
        "protocols_with_rpc": sum(1 for source in services.registry if source.rpc),
        "database": services.database_info,
    }

    try:
        health_status["staking_records"] = services.repository.count()
    except StoreError as e:
        health_status["status"] = "unhealthy"
        health_status["error"] = str(e)
        return jsonify(health_status), 503

    return jsonify(health_status)
