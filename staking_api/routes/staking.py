import logging

from flask import Blueprint, current_app, jsonify

from ..api.error_handling import StoreError

logger = logging.getLogger(__name__)

staking_bp = Blueprint("staking_bp", __name__)


def _services():
    return current_app.extensions["staking_api"]


@staking_bp.route("/staking", methods=["GET"])
def get_all_staking():
    try:
        records = _services().repository.find_all()
    except StoreError as e:
        logger.error(f"Failed to fetch staking data: {e}")
        return jsonify({"error": "Failed to fetch staking data"}), 500
    return jsonify([record.to_dict() for record in records])


@staking_bp.route("/staking/protocol/<path:id_protocol>", methods=["GET"])
def get_staking_by_protocol(id_protocol):
    try:
        records = _services().repository.find_by_id_protocol(id_protocol)
    except StoreError as e:
        logger.error(f"Failed to fetch staking data for {id_protocol}: {e}")
        return jsonify({"error": "Failed to fetch staking data"}), 500

    if not records:
        return jsonify([]), 404
    return jsonify([record.to_dict() for record in records])


@staking_bp.route("/staking/update", methods=["POST"])
def update_staking():
    try:
        result = _services().refresh_service.refresh_all()
        failed_updates = [outcome.to_dict() for outcome in result.failed]
        message = (
            "Some staking data updates failed"
            if failed_updates
            else "All staking data updated successfully"
        )
        return jsonify({
            "message": message,
            "failedUpdates": failed_updates,
            "results": [outcome.to_dict() for outcome in result.outcomes],
        })
    except Exception as e:
        logger.error(f"Failed to update staking data: {e}", exc_info=True)
        return jsonify({"error": "Failed to update staking data"}), 500
