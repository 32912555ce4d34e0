import logging

from flask import Blueprint, current_app, jsonify

logger = logging.getLogger(__name__)

token_bp = Blueprint("token_bp", __name__)


@token_bp.route("/token", methods=["GET"])
def get_tokens():
    try:
        return jsonify(current_app.extensions["staking_api"].token_bundle)
    except Exception as e:
        logger.error(f"Failed to fetch token data: {e}")
        return jsonify({"error": "Failed to fetch token data"}), 500
