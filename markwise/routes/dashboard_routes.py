"""
Dashboard and health routes for Markwise.
"""
from flask import Blueprint, jsonify

from markwise import __version__
from markwise.config import config
from markwise.routes.responses import error_response
from markwise.services.dashboard_service import get_dashboard_stats
from markwise.services.observability import soft_failure_summary

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/api/dashboard')
def dashboard():
    """Counts, averages and chart series for the teacher dashboard."""
    try:
        return jsonify(get_dashboard_stats())
    except Exception as e:
        return error_response(e, 'dashboard')


@dashboard_bp.route('/api/health')
def health():
    """Liveness plus soft-failure counters for embedding/retrieval steps."""
    return jsonify({
        "status": "ok",
        "version": __version__,
        "config": config.to_dict(),
        "soft_failures": soft_failure_summary(),
    })
