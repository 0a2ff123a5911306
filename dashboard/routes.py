from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from . import data
from .database import Database

main_bp = Blueprint('main', __name__)

logger = logging.getLogger(__name__)


def _database() -> Database:
    return current_app.database  # type: ignore[attr-defined]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@main_bp.route('/api/health')
@main_bp.route('/health')
def health() -> Tuple[Response, int]:
    """Report process and database liveness."""

    try:
        healthy = _database().check_health()
    except Exception as exc:
        logger.exception('health.check_failed')
        return jsonify(
            {
                'status': 'error',
                'message': 'Health check failed',
                'error': str(exc) or type(exc).__name__,
                'timestamp': _timestamp(),
            }
        ), 500

    if not healthy:
        return jsonify(
            {
                'status': 'error',
                'message': 'Database connection failed',
                'timestamp': _timestamp(),
            }
        ), 503

    return jsonify(
        {
            'status': 'healthy',
            'message': 'All systems operational',
            'timestamp': _timestamp(),
            'database': 'connected',
        }
    ), 200


@main_bp.route('/api/dashboard/cards')
def dashboard_cards() -> Dict[str, Any]:
    return data.fetch_card_data(_database()).to_dict()


@main_bp.route('/api/dashboard/revenue')
def dashboard_revenue() -> Dict[str, Any]:
    revenue = data.fetch_revenue(_database())
    return {'revenue': [row.to_dict() for row in revenue]}


@main_bp.route('/api/dashboard/latest-invoices')
def dashboard_latest_invoices() -> Dict[str, Any]:
    invoices = data.fetch_latest_invoices(_database())
    return {'invoices': [invoice.to_dict() for invoice in invoices]}


@main_bp.route('/api/invoices')
def invoices() -> Dict[str, Any]:
    query = request.args.get('query', '')
    page = max(request.args.get('page', 1, type=int) or 1, 1)

    database = _database()
    rows = data.fetch_filtered_invoices(database, query, page)
    total_pages = data.fetch_invoices_pages(database, query)

    return {
        'invoices': [row.to_dict() for row in rows],
        'page': page,
        'total_pages': total_pages,
    }


@main_bp.route('/api/invoices/<invoice_id>')
def invoice_detail(invoice_id: str) -> Dict[str, Any] | Tuple[Dict[str, Any], int]:
    invoice = data.fetch_invoice_by_id(_database(), invoice_id)
    if invoice is None:
        return {'error': 'Invoice not found'}, 404
    return invoice.to_dict()


@main_bp.route('/api/customers')
def customers() -> Dict[str, Any]:
    rows = data.fetch_customers(_database())
    return {'customers': [row.to_dict() for row in rows]}


@main_bp.route('/api/customers/summary')
def customers_summary() -> Dict[str, Any]:
    rows = data.fetch_filtered_customers(_database(), request.args.get('query', ''))
    return {'customers': [row.to_dict() for row in rows]}
