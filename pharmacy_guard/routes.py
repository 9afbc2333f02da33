"""
API Routes - Pharmacy Endpoints
================================
Thin layer over the core: parse the request, call the store or the
ingestion service, shape the JSON.
"""
from flask import Blueprint, current_app, jsonify, request

from .cache import ALL_LIST_KEY, OPEN_LIST_KEY, cached_records, clear_pharmacy_cache
from .errors import IngestionInProgress, MalformedQuery
from .nearest import find_nearest, parse_query_point

api_bp = Blueprint('pharmacy_api', __name__)


def _module():
    return current_app.extensions['pharmacy_guard']


def _internal_error(e):
    return jsonify({
        'success': False,
        'error': f"Une erreur interne est survenue: {str(e)}"
    }), 500


def _records_response(records):
    return jsonify({
        'success': True,
        'count': len(records),
        'pharmacies': [record.to_dict() for record in records]
    })


@api_bp.route('/health', methods=['GET'])
def health_check():
    """Check API and store health."""
    module = _module()
    return jsonify({
        'api': 'ok',
        'store': module.store.health(),
        'ingestion_running': module.service.running
    })


@api_bp.route('/pharmacies', methods=['GET'])
def get_open_pharmacies():
    """Pharmacies on duty today, as of the last ingestion or refresh."""
    try:
        store = _module().store
        return _records_response(cached_records(OPEN_LIST_KEY, store.get_open))
    except Exception as e:
        return _internal_error(e)


@api_bp.route('/pharmacies/all', methods=['GET'])
def get_all_pharmacies():
    """All pharmacies of the last scrape, on duty or not."""
    try:
        store = _module().store
        return _records_response(cached_records(ALL_LIST_KEY, store.get_all))
    except Exception as e:
        return _internal_error(e)


@api_bp.route('/pharmacies/nearest', methods=['GET', 'POST'])
def get_nearest_pharmacy():
    """
    Nearest on-duty pharmacy to a point.

    POST body (JSON): {"latitude": float, "longitude": float}
    GET query parameters: lat, lon

    Returns:
        JSON with the pharmacy and its distance in km (3 decimals).
    """
    if request.method == 'POST':
        body = request.get_json(silent=True) or {}
        raw_lat, raw_lon = body.get('latitude'), body.get('longitude')
    else:
        raw_lat, raw_lon = request.args.get('lat'), request.args.get('lon')

    try:
        user_lat, user_lon = parse_query_point(raw_lat, raw_lon)
    except MalformedQuery as e:
        return jsonify({
            'success': False,
            'error': f"Coordonnées invalides: {e}"
        }), 400

    try:
        store = _module().store
        match = find_nearest(user_lat, user_lon, cached_records(OPEN_LIST_KEY, store.get_open))
    except Exception as e:
        return _internal_error(e)

    if match is None:
        return jsonify({
            'success': False,
            'error': "Aucune pharmacie de garde localisée pour le moment."
        }), 404

    return jsonify({
        'success': True,
        'search_params': {
            'user_lat': user_lat,
            'user_lon': user_lon
        },
        **match.to_dict()
    })


@api_bp.route('/pharmacies/scrape', methods=['GET', 'POST'])
def trigger_scrape():
    """Run an ingestion now. Answers 409 while another run is in progress."""
    result = _module().service.run()
    if result.success:
        clear_pharmacy_cache()

    status = 409 if result.error_code == IngestionInProgress.error_code else 200
    return jsonify(result.to_dict()), status


@api_bp.route('/pharmacies/refresh', methods=['POST'])
def refresh_open_status():
    """Recompute on-duty flags for today without re-scraping."""
    try:
        count = _module().service.refresh_duty_status()
    except Exception as e:
        return _internal_error(e)

    clear_pharmacy_cache()
    return jsonify({
        'success': True,
        'count': count
    })


@api_bp.route('/pharmacies/<record_id>', methods=['GET'])
def get_pharmacy(record_id):
    """One pharmacy by id."""
    try:
        record = _module().store.get_by_id(record_id)
    except Exception as e:
        return _internal_error(e)

    if record is None:
        return jsonify({
            'success': False,
            'error': "Pharmacie introuvable."
        }), 404

    return jsonify({
        'success': True,
        'pharmacy': record.to_dict()
    })
