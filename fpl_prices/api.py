"""
Flask REST API for FPL Price Predictor

Provides HTTP endpoints for price-change predictions and price history.
"""

from flask import Flask, jsonify, request, abort
from flask_cors import CORS

from .config import REPORT_MAX_AGE
from .data.database import get_connection
from .data.repository import PriceChangeRepository
from .predictor import PricePredictor

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes

# Global predictor instance
predictor = None


def get_predictor() -> PricePredictor:
    """Get or create the global predictor instance"""
    global predictor
    if predictor is None:
        predictor = PricePredictor(repository=PriceChangeRepository(get_connection()))
    return predictor


def set_predictor(instance: PricePredictor) -> None:
    """Replace the global predictor (used by tests and the server runner)"""
    global predictor
    predictor = instance


def _current_report(force_refresh: bool = False):
    pred = get_predictor()
    if force_refresh or pred.is_stale(REPORT_MAX_AGE):
        pred.refresh()
    if pred.report is None:
        abort(503, description=pred.error or "Price predictions unavailable")
    return pred.report


# ==============================================================================
# API Routes
# ==============================================================================

@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    pred = get_predictor()
    return jsonify({
        'status': 'healthy',
        'initialized': pred.is_initialized,
        'state': pred.get_statistics(),
    })


@app.route('/api/price-predictions', methods=['GET'])
def price_predictions():
    """
    Get the risers/fallers report.

    Query params:
    - refresh: 'true' to force a new fetch cycle
    - limit: Maximum risers/fallers returned (optional)
    """
    force = request.args.get('refresh', 'false').lower() == 'true'
    limit = request.args.get('limit', type=int)

    data = _current_report(force).to_dict()
    if limit is not None:
        if limit < 0:
            abort(400, description="limit must be non-negative")
        data['risers'] = data['risers'][:limit]
        data['fallers'] = data['fallers'][:limit]

    return jsonify({'success': True, 'data': data})


@app.route('/api/price-predictions/player/<int:player_id>', methods=['GET'])
def player_prediction(player_id: int):
    """Get the prediction for one player from the latest report"""
    report = _current_report()

    prediction = report.get_prediction(player_id)
    if prediction is None:
        abort(404, description=f"No prediction for player {player_id}")

    data = prediction.to_dict()
    if prediction.result is not None:
        data['explanation'] = prediction.result.explanation

    return jsonify({'success': True, 'data': data})


@app.route('/api/price-changes', methods=['GET'])
def price_changes():
    """
    Recent observed price changes.

    Query params:
    - days: Lookback in days (default 7)
    """
    days = request.args.get('days', 7, type=int)
    if days <= 0:
        abort(400, description="days must be positive")

    history = get_predictor().get_history(days=days)
    return jsonify({'success': True, 'data': history.to_dict()})


@app.route('/api/price-impact', methods=['GET'])
def price_impact():
    """
    Recent price impact on a squad.

    Query params:
    - ids: Comma-separated player IDs (required)
    """
    raw_ids = request.args.get('ids', '')
    if not raw_ids:
        abort(400, description="ids query parameter required")

    try:
        player_ids = [int(pid) for pid in raw_ids.split(',') if pid.strip()]
    except ValueError:
        abort(400, description="ids must be comma-separated integers")

    return jsonify({'success': True, 'data': get_predictor().get_team_impact(player_ids)})


# ==============================================================================
# Error Handlers
# ==============================================================================

@app.errorhandler(400)
def bad_request(error):
    return jsonify({
        'success': False,
        'error': 'Bad Request',
        'message': str(error.description)
    }), 400


@app.errorhandler(404)
def not_found(error):
    return jsonify({
        'success': False,
        'error': 'Not Found',
        'message': str(error.description)
    }), 404


@app.errorhandler(500)
def internal_error(error):
    return jsonify({
        'success': False,
        'error': 'Internal Server Error',
        'message': str(getattr(error, 'description', error))
    }), 500


@app.errorhandler(503)
def unavailable(error):
    return jsonify({
        'success': False,
        'error': 'Service Unavailable',
        'message': str(error.description)
    }), 503


# ==============================================================================
# Run Server
# ==============================================================================

def run_server(host: str = '0.0.0.0', port: int = 5000, debug: bool = False):
    """Run the Flask server"""
    app.run(host=host, port=port, debug=debug)
