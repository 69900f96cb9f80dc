#!/usr/bin/env python3
"""
GEX Monitor API
Flask app serving GEX profiles and intraday IV history
"""

from functools import wraps

from flask import Flask, jsonify, request

from src.gex.errors import (
    EmptyChainError,
    GEXError,
    MissingInputError,
    UnsupportedSymbolError,
    UpstreamError,
)
from src.utils import get_logger, load_settings
from src.utils.market_clock import et_time_label, is_market_hours

logger = get_logger(__name__)

ERROR_STATUS = {
    MissingInputError: 400,
    UnsupportedSymbolError: 400,
    EmptyChainError: 404,
    UpstreamError: 502,
}


def error_response(message: str, status: int = 500):
    return jsonify({'error': message}), status


def handle_errors(func):
    """Turn exceptions into a single JSON error message"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GEXError as e:
            status = ERROR_STATUS.get(type(e), 500)
            logger.warning(f"{func.__name__} failed ({status}): {e}")
            return error_response(str(e), status)
        except Exception as e:
            logger.error(f"Error in {func.__name__}: {e}", exc_info=True)
            return error_response(str(e) or 'Internal error')
    return wrapper


def create_app(service) -> Flask:
    """
    Build the Flask app

    Args:
        service: GEXService handling the requests
    """
    app = Flask(__name__)

    @app.route('/api/health')
    def health():
        return jsonify({
            'status': 'ok',
            'time': et_time_label(),
            'isMarketHours': is_market_hours(),
        })

    @app.route('/api/expirations')
    @handle_errors
    def get_expirations():
        """Expiration dates available for a symbol"""
        symbol = request.args.get('symbol', '')
        dates = service.get_expirations(symbol)
        return jsonify({
            'symbol': symbol.strip().upper(),
            'dates': dates,
            'updatedAt': et_time_label(),
        })

    @app.route('/api/gex')
    @handle_errors
    def get_gex():
        """GEX profile across the selected expirations"""
        dates_param = request.args.get('dates', '')
        dates = [d.strip() for d in dates_param.split(',') if d.strip()]

        profile = service.calculate_gex(request.args.get('symbol', ''), dates or None)

        result = profile.to_dict()
        result['updatedAt'] = et_time_label()
        result['isMarketHours'] = is_market_hours()
        return jsonify(result)

    @app.route('/api/doomsday')
    @handle_errors
    def get_zero_dte():
        """GEX profile for the nearest expiration"""
        report = service.calculate_zero_dte(request.args.get('symbol', ''))

        result = report.to_dict()
        result['updatedAt'] = et_time_label()
        result['isMarketHours'] = is_market_hours()
        return jsonify(result)

    @app.route('/api/iv-history')
    @handle_errors
    def get_iv_history():
        """Today's IV snapshots, oldest first"""
        symbol = request.args.get('symbol', '')
        zero_dte = request.args.get('doom') == '1'
        history = service.get_iv_history(symbol, zero_dte=zero_dte)
        return jsonify({
            'symbol': symbol.strip().upper(),
            'history': [record.to_dict() for record in history],
        })

    @app.errorhandler(404)
    def not_found(e):
        return error_response('Not found', 404)

    return app


if __name__ == '__main__':
    from src.gex.gex_service import build_service

    settings = load_settings()
    print(f"Starting GEX API on port {settings.api_port}...")

    app = create_app(build_service(settings))
    app.run(host='0.0.0.0', port=settings.api_port, debug=False, threaded=True)
