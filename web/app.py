"""
Footfall Forecast - Flask Web Application

Load daily visitor counts (upload or sample), fit a simple forecasting
model and export observed plus predicted values. The browser page talks to
these JSON endpoints and draws the chart itself.
"""

import os
import sys
import logging
from flask import Flask, Response, jsonify, request, session
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import get_config
from src.demo_data import generate_sample_data
from src.forecasting import ForecastModel
from src.session import ForecastSession, SessionStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SESSION_KEY = 'forecast_session_id'


def _allowed_file(filename, allowed_extensions):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions


def _result_response(result, forecast_session, include_state=True):
    """JSON response for an ActionResult; failures become 400s"""
    payload = result.to_dict()
    if include_state:
        payload['summary'] = forecast_session.summary().to_dict()
    return jsonify(payload), (200 if result.success else 400)


# =============================================================================
# App Factory
# =============================================================================

def create_app(config_class=None):
    """Create Flask application"""
    app = Flask(__name__)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    app.config.from_object(config_class)
    logging.getLogger().setLevel(app.config['LOG_LEVEL'])

    # Rate limiting
    limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[app.config['RATELIMIT_DEFAULT']],
        storage_uri=app.config['RATELIMIT_STORAGE_URI']
    )
    # Route decorators need the limiter alive after the factory returns
    app.extensions['rate_limiter'] = limiter

    # Sample dataset, generated once per application
    sample_series = generate_sample_data(
        app.config['SAMPLE_START_DATE'],
        app.config['SAMPLE_DAYS'],
        seed=app.config['SAMPLE_SEED']
    )

    store = SessionStore(
        lambda sid: ForecastSession.from_config(app.config, session_id=sid),
        idle_seconds=app.config['SESSION_IDLE_SECONDS'],
        max_sessions=app.config['MAX_SESSIONS']
    )
    app.extensions['forecast_sessions'] = store
    app.extensions['sample_series'] = sample_series

    def current_session():
        """Session state for the requesting browser"""
        forecast_session = store.get_or_create(session.get(SESSION_KEY))
        session[SESSION_KEY] = forecast_session.session_id
        return forecast_session

    def model_options():
        return {
            'models': [{'value': m.value, 'label': m.label} for m in ForecastModel],
            'defaults': {
                'model': app.config['DEFAULT_MODEL'],
                'horizon': app.config['DEFAULT_HORIZON'],
                'max_horizon': app.config['MAX_HORIZON'],
                'window': app.config['DEFAULT_MA_WINDOW'],
                'alpha': app.config['SMOOTHING_ALPHA'],
                'min_training_points': app.config['MIN_TRAINING_POINTS'],
            }
        }

    # =============================================================================
    # Routes - Pages
    # =============================================================================

    @app.route('/')
    def index():
        """Landing payload"""
        payload = {'app_name': app.config['APP_NAME']}
        payload.update(model_options())
        return jsonify(payload)

    @app.route('/api/config', methods=['GET'])
    def api_config():
        """Model options and defaults"""
        return jsonify(model_options())

    # =============================================================================
    # API Routes - Dataset
    # =============================================================================

    @app.route('/api/dataset', methods=['GET'])
    def api_get_dataset():
        """Current dataset, summary and chart payload"""
        return jsonify(current_session().state())

    @app.route('/api/dataset/upload', methods=['POST'])
    @limiter.limit("30 per minute")
    def api_upload_dataset():
        """Load a CSV from a file upload, JSON `text` or the raw body"""
        forecast_session = current_session()
        source = 'upload'

        upload = request.files.get('file')
        if upload is not None:
            if not upload.filename:
                return jsonify({'success': False, 'error': 'No file selected'}), 400
            if not _allowed_file(upload.filename, app.config['ALLOWED_EXTENSIONS']):
                allowed = ', '.join(sorted(app.config['ALLOWED_EXTENSIONS']))
                return jsonify({
                    'success': False,
                    'error': f'Unsupported file type. Allowed: {allowed}'
                }), 400
            raw = upload.read()
            source = upload.filename
        elif request.is_json:
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                return jsonify({'success': False, 'error': 'Expected a JSON object with a "text" field'}), 400
            raw = payload.get('text') or ''
        else:
            raw = request.get_data()

        text = raw.decode('utf-8-sig', errors='replace') if isinstance(raw, bytes) else str(raw)
        result = forecast_session.load_csv_text(text, source=source)
        return _result_response(result, forecast_session)

    @app.route('/api/dataset/sample', methods=['POST'])
    def api_load_sample():
        """Load the sample dataset"""
        forecast_session = current_session()
        result = forecast_session.load_series(sample_series, source='sample')
        return _result_response(result, forecast_session)

    @app.route('/api/dataset/clear', methods=['POST'])
    def api_clear_dataset():
        """Clear the dataset and predictions"""
        forecast_session = current_session()
        result = forecast_session.clear()
        return _result_response(result, forecast_session)

    # =============================================================================
    # API Routes - Forecasting
    # =============================================================================

    @app.route('/api/forecast', methods=['POST'])
    def api_generate_forecast():
        """Train the selected model and forecast the horizon"""
        forecast_session = current_session()
        data = request.get_json(silent=True) if request.is_json else request.form.to_dict()
        if not isinstance(data, dict):
            return jsonify({
                'success': False,
                'error': 'Expected a JSON object with model, horizon and window'
            }), 400

        result = forecast_session.train(
            model=data.get('model'),
            horizon=data.get('horizon'),
            window=data.get('window')
        )
        return _result_response(result, forecast_session, include_state=not result.success)

    @app.route('/api/export', methods=['GET'])
    def api_export():
        """Download observations and predictions as CSV"""
        forecast_session = current_session()
        result = forecast_session.export()
        if not result.success:
            return jsonify(result.to_dict()), 400

        filename = result.data['filename']
        return Response(
            result.data['csv'],
            mimetype='text/csv',
            headers={'Content-Disposition': f'attachment; filename={filename}'}
        )

    # =============================================================================
    # Error Handlers
    # =============================================================================

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def too_large(e):
        limit_mb = app.config['MAX_CONTENT_LENGTH'] / (1024 * 1024)
        return jsonify({'error': f'File too large (max {limit_mb:g}MB)'}), 413

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({'error': f'Rate limit exceeded: {e.description}'}), 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f"Server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


# =============================================================================
# Main
# =============================================================================

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    app.run(debug=debug, port=port, host='0.0.0.0')
