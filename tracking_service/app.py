"""
Tracking Microservice - Pass Prediction & Region Visibility
HTTP surface over the tracking engine for the browser client
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from config import TrackingServiceConfig
from logging_config import configure_logging, get_logger
from tracking_service import __version__
from tracking_service.element_store import ElementStore, InMemoryElementStore
from tracking_service.engine import TrackingEngine, isoformat_utc, satellite_summary
from tracking_service.errors import (
    ImplausibleAltitude,
    MissingElements,
    TrackingError,
)
from tracking_service.weather import WeatherClient

logger = get_logger(__name__)


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def create_app(
    engine: Optional[TrackingEngine] = None,
    store: Optional[ElementStore] = None,
    weather: Optional[WeatherClient] = None,
    config: Optional[TrackingServiceConfig] = None,
) -> Flask:
    config = config or TrackingServiceConfig()
    engine = engine or TrackingEngine.from_config(config)
    if store is None:
        store = (
            InMemoryElementStore.from_json(config.SATELLITE_CATALOG_PATH)
            if config.SATELLITE_CATALOG_PATH
            else InMemoryElementStore.with_fallback()
        )
    weather = weather or WeatherClient(config.OPENWEATHER_API_KEY)

    app = Flask(__name__)
    CORS(app)

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            "status": "healthy",
            "timestamp": isoformat_utc(datetime.now(timezone.utc)),
            "version": __version__,
            "services": {
                "satellites_loaded": len(store.all()),
                "observers": len(engine.registry.observers),
                "region": engine.registry.polygon.name,
                "position_cache_ttl_s": engine.cache.ttl_seconds,
            },
        }), 200

    @app.route('/api/predict', methods=['POST'])
    def predict_pass():
        """Next pass over a caller-supplied location"""
        body = request.get_json(silent=True) or {}
        lat, lon = body.get('lat'), body.get('lon')
        if not _is_number(lat) or not _is_number(lon):
            return jsonify({"message": "Invalid coordinates"}), 400

        elements = store.get(body.get('satelliteId'))
        if elements is None:
            return jsonify({"message": "Satellite not found"}), 404

        try:
            window = engine.compute_next_pass(elements, lat, lon)
        except MissingElements:
            return jsonify({"message": "Satellite missing TLE"}), 400
        except TrackingError as e:
            logger.error("prediction_failed", satellite=elements.name, error=str(e))
            return jsonify({"message": "Prediction failed", "error": str(e)}), 500

        if window is None:
            return jsonify({"message": "No pass predicted in the next few hours"}), 404

        conditions = weather.conditions(lat, lon)
        now = datetime.now(timezone.utc)

        prediction = window.to_response()
        prediction.update({
            "durationMinutes": round(window.duration_seconds / 60.0, 2),
            "maxElevationDeg": round(window.max_elevation_deg, 2),
            "visibilityScore": conditions["visibilityScore"],
        })

        return jsonify({
            "satellite": satellite_summary(elements, now),
            "location": {"lat": lat, "lon": lon},
            "prediction": prediction,
            "weather": conditions,
            "timestamp": isoformat_utc(now),
        })

    @app.route('/api/satellites/<sat_id>/realtime', methods=['GET'])
    def realtime_position(sat_id: str):
        """Cached current position, ground track, visibility and optional next pass"""
        elements = store.get(sat_id)
        if elements is None:
            return jsonify({"message": "Satellite not found"}), 404

        lookahead = request.args.get('lookaheadMinutes', type=int)
        if lookahead is not None and lookahead > config.MAX_LOOKAHEAD_MINUTES:
            return jsonify({
                "message": f"lookaheadMinutes must not exceed {config.MAX_LOOKAHEAD_MINUTES}",
            }), 400

        try:
            response, _ = engine.current_state(elements, lookahead)
        except MissingElements:
            return jsonify({
                "message": f"Satellite {elements.name} is missing TLE data. "
                           "Please wait for TLE refresh or check database.",
            }), 400
        except ImplausibleAltitude as e:
            return jsonify({"message": str(e)}), 400
        except TrackingError as e:
            logger.error("realtime_position_failed", satellite=elements.name, error=str(e))
            return jsonify({"message": "Failed to fetch satellite position", "error": str(e)}), 500

        return jsonify(response)

    return app


if __name__ == '__main__':
    service_config = TrackingServiceConfig()
    configure_logging(
        level=getattr(logging, service_config.LOG_LEVEL, logging.INFO),
        json_logs=service_config.JSON_LOGS,
    )
    create_app(config=service_config).run(host='0.0.0.0', port=5000)
