"""
Weather annotation for pass predictions.

Conditions only annotate a prediction with a viewing score; they never
affect the pass computation, so every failure here degrades to an "Average"
score with a source string explaining why.
"""

from typing import Any, Dict, Optional

import requests

from logging_config import get_logger

logger = get_logger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


def visibility_score(payload: Optional[Dict[str, Any]]) -> str:
    """Classify OpenWeather conditions as Good, Average or Poor."""
    payload = payload or {}
    clouds = (payload.get("clouds") or {}).get("all", 50)
    visibility_m = payload.get("visibility", 8000)
    precipitation = (payload.get("rain") or {}).get("1h", 0) + (payload.get("snow") or {}).get("1h", 0)

    if clouds < 30 and visibility_m > 8000 and precipitation == 0:
        return "Good"
    if clouds < 60 and visibility_m > 4000:
        return "Average"
    return "Poor"


class WeatherClient:
    def __init__(self, api_key: str = "", timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.api_key = (api_key or "").strip()
        self.timeout = timeout
        self.session = session or requests.Session()

    def conditions(self, lat: float, lon: float) -> Dict[str, Any]:
        if not self.api_key or self.api_key == "your_api_here":
            logger.warning("weather_api_key_missing")
            return self._unavailable("OpenWeather API key not configured")

        try:
            response = self.session.get(
                OPENWEATHER_URL,
                params={"lat": lat, "lon": lon, "units": "metric", "appid": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("weather_fetch_failed", error=str(e))
            return self._unavailable(f"Weather service unavailable: {e}")

        temp = (payload.get("main") or {}).get("temp")
        return {
            "visibilityScore": visibility_score(payload),
            "source": "OpenWeather",
            "temperature": round(temp) if temp is not None else None,
        }

    @staticmethod
    def _unavailable(source: str) -> Dict[str, Any]:
        return {"visibilityScore": "Average", "source": source, "temperature": None}
