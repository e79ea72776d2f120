"""
National Weather Service API client for alerts and forecasts.

NWS provides free weather data for US locations without authentication.
- Alerts: https://api.weather.gov/alerts?area={STATE}
- Grid point lookup: https://api.weather.gov/points/{lat},{lon}
- Forecast: URL returned by the grid point lookup

Only US states and territories are covered.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from policies import SERVER_CONFIG
from tools.http_client import ApiClient, Failure, RequestDescriptor, json_list, json_object

logger = logging.getLogger(__name__)

UNEXPECTED_FORMAT = "unexpected response format"


@dataclass
class AlertFeature:
    """A single active weather alert."""

    event: Optional[str] = None
    area_desc: Optional[str] = None
    severity: Optional[str] = None
    status: Optional[str] = None
    headline: Optional[str] = None

    @classmethod
    def from_dict(cls, feature: dict) -> "AlertFeature":
        props = json_object(feature.get("properties"))
        return cls(
            event=props.get("event"),
            area_desc=props.get("areaDesc"),
            severity=props.get("severity"),
            status=props.get("status"),
            headline=props.get("headline"),
        )

    def format(self) -> str:
        return "\n".join([
            f"Event: {self.event or 'Unknown'}",
            f"Area: {self.area_desc or 'Unknown'}",
            f"Severity: {self.severity or 'Unknown'}",
            f"Status: {self.status or 'Unknown'}",
            f"Headline: {self.headline or 'No headline'}",
            "---",
        ])


@dataclass
class ForecastPeriod:
    """One named forecast period (e.g. "Tonight", "Thursday")."""

    name: Optional[str] = None
    temperature: Optional[float] = None
    temperature_unit: Optional[str] = None
    wind_speed: Optional[str] = None
    wind_direction: Optional[str] = None
    short_forecast: Optional[str] = None

    @classmethod
    def from_dict(cls, period: dict) -> "ForecastPeriod":
        return cls(
            name=period.get("name"),
            temperature=period.get("temperature"),
            temperature_unit=period.get("temperatureUnit"),
            wind_speed=period.get("windSpeed"),
            wind_direction=period.get("windDirection"),
            short_forecast=period.get("shortForecast"),
        )

    def format(self) -> str:
        temperature = self.temperature if self.temperature is not None else "Unknown"
        return "\n".join([
            f"{self.name or 'Unknown'}:",
            f"Temperature: {temperature}°{self.temperature_unit or 'F'}",
            f"Wind: {self.wind_speed or 'Unknown'} {self.wind_direction or ''}".rstrip(),
            f"{self.short_forecast or 'No forecast available'}",
            "---",
        ])


class WeatherClient:
    """
    Async client for the NWS alerts and forecast endpoints.

    Each method returns ready-to-display text; failures are reported
    in the text rather than raised.
    """

    def __init__(self, api_client: Optional[ApiClient] = None):
        weather_config = SERVER_CONFIG.get("weather", {})
        self.api_base = weather_config.get("api_base", "https://api.weather.gov").rstrip("/")
        self.api = api_client or ApiClient(
            user_agent=weather_config.get("user_agent", "weather-app/1.0")
        )

    async def get_alerts_for_state(self, state_code: str) -> str:
        """
        Fetch active alerts for a US state.

        Args:
            state_code: Two-letter state code (case-insensitive)

        Returns:
            Formatted alerts text
        """
        state_code = state_code.strip().upper()
        outcome = await self.api.execute(
            RequestDescriptor(f"{self.api_base}/alerts?area={state_code}")
        )

        if isinstance(outcome, Failure):
            logger.error(f"Failed to fetch alerts for {state_code}: {outcome.describe()}")
            return f"Failed to retrieve alerts data: {outcome.describe()}"

        if not outcome.is_object:
            return f"Failed to retrieve alerts data: {UNEXPECTED_FORMAT}"

        features = [
            f for f in json_list(json_object(outcome.payload).get("features"))
            if isinstance(f, dict)
        ]
        if not features:
            return f"No active alerts for {state_code}"

        alerts = [AlertFeature.from_dict(f).format() for f in features]
        return f"Active alerts for {state_code}:\n\n" + "\n".join(alerts)

    async def get_forecast_for_location(self, latitude: float, longitude: float) -> str:
        """
        Fetch the forecast for a coordinate pair.

        Resolves the NWS grid point first, then follows its forecast URL.

        Args:
            latitude: Location latitude
            longitude: Location longitude

        Returns:
            Formatted forecast text
        """
        points_url = f"{self.api_base}/points/{latitude:.4f},{longitude:.4f}"
        points = await self.api.execute(RequestDescriptor(points_url))

        if isinstance(points, Failure):
            logger.error(f"Grid point lookup failed for {latitude}, {longitude}: {points.describe()}")
            return (
                f"Failed to retrieve grid point data for coordinates: {latitude}, {longitude}. "
                f"This location may not be supported by the NWS API (only US locations are supported). "
                f"({points.describe()})"
            )

        forecast_url = json_object(json_object(points.payload).get("properties")).get("forecast")
        if not forecast_url or not isinstance(forecast_url, str):
            return "Failed to get forecast URL from grid point data"

        forecast = await self.api.execute(RequestDescriptor(forecast_url))
        if isinstance(forecast, Failure):
            logger.error(f"Forecast fetch failed for {latitude}, {longitude}: {forecast.describe()}")
            return f"Failed to retrieve forecast data: {forecast.describe()}"

        if not forecast.is_object:
            return f"Failed to retrieve forecast data: {UNEXPECTED_FORMAT}"

        properties = json_object(json_object(forecast.payload).get("properties"))
        periods = [p for p in json_list(properties.get("periods")) if isinstance(p, dict)]
        if not periods:
            return "No forecast periods available"

        formatted = [ForecastPeriod.from_dict(p).format() for p in periods]
        return f"Forecast for {latitude}, {longitude}:\n\n" + "\n".join(formatted)
