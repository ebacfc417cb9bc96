"""
Dashboard summary prompt.

Pure formatting: reads the current time-series entry of a forecast and
fills a fixed template. Missing readings render as ``N/A``.
"""

from datetime import datetime, tzinfo

import pytz

from core.errors import InvalidTimezone, NotFound
from models import PublicForecast
from models.weather import PeriodForecast

MISSING = "N/A"

SUMMARY_PROMPT = """Generate a concise, natural weather description for a dashboard. Keep it under 25 words.

Current time: {time}

Current conditions:
Temperature: {temperature}°C
Wind: {wind} m/s with gusts of {gust} m/s
Humidity: {humidity}%
Cloud area fraction: {cloud}%
Fog area fraction: {fog}%

Forecast 1 hour:
Summary: {next1_summary}
Precipitation: {next1_precip} mm with a probability of {next1_prob}%

Forecast 6 hours:
Summary: {next6_summary}
Max Temperature: {next6_max}°C
Min Temperature: {next6_min}°C
Precipitation: {next6_precip} mm with a probability of {next6_prob}%

Forecast 12 hours:
Summary: {next12_summary}
Max Temperature: {next12_max}°C
Min Temperature: {next12_min}°C
Precipitation: {next12_precip} mm with a probability of {next12_prob}%

Requirements:
- Be conversational and friendly.
- Do not mention the current temperature. It will be displayed separately.
- Upcoming temperatures should be included if there is a significant change.
- For wind: Use descriptive terms (calm, light, moderate, strong, extreme) - NEVER use specific values.
- Use natural language, no technical jargon.
- NO EMOJIS.

Generate description:"""


def fmt(value: float | None) -> str:
    return f"{value:.1f}" if value is not None else MISSING


def resolve_timezone(name: str | None) -> tzinfo:
    """IANA zone name to tzinfo; ``None`` or empty means UTC."""
    if not name:
        return pytz.utc
    try:
        return pytz.timezone(name)
    except pytz.exceptions.UnknownTimeZoneError as e:
        raise InvalidTimezone(f"Unknown timezone: {name}") from e


def _period(prefix: str, period: PeriodForecast | None, with_range: bool) -> dict[str, str]:
    details = period.details if period else None
    fields = {
        f"{prefix}_summary": period.summary.symbol_code if period else MISSING,
        f"{prefix}_precip": fmt(details.precipitation_amount if details else None),
        f"{prefix}_prob": fmt(details.probability_of_precipitation if details else None),
    }
    if with_range:
        fields[f"{prefix}_max"] = fmt(details.air_temperature_max if details else None)
        fields[f"{prefix}_min"] = fmt(details.air_temperature_min if details else None)
    return fields


def build_prompt(
    weather: PublicForecast,
    timezone: str | None = None,
    now: datetime | None = None,
) -> str:
    """
    Build the summary prompt for a forecast.

    Args:
        weather: Public forecast view
        timezone: IANA zone used for the "current time" line (default UTC)
        now: Aware "now"; defaults to the wall clock

    Raises:
        NotFound: The forecast has no time-series entries
        InvalidTimezone: ``timezone`` is not a known zone
    """
    tz = resolve_timezone(timezone)
    local = (now or datetime.now(pytz.utc)).astimezone(tz)

    current = weather.current()
    if current is None:
        raise NotFound("No timeseries data available")

    data = current.data
    instant = data.instant.details

    def reading(name: str) -> str:
        return fmt(getattr(instant, name) if instant else None)

    return SUMMARY_PROMPT.format(
        time=local.strftime("%H:%M"),
        temperature=reading("air_temperature"),
        wind=reading("wind_speed"),
        gust=reading("wind_speed_of_gust"),
        humidity=reading("relative_humidity"),
        cloud=reading("cloud_area_fraction"),
        fog=reading("fog_area_fraction"),
        **_period("next1", data.next_1_hours, with_range=False),
        **_period("next6", data.next_6_hours, with_range=True),
        **_period("next12", data.next_12_hours, with_range=True),
    )
