"""Error taxonomy shared by the caches, provider clients and HTTP layer."""


class WeatherServiceError(Exception):
    """Base error. The message is what the HTTP layer returns to the caller."""


class NotFound(WeatherServiceError):
    """No geocoding result, or a requested forecast field is absent."""


class UpstreamRequestFailed(WeatherServiceError):
    """A provider could not be reached or answered with a non-2xx status."""


class UpstreamParseFailed(WeatherServiceError):
    """A provider response did not match the expected schema."""


class MalformedUpstreamResponse(WeatherServiceError):
    """The text-generation response carried no candidate or no text part."""


class ConfigMissing(WeatherServiceError):
    """A required secret is absent from the environment."""


class PersistenceFailed(WeatherServiceError):
    """A cache snapshot could not be written. Never surfaced to callers."""


class InvalidTimezone(WeatherServiceError):
    """The requested timezone name is not a known IANA zone."""


__all__ = [
    "WeatherServiceError",
    "NotFound",
    "UpstreamRequestFailed",
    "UpstreamParseFailed",
    "MalformedUpstreamResponse",
    "ConfigMissing",
    "PersistenceFailed",
    "InvalidTimezone",
]
