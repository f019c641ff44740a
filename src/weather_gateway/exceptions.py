"""Application exception classes."""


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class WeatherGatewayError(Exception):
    """Base class for request-level gateway failures."""


class InvalidRequestError(WeatherGatewayError):
    """Raised when caller input fails gateway validation."""


class CityNotFoundError(WeatherGatewayError):
    """Raised when geocoding returns no match for a city query."""

    def __init__(self, city: str) -> None:
        super().__init__(f"No geocoding match for city {city!r}.")
        self.city = city


class UpstreamServiceError(WeatherGatewayError):
    """Raised when a provider request fails or returns malformed data."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
