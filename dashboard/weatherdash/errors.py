from typing import Optional


class WeatherDashError(Exception):
    """Base class for errors raised by the upstream clients."""


class ConfigurationError(WeatherDashError):
    pass


class UpstreamError(WeatherDashError):
    """
    An external service answered with a non-2xx status or could not be reached.
    `status` is None when no response was received.
    """

    def __init__(self, service: str, status: Optional[int] = None, detail: str = ""):
        self.service = service
        self.status = status
        self.detail = detail
        super().__init__(f"{service} error {status}: {detail}")
