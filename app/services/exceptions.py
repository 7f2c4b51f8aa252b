"""Errors raised by the upstream odds client."""


class UpstreamError(Exception):
    """Base class for failures talking to the odds provider."""

    def __init__(self, message: str, task: str = ""):
        super().__init__(message)
        self.task = task


class UpstreamTransportError(UpstreamError):
    """Network failure, timeout or non-2xx response."""


class UpstreamDecodeError(UpstreamError):
    """Body was not JSON, or not the expected top-level shape."""
