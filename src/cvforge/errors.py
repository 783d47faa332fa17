from __future__ import annotations


class CVForgeError(Exception):
    """Base class for every error raised by the generation pipeline."""


class FetchError(CVForgeError):
    """The job posting could not be fetched or turned into text."""

    def __init__(self, message: str, *, url: str = ""):
        super().__init__(message)
        self.url = url


class MissingCredentialError(CVForgeError):
    """The chosen provider has no API key (or no local endpoint) configured."""

    def __init__(self, provider: str, message: str | None = None):
        super().__init__(
            message
            or f"{provider} API key is not configured. Please go to Settings to configure it."
        )
        self.provider = provider


class AdapterError(CVForgeError):
    """A provider call failed."""

    def __init__(self, message: str, *, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class TransportError(AdapterError):
    pass


class UpstreamError(AdapterError):
    def __init__(self, message: str, *, provider: str = "", status_code: int | None = None, body: str = ""):
        super().__init__(message, provider=provider)
        self.status_code = status_code
        self.body = body


class EmptyResponseError(AdapterError):
    pass


class ParseError(CVForgeError):
    """A résumé response was not structurally valid JSON."""

    def __init__(self, message: str, *, raw_text: str):
        super().__init__(f"{message}. Response was: {raw_text}")
        self.raw_text = raw_text
