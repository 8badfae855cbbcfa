"""Error taxonomy shared by the resolver, gateway and providers.

Every error carries the HTTP status the request boundary answers with and a
human readable message that ends up in the ``{"error": ...}`` body.
"""


class GatewayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingInput(GatewayError):
    status_code = 400

    def __init__(self, message: str = "URL required"):
        super().__init__(message)


class InvalidUrl(GatewayError):
    status_code = 400

    def __init__(self, message: str = "Invalid YouTube URL"):
        super().__init__(message)


class ProviderError(GatewayError):
    """Any failure reported by the metadata/download provider"""
    status_code = 500


class ProviderUnavailable(ProviderError):
    pass


class ProviderMalformedResponse(ProviderError):
    pass


class StreamInterrupted(GatewayError):
    """Raised once the response headers are committed; only ever logged"""
