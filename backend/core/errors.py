"""Error taxonomy for the chat proxy.

Both errors are caught at the request boundary in the API layer and turned
into a JSON error body. Nothing else is expected to escape a request.
"""


class ValidationError(Exception):
    """Client input is malformed (bad history, bad upload, empty turn)."""
    pass


class UpstreamError(Exception):
    """The external completion service failed, timed out or was unreachable."""
    pass


class PayloadTooLargeError(ValidationError):
    """Request body exceeds the accepted size."""
    pass
