"""Error taxonomy for the diagnosis gateway.

Every error that leaves the `/api/plant-diagnosis` route is a DiagnosisError,
rendered as ``{"error": <public message>}`` with the error's HTTP status.
"""


class DiagnosisError(Exception):
    """Base class.

    Attributes:
        code: machine readable code, e.g. "UPSTREAM_ERROR".
        public_message: the only text ever sent back to the caller.
        http_status: status code of the JSON error response.
    """

    code = "DIAGNOSIS_ERROR"
    public_message = "Failed to process image and message."
    http_status = 500

    def __init__(self, detail: str = ""):
        self.detail = detail or self.public_message
        super().__init__(self.detail)


class ValidationError(DiagnosisError):
    """Image or message missing from the request. No provider call is made."""

    code = "VALIDATION_ERROR"
    public_message = "Missing image or message."
    http_status = 400


class UpstreamError(DiagnosisError):
    """Upload, exchange or completion failure on the provider side."""

    code = "UPSTREAM_ERROR"
