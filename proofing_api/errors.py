from typing import Optional

EXCERPT_LIMIT = 1000

class ProofingError(Exception):
    """Base class for failures that end a proofreading request."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

class ConfigurationError(ProofingError):
    pass

class UpstreamError(ProofingError):
    def __init__(self, provider: str, status: Optional[int], body: str):
        label = status if status is not None else "connection failed"
        super().__init__(f"{provider} API error: {label}", details=body)
        self.provider = provider
        self.status = status
        self.body = body

class MalformedResponseError(ProofingError):
    def __init__(self, message: str, raw_text: str):
        excerpt = (raw_text or "")[:EXCERPT_LIMIT]
        super().__init__(message, details=excerpt or "(empty response)")
        self.excerpt = excerpt

    def to_payload(self) -> dict:
        return {"error": self.message, "details": self.details, "rawResponse": self.excerpt}

class ProbeFailure(Exception):
    """Raised inside a single link probe; always absorbed by the prober."""

    def __init__(self, url: str, detail: str):
        super().__init__(f"{url}: {detail}")
        self.url = url
        self.detail = detail
