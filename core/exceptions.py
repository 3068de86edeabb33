"""Custom exception hierarchy for the upstream forwarder."""


class ForwarderError(Exception):
    """Base exception for all forwarder errors."""


class ForwardingError(ForwarderError):
    """Raised when a request cannot be relayed to the upstream.

    Attributes:
        message: Error message shown to the client
        status_code: HTTP status code returned to the client, if any
    """

    status_code: int | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConstructionError(ForwardingError):
    """The outbound request could not be built."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to create request: {detail}")


class UpstreamCallError(ForwardingError):
    """The outbound call could not be completed."""

    status_code = 502

    def __init__(self, detail: str) -> None:
        super().__init__(f"Request failed: {detail}")


class StreamingError(ForwardingError):
    """Copying the upstream body failed after the status was committed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Streaming failed: {detail}")


class ClientDisconnectedError(ForwardingError):
    """The client went away while its request body was being relayed."""

    # Nginx's code for a closed client request; nobody receives the response
    status_code = 499

    def __init__(self, detail: str) -> None:
        super().__init__(f"Client disconnected: {detail}")
