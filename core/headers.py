"""Header propagation between the client and the upstream."""

RawHeaders = list[tuple[bytes, bytes]]

# Recomputed by httpx for the outbound hop
_REQUEST_HOP_HEADERS = frozenset({b"host", b"transfer-encoding"})


class HeaderBuilder:
    """Copy raw header lists, keeping repeated keys in order."""

    def build_upstream_headers(self, raw: RawHeaders) -> RawHeaders:
        """Headers for the outbound request."""
        return [(key, value) for key, value in raw if key.lower() not in _REQUEST_HOP_HEADERS]

    def build_client_headers(self, raw: RawHeaders) -> RawHeaders:
        """Headers for the client-facing response; ASGI wants lowercase names."""
        return [(key.lower(), value) for key, value in raw]

    @staticmethod
    def has_body(raw: RawHeaders) -> bool:
        """Whether the message framing announces a body."""
        return any(key.lower() in (b"content-length", b"transfer-encoding") for key, _ in raw)
