"""Target URL construction for the fixed upstream."""

from dataclasses import dataclass

from starlette.requests import Request


@dataclass(frozen=True)
class TargetBuilder:
    """Build upstream URLs from the inbound raw path and query."""

    base_url: str
    always_append_query: bool = False

    def build(self, raw_path: str, raw_query: str) -> str:
        """Return ``base_url + raw_path`` with the raw query appended untouched."""
        target = self.base_url + raw_path
        if raw_query or self.always_append_query:
            target += "?" + raw_query
        return target

    def build_for(self, request: Request) -> str:
        """Target for a Starlette request, read from the ASGI scope."""
        return self.build(raw_path_of(request), raw_query_of(request))


def raw_path_of(request: Request) -> str:
    """Undecoded request path, falling back to the decoded one."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.scope["path"]
    return _escape_octets(raw_path.partition(b"?")[0])


def raw_query_of(request: Request) -> str:
    return _escape_octets(request.scope.get("query_string", b""))


def _escape_octets(raw: bytes) -> str:
    """ASCII text of ``raw``; bytes above 0x7F become ``%XX`` of the same octet.

    httpx re-encodes non-ASCII text as UTF-8, so escaping here keeps the
    original octets on the wire.
    """
    return "".join(chr(b) if b < 0x80 else f"%{b:02X}" for b in raw)
