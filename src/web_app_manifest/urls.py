"""URL resolution and origin/scope helpers.

Manifest URLs are kept as plain strings. Everything in this module is a pure
function over strings: nothing is fetched and nothing is cached.
"""

import re
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from .errors import UrlError

# RFC 3986 scheme followed by the colon that terminates it
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")

# C0 controls and DEL, rejected anywhere inside a URL
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

# Characters a URL may not carry literally; they are percent-encoded
_ENCODE_RE = re.compile(r'[ <>"{}|\\^`]')

# Single and double dot segments, including their percent-encoded spellings
_DOT_SEGMENTS = {".", "%2e"}
_DOUBLE_DOT_SEGMENTS = {"..", ".%2e", "%2e.", "%2e%2e"}

# C0 controls and space, stripped from both ends before parsing
_STRIP_CHARS = "".join(chr(c) for c in range(0x21))

DEFAULT_PORTS = {
    "ftp": 21,
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}


def _split(url: str) -> SplitResult:
    """Split a URL, turning urllib's ValueErrors into UrlError."""
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError for a non-numeric or out-of-range port
    except ValueError as e:
        raise UrlError(url, reason=f"malformed URL ({e})") from e
    return parts


def _percent_encode(match: re.Match) -> str:
    return "%{:02X}".format(ord(match.group()))


def remove_dot_segments(path: str) -> str:
    """Remove ``.`` and ``..`` segments from an absolute path (RFC 3986 5.2.4).

    A ``..`` never climbs above the root, and a path ending in a dot segment
    keeps its trailing slash.

    Example:
        "/app/../admin/./x.html" -> "/admin/x.html"
    """
    segments = path.split("/")
    output: list[str] = []
    for segment in segments[1:] if path.startswith("/") else segments:
        lowered = segment.lower()
        if lowered in _DOUBLE_DOT_SEGMENTS:
            if output:
                output.pop()
        elif lowered not in _DOT_SEGMENTS:
            output.append(segment)

    result = "/" + "/".join(output)
    if segments[-1].lower() in _DOT_SEGMENTS | _DOUBLE_DOT_SEGMENTS and not result.endswith("/"):
        result += "/"
    return result


def _normalize(parts: SplitResult) -> str:
    """Serialize split parts in the canonical form used throughout the package.

    The scheme and host are lower-cased, a default port is dropped, dot
    segments are removed from the path and an empty path becomes ``/``.
    Applying this twice gives the same string.
    """
    scheme = parts.scheme.lower()
    userinfo, at, hostport = parts.netloc.rpartition("@")
    hostport = hostport.lower()
    if parts.port is not None and parts.port == DEFAULT_PORTS.get(scheme):
        hostport = hostport.rsplit(":", 1)[0]
    path = remove_dot_segments(parts.path or "/")
    return urlunsplit((scheme, f"{userinfo}{at}{hostport}", path, parts.query, parts.fragment))


def is_absolute(url: str) -> bool:
    """Return whether a string is an absolute URL with an authority."""
    if not isinstance(url, str) or not _SCHEME_RE.match(url):
        return False
    try:
        parts = _split(url)
    except UrlError:
        return False
    return bool(parts.netloc and parts.hostname)


def resolve(candidate: str, base: str | None = None) -> str:
    """Resolve a possibly-relative URL reference against a base URL.

    Absolute candidates are returned in normalized form and the base is
    ignored. Relative candidates are joined with the base using RFC 3986
    reference resolution. Spaces and characters such as ``<`` or ``|`` are
    percent-encoded; control characters are rejected.

    Args:
        candidate: URL reference taken from the manifest
        base: Absolute URL the reference is relative to

    Returns:
        Normalized absolute URL with a scheme and an authority

    Raises:
        UrlError: If the candidate is not a valid URL reference, is relative
            with no base, or does not resolve to a URL with an authority
    """
    if not isinstance(candidate, str):
        raise UrlError(candidate, base, "URL must be a string")

    value = candidate.strip(_STRIP_CHARS)
    if not value:
        raise UrlError(candidate, base, "empty URL")

    if _CONTROL_RE.search(value):
        raise UrlError(candidate, base, "URL contains control characters")
    value = _ENCODE_RE.sub(_percent_encode, value)

    if _SCHEME_RE.match(value):
        parts = _split(value)
    else:
        # A relative reference may not carry a colon in its first path segment
        first_segment = re.split(r"[/?#]", value, maxsplit=1)[0]
        if ":" in first_segment:
            raise UrlError(candidate, base, "malformed relative URL")
        if base is None:
            raise UrlError(candidate, base, "relative URL without a base")
        _split(base)
        parts = _split(urljoin(base, value))

    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise UrlError(candidate, base, "URL has no authority")

    return _normalize(parts)


def origin(url: str) -> tuple[str, str, int | None]:
    """Return the (scheme, host, port) origin tuple of an absolute URL.

    The port is filled in from the scheme's default when omitted.
    """
    parts = _split(url)
    scheme = parts.scheme.lower()
    port = parts.port if parts.port is not None else DEFAULT_PORTS.get(scheme)
    return scheme, parts.hostname or "", port


def same_origin(first: str, second: str) -> bool:
    return origin(first) == origin(second)


def origin_root(url: str) -> str:
    """Return the root URL (``scheme://host[:port]/``) of a URL's origin."""
    parts = _split(url)
    hostport = parts.netloc.rpartition("@")[2]
    return _normalize(parts._replace(netloc=hostport, path="/", query="", fragment=""))


def directory_of(url: str) -> str:
    """Drop the last path segment, the query and the fragment of a URL.

    Example:
        "https://example.com/app/index.html?x=1" -> "https://example.com/app/"
    """
    parts = _split(url)
    path = parts.path or "/"
    path = path[: path.rfind("/") + 1]
    return _normalize(parts._replace(path=path, query="", fragment=""))


def strip_fragment(url: str) -> str:
    return _normalize(_split(url)._replace(fragment=""))


def is_within_scope(url: str, scope: str) -> bool:
    """Check that a URL is same-origin with a scope and under its path.

    Containment is a plain string prefix test on the path component, made
    after dot segments are removed from both paths.
    """
    if not same_origin(url, scope):
        return False
    url_path = remove_dot_segments(_split(url).path or "/")
    scope_path = remove_dot_segments(_split(scope).path or "/")
    return url_path.startswith(scope_path)
