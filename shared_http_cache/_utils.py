from __future__ import annotations

import base64
import calendar
import hashlib
import typing as tp
from email.utils import parsedate_tz
from pathlib import Path

import httpx

from shared_http_cache._exceptions import IntegrityError, MalformedRequestError

DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_date(date: str) -> tp.Optional[int]:
    expires = parsedate_tz(date)
    if expires is None:
        return None
    timestamp = calendar.timegm(expires[:6])
    return timestamp


def parse_number(value: tp.Any) -> tp.Optional[float]:
    """
    Interpret a header or directive value as a number of seconds.

    Booleans and non-numeric strings yield None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def normalize_url(url: str, keep_userinfo: bool = False) -> str:
    """
    Build the canonical cache key for a URL.

    The scheme and host are lower-cased, the default port for the scheme
    and the fragment are dropped. Userinfo is dropped too unless
    `keep_userinfo` is set, which is how the URL to send is built.

    Example:
    ```python
        normalize_url("HTTPS://Example.com:443/a?b=1#top")
        # 'https://example.com/a?b=1'
    ```
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise MalformedRequestError(f"Invalid URL: {url!r}") from exc

    if not parsed.scheme or not parsed.host:
        raise MalformedRequestError(f"URL must be absolute: {url!r}")

    port = parsed.port
    if port is not None and DEFAULT_PORTS.get(parsed.scheme) == port:
        port = None

    if keep_userinfo or not parsed.userinfo:
        return str(parsed.copy_with(port=port, fragment=None))
    return str(parsed.copy_with(port=port, fragment=None, userinfo=b""))


def has_userinfo(url: str) -> bool:
    try:
        return bool(httpx.URL(url).userinfo)
    except (httpx.InvalidURL, TypeError):
        return False


def get_safe_url(url: str) -> str:
    """Render a URL for log messages without userinfo or query."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return "<invalid url>"
    port = f":{parsed.port}" if parsed.port else ""
    return f"{parsed.scheme}://{parsed.host}{port}{parsed.path}"


def compute_integrity(content: bytes, algorithm: str = "sha512") -> str:
    """Return the Subresource-Integrity string (`<algo>-<base64>`) of the content."""
    digest = hashlib.new(algorithm, content).digest()
    return f"{algorithm}-{base64.b64encode(digest).decode('ascii')}"


def parse_integrity(integrity: str) -> tp.Tuple[str, bytes]:
    """
    Split an integrity string into its algorithm and raw digest.

    Only the first hash of a space separated list is used.
    """
    first = integrity.strip().split()[0] if integrity.strip() else ""
    algorithm, _, encoded = first.partition("-")
    if not algorithm or not encoded or algorithm.lower() not in hashlib.algorithms_available:
        raise IntegrityError(f"Unsupported integrity value: {integrity!r}")
    try:
        digest = base64.b64decode(encoded, validate=True)
    except ValueError as exc:
        raise IntegrityError(f"Malformed integrity value: {integrity!r}") from exc
    return algorithm.lower(), digest


def normalize_integrity(integrity: str) -> str:
    algorithm, digest = parse_integrity(integrity)
    return f"{algorithm}-{base64.b64encode(digest).decode('ascii')}"


def check_integrity(content: bytes, integrity: str) -> bool:
    algorithm, expected = parse_integrity(integrity)
    return hashlib.new(algorithm, content).digest() == expected


def ensure_cache_dict(base_path: Path | None = None) -> Path:
    _base_path = base_path if base_path is not None else Path(".cache")
    _gitignore_file = _base_path / ".gitignore"

    _base_path.mkdir(parents=True, exist_ok=True)

    if not _gitignore_file.is_file():
        with open(_gitignore_file, "w", encoding="utf-8") as f:
            f.write("# Automatically created by shared-http-cache\n*")
    return _base_path
