"""
Media reference resolution.

Document media references are opaque strings. The hosts accept three kinds:
- ``data:`` URIs (base64 or percent-encoded), decoded in memory
- ``file://`` URIs and plain paths, looked up as-is and then under the assets dir
- anything else (http, https, ...) is reported as unsupported
"""
from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, unquote_to_bytes, urlparse

_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]+):")


class MediaError(Exception):
    """A media reference that cannot be turned into loadable bytes."""


@dataclass(frozen=True)
class MediaSource:
    url: str
    path: Optional[str] = None
    data: Optional[bytes] = None
    mime: Optional[str] = None

    def file(self) -> Union[str, BytesIO]:
        """Something pygame loaders accept: a filename or a file object."""
        if self.data is not None:
            return BytesIO(self.data)
        return self.path or ""

    @property
    def name_hint(self) -> str:
        if self.mime and "/" in self.mime:
            return self.mime.split("/", 1)[1].split("+", 1)[0]
        if self.path:
            return Path(self.path).suffix.lstrip(".")
        return ""


def _decode_data_uri(url: str) -> MediaSource:
    header, sep, payload = url[5:].partition(",")
    if not sep:
        raise MediaError("malformed data URI (no comma)")
    parts = header.split(";")
    mime = parts[0] or "text/plain"
    try:
        if "base64" in parts[1:]:
            data = base64.b64decode(unquote(payload), validate=False)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise MediaError(f"undecodable data URI: {e}") from e
    return MediaSource(url=url, data=data, mime=mime)


def resolve_path(path: str, assets_dir: Optional[Union[str, Path]] = None) -> Optional[str]:
    p = Path(path)
    if p.exists():
        return str(p)
    if assets_dir is not None and not p.is_absolute():
        q = Path(assets_dir) / p
        if q.exists():
            return str(q)
    return None


def open_media(url: str, *, assets_dir: Optional[Union[str, Path]] = None) -> MediaSource:
    if not url:
        raise MediaError("empty media reference")
    m = _SCHEME.match(url)
    scheme = m.group(1).lower() if m else ""
    if scheme == "data":
        return _decode_data_uri(url)
    if scheme == "file":
        local = unquote(urlparse(url).path)
        found = resolve_path(local, assets_dir)
    elif scheme:
        raise MediaError(f"unsupported scheme '{scheme}'")
    else:
        found = resolve_path(url, assets_dir)
    if found is None:
        raise MediaError(f"file not found: {url}")
    return MediaSource(url=url, path=found)
