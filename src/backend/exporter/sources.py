"""
Openers that turn a RemoteFileRef into a readable byte stream.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol
from urllib.parse import urlparse
from urllib.request import Request, url2pathname, urlopen

from .models import RemoteFileRef


DEFAULT_USER_AGENT = "export-to-downloads/0.1"


class SourceOpener(Protocol):
    def open(self, ref: RemoteFileRef) -> BinaryIO:
        """
        Open ref for reading.

        Raises:
            OSError: If the reference cannot be resolved.
        """
        ...


class UriSourceOpener:
    """
    Opens file:// URIs and bare paths directly, anything else via urllib.

    Network streams rely on the socket timeout; there is no retry here.
    """

    def __init__(self, *, timeout_s: float = 30.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._timeout_s = timeout_s
        self._user_agent = user_agent

    def open(self, ref: RemoteFileRef) -> BinaryIO:
        parsed = urlparse(ref.uri)

        # One-letter schemes are Windows drive letters.
        if len(parsed.scheme) <= 1:
            return open(Path(ref.uri).expanduser(), "rb")
        if parsed.scheme == "file":
            return open(Path(url2pathname(parsed.path)), "rb")

        req = Request(ref.uri, headers={"User-Agent": self._user_agent, "Accept": "*/*"})
        return urlopen(req, timeout=self._timeout_s)
