# lovmirror/layout.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .common import ensure_dir
from .config import META_FILENAME, OUT_FILENAME
from .encode import enc_prefix_segment, enc_uri_segment
from .terms import CLASSES, PROPERTIES

BY_PREFIX = "by-prefix"
BY_URI = "by-uri"
NAMESPACES = "namespaces"


@dataclass(frozen=True)
class MirrorLayout:
    """Where everything lives below the output root."""

    root: Path

    def prepare(self) -> None:
        for sub in (BY_PREFIX, BY_URI, NAMESPACES, CLASSES, PROPERTIES):
            ensure_dir(self.root / sub)

    def prefix_dir(self, prefix: str) -> Path:
        return self.root / BY_PREFIX / enc_prefix_segment(prefix)

    def uri_dir(self, uri: str) -> Path:
        return self.root / BY_URI / enc_uri_segment(uri)

    def namespace_dir(self, namespace: str) -> Path:
        return self.root / NAMESPACES / enc_uri_segment(namespace)

    def prefix_href(self, prefix: str) -> str:
        return f"{BY_PREFIX}/{enc_prefix_segment(prefix)}/{OUT_FILENAME}"

    def uri_href(self, uri: str) -> str:
        return f"{BY_URI}/{enc_uri_segment(uri)}/{OUT_FILENAME}"

    def artifact(self, folder: Path) -> Path:
        return folder / OUT_FILENAME

    def meta(self, folder: Path) -> Path:
        return folder / META_FILENAME
