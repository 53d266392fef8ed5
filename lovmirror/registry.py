# lovmirror/registry.py
# LOV registry client: vocabulary listing and latest-version resolution.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

import requests

from .config import MirrorConfig
from .http import DeadlineExceeded, fetch_json

logger = logging.getLogger(__name__)


class RegistryError(RuntimeError):
    """The registry listing could not be fetched or understood."""


@dataclass(frozen=True)
class VocabularyEntry:
    prefix: str
    uri: str
    namespace: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class VersionInfo:
    file_url: str
    issued: str  # ISO datetime exactly as published by the registry
    issued_at: datetime

    def key(self) -> tuple[str, str]:
        """What a cached copy is matched against."""
        return self.file_url, self.issued


def _pick(entry: dict, *keys: str) -> Optional[str]:
    for k in keys:
        v = entry.get(k)
        if isinstance(v, str) and v:
            return v
    return None


def _pick_title(entry: dict) -> Optional[str]:
    t = entry.get("title")
    if isinstance(t, str):
        return t or None
    # some registries send {"en": "..."} or [{"value": "...", "lang": "en"}]
    if isinstance(t, dict):
        return _pick(t, "en", *sorted(t.keys()))
    if isinstance(t, list):
        for item in t:
            if isinstance(item, dict) and isinstance(item.get("value"), str):
                return item["value"]
    return None


def parse_vocabulary_list(data: Any) -> List[VocabularyEntry]:
    if not isinstance(data, list):
        raise RegistryError(f"Registry listing is not a list (got {type(data).__name__})")
    out: List[VocabularyEntry] = []
    for v in data:
        if not isinstance(v, dict):
            continue
        prefix = _pick(v, "prefix", "vocab")
        uri = _pick(v, "uri")
        if not prefix or not uri:
            continue
        out.append(
            VocabularyEntry(
                prefix=prefix,
                uri=uri,
                namespace=_pick(v, "nsp", "namespace"),
                title=_pick_title(v),
            )
        )
    return out


def fetch_vocabulary_list(session: requests.Session, config: MirrorConfig) -> List[VocabularyEntry]:
    try:
        data = fetch_json(session, config.list_url, timeout=config.request_timeout)
    except (requests.RequestException, ValueError) as e:
        raise RegistryError(f"Could not fetch registry listing from {config.list_url}: {e}") from e
    return parse_vocabulary_list(data)


# ISO-8601 shapes datetime.fromisoformat() refuses before 3.11: "Z", +HHMM, +HH,
# and fractions that are not 3 or 6 digits long.
_ISSUED_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[T ](?P<time>\d{2}:\d{2}(?::\d{2})?)(?:[.,](?P<frac>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}(?::?\d{2})?)?)?$",
    re.IGNORECASE,
)


def _normalize_issued(s: str) -> str:
    m = _ISSUED_RE.match(s)
    if not m or not m.group("time"):
        return s
    out = f"{m.group('date')}T{m.group('time')}"
    if m.group("frac"):
        out += "." + m.group("frac")[:6].ljust(6, "0")
    tz = m.group("tz")
    if tz:
        if tz.upper() == "Z":
            out += "+00:00"
        else:
            digits = tz[1:].replace(":", "")
            out += f"{tz[0]}{digits[:2]}:{digits[2:] or '00'}"
    return out


def parse_issued(issued: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC. None if unparseable."""
    if not isinstance(issued, str) or not issued.strip():
        return None
    try:
        dt = datetime.fromisoformat(_normalize_issued(issued.strip()))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def select_latest_version(versions: Iterable[Any]) -> Optional[VersionInfo]:
    """
    Latest version among those with a file URL and a parseable `issued`.
    Ties on the timestamp keep the registry's listing order (stable sort);
    the registry does not define that order, so neither do we.
    """
    candidates: List[VersionInfo] = []
    for v in versions or []:
        if not isinstance(v, dict):
            continue
        file_url = v.get("fileURL")
        if not file_url:
            continue
        issued_at = parse_issued(v.get("issued"))
        if issued_at is None:
            continue
        candidates.append(VersionInfo(str(file_url), v["issued"], issued_at))

    if not candidates:
        return None
    candidates.sort(key=lambda c: c.issued_at, reverse=True)
    return candidates[0]


def resolve_latest(
    session: requests.Session,
    config: MirrorConfig,
    prefix: str,
    *,
    deadline: Optional[float] = None,
) -> Optional[VersionInfo]:
    """Latest published version of `prefix`, or None when the registry fails or has nothing usable."""
    url = config.lov_info_url(prefix)
    try:
        info = fetch_json(session, url, timeout=config.request_timeout, deadline=deadline)
    except DeadlineExceeded:
        raise
    except (requests.RequestException, ValueError) as e:
        logger.warning("Registry info failed for %s: %s", prefix, e)
        return None
    if not isinstance(info, dict):
        return None
    return select_latest_version(info.get("versions") or [])
