# lovmirror/http.py
# Thin requests layer: JSON calls against the registry, text downloads of vocabulary files.

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DEFAULT_USER_AGENT

RDF_ACCEPT = "text/turtle, text/n3, application/n-triples, application/trig, */*;q=0.1"
CHUNK_SIZE = 256 * 1024

_EXT_RE = re.compile(r"\.([a-z0-9]+)(?:\?|#|$)", re.IGNORECASE)
_CHARSET_RE = re.compile(r"charset\s*=\s*\"?([\w.:-]+)", re.IGNORECASE)


class DeadlineExceeded(Exception):
    """The per-vocabulary wall-clock budget ran out."""


@dataclass
class FetchOutcome:
    ok: bool
    status: int
    content_type: Optional[str]
    text: Optional[str]
    final_url: str
    error: Optional[str] = None


def build_session(retry_total: int = 0, user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    retry = Retry(
        total=retry_total,
        connect=retry_total,
        read=retry_total,
        status=retry_total,
        backoff_factor=1.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset(["GET"]),
        respect_retry_after_header=True,
        raise_on_status=False,  # status is inspected by the caller
    )
    sess = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    sess.mount("https://", adapter)
    sess.mount("http://", adapter)
    sess.headers.update({"User-Agent": user_agent})
    return sess


def remaining(deadline: Optional[float]) -> Optional[float]:
    """Seconds left until `deadline` (a time.monotonic() value), None if unbounded."""
    if deadline is None:
        return None
    left = deadline - time.monotonic()
    if left <= 0:
        raise DeadlineExceeded("deadline exceeded")
    return left


def _timeout(timeout: float, deadline: Optional[float]) -> float:
    left = remaining(deadline)
    return timeout if left is None else min(timeout, left)


def fetch_json(
    session: requests.Session,
    url: str,
    *,
    timeout: float,
    deadline: Optional[float] = None,
) -> Any:
    r = session.get(url, headers={"Accept": "application/json"}, timeout=_timeout(timeout, deadline))
    try:
        if not r.ok:
            raise requests.HTTPError(f"Fetch failed {r.status_code} for {url}", response=r)
        return r.json()
    finally:
        r.close()


def _charset(content_type: Optional[str]) -> str:
    if content_type:
        m = _CHARSET_RE.search(content_type)
        if m:
            return m.group(1)
    # RDF text serializations are UTF-8 unless declared otherwise
    return "utf-8"


def _read_body(resp: requests.Response, deadline: Optional[float]) -> bytes:
    buf = bytearray()
    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
        if chunk:
            buf.extend(chunk)
        remaining(deadline)
    return bytes(buf)


def fetch_text(
    session: requests.Session,
    url: str,
    *,
    timeout: float,
    deadline: Optional[float] = None,
) -> FetchOutcome:
    """
    Download `url` following redirects. Never raises for HTTP or transport
    problems; those come back as a failed FetchOutcome (status 0 when no
    response was received).
    """
    try:
        with session.get(
            url,
            headers={"Accept": RDF_ACCEPT},
            timeout=_timeout(timeout, deadline),
            allow_redirects=True,
            stream=True,
        ) as r:
            content_type = r.headers.get("Content-Type")
            final_url = r.url or url
            if not r.ok:
                return FetchOutcome(
                    False, r.status_code, content_type, None, final_url, f"HTTP {r.status_code} for {final_url}"
                )
            body = _read_body(r, deadline)
            text = body.decode(_charset(content_type), errors="replace")
            return FetchOutcome(True, r.status_code, content_type, text, final_url)
    except DeadlineExceeded as e:
        return FetchOutcome(False, 0, None, None, url, f"{e} while fetching {url}")
    except (requests.RequestException, LookupError) as e:
        return FetchOutcome(False, 0, None, None, url, str(e))


def content_type_base(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    return content_type.split(";")[0].strip().lower() or None


def url_ext(url: str) -> str:
    m = _EXT_RE.search(url or "")
    return m.group(1).lower() if m else ""
