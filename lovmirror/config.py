# lovmirror/config.py
# Env-tunable settings for the mirror run (sane defaults).

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import quote

LOV_LIST_URL = "https://lov.linkeddata.es/dataset/lov/api/v2/vocabulary/list"
LOV_INFO_URL = "https://lov.linkeddata.es/dataset/lov/api/v2/vocabulary/info"

DEFAULT_OUT_DIR = "public/lov"
DEFAULT_CONCURRENCY = 10
DEFAULT_REQUEST_TIMEOUT = 60.0  # seconds, per request
DEFAULT_TASK_DEADLINE = 300.0  # seconds, per vocabulary; 0 = unbounded
DEFAULT_RETRY_TOTAL = 0
DEFAULT_USER_AGENT = "lov-mirror/1.0 (static mirror)"

OUT_FILENAME = "ontology.ttl"
META_FILENAME = "meta.json"
INDEX_JSON = "index.json"
INDEX_HTML = "index.html"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class MirrorConfig:
    out_root: Path
    concurrency: int = DEFAULT_CONCURRENCY
    list_url: str = LOV_LIST_URL
    info_url: str = LOV_INFO_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    task_deadline: float = DEFAULT_TASK_DEADLINE
    retry_total: int = DEFAULT_RETRY_TOTAL
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "out_root", Path(self.out_root).expanduser().resolve())
        object.__setattr__(self, "concurrency", max(1, int(self.concurrency)))

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MirrorConfig":
        env = os.environ if env is None else env
        return cls(
            out_root=Path(env.get("OUT_DIR") or DEFAULT_OUT_DIR),
            concurrency=_int_env(env, "CONCURRENCY", DEFAULT_CONCURRENCY),
            list_url=env.get("LOV_LIST_URL") or LOV_LIST_URL,
            info_url=env.get("LOV_INFO_URL") or LOV_INFO_URL,
            request_timeout=_float_env(env, "LOV_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            task_deadline=_float_env(env, "LOV_TASK_DEADLINE", DEFAULT_TASK_DEADLINE),
            retry_total=_int_env(env, "LOV_RETRY_TOTAL", DEFAULT_RETRY_TOTAL),
            user_agent=env.get("LOV_USER_AGENT") or DEFAULT_USER_AGENT,
        )

    def with_overrides(self, **changes) -> "MirrorConfig":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def lov_info_url(self, prefix: str) -> str:
        return f"{self.info_url}?vocab={quote(prefix, safe='')}"
