# lovmirror/pipeline.py
"""
Per-vocabulary mirror pipeline and the worker pool that drives it.

For each vocabulary: resolve the latest published file, reuse the cached
Turtle when nothing changed, otherwise download, convert, extract terms and
persist. Every vocabulary yields a VocabularyResult; a failure in one never
stops the others.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import requests

from .common import atomic_write_text, ensure_dir, file_exists, read_json_if_exists, utc_now_iso_seconds, write_json
from .config import MirrorConfig
from .formats import detection_url
from .html import write_vocabulary_index_html
from .http import DeadlineExceeded, FetchOutcome, build_session, fetch_text
from .index import write_indexes
from .layout import MirrorLayout
from .rdf import ConversionResult, parse_and_serialize
from .registry import VersionInfo, VocabularyEntry, fetch_vocabulary_list, resolve_latest
from .terms import CLASSES, PROPERTIES, TermInfo, classify, summarize, write_tiny_term_file

logger = logging.getLogger(__name__)

CONVERSION_FAILED_STATUS = 422
NOT_MODIFIED_STATUS = 304
PROGRESS_EVERY = 50

SessionFactory = Callable[[], requests.Session]


@dataclass
class VocabularyResult:
    prefix: str
    uri: str
    namespace: Optional[str]
    title: Optional[str] = None
    version: Optional[VersionInfo] = None
    ok: bool = False
    cached: bool = False
    status: int = 0
    final_url: Optional[str] = None
    file_by_prefix: Optional[str] = None
    file_by_uri: Optional[str] = None
    note: Optional[str] = None
    format: Optional[str] = None
    format_matched_by: Optional[str] = None
    class_links: List[TermInfo] = field(default_factory=list)
    prop_links: List[TermInfo] = field(default_factory=list)

    @classmethod
    def for_entry(cls, entry: VocabularyEntry, **kw) -> "VocabularyResult":
        return cls(prefix=entry.prefix, uri=entry.uri, namespace=entry.namespace, title=entry.title, **kw)

    def to_dict(self) -> dict:
        return {
            "prefix": self.prefix,
            "uri": self.uri,
            "namespace": self.namespace,
            "title": self.title,
            "lovLatestFileURL": self.version.file_url if self.version else None,
            "lovLatestIssued": self.version.issued if self.version else None,
            "ok": self.ok,
            "status": self.status,
            "finalUrl": self.final_url,
            "fileByPrefix": self.file_by_prefix,
            "fileByUri": self.file_by_uri,
            "skipped": self.cached,
            "note": self.note,
            "format": self.format,
            "formatMatchedBy": self.format_matched_by,
            "classCount": len(self.class_links),
            "propertyCount": len(self.prop_links),
            "classLinks": [t.to_dict() for t in self.class_links],
            "propLinks": [t.to_dict() for t in self.prop_links],
        }


def _links_from_meta(meta: dict, key: str) -> List[TermInfo]:
    out = []
    for d in meta.get(key) or []:
        if isinstance(d, dict) and d.get("iri") and d.get("href"):
            out.append(TermInfo.from_dict(d))
    return out


def is_up_to_date(layout: MirrorLayout, entry: VocabularyEntry, latest: VersionInfo, meta: Optional[dict]) -> bool:
    """Cached artifact matches the resolved (fileURL, issued) pair and converted fine last time."""
    if not isinstance(meta, dict):
        return False
    convert = meta.get("convert") or {}
    return (
        file_exists(layout.artifact(layout.prefix_dir(entry.prefix)))
        and file_exists(layout.artifact(layout.uri_dir(entry.uri)))
        and (meta.get("lovLatestFileURL"), meta.get("lovLatestIssued")) == latest.key()
        and convert.get("ok") is True
    )


def _extract_terms(layout: MirrorLayout, conv: ConversionResult) -> tuple[List[TermInfo], List[TermInfo]]:
    found = classify(conv.graph)
    links: Dict[str, List[TermInfo]] = {CLASSES: [], PROPERTIES: []}
    for kind, iris in ((CLASSES, found.classes), (PROPERTIES, found.properties)):
        for iri in iris:
            href = write_tiny_term_file(layout.root, kind, iri, conv.graph)
            if not href:
                continue
            summary = summarize(conv.graph, iri)
            links[kind].append(TermInfo(iri, href, summary.label, summary.description))
    return links[CLASSES], links[PROPERTIES]


def _build_meta(
    entry: VocabularyEntry,
    latest: VersionInfo,
    fr: FetchOutcome,
    conv: Optional[ConversionResult],
    class_links: List[TermInfo],
    prop_links: List[TermInfo],
) -> dict:
    fmt = conv.format if conv else None
    return {
        "prefix": entry.prefix,
        "uri": entry.uri,
        "namespace": entry.namespace,
        "lovLatestFileURL": latest.file_url,
        "lovLatestIssued": latest.issued,
        "fetchedAt": utc_now_iso_seconds(),
        "fetchedFrom": latest.file_url,
        "ok": fr.ok,
        "status": fr.status,
        "contentType": fr.content_type,
        "finalUrl": fr.final_url,
        "convert": {
            "ok": bool(conv and conv.ok),
            "reason": conv.reason if conv else None,
            "format": fmt.kind.value if fmt and fmt.kind else None,
            "matchedBy": fmt.matched_by.value if fmt and fmt.matched_by else None,
        },
        "error": fr.error,
        "classLinks": [t.to_dict() for t in class_links],
        "propLinks": [t.to_dict() for t in prop_links],
    }


def process_vocabulary(
    entry: VocabularyEntry,
    config: MirrorConfig,
    session: requests.Session,
    layout: Optional[MirrorLayout] = None,
) -> VocabularyResult:
    layout = layout or MirrorLayout(config.out_root)
    deadline = time.monotonic() + config.task_deadline if config.task_deadline > 0 else None
    try:
        return _process(entry, config, session, layout, deadline)
    except DeadlineExceeded:
        logger.warning("%s: deadline of %ss exceeded", entry.prefix, config.task_deadline)
        return VocabularyResult.for_entry(entry, note=f"deadline exceeded ({config.task_deadline}s)")


def _process(
    entry: VocabularyEntry,
    config: MirrorConfig,
    session: requests.Session,
    layout: MirrorLayout,
    deadline: Optional[float],
) -> VocabularyResult:
    prefix_dir = layout.prefix_dir(entry.prefix)
    uri_dir = layout.uri_dir(entry.uri)

    # 1) latest published file
    latest = resolve_latest(session, config, entry.prefix, deadline=deadline)
    if latest is None:
        logger.warning("%s: no usable version in registry", entry.prefix)
        return VocabularyResult.for_entry(entry, note="Could not fetch LOV info or no versions/fileURL")

    # 2) cache check
    meta = read_json_if_exists(layout.meta(prefix_dir))
    if is_up_to_date(layout, entry, latest, meta):
        logger.debug("%s: up to date (%s)", entry.prefix, latest.issued)
        convert = meta.get("convert") or {}
        return VocabularyResult.for_entry(
            entry,
            version=latest,
            ok=True,
            cached=True,
            status=NOT_MODIFIED_STATUS,
            final_url=meta.get("finalUrl"),
            file_by_prefix=layout.prefix_href(entry.prefix),
            file_by_uri=layout.uri_href(entry.uri),
            format=convert.get("format"),
            format_matched_by=convert.get("matchedBy"),
            class_links=_links_from_meta(meta, "classLinks"),
            prop_links=_links_from_meta(meta, "propLinks"),
        )

    # 3) download
    fr = fetch_text(session, latest.file_url, timeout=config.request_timeout, deadline=deadline)

    conv: Optional[ConversionResult] = None
    class_links: List[TermInfo] = []
    prop_links: List[TermInfo] = []

    if fr.ok and fr.text is not None:
        source_url = detection_url(fr.final_url, latest.file_url)
        conv = parse_and_serialize(fr.text, fr.content_type, entry.uri, source_url)
        if conv.ok:
            atomic_write_text(layout.artifact(prefix_dir), conv.ttl)
            atomic_write_text(layout.artifact(uri_dir), conv.ttl)
            class_links, prop_links = _extract_terms(layout, conv)
            write_vocabulary_index_html(prefix_dir, entry.prefix, class_links, prop_links, entry.title)
            conv.graph = None  # graph lives only for this pass

    ensure_dir(prefix_dir)
    ensure_dir(uri_dir)
    meta = _build_meta(entry, latest, fr, conv, class_links, prop_links)
    write_json(layout.meta(prefix_dir), meta)
    write_json(layout.meta(uri_dir), meta)

    converted = bool(conv and conv.ok)
    result = VocabularyResult.for_entry(
        entry,
        version=latest,
        ok=fr.ok and converted,
        status=(fr.status if converted else CONVERSION_FAILED_STATUS) if fr.ok else fr.status,
        final_url=fr.final_url,
        file_by_prefix=layout.prefix_href(entry.prefix) if converted else None,
        file_by_uri=layout.uri_href(entry.uri) if converted else None,
        note=(conv.reason if conv else None) or fr.error,
        format=meta["convert"]["format"],
        format_matched_by=meta["convert"]["matchedBy"],
        class_links=class_links,
        prop_links=prop_links,
    )
    if result.ok:
        logger.info(
            "%s: mirrored %d classes, %d properties (%s)",
            entry.prefix, len(class_links), len(prop_links), latest.issued,
        )
    else:
        logger.warning("%s: failed with status %s: %s", entry.prefix, result.status, result.note)
    return result


class TermRegistry:
    """
    Results and term-discovery maps shared by the workers. Appends are
    serialized by one lock; completion order does not matter.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.results: List[VocabularyResult] = []
        self.classes: Dict[str, TermInfo] = {}
        self.properties: Dict[str, TermInfo] = {}

    def record(self, result: VocabularyResult) -> None:
        with self._lock:
            self.results.append(result)
            for t in result.class_links:
                self.classes.setdefault(t.iri, t)  # first sighting wins
            for t in result.prop_links:
                self.properties.setdefault(t.iri, t)


def _failed_result(entry: VocabularyEntry, exc: BaseException) -> VocabularyResult:
    return VocabularyResult.for_entry(entry, note=f"Unexpected error: {type(exc).__name__}: {exc}")


def mirror_all(
    vocabs: List[VocabularyEntry],
    config: MirrorConfig,
    session_factory: SessionFactory,
    layout: Optional[MirrorLayout] = None,
) -> TermRegistry:
    """Run process_vocabulary over `vocabs` with `config.concurrency` workers."""
    layout = layout or MirrorLayout(config.out_root)
    registry = TermRegistry()
    total = len(vocabs)
    next_index = 0
    claim_lock = threading.Lock()

    def claim() -> Optional[int]:
        nonlocal next_index
        with claim_lock:
            if next_index >= total:
                return None
            i = next_index
            next_index += 1
            return i

    def worker(worker_id: int) -> None:
        session = session_factory()
        try:
            while True:
                i = claim()
                if i is None:
                    return
                entry = vocabs[i]
                try:
                    result = process_vocabulary(entry, config, session, layout)
                except Exception as e:
                    logger.exception("%s: unexpected error", entry.prefix)
                    result = _failed_result(entry, e)
                registry.record(result)
                if i % PROGRESS_EVERY == 0:
                    logger.info("[worker %d] %d/%d", worker_id, i + 1, total)
        finally:
            session.close()

    workers = min(config.concurrency, max(total, 1))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="lov-mirror") as pool:
        futures = [pool.submit(worker, w) for w in range(workers)]
        for f in futures:
            f.result()
    return registry


def default_session_factory(config: MirrorConfig) -> SessionFactory:
    return lambda: build_session(config.retry_total, config.user_agent)


def select_vocabularies(
    vocabs: Iterable[VocabularyEntry],
    only: Optional[Iterable[str]] = None,
    limit: Optional[int] = None,
) -> List[VocabularyEntry]:
    out = list(vocabs)
    if only:
        wanted = set(only)
        out = [v for v in out if v.prefix in wanted]
    if limit is not None and limit >= 0:
        out = out[:limit]
    return out


def run_mirror(
    config: MirrorConfig,
    session_factory: Optional[SessionFactory] = None,
    only: Optional[Iterable[str]] = None,
    limit: Optional[int] = None,
) -> dict:
    """
    Full run: list the registry, mirror every vocabulary, write the indexes.
    Raises RegistryError when the listing itself cannot be fetched.
    """
    session_factory = session_factory or default_session_factory(config)
    layout = MirrorLayout(config.out_root)
    layout.prepare()

    list_session = session_factory()
    try:
        vocabs = fetch_vocabulary_list(list_session, config)
    finally:
        list_session.close()
    vocabs = select_vocabularies(vocabs, only, limit)
    logger.info("Processing %d vocabularies with concurrency=%d...", len(vocabs), config.concurrency)

    registry = mirror_all(vocabs, config, session_factory, layout)
    summary = write_indexes(layout, registry.results, registry.classes, registry.properties)
    logger.info("Done. Output: %s", config.out_root)
    return summary
