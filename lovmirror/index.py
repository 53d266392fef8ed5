# lovmirror/index.py
# Global and per-namespace summaries written once all vocabularies are done.

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from .common import ensure_dir, utc_now_iso_seconds, write_json
from .config import INDEX_JSON
from .html import write_global_index_html, write_namespaces_index_html, write_terms_index_html
from .layout import MirrorLayout
from .terms import CLASSES, PROPERTIES, TermInfo

if TYPE_CHECKING:
    from .pipeline import VocabularyResult


def sort_results(results: Iterable["VocabularyResult"]) -> List["VocabularyResult"]:
    return sorted(results, key=lambda r: r.prefix)


def build_summary(results: Iterable["VocabularyResult"], generated_at: Optional[str] = None) -> dict:
    items = sort_results(results)
    return {
        "generatedAt": generated_at or utc_now_iso_seconds(),
        "count": len(items),
        "okCount": sum(1 for r in items if r.ok),
        "skippedCount": sum(1 for r in items if r.cached),
        "items": [r.to_dict() for r in items],
    }


def group_by_namespace(results: Iterable["VocabularyResult"]) -> Dict[str, List["VocabularyResult"]]:
    """Namespace -> results, both sorted; results without a namespace are left out."""
    groups: Dict[str, List["VocabularyResult"]] = {}
    for r in sort_results(results):
        if not r.namespace:
            continue
        groups.setdefault(r.namespace, []).append(r)
    return dict(sorted(groups.items()))


def _write_terms_index(root: Path, kind: str, terms: Mapping[str, TermInfo]) -> None:
    items = [terms[iri] for iri in sorted(terms)]
    ensure_dir(root / kind)
    write_json(root / kind / INDEX_JSON, {"count": len(items), "items": [t.to_dict() for t in items]})
    write_terms_index_html(root, kind, items)


def write_indexes(
    layout: MirrorLayout,
    results: Iterable["VocabularyResult"],
    classes: Optional[Mapping[str, TermInfo]] = None,
    properties: Optional[Mapping[str, TermInfo]] = None,
) -> dict:
    """Write index.json/index.html, namespace groups and term indexes. Returns the global summary."""
    results = list(results)
    summary = build_summary(results)
    write_json(layout.root / INDEX_JSON, summary)

    groups = group_by_namespace(results)
    for ns, members in groups.items():
        write_json(
            layout.namespace_dir(ns) / INDEX_JSON,
            {"namespace": ns, "count": len(members), "items": [r.to_dict() for r in members]},
        )
    write_namespaces_index_html(layout.root, [{"ns": ns, "count": len(m)} for ns, m in groups.items()])

    _write_terms_index(layout.root, CLASSES, classes or {})
    _write_terms_index(layout.root, PROPERTIES, properties or {})

    write_global_index_html(layout.root)
    return summary
