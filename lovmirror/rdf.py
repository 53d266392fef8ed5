# lovmirror/rdf.py
"""
Parse a downloaded vocabulary into an rdflib Dataset and write it back out
as Turtle, the single serialization the mirror publishes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from rdflib import Dataset, Graph

from .formats import FormatMatch, SerializationKind, detect


class ConversionError(Exception):
    """A fetched payload could not be turned into Turtle."""


class UnsupportedFormatError(ConversionError):
    def __init__(self, content_type: Optional[str], source_url: str, family: Optional[str] = None):
        self.content_type = content_type
        self.source_url = source_url
        self.family = family
        label = family or content_type or "unknown"
        super().__init__(f"Unsupported format: {label} ({content_type or 'no content type'}, {source_url})")


class ParseError(ConversionError):
    def __init__(self, kind: SerializationKind, message: str, guessed: bool = False):
        self.kind = kind
        self.message = message
        self.guessed = guessed
        how = f"{kind.value}, guessed" if guessed else kind.value
        super().__init__(f"Parse failed ({how}): {message}")


@dataclass
class ConversionResult:
    ok: bool
    graph: Optional[Dataset] = None
    ttl: Optional[str] = None
    format: Optional[FormatMatch] = None
    reason: Optional[str] = None


def new_dataset() -> Dataset:
    # union view so triple lookups see every named graph of a TriG input
    return Dataset(default_union=True)


def parse_graph(
    text: str,
    kind: SerializationKind,
    base_iri: str,
    *,
    guessed: bool = False,
) -> Dataset:
    """Parse `text`; relative IRIs resolve against `base_iri`. Raises ParseError."""
    ds = new_dataset()
    try:
        ds.parse(data=text, format=kind.value, publicID=base_iri)
    except Exception as e:  # rdflib raises a zoo of parser-specific exceptions
        raise ParseError(kind, str(e) or type(e).__name__, guessed=guessed) from e
    return ds


def flatten(graph: Union[Dataset, Graph]) -> Graph:
    """Merge every named graph into one plain Graph; Turtle has no graph labels."""
    out = Graph()
    for prefix, ns in graph.namespaces():
        out.bind(prefix, ns, override=False)
    for triple in graph.triples((None, None, None)):
        out.add(triple)
    return out


def serialize_turtle(graph: Union[Dataset, Graph]) -> str:
    g = flatten(graph) if isinstance(graph, Dataset) else graph
    return g.serialize(format="turtle")


def parse_and_serialize(
    text: str,
    content_type: Optional[str],
    base_iri: str,
    source_url: str,
) -> ConversionResult:
    """Detect, parse and re-serialize. Failures come back as ok=False with a reason."""
    match = detect(content_type, source_url)
    if not match.supported:
        err = UnsupportedFormatError(content_type, source_url, match.unsupported)
        return ConversionResult(ok=False, format=match, reason=str(err))

    try:
        ds = parse_graph(text, match.kind, base_iri, guessed=match.guessed)
    except ParseError as e:
        return ConversionResult(ok=False, format=match, reason=str(e))

    try:
        ttl = serialize_turtle(ds)
    except Exception as e:  # e.g. N3 formulas have no Turtle rendering
        return ConversionResult(ok=False, format=match, reason=f"Serialize failed ({match.kind.value}): {e}")

    return ConversionResult(ok=True, graph=ds, ttl=ttl, format=match)
