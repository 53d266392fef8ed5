# lovmirror/terms.py
"""
Class/property discovery and the per-term "tiny" Turtle files.

A term's tiny file holds only its definitional triples (type, labels,
hierarchy, domain/range, SKOS/DC documentation) so it stays small enough to
serve as a dereferenceable stub.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from rdflib import Graph, Literal, URIRef
from rdflib.namespace import DCTERMS, OWL, RDF, RDFS, SKOS

from .common import atomic_write_text, ensure_dir, file_exists
from .encode import enc_uri_segment, fit_name

logger = logging.getLogger(__name__)

CLASSES = "classes"
PROPERTIES = "properties"

CLASS_TYPES = frozenset({OWL.Class, RDFS.Class})

PROPERTY_TYPES = frozenset(
    {
        RDF.Property,
        OWL.ObjectProperty,
        OWL.DatatypeProperty,
        OWL.AnnotationProperty,
        OWL.FunctionalProperty,
        OWL.InverseFunctionalProperty,
        OWL.TransitiveProperty,
        OWL.SymmetricProperty,
        OWL.AsymmetricProperty,
        OWL.ReflexiveProperty,
        OWL.IrreflexiveProperty,
    }
)

# Keep tiny files small
DEF_PREDICATES = frozenset(
    {
        RDF.type,
        RDFS.label,
        RDFS.comment,
        RDFS.isDefinedBy,
        RDFS.seeAlso,
        RDFS.subClassOf,
        RDFS.subPropertyOf,
        RDFS.domain,
        RDFS.range,
        OWL.equivalentClass,
        OWL.equivalentProperty,
        OWL.inverseOf,
        OWL.deprecated,
        SKOS.prefLabel,
        SKOS.altLabel,
        SKOS.definition,
        SKOS.scopeNote,
        SKOS.example,
        DCTERMS.title,
        DCTERMS.description,
    }
)

LABEL_PREDICATES = (SKOS.prefLabel, RDFS.label, DCTERMS.title)
DESCRIPTION_PREDICATES = (SKOS.definition, RDFS.comment, DCTERMS.description, SKOS.scopeNote)


@dataclass(frozen=True)
class TermSets:
    classes: List[str]
    properties: List[str]


@dataclass(frozen=True)
class TermSummary:
    label: Optional[str] = None
    description: Optional[str] = None


@dataclass
class TermInfo:
    iri: str
    href: str  # relative to the output root, e.g. "classes/<file>.ttl"
    label: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "TermInfo":
        return cls(iri=d["iri"], href=d["href"], label=d.get("label"), description=d.get("description"))


def classify(g: Graph) -> TermSets:
    classes = set()
    properties = set()
    for s, _, o in g.triples((None, RDF.type, None)):
        if not isinstance(s, URIRef) or not isinstance(o, URIRef):
            continue
        if o in CLASS_TYPES:
            classes.add(str(s))
        if o in PROPERTY_TYPES:
            properties.add(str(s))
    return TermSets(sorted(classes), sorted(properties))


def _first_literal(g: Graph, subject: URIRef, predicate: URIRef) -> Optional[str]:
    for o in g.objects(subject, predicate):
        if isinstance(o, Literal):
            v = str(o).strip()
            if v:
                return v
    return None


def _first_of(g: Graph, subject: URIRef, predicates) -> Optional[str]:
    for p in predicates:
        v = _first_literal(g, subject, p)
        if v is not None:
            return v
    return None


def summarize(g: Graph, term_iri: str) -> TermSummary:
    s = URIRef(term_iri)
    return TermSummary(
        label=_first_of(g, s, LABEL_PREDICATES),
        description=_first_of(g, s, DESCRIPTION_PREDICATES),
    )


def extract_term_file(g: Graph, term_iri: str) -> Graph:
    """Definitional triples about `term_iri`; an empty graph means nothing to write."""
    out = Graph()
    s = URIRef(term_iri)
    for _, p, o in g.triples((s, None, None)):
        if p in DEF_PREDICATES:
            out.add((s, p, o))
    return out


def tiny_file_href(kind: str, term_iri: str) -> str:
    return f"{kind}/{fit_name(enc_uri_segment(term_iri), term_iri, '.ttl')}"


def write_tiny_term_file(out_root: str | Path, kind: str, term_iri: str, g: Graph) -> Optional[str]:
    """
    Write `<out_root>/<kind>/<encoded iri>.ttl` unless it already exists.
    Returns the href relative to `out_root`, or None when the term has no
    definitional triples or its file cannot be written; a failed term never
    fails the vocabulary.
    """
    href = tiny_file_href(kind, term_iri)
    path = Path(out_root) / href
    try:
        if file_exists(path):
            return href

        tiny = extract_term_file(g, term_iri)
        if len(tiny) == 0:
            return None

        ensure_dir(path.parent)
        atomic_write_text(path, tiny.serialize(format="turtle"))
    except OSError as e:
        logger.warning("Skipping tiny file for %s: %s", term_iri, e)
        return None
    return href
