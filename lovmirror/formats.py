# lovmirror/formats.py
# Map a declared content type and source URL onto an rdflib parser format.

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .http import content_type_base, url_ext

logger = logging.getLogger(__name__)


class SerializationKind(str, Enum):
    """Supported input serializations; values are rdflib parser names."""

    TURTLE = "turtle"
    N3 = "n3"
    NTRIPLES = "nt"
    TRIG = "trig"


class MatchedBy(str, Enum):
    CONTENT_TYPE = "content-type"
    EXTENSION = "extension"
    FALLBACK = "fallback"


RDF_MIME_MAP = {
    "text/turtle": SerializationKind.TURTLE,
    "application/x-turtle": SerializationKind.TURTLE,
    "text/n3": SerializationKind.N3,
    "text/rdf+n3": SerializationKind.N3,
    "application/n-triples": SerializationKind.NTRIPLES,
    "application/trig": SerializationKind.TRIG,
    "text/trig": SerializationKind.TRIG,
}

RDF_EXT_MAP = {
    "ttl": SerializationKind.TURTLE,
    "n3": SerializationKind.N3,
    "nt": SerializationKind.NTRIPLES,
    "trig": SerializationKind.TRIG,
}

# RDF/XML and JSON-LD are out: recorded as a skip reason, never parsed.
UNSUPPORTED_MIME = {
    "application/rdf+xml": "RDF/XML",
    "application/ld+json": "JSON-LD",
}

UNSUPPORTED_EXT = {
    "rdf": "RDF/XML",
    "owl": "RDF/XML",
    "xml": "RDF/XML",
    "jsonld": "JSON-LD",
    "json": "JSON-LD",
}


@dataclass(frozen=True)
class FormatMatch:
    kind: Optional[SerializationKind]
    matched_by: Optional[MatchedBy]
    unsupported: Optional[str] = None  # name of the unsupported family

    @property
    def supported(self) -> bool:
        return self.kind is not None

    @property
    def guessed(self) -> bool:
        return self.matched_by is MatchedBy.FALLBACK


def detect(content_type: Optional[str], source_url: str) -> FormatMatch:
    """
    Content type first, then the URL's extension. An unsupported content type
    wins over any extension. Anything unrecognised is read as Turtle because
    servers mislabel RDF all the time.
    """
    ct = content_type_base(content_type)
    if ct in RDF_MIME_MAP:
        return FormatMatch(RDF_MIME_MAP[ct], MatchedBy.CONTENT_TYPE)
    if ct in UNSUPPORTED_MIME:
        return FormatMatch(None, MatchedBy.CONTENT_TYPE, UNSUPPORTED_MIME[ct])

    ext = url_ext(source_url)
    if ext in RDF_EXT_MAP:
        return FormatMatch(RDF_EXT_MAP[ext], MatchedBy.EXTENSION)
    if ext in UNSUPPORTED_EXT:
        return FormatMatch(None, MatchedBy.EXTENSION, UNSUPPORTED_EXT[ext])

    logger.info("No format match for content type %r at %s; trying turtle", content_type, source_url)
    return FormatMatch(SerializationKind.TURTLE, MatchedBy.FALLBACK)


def detection_url(final_url: Optional[str], file_url: str) -> str:
    """
    URL whose extension feeds detect(). A redirect target counts only when
    its extension names a known family; download scripts like `get.php`
    would otherwise hide the registry file's `.trig` or `.n3`.
    """
    ext = url_ext(final_url or "")
    if ext in RDF_EXT_MAP or ext in UNSUPPORTED_EXT:
        return final_url
    return file_url
