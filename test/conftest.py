"""Shared fixtures: canned vocabularies and an offline requests session."""

import json
import threading

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from lovmirror.config import MirrorConfig

LIST_URL = "https://lov.test/api/v2/vocabulary/list"
INFO_URL = "https://lov.test/api/v2/vocabulary/info"

EX_URI = "http://example.org/ex#"
EX_FILE = "https://files.test/ex.ttl"

EX_TTL = """\
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix ex: <http://example.org/ex#> .

ex:Thing a owl:Class ;
    rdfs:label "Thing" ;
    <http://example.org/other#note> "not definitional" .
"""

ONTOLOGY_TTL = """\
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix skos: <http://www.w3.org/2004/02/skos/core#> .
@prefix dct: <http://purl.org/dc/terms/> .
@prefix voc: <http://example.org/voc#> .

voc: a owl:Ontology ;
    dct:title "Example vocabulary" .

voc:Person a owl:Class ;
    skos:prefLabel "Person"@en ;
    rdfs:label "Human being" ;
    rdfs:comment "A human." ;
    rdfs:subClassOf voc:Agent .

voc:Agent a rdfs:Class .

voc:age a owl:DatatypeProperty ;
    rdfs:label "age" ;
    skos:definition "Age in years." ;
    rdfs:domain voc:Person .

voc:knows a rdf:Property, owl:SymmetricProperty .

voc:alice a voc:Person ;
    rdfs:label "Alice" .
"""


def make_response(url, status=200, body=b"", content_type=None, final_url=None):
    """A real requests.Response with its body already in memory."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    r = requests.Response()
    r.status_code = status
    r._content = body
    r._content_consumed = True
    r.headers = CaseInsensitiveDict({"Content-Type": content_type} if content_type else {})
    r.url = final_url or url
    r.encoding = None
    return r


class FakeSession:
    """
    Stand-in for requests.Session serving canned routes. A route is a dict
    with status/body/content_type/final_url, or an exception instance to raise.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self._lock = threading.Lock()

    def add_json(self, url, obj, status=200):
        self.routes[url] = {"status": status, "body": json.dumps(obj), "content_type": "application/json"}

    def add_text(self, url, text, content_type="text/turtle", status=200, final_url=None):
        self.routes[url] = {"status": status, "body": text, "content_type": content_type, "final_url": final_url}

    def get(self, url, params=None, headers=None, timeout=None, allow_redirects=True, stream=False, **kw):
        with self._lock:
            self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            return make_response(url, status=404, body=b"not found", content_type="text/plain")
        if isinstance(route, Exception):
            raise route
        return make_response(
            url,
            status=route.get("status", 200),
            body=route.get("body", b""),
            content_type=route.get("content_type"),
            final_url=route.get("final_url"),
        )

    def close(self):
        pass

    def count(self, url):
        return self.calls.count(url)


def info_url(prefix):
    return f"{INFO_URL}?vocab={prefix}"


@pytest.fixture
def config(tmp_path):
    return MirrorConfig(
        out_root=tmp_path / "lov",
        concurrency=2,
        list_url=LIST_URL,
        info_url=INFO_URL,
        request_timeout=5,
        task_deadline=0,
    )


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def ex_registry(fake_session):
    """Registry with the single vocabulary "ex" published once as Turtle."""
    fake_session.add_json(LIST_URL, [{"prefix": "ex", "uri": EX_URI, "nsp": EX_URI, "title": "Example"}])
    fake_session.add_json(
        info_url("ex"),
        {"versions": [{"fileURL": EX_FILE, "issued": "2023-01-01T00:00:00Z"}]},
    )
    fake_session.add_text(EX_FILE, EX_TTL)
    return fake_session
