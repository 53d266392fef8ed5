from pathlib import Path

from rdflib import Graph, Literal, URIRef
from rdflib.namespace import OWL, RDF, RDFS, SKOS

from lovmirror import terms
from lovmirror.encode import dec_segment
from lovmirror.formats import SerializationKind
from lovmirror.rdf import parse_graph
from lovmirror.terms import (
    CLASSES,
    DEF_PREDICATES,
    PROPERTIES,
    TermSummary,
    classify,
    extract_term_file,
    summarize,
    write_tiny_term_file,
)

from conftest import ONTOLOGY_TTL

VOC = "http://example.org/voc#"


def _voc():
    return parse_graph(ONTOLOGY_TTL, SerializationKind.TURTLE, VOC)


def test_classify_owl_class_and_datatype_property():
    g = Graph()
    g.add((URIRef("http://x/C"), RDF.type, OWL.Class))
    g.add((URIRef("http://x/p"), RDF.type, OWL.DatatypeProperty))
    g.add((URIRef("http://x/i"), RDF.type, URIRef("http://x/C")))
    found = classify(g)
    assert found.classes == ["http://x/C"]
    assert found.properties == ["http://x/p"]


def test_classify_sorted_and_deduplicated():
    found = classify(_voc())
    assert found.classes == [VOC + "Agent", VOC + "Person"]
    assert found.properties == [VOC + "age", VOC + "knows"]


def test_subject_with_both_kinds_lands_in_both():
    g = Graph()
    s = URIRef("http://x/odd")
    g.add((s, RDF.type, RDFS.Class))
    g.add((s, RDF.type, RDF.Property))
    found = classify(g)
    assert found.classes == found.properties == ["http://x/odd"]


def test_blank_node_subjects_are_ignored():
    g = Graph().parse(data="[] a <http://www.w3.org/2002/07/owl#Class> .", format="turtle")
    assert classify(g).classes == []


def test_summarize_prefers_pref_label_and_definition_chain():
    g = _voc()
    assert summarize(g, VOC + "Person") == TermSummary(label="Person", description="A human.")
    assert summarize(g, VOC + "age") == TermSummary(label="age", description="Age in years.")


def test_summarize_missing_predicates_gives_nones():
    assert summarize(_voc(), VOC + "knows") == TermSummary(label=None, description=None)


def test_summarize_skips_blank_literals_and_iris():
    g = Graph()
    s = URIRef("http://x/t")
    g.add((s, SKOS.prefLabel, Literal("   ")))
    g.add((s, RDFS.label, URIRef("http://x/not-a-literal")))
    g.add((s, RDFS.label, Literal(" Term ")))
    assert summarize(g, "http://x/t").label == "Term"


def test_extract_term_file_keeps_definitional_triples_only():
    tiny = extract_term_file(_voc(), VOC + "Person")
    preds = {p for _, p, _ in tiny}
    assert preds <= DEF_PREDICATES
    assert (URIRef(VOC + "Person"), RDFS.subClassOf, URIRef(VOC + "Agent")) in tiny
    assert all(s == URIRef(VOC + "Person") for s, _, _ in tiny)


def test_extract_term_file_empty_for_unknown_term():
    assert len(extract_term_file(_voc(), "http://x/nothing")) == 0


def test_write_tiny_term_file(tmp_path):
    g = _voc()
    href = write_tiny_term_file(tmp_path, CLASSES, VOC + "Person", g)
    assert href.startswith("classes/")
    assert dec_segment(Path(href).name[: -len(".ttl")]) == VOC + "Person"

    written = Graph().parse(tmp_path / href, format="turtle")
    assert set(written) == set(extract_term_file(g, VOC + "Person"))


def test_write_tiny_term_file_does_not_rewrite(tmp_path):
    g = _voc()
    href = write_tiny_term_file(tmp_path, PROPERTIES, VOC + "age", g)
    path = tmp_path / href
    path.write_text("# kept\n", encoding="utf-8")
    assert write_tiny_term_file(tmp_path, PROPERTIES, VOC + "age", g) == href
    assert path.read_text(encoding="utf-8") == "# kept\n"


def test_write_tiny_term_file_skips_empty(tmp_path):
    assert write_tiny_term_file(tmp_path, CLASSES, "http://x/nothing", _voc()) is None
    assert not (tmp_path / CLASSES).exists()


def test_write_tiny_term_file_long_iri(tmp_path):
    iri = "http://example.org/long#" + "VeryLongTermName" * 16
    g = Graph()
    g.add((URIRef(iri), RDF.type, OWL.Class))

    href = write_tiny_term_file(tmp_path, CLASSES, iri, g)
    path = tmp_path / href
    assert path.is_file()
    assert len(path.name.encode("utf-8")) <= 255
    assert (URIRef(iri), RDF.type, OWL.Class) in Graph().parse(path, format="turtle")
    assert write_tiny_term_file(tmp_path, CLASSES, iri, g) == href


def test_write_tiny_term_file_write_error_skips_term(tmp_path, monkeypatch, caplog):
    def broken(path, text, encoding="utf-8"):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(terms, "atomic_write_text", broken)
    assert write_tiny_term_file(tmp_path, CLASSES, VOC + "Person", _voc()) is None
    assert "Skipping tiny file" in caplog.text
