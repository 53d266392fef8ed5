import json

import pytest

from lovmirror import pipeline
from lovmirror.cli import build_parser, main

from conftest import INFO_URL, LIST_URL


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OUT_DIR", "CONCURRENCY", "LOV_LIST_URL", "LOV_INFO_URL", "LOV_TASK_DEADLINE"):
        monkeypatch.delenv(name, raising=False)


def _args(out_dir):
    return ["--out-dir", str(out_dir), "--list-url", LIST_URL, "--info-url", INFO_URL, "--log-level", "WARNING"]


def test_parser_splits_only():
    args = build_parser().parse_args(["--only", "foaf, dc,,skos", "--max", "3"])
    assert args.only == ["foaf", "dc", "skos"]
    assert args.max == 3


def test_main_success(tmp_path, ex_registry, monkeypatch):
    monkeypatch.setattr(pipeline, "build_session", lambda *a, **kw: ex_registry)
    out = tmp_path / "site"
    assert main(_args(out)) == 0
    summary = json.loads((out / "index.json").read_text(encoding="utf-8"))
    assert summary["okCount"] == 1
    assert (out / "by-prefix" / "ex" / "ontology.ttl").is_file()


def test_main_listing_failure_exits_1(tmp_path, fake_session, monkeypatch):
    monkeypatch.setattr(pipeline, "build_session", lambda *a, **kw: fake_session)
    assert main(_args(tmp_path / "site")) == 1


def test_main_bad_environment_exits_2(tmp_path, monkeypatch):
    monkeypatch.setenv("CONCURRENCY", "lots")
    assert main(_args(tmp_path / "site")) == 2
