# lovmirror/html.py
# Static browsing pages. Data is embedded as JSON and filtered client-side.

from __future__ import annotations

import json
from html import escape
from pathlib import Path
from typing import Iterable, List

from .common import atomic_write_text
from .config import INDEX_HTML, INDEX_JSON, META_FILENAME, OUT_FILENAME
from .terms import TermInfo

SITE_TITLE = "LOV Ontology Mirror"

BASE_CSS = """
    body { font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; margin: 2rem; }
    input { width: 100%; padding: .75rem; font-size: 1rem; margin: 1rem 0; }
    table { border-collapse: collapse; width: 100%; }
    th, td { border-bottom: 1px solid #ddd; padding: .5rem; vertical-align: top; text-align: left; }
    code { background: #f6f6f6; padding: .1rem .25rem; border-radius: .25rem; }
    ul { padding-left: 1.25rem; }
    .muted { color: #666; }
    .bad { color: #b00020; }
    .small { font-size: .92rem; }
    .nowrap { white-space: nowrap; }
    .links a { margin-right: .6rem; }
"""

# Shared client helpers. by-uri folders are named with one level of
# percent-encoding; "%" is encoded again so the name survives the server's decode.
JS_HELPERS = """
  function esc(s){
    return String(s == null ? "" : s)
      .replaceAll("&","&amp;").replaceAll("<","&lt;").replaceAll(">","&gt;")
      .replaceAll('"',"&quot;").replaceAll("'","&#39;");
  }
  function encPrefix(x){ return encodeURIComponent(x); }
  function encUri(x){ return encodeURIComponent(x).replaceAll("%","%25"); }
"""


def _json_for_script(obj) -> str:
    return json.dumps(obj, ensure_ascii=False).replace("</", "<\\/")


def _head(title: str) -> str:
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>{escape(title)}</title>
  <style>{BASE_CSS}  </style>
</head>
"""


def _term_table(table_id: str, input_id: str, heading: str, noun: str) -> str:
    return f"""
  <h2>{escape(heading)}</h2>
  <input id="{input_id}" placeholder="Filter {noun} by IRI / name / description..." />
  <table>
    <thead>
      <tr><th>Term</th><th>Name</th><th>Description</th><th class="nowrap">Tiny file</th></tr>
    </thead>
    <tbody id="{table_id}"></tbody>
  </table>
"""


# hrefPrefix is the path from the page to the output root
TERM_RENDER_JS = """
  function renderTerms(list, tbody, filter, hrefPrefix){
    tbody.innerHTML = "";
    const f = (filter || "").toLowerCase();
    for (const it of list){
      const hay = (it.iri + " " + (it.label||"") + " " + (it.description||"")).toLowerCase();
      if (f && !hay.includes(f)) continue;
      const slash = it.href ? it.href.indexOf("/") : -1;
      const tinyHref = it.href
        ? hrefPrefix + it.href.slice(0, slash + 1) + encodeURIComponent(it.href.slice(slash + 1))
        : "";
      const tr = document.createElement("tr");
      tr.innerHTML = [
        "<td><a href='" + esc(it.iri) + "'><code>" + esc(it.iri) + "</code></a></td>",
        "<td>" + (it.label ? esc(it.label) : "<span class='muted small'>(no label)</span>") + "</td>",
        "<td class='small'>" + (it.description ? esc(it.description) : "<span class='muted small'>(no description)</span>") + "</td>",
        "<td class='nowrap'>" + (it.href ? "<a href='" + tinyHref + "'>ttl</a>" : "<span class='muted small'>(none)</span>") + "</td>"
      ].join("");
      tbody.appendChild(tr);
    }
  }
"""


def write_global_index_html(out_root: str | Path) -> Path:
    """Root page; loads ./index.json at view time."""
    html = _head(SITE_TITLE) + f"""<body>
  <h1>{SITE_TITLE}</h1>
  <p class="muted">
    Successful vocabularies are published as <code>{OUT_FILENAME}</code>.
    Browse <a href="./namespaces/">namespaces</a>,
    <a href="./classes/">classes</a>, <a href="./properties/">properties</a>.
  </p>

  <input id="q" placeholder="Filter by prefix / URI / namespace..." />

  <table>
    <thead>
      <tr><th>Prefix</th><th>URI</th><th>Namespace</th><th>Browse</th><th>Status</th></tr>
    </thead>
    <tbody id="rows"></tbody>
  </table>

<script>
(async function(){{
{JS_HELPERS}
  const res = await fetch("./{INDEX_JSON}");
  const data = await res.json();
  const items = data.items || [];
  const rows = document.getElementById("rows");
  const q = document.getElementById("q");

  function render(filter){{
    rows.innerHTML = "";
    const f = (filter || "").toLowerCase();
    for (const it of items){{
      const hay = (it.prefix + " " + it.uri + " " + (it.namespace || "") + " " + (it.title || "")).toLowerCase();
      if (f && !hay.includes(f)) continue;

      const prefixFolder = "./by-prefix/" + encPrefix(it.prefix) + "/";
      const uriFolder = "./by-uri/" + encUri(it.uri) + "/";
      const links =
        "<span class='links'>"
        + "<a href='" + prefixFolder + "{INDEX_HTML}'>terms</a>"
        + "<a href='" + prefixFolder + "{META_FILENAME}'>meta</a>"
        + (it.ok ? "<a href='" + prefixFolder + "{OUT_FILENAME}'>by-prefix.ttl</a>" : "")
        + (it.ok ? "<a href='" + uriFolder + "{OUT_FILENAME}'>by-uri.ttl</a>" : "")
        + "</span>";
      const statusTxt = it.skipped ? "cached" : (it.ok ? "ok" : "failed");

      const tr = document.createElement("tr");
      tr.innerHTML = [
        "<td><code>" + esc(it.prefix) + "</code></td>",
        "<td><a href='" + esc(it.uri) + "'>" + esc(it.uri) + "</a></td>",
        "<td>" + (it.namespace ? "<code>" + esc(it.namespace) + "</code>" : "") + "</td>",
        "<td>" + links + "</td>",
        "<td class='" + (it.ok ? "" : "bad") + "' title='" + esc(it.note || "") + "'>" + statusTxt + "</td>"
      ].join("");
      rows.appendChild(tr);
    }}
  }}

  q.addEventListener("input", () => render(q.value));
  render("");
}})();
</script>
</body>
</html>
"""
    path = Path(out_root) / INDEX_HTML
    atomic_write_text(path, html)
    return path


def write_namespaces_index_html(out_root: str | Path, namespaces: Iterable[dict]) -> Path:
    """`namespaces` items look like {"ns": <namespace>, "count": <n>}."""
    items: List[dict] = list(namespaces)
    html = _head(f"Namespaces - {SITE_TITLE}") + f"""<body>
  <h1>Namespaces ({len(items)})</h1>
  <p class="muted"><a href="../">&larr; back to vocabularies</a></p>

  <input id="q" placeholder="Filter namespaces..." />
  <ul id="list"></ul>

<script>
(function(){{
{JS_HELPERS}
  const items = {_json_for_script(items)};
  const list = document.getElementById("list");
  const q = document.getElementById("q");

  function render(filter){{
    list.innerHTML = "";
    const f = (filter || "").toLowerCase();
    for (const it of items){{
      if (f && !it.ns.toLowerCase().includes(f)) continue;
      const href = "./" + encUri(it.ns) + "/";
      const li = document.createElement("li");
      li.innerHTML =
        "<a href='" + href + "{INDEX_JSON}'><code>" + esc(it.ns) + "</code></a>"
        + " <span class='muted'>(" + it.count + ")</span>";
      list.appendChild(li);
    }}
  }}

  q.addEventListener("input", () => render(q.value));
  render("");
}})();
</script>
</body>
</html>
"""
    path = Path(out_root) / "namespaces" / INDEX_HTML
    atomic_write_text(path, html)
    return path


def write_vocabulary_index_html(
    prefix_dir: str | Path,
    prefix: str,
    class_links: List[TermInfo],
    prop_links: List[TermInfo],
    title: str | None = None,
) -> Path:
    """Per-vocabulary page in by-prefix/<prefix>/, two levels below the output root."""
    heading = f"<h1><code>{escape(prefix)}</code></h1>"
    if title:
        heading += f'\n  <p class="muted">{escape(title)}</p>'
    html = _head(f"{prefix} - {SITE_TITLE}") + f"""<body>
  <p class="muted"><a href="../../{INDEX_HTML}">&larr; back</a></p>
  {heading}
  <p>
    <a href="./{OUT_FILENAME}">{OUT_FILENAME}</a> &middot;
    <a href="./{META_FILENAME}">{META_FILENAME}</a>
  </p>
{_term_table("classes", "qc", f"Classes ({len(class_links)})", "classes")}
{_term_table("props", "qp", f"Properties ({len(prop_links)})", "properties")}
<script>
(function(){{
{JS_HELPERS}
{TERM_RENDER_JS}
  const classes = {_json_for_script([t.to_dict() for t in class_links])};
  const props = {_json_for_script([t.to_dict() for t in prop_links])};
  const tbodyC = document.getElementById("classes");
  const tbodyP = document.getElementById("props");
  const qc = document.getElementById("qc");
  const qp = document.getElementById("qp");

  qc.addEventListener("input", () => renderTerms(classes, tbodyC, qc.value, "../../"));
  qp.addEventListener("input", () => renderTerms(props, tbodyP, qp.value, "../../"));
  renderTerms(classes, tbodyC, "", "../../");
  renderTerms(props, tbodyP, "", "../../");
}})();
</script>
</body>
</html>
"""
    path = Path(prefix_dir) / INDEX_HTML
    atomic_write_text(path, html)
    return path


def write_terms_index_html(out_root: str | Path, kind: str, items: List[TermInfo]) -> Path:
    """Global list of every discovered class or property, in <out_root>/<kind>/."""
    title = f"{kind.capitalize()} ({len(items)})"
    html = _head(f"{title} - {SITE_TITLE}") + f"""<body>
  <p class="muted"><a href="../">&larr; back to vocabularies</a> &middot; <a href="./{INDEX_JSON}">json</a></p>
{_term_table("rows", "q", title, kind)}
<script>
(function(){{
{JS_HELPERS}
{TERM_RENDER_JS}
  const items = {_json_for_script([t.to_dict() for t in items])};
  const rows = document.getElementById("rows");
  const q = document.getElementById("q");
  q.addEventListener("input", () => renderTerms(items, rows, q.value, "../"));
  renderTerms(items, rows, "", "../");
}})();
</script>
</body>
</html>
"""
    path = Path(out_root) / kind / INDEX_HTML
    atomic_write_text(path, html)
    return path
