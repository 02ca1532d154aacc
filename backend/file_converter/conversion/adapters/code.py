"""Source-code adapters: JS to a runnable HTML page, TS to JS by textual stripping."""
import html
import logging
import re
from string import Template
from typing import Callable

from file_converter.conversion.models import UnsupportedConversionError

logger = logging.getLogger("converter.code")

JS_HTML_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>$title</title>
<style>
  body { font-family: system-ui, sans-serif; margin: 2rem; }
  pre { background: #f6f8fa; padding: 1rem; overflow-x: auto; }
  #output div { font-family: monospace; padding: 2px 0; }
  #output .error { color: #b91c1c; }
  #output .warn { color: #b45309; }
</style>
</head>
<body>
<h1>$title</h1>
<h2>Source</h2>
<pre><code>$source</code></pre>
<h2>Output</h2>
<div id="output"></div>
<script>
(function () {
  var output = document.getElementById("output");
  function render(kind, args) {
    var line = document.createElement("div");
    line.className = kind;
    line.textContent = args.map(function (a) {
      if (typeof a === "object") {
        try { return JSON.stringify(a); } catch (e) { return String(a); }
      }
      return String(a);
    }).join(" ");
    output.appendChild(line);
  }
  ["log", "info", "warn", "error"].forEach(function (method) {
    var original = console[method].bind(console);
    console[method] = function () {
      var args = Array.prototype.slice.call(arguments);
      render(method, args);
      original.apply(console, args);
    };
  });
  try {
$script
  } catch (err) {
    render("error", [err && err.stack ? err.stack : String(err)]);
  }
})();
</script>
</body>
</html>
""")

_SCRIPT_CLOSE = re.compile(r"</(script)", re.IGNORECASE)

_TYPE_ATOM = (
    r"(?:string|number|boolean|any|unknown|void|never|object|bigint|symbol|null|undefined"
    r"|[A-Z][\w$.]*(?:<[^<>()]*>)?)(?:\[\])*"
)
_TYPE = rf"{_TYPE_ATOM}(?:\s*[|&]\s*{_TYPE_ATOM})*"

# Applied in order. Regex-based, so nested generics, multi-line types and
# other non-trivial syntax are not handled correctly.
_TS_RULES = [
    (re.compile(r"^[ \t]*import\s+type\s+[^;\n]*;?[ \t]*\n?", re.M), ""),
    (re.compile(r"^[ \t]*export\s+type\s+\{[^}]*\}[^;\n]*;?[ \t]*\n?", re.M), ""),
    (re.compile(
        r"^[ \t]*(?:export\s+)?(?:declare\s+)?interface\s+[\w$]+(?:\s*<[^>{]*>)?"
        r"(?:\s+extends\s+[^{]+)?\s*\{[^{}]*\}[ \t]*\n?",
        re.M,
    ), ""),
    (re.compile(r"^[ \t]*(?:export\s+)?(?:declare\s+)?type\s+[\w$]+(?:\s*<[^>=]*>)?\s*=[^;]*;[ \t]*\n?", re.M), ""),
    (re.compile(r"^[ \t]*(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+[\w$]+\s*\{[^{}]*\}[ \t]*\n?", re.M), ""),
    (re.compile(r"\b(?:public|private|protected|readonly)\s+(?=[\w$])"), ""),
    (re.compile(r"(class\s+[\w$]+)\s*<[^>{]*>"), r"\1"),
    (re.compile(r"(?<=[\w$])\s*<[\w$\s,.\[\]|&'\"]*>(?=\s*\()"), ""),
    (re.compile(rf"\)\s*:\s*{_TYPE}(?=\s*(?:\{{|=>))"), ")"),
    (re.compile(r"\b((?:const|let|var)\s+[\w$]+)\s*:\s*[^=;\n]+?(?=\s*[=;\n])"), r"\1"),
    (re.compile(rf"([(,]\s*(?:\.\.\.)?[\w$]+)\??\s*:\s*{_TYPE}(?=\s*[,)=])"), r"\1"),
]


def js_to_html(source: str, title: str = "JavaScript Output") -> str:
    """
    Page showing the escaped source and running it in the browser. console
    methods are patched to also print into the page; thrown errors are shown,
    not propagated.
    """
    return JS_HTML_TEMPLATE.substitute(
        title=html.escape(title),
        source=html.escape(source),
        script=_SCRIPT_CLOSE.sub(r"<\\/\1", source),
    )


def ts_to_js(source: str) -> str:
    """Strip TypeScript-only syntax with regexes. Not a compiler; lossy on complex types."""
    out = source
    for pattern, repl in _TS_RULES:
        out = pattern.sub(repl, out)
    return out


_CODE_CONVERTERS: dict[tuple[str, str], Callable[[str], str]] = {
    ("js", "html"): js_to_html,
    ("ts", "js"): ts_to_js,
}


def supported_pairs() -> set[tuple[str, str]]:
    return set(_CODE_CONVERTERS)


def convert_code(data: bytes, source_ext: str, target_format: str) -> bytes:
    converter = _CODE_CONVERTERS.get((source_ext.lower(), target_format.lower()))
    if converter is None:
        raise UnsupportedConversionError(f"Unsupported conversion: {source_ext} to {target_format}")
    source = data.decode("utf-8", errors="replace")
    return converter(source).encode("utf-8")
