"""Tests for the JS/TS source adapters."""
import pytest

from file_converter.conversion.adapters.code import convert_code, js_to_html, supported_pairs, ts_to_js
from file_converter.conversion.models import UnsupportedConversionError


class TestTsToJs:
    def test_variable_annotation(self):
        assert ts_to_js("const x: number = 5;") == "const x = 5;"

    def test_let_without_initializer(self):
        assert ts_to_js("let name: string;") == "let name;"

    def test_function_params_and_return(self):
        src = "function add(a: number, b: number): number {\n  return a + b;\n}"
        assert ts_to_js(src) == "function add(a, b) {\n  return a + b;\n}"

    def test_optional_param_and_union(self):
        src = "function greet(name?: string | null) {}"
        assert ts_to_js(src) == "function greet(name) {}"

    def test_arrow_function(self):
        assert ts_to_js("const f = (s: string): string => s;") == "const f = (s) => s;"

    def test_interface_removed(self):
        src = "interface User {\n  id: number;\n  name: string;\n}\nconst u = 1;"
        assert ts_to_js(src) == "const u = 1;"

    def test_exported_interface_with_extends(self):
        src = "export interface Admin extends User { level: number }\nlet a = 2;"
        assert ts_to_js(src) == "let a = 2;"

    def test_type_alias_removed(self):
        assert ts_to_js("type Id = string | number;\nconst id = 1;") == "const id = 1;"

    def test_type_import_removed(self):
        src = "import type { User } from './user';\nimport { api } from './api';"
        assert ts_to_js(src) == "import { api } from './api';"

    def test_enum_removed(self):
        assert ts_to_js("enum Color { Red, Green }\nconst c = 1;") == "const c = 1;"

    def test_access_modifiers(self):
        src = "class Box<T> {\n  constructor(private value: T) {}\n}"
        assert ts_to_js(src) == "class Box {\n  constructor(value) {}\n}"

    def test_call_generics(self):
        assert ts_to_js("const s = new Set<string>();") == "const s = new Set();"

    def test_plain_js_unchanged(self):
        src = "const a = b ? c : d;\nconsole.log({ key: 1 });"
        assert ts_to_js(src) == src


class TestJsToHtml:
    def test_contains_escaped_source_and_script(self):
        page = js_to_html("console.log(1 < 2);")
        assert page.startswith("<!DOCTYPE html>")
        assert "<pre><code>console.log(1 &lt; 2);</code></pre>" in page
        assert "console.log(1 < 2);" in page
        assert 'console[method] = function' in page

    def test_script_close_is_escaped(self):
        page = js_to_html('var s = "</script><b>x</b>";')
        assert page.count("</script>") == 1
        assert "<\\/script>" in page

    def test_title_escaped(self):
        assert "<title>a &amp; b</title>" in js_to_html("", title="a & b")

    def test_errors_are_rendered_in_page(self):
        assert 'render("error"' in js_to_html("throw new Error('x')")


class TestConvertCode:
    def test_pairs(self):
        assert supported_pairs() == {("js", "html"), ("ts", "js")}

    def test_decodes_and_encodes(self):
        assert convert_code(b"let v: boolean = true;", "ts", "js") == b"let v = true;"

    def test_case_insensitive(self):
        assert convert_code(b"1", "JS", "HTML").startswith(b"<!DOCTYPE html>")

    @pytest.mark.parametrize("ext,target", [("js", "ts"), ("tsx", "js"), ("css", "html"), ("json", "yaml")])
    def test_unsupported(self, ext, target):
        with pytest.raises(UnsupportedConversionError, match=f"Unsupported conversion: {ext} to {target}"):
            convert_code(b"", ext, target)
