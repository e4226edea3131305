"""
Tests for the forward transpiler (NullScript → TypeScript).

Tests cover:
- Every single-word alias rewritten to its canonical token
- Indentation-based function declaration context
- Delete expressions, phrases and fixups
- Literal protection and member-access guards
- Idempotence on canonical source
"""

import re

import pytest

from nullscript.errors import NullScriptTranspileError
from nullscript.keywords import Category, get_default_table
from nullscript.transpiler import (
    ForwardTranspiler,
    TargetVariant,
    TranspileOptions,
    compile_pattern,
    transpile,
)


@pytest.fixture(scope="module")
def transpiler():
    return ForwardTranspiler()


def standalone(token, text):
    return re.search(rf"(?<![\w$]){re.escape(token)}(?![\w$])", text) is not None


_SINGLE_WORD = [
    e for e in get_default_table()
    if not e.is_phrase and e.category is not Category.FUNCTION_DECLARATION_FORMS
]


class TestEveryAlias:
    """Test that each alias maps onto its canonical token."""

    @pytest.mark.parametrize("entry", _SINGLE_WORD, ids=lambda e: e.alias)
    def test_single_word_alias(self, transpiler, entry):
        output = transpiler.transpile(f"x = {entry.alias};")

        assert entry.canonical in output
        assert not standalone(entry.alias, output)

    def test_module_level_transpile(self):
        assert transpile("fixed x = yes;") == "const x = true;"


class TestFunctionDeclarations:
    """Test context-sensitive function declaration rewriting."""

    def test_top_level_function(self, transpiler):
        assert transpiler.transpile("run greet(name) {") == "function greet(name) {"

    def test_indented_function_becomes_method(self, transpiler):
        source = "model Greeter {\n    run greet(name) {\n    }\n}"
        expected = "class Greeter {\n    greet(name) {\n    }\n}"
        assert transpiler.transpile(source) == expected

    def test_async_top_level_and_method(self, transpiler):
        source = "run later load() {}\nmodel A {\n    run later fetch() {}\n}"
        output = transpiler.transpile(source)

        assert "async function load() {}" in output
        assert "    async fetch() {}" in output

    def test_static_method(self, transpiler):
        output = transpiler.transpile("model A {\n  run forever create() {}\n}")
        assert "  static create() {}" in output

    def test_constructor(self, transpiler):
        output = transpiler.transpile("model A {\n  run __init__(x) {\n    self.x = x;\n  }\n}")
        assert "  constructor(x) {" in output
        assert "this.x = x;" in output

    def test_exported_function(self, transpiler):
        assert transpiler.transpile("share run helper() {}") == "export function helper() {}"
        assert transpiler.transpile("share done run main() {}") == "export default function main() {}"

    def test_anonymous_function(self, transpiler):
        assert transpiler.transpile("fixed f = run (x) {};") == "const f = function (x) {};"

    def test_anonymous_async_function_at_line_start(self, transpiler):
        assert transpiler.transpile("run later (x) {\n}") == "async function (x) {\n}"

    def test_anonymous_async_callback_on_own_line(self, transpiler):
        source = "promise.then(\n    run later (x) {\n        hold x;\n    }\n);"
        output = transpiler.transpile(source)

        assert "\n    async function (x) {\n" in output
        assert "await x;" in output

    def test_super_constructor_call(self, transpiler):
        output = transpiler.transpile("    parent.__init__(name);")
        assert output == "    super(name);"


class TestPasses:
    """Test the delete, phrase and fixup passes."""

    def test_delete_property(self, transpiler):
        assert transpiler.transpile("remove obj.key;") == "delete obj.key;"

    def test_delete_index(self, transpiler):
        assert transpiler.transpile("remove cache[id];") == "delete cache[id];"

    def test_namespace_import_phrase(self, transpiler):
        output = transpiler.transpile('use everything as utils from "./utils";')
        assert output == 'import * as utils from "./utils";'

    def test_phrase_not_split_into_words(self, transpiler):
        output = transpiler.transpile("fixed all = hold all([a, b]);")
        assert "await Promise.all([a, b])" in output

    def test_else_if_phrases(self, transpiler):
        assert transpiler.transpile("} orwhatever (x) {") == "} else if (x) {"
        assert transpiler.transpile("} otherwise whatever (x) {") == "} else if (x) {"

    def test_default_import(self, transpiler):
        output = transpiler.transpile('use done as React from "react";')
        assert output == 'import React from "react";'

    def test_collapse_spaces(self, transpiler):
        assert transpiler.transpile("fixed  x = 1;") == "const x = 1;"

    def test_indentation_preserved(self, transpiler):
        assert transpiler.transpile("        fixed x = 1;") == "        const x = 1;"

    def test_pass_counts(self, transpiler):
        result = transpiler.transpile_with_stats("fixed x = yes;")
        assert result.pass_counts == {"word:fixed": 1, "word:yes": 1}
        assert result.total_rewrites == 2


class TestLiteralProtection:
    """Test that strings, comments and member names are left alone."""

    def test_strings_untouched(self, transpiler):
        output = transpiler.transpile('speak.say("whatever you say");')
        assert output == 'console.log("whatever you say");'

    def test_comments_untouched(self, transpiler):
        output = transpiler.transpile("fixed x = 1; // otherwise fixed")
        assert output == "const x = 1; // otherwise fixed"

    def test_template_expressions_rewritten(self, transpiler):
        output = transpiler.transpile("speak.say(`${yes}`);")
        assert output == "console.log(`${true}`);"

    def test_template_text_untouched(self, transpiler):
        output = transpiler.transpile("speak.say(`Is it done? yes ${n}`);")
        assert output == "console.log(`Is it done? yes ${n}`);"

    def test_protection_can_be_disabled(self):
        raw = ForwardTranspiler(protect_literals=False)
        assert raw.transpile('say("whatever")') == 'log("if")'

    def test_member_access_not_rewritten(self, transpiler):
        assert transpiler.transpile("fixed data = res.json();") == "const data = res.json();"

    def test_spread_still_rewritten(self, transpiler):
        assert transpiler.transpile("fixed copy = [...list];") == "const copy = [...Array];"


class TestCanonicalSource:
    """Test that canonical source passes through unchanged."""

    def test_idempotent_on_canonical(self, transpiler):
        source = "const x = 1;\nif (x > 0) {\n  return x;\n}\n"
        assert transpiler.transpile(source) == source

    def test_transpile_twice_is_stable(self, transpiler):
        once = transpiler.transpile("fixed x = yes;\nwhatever (x) { speak.say(x); }")
        assert transpiler.transpile(once) == once


class TestOptions:
    """Test TranspileOptions and pattern construction."""

    def test_default_options(self):
        options = TranspileOptions()
        assert options.target is TargetVariant.TYPESCRIPT
        assert options.output_extension == ".ts"
        assert not options.skip_type_check

    def test_javascript_extension(self):
        assert TranspileOptions(target=TargetVariant.JAVASCRIPT).output_extension == ".js"

    def test_bad_pattern_is_transpile_error(self):
        with pytest.raises(NullScriptTranspileError):
            compile_pattern("(unclosed")

    def test_pass_order(self, transpiler):
        names = transpiler.pass_names
        assert names.index("function") < names.index("delete")
        assert names.index("delete") < names.index("phrase:use everything as")
        assert names.index("phrase:use everything as") < names.index("word:use")
        assert names[-1] == "collapse-spaces"
