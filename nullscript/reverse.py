"""
Reverse transpiler: JavaScript/TypeScript → NullScript.

Used by `nsc convert` to migrate existing code. The pass list mirrors the
forward transpiler in the opposite direction, with extra passes for
canonical-only shapes (source-map comments, method headers, operators).
Conversion is best-effort: the output is not validated here; the quality
scorer reports on it instead.

Where several aliases share one canonical token, the inverse table picks
the alias from the lowest-index category, then the earliest table entry.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from .errors import NullScriptTranspileError
from .keywords import KeywordTable, get_default_table
from .masking import MaskRegistry, mask_text, unmask_text
from .transpiler import (
    IDENT,
    NOT_MEMBER,
    RewritePass,
    TranspileResult,
    compile_pattern,
    literal,
)

logger = logging.getLogger("nullscript.reverse")

SOURCE_MAP_PATTERN = re.compile(r"(?m)^[ \t]*//# sourceMappingURL=.*(?:\n|$)")

# Words that may precede `(...) {` at the start of an indented line
# without being a method declaration.
_NOT_METHODS = (
    "if", "for", "while", "switch", "catch", "with", "return", "function",
    "else", "do", "try", "super", "await", "new", "typeof", "delete", "void",
    "yield", "throw", "constructor", "get", "set", "static", "async",
)

# Canonical words handled by dedicated passes instead of the generic one.
_CONTEXTUAL = frozenset({"get", "set"})


class ReverseTranspiler:
    """Rewrites canonical TypeScript/JavaScript into NullScript."""

    def __init__(self, table: KeywordTable | None = None, protect_literals: bool = True):
        self.table = table or get_default_table()
        self.protect_literals = protect_literals
        self.inverse = {canonical: entry.alias for canonical, entry in self.table.inverse().items()}
        self.passes: tuple[RewritePass, ...] = tuple(self._build_passes())
        logger.debug(f"Built {len(self.passes)} reverse passes")

    def reverse_transpile(self, canonical_source: str) -> str:
        return self.reverse_transpile_with_stats(canonical_source).output

    def reverse_transpile_with_stats(self, canonical_source: str) -> TranspileResult:
        text = SOURCE_MAP_PATTERN.sub("", canonical_source)
        registry = MaskRegistry()
        if self.protect_literals:
            text = mask_text(text, registry)

        counts: dict[str, int] = {}
        for rewrite in self.passes:
            try:
                text, count = rewrite.apply(text)
            except (re.error, IndexError) as exc:
                raise NullScriptTranspileError(
                    f"Internal error in reverse pass '{rewrite.name}': {exc}"
                ) from exc
            if count:
                counts[rewrite.name] = counts.get(rewrite.name, 0) + count

        logger.debug(f"Reverse transpile: {sum(counts.values())} rewrites")
        return TranspileResult(output=unmask_text(text, registry), pass_counts=counts)

    def _alias(self, canonical: str) -> str:
        return self.inverse.get(canonical, canonical)

    # ------------------------------------------------------------------
    # Pass construction
    # ------------------------------------------------------------------

    def _build_passes(self) -> list[RewritePass]:
        passes: list[RewritePass] = []
        passes.extend(self._declaration_passes())
        passes.extend(self._phrase_passes())
        passes.append(RewritePass(
            "delete",
            compile_pattern(r"(?<![\w$.])delete\s+"),
            literal(f"{self._alias('delete')} "),
        ))
        passes.extend(self._operator_passes())
        passes.extend(self._member_passes())
        passes.extend(self._word_passes())
        passes.extend([
            RewritePass("collapse-spaces", compile_pattern(r"(?<=\S) {2,}"), literal(" ")),
            RewritePass("trailing-spaces", compile_pattern(r"(?m)[ \t]+$"), literal("")),
        ])
        return passes

    def _declaration_passes(self) -> list[RewritePass]:
        run = self._alias("function")
        run_later = self._alias("async function")
        model = self._alias("class")
        inherits = self._alias("extends")
        lead = r"(?P<lead>(?:export\s+(?:default\s+)?)?)"
        not_method = "|".join(_NOT_METHODS)

        def header(keyword: str):
            return lambda m: f"{m.group('indent')}{m.group('lead')}{keyword} {m.group('name')}("

        def member(keyword: str):
            return lambda m: f"{m.group('indent')}{keyword} {m.group('name')}("

        return [
            RewritePass(
                "async-function",
                compile_pattern(rf"(?m)^(?P<indent>[ \t]*){lead}async\s+function\s+(?P<name>{IDENT})\s*\("),
                header(run_later),
            ),
            RewritePass(
                "function",
                compile_pattern(rf"(?m)^(?P<indent>[ \t]*){lead}function\s+(?P<name>{IDENT})\s*\("),
                header(run),
            ),
            RewritePass(
                "class-extends",
                compile_pattern(rf"(?<![\w$.])class\s+({IDENT})\s+extends\s+"),
                lambda m: f"{model} {m.group(1)} {inherits} ",
            ),
            RewritePass(
                "class",
                compile_pattern(rf"(?<![\w$.])class\s+(?={IDENT})"),
                literal(f"{model} "),
            ),
            RewritePass(
                "static-method",
                compile_pattern(rf"(?m)^(?P<indent>[ \t]+)static\s+(?P<name>{IDENT})\s*\("),
                member(self._function_alias("static")),
            ),
            RewritePass(
                "async-method",
                compile_pattern(rf"(?m)^(?P<indent>[ \t]+)async\s+(?P<name>{IDENT})\s*\("),
                member(run_later),
            ),
            RewritePass(
                "constructor",
                compile_pattern(r"(?m)^(?P<indent>[ \t]+)constructor\s*\("),
                lambda m: f"{m.group('indent')}{run} {self._alias('constructor')}(",
            ),
            RewritePass(
                "accessor",
                compile_pattern(rf"(?m)^(?P<indent>[ \t]+)(?P<kind>get|set)\s+(?P<name>{IDENT})\s*\("),
                lambda m: f"{m.group('indent')}{self._alias(m.group('kind'))} {m.group('name')}(",
            ),
            RewritePass(
                "method",
                compile_pattern(
                    rf"(?m)^(?P<indent>[ \t]+)(?!(?:{not_method})(?![\w$]))"
                    rf"(?P<name>{IDENT})\s*\((?P<params>[^()\n]*)\)\s*\{{"
                ),
                lambda m: f"{m.group('indent')}{run} {m.group('name')}({m.group('params')}) {{",
            ),
        ]

    def _function_alias(self, canonical: str) -> str:
        for entry in self.table.function_form_pairs():
            if entry.canonical == canonical:
                return entry.alias
        return self._alias(canonical)

    def _phrase_passes(self) -> list[RewritePass]:
        passes = []
        for canonical, alias in self.inverse.items():
            words = canonical.split()
            if len(words) < 2:
                continue
            pattern = r"(?<![\w$.])" + r"\s+".join(re.escape(w) for w in words) + r"(?![\w$])"
            passes.append(RewritePass(f"phrase:{canonical}", compile_pattern(pattern), literal(alias)))
        return passes

    def _operator_passes(self) -> list[RewritePass]:
        # Longest operators first; `!` only when it is not part of `!=`/`!==`.
        return [
            RewritePass("op:===", compile_pattern(r"[ \t]*===[ \t]*"), literal(f" {self._alias('===')} ")),
            RewritePass("op:!==", compile_pattern(r"[ \t]*!==[ \t]*"), literal(f" {self._alias('!==')} ")),
            RewritePass("op:&&", compile_pattern(r"[ \t]*&&(?!=)[ \t]*"), literal(f" {self._alias('&&')} ")),
            RewritePass("op:||", compile_pattern(r"[ \t]*\|\|(?!=)[ \t]*"), literal(f" {self._alias('||')} ")),
            RewritePass("op:!", compile_pattern(r"!(?!=)[ \t]*"), literal(f"{self._alias('!')} ")),
        ]

    def _member_passes(self) -> list[RewritePass]:
        passes = []
        for canonical, entry in self.table.inverse().items():
            if not entry.receiver:
                continue
            passes.append(RewritePass(
                f"member:{entry.receiver}.{canonical}",
                compile_pattern(
                    rf"(?<![\w$.])({re.escape(entry.receiver)}\s*\.\s*){re.escape(canonical)}(?![\w$])"
                ),
                lambda m, alias=entry.alias: f"{m.group(1)}{alias}",
            ))
        return passes

    def _word_passes(self) -> list[RewritePass]:
        passes = []
        for canonical, entry in self.table.inverse().items():
            if entry.receiver or not entry.is_word_like or canonical in _CONTEXTUAL:
                continue
            guard = NOT_MEMBER if entry.is_identifier_like else ""
            passes.append(RewritePass(
                f"word:{canonical}",
                compile_pattern(rf"{guard}(?<![\w$]){re.escape(canonical)}(?![\w$])"),
                literal(entry.alias),
            ))
        return passes


@lru_cache(maxsize=1)
def default_reverse_transpiler() -> ReverseTranspiler:
    return ReverseTranspiler()


def reverse_transpile(canonical_source: str) -> str:
    """Convert JavaScript/TypeScript to NullScript with the built-in table."""
    return default_reverse_transpiler().reverse_transpile(canonical_source)
