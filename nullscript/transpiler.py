"""
Forward transpiler: NullScript → TypeScript/JavaScript.

The transpiler is an ordered list of whole-text rewrite passes. Each pass
runs to completion before the next starts, and later passes rely on the
shape earlier passes leave behind:

1. Function declarations (async, static, plain, constructor). Indentation
   decides the emitted form: a header at column 0 becomes a top-level
   `function`, an indented header becomes a bare class method.
2. Delete expressions (`remove obj.key` → `delete obj.key`).
3. Multi-word phrases (`orwhatever`, `use everything as`, ...), before any
   of their words can be rewritten on their own.
4. Generic single-word aliases, in table order.
5. Cosmetic fixups (super constructor calls, default imports, doubled
   spaces).

String literals and comments are masked for the duration of the passes.
The transform never inspects semantics; the external compiler judges the
result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Callable, Union

from .errors import NullScriptTranspileError
from .keywords import KeywordEntry, KeywordTable, get_default_table
from .masking import MaskRegistry, mask_text, unmask_text, validate_placeholders

logger = logging.getLogger("nullscript.transpiler")

IDENT = r"[A-Za-z_$][\w$]*"

# Identifier boundaries: `$` and `_` are word characters in JavaScript.
BEFORE = r"(?<![\w$])"
AFTER = r"(?![\w$])"
# Not a member access (`obj.json`), while still allowing spread (`...list`).
NOT_MEMBER = r"(?<!(?<!\.)\.)"


class TargetVariant(Enum):
    TYPESCRIPT = "ts"
    JAVASCRIPT = "js"

    @property
    def extension(self) -> str:
        return f".{self.value}"


@dataclass(frozen=True)
class TranspileOptions:
    """Per-invocation options.

    They never change the rewrite rules; callers use them to decide which
    file to write and whether to run the external type checker.
    """
    target: TargetVariant = TargetVariant.TYPESCRIPT
    skip_type_check: bool = False

    @property
    def output_extension(self) -> str:
        return self.target.extension


Replacement = Union[str, Callable[[re.Match], str]]


@dataclass(frozen=True)
class RewritePass:
    """One named regex substitution over the whole text."""
    name: str
    pattern: re.Pattern
    replacement: Replacement

    def apply(self, text: str) -> tuple[str, int]:
        return self.pattern.subn(self.replacement, text)


@dataclass
class TranspileResult:
    """Output plus per-pass substitution counts."""
    output: str
    pass_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_rewrites(self) -> int:
        return sum(self.pass_counts.values())


def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern:
    """Compile a rewrite pattern, surfacing failures as NullScriptTranspileError."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise NullScriptTranspileError(
            f"Internal error: could not build rewrite pattern {pattern!r}: {exc}",
            hint="This is a bug in the keyword table, not in your code.",
        ) from exc


def literal(text: str) -> Callable[[re.Match], str]:
    """Replacement that inserts text verbatim (no backslash processing)."""
    return lambda _match: text


def word_pattern(words: list[str]) -> str:
    """Identifier-bounded pattern for one or more whitespace-separated words."""
    return BEFORE + r"\s+".join(re.escape(w) for w in words) + AFTER


# ============================================================================
# Forward Transpiler
# ============================================================================

class ForwardTranspiler:
    """Rewrites NullScript source into canonical TypeScript/JavaScript.

    Instances are immutable after construction and safe to share between
    threads; every call works on its own strings and mask registry.
    """

    def __init__(self, table: KeywordTable | None = None, protect_literals: bool = True):
        self.table = table or get_default_table()
        self.protect_literals = protect_literals
        self.passes: tuple[RewritePass, ...] = tuple(self._build_passes())
        logger.debug(f"Built {len(self.passes)} forward passes")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transpile(self, source: str) -> str:
        """Rewrite NullScript source. Always returns a string for valid patterns."""
        return self.transpile_with_stats(source).output

    def transpile_with_stats(self, source: str) -> TranspileResult:
        registry = MaskRegistry()
        text = mask_text(source, registry) if self.protect_literals else source
        masked = text

        counts: dict[str, int] = {}
        for rewrite in self.passes:
            try:
                text, count = rewrite.apply(text)
            except (re.error, IndexError) as exc:
                raise NullScriptTranspileError(
                    f"Internal error in rewrite pass '{rewrite.name}': {exc}"
                ) from exc
            if count:
                counts[rewrite.name] = counts.get(rewrite.name, 0) + count

        missing = validate_placeholders(masked, text)
        if missing:
            raise NullScriptTranspileError(
                f"Internal error: rewrite passes damaged protected literals {missing}"
            )

        output = unmask_text(text, registry)
        logger.debug(f"Forward transpile: {sum(counts.values())} rewrites across {len(counts)} passes")
        return TranspileResult(output=output, pass_counts=counts)

    @property
    def pass_names(self) -> list[str]:
        return [p.name for p in self.passes]

    # ------------------------------------------------------------------
    # Pass construction
    # ------------------------------------------------------------------

    def _build_passes(self) -> list[RewritePass]:
        passes: list[RewritePass] = []
        passes.extend(self._function_passes())
        passes.extend(self._delete_passes())
        passes.extend(self._phrase_passes())
        passes.extend(self._single_word_passes())
        passes.extend(self._fixup_passes())
        return passes

    def _function_passes(self) -> list[RewritePass]:
        forms = {e.canonical: e for e in self.table.function_form_pairs()}
        alias = self.table.alias_for
        export = re.escape(alias("export") or "export")
        default = re.escape(alias("default") or "default")
        # Optional `share` / `share done` prefix, kept verbatim for the generic pass.
        lead = rf"(?P<lead>(?:{export}\s+(?:{default}\s+)?)?)"
        header = rf"(?m)^(?P<indent>[ \t]*){lead}"

        passes = []

        def declaration(name: str, form: KeywordEntry, top_level: str, member: str) -> RewritePass:
            words = r"\s+".join(re.escape(w) for w in form.words)
            size = len(form.words)
            # `run later (x)` is an anonymous async function, not a function named `later`
            followers = [
                re.escape(other.words[size])
                for other in forms.values()
                if len(other.words) > size and other.words[:size] == form.words
            ]
            guard = rf"(?!(?:{'|'.join(followers)})\s*\()" if followers else ""

            def replace(match: re.Match) -> str:
                keyword = member if match.group("indent") else top_level
                return f"{match.group('indent')}{match.group('lead')}{keyword}{match.group('name')}("

            return RewritePass(
                name,
                compile_pattern(rf"{header}{words}\s+{guard}(?P<name>{IDENT})\s*\("),
                replace,
            )

        if "async function" in forms:
            passes.append(declaration("async-function", forms["async function"], "async function ", "async "))
        if "static" in forms:
            passes.append(declaration("static-method", forms["static"], "static ", "static "))
        if "function" in forms:
            passes.append(declaration("function", forms["function"], "function ", ""))
        if "constructor" in forms:
            run = forms.get("function")
            optional_run = rf"(?:{re.escape(run.alias)}\s+)?" if run else ""
            passes.append(RewritePass(
                "constructor",
                compile_pattern(
                    rf"(?m)^(?P<indent>[ \t]*){optional_run}{re.escape(forms['constructor'].alias)}\s*\("
                ),
                lambda m: f"{m.group('indent')}constructor(",
            ))

        # Leftover multi-word forms (e.g. anonymous `run later (x) {`).
        for form in forms.values():
            if form.is_phrase:
                passes.append(RewritePass(
                    f"{form.canonical}-fallback",
                    compile_pattern(word_pattern(form.words)),
                    literal(form.canonical),
                ))
        return passes

    def _delete_passes(self) -> list[RewritePass]:
        remove = self.table.alias_for("delete")
        if not remove:
            return []
        operand = rf"{IDENT}(?:\s*(?:\?\.|\.)\s*{IDENT}|\[[^\]\n]*\])*"
        return [RewritePass(
            "delete",
            compile_pattern(rf"{BEFORE}{re.escape(remove)}\s+(?P<operand>{operand})"),
            lambda m: f"delete {m.group('operand')}",
        )]

    def _phrase_passes(self) -> list[RewritePass]:
        # Longer phrases first so "otherwise whatever" wins over any shorter overlap.
        phrases = sorted(self.table.phrase_pairs(), key=lambda e: -len(e.words))
        return [
            RewritePass(
                f"phrase:{entry.alias}",
                compile_pattern(word_pattern(entry.words)),
                literal(entry.canonical),
            )
            for entry in phrases
        ]

    def _single_word_passes(self) -> list[RewritePass]:
        entries = self.table.single_word_pairs() + [
            e for e in self.table.function_form_pairs() if not e.is_phrase
        ]
        passes = []
        for entry in entries:
            guard = NOT_MEMBER if entry.is_identifier_like else ""
            passes.append(RewritePass(
                f"word:{entry.alias}",
                compile_pattern(guard + word_pattern(entry.words)),
                literal(entry.canonical),
            ))
        return passes

    def _fixup_passes(self) -> list[RewritePass]:
        return [
            RewritePass(
                "super-constructor",
                compile_pattern(r"\bsuper\s*\.\s*constructor\s*\("),
                literal("super("),
            ),
            RewritePass(
                "default-import",
                compile_pattern(rf"\bimport\s+default\s+as\s+({IDENT})"),
                lambda m: f"import {m.group(1)}",
            ),
            RewritePass(
                "collapse-spaces",
                compile_pattern(r"(?<=\S) {2,}"),
                literal(" "),
            ),
        ]


@lru_cache(maxsize=1)
def default_transpiler() -> ForwardTranspiler:
    """Process-wide transpiler over the built-in table."""
    return ForwardTranspiler()


def transpile(source: str) -> str:
    """Transpile with the built-in keyword table."""
    return default_transpiler().transpile(source)
