"""
Keyword table for the NullScript dialect.

This module handles:
- The static alias ↔ canonical vocabulary, grouped by category
- The derived views the rewrite pipelines need (single words,
  function-declaration forms, multi-word phrases)
- The deterministic inverse mapping used for reverse transpilation
- The forbidden canonical forms the validator rejects

Design Philosophy:
- The table is immutable after construction and shared process-wide
- One authoritative, versioned vocabulary (no merging of historical tables)
- Category order doubles as the inverse-mapping priority
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Iterator


KEYWORD_TABLE_VERSION = "2"


class Category(Enum):
    """Keyword categories, listed in precedence order."""
    CONTROL_FLOW = "control-flow"
    ERROR_HANDLING = "error-handling"
    VARIABLE_DECLARATION = "variable-declaration"
    IMPORT_EXPORT = "import-export"
    TYPE_LIKE_FORBIDDEN_FORMS = "type-like-forbidden-forms"
    LITERAL_VALUES = "literal-values"
    OBJECT_AND_CONTEXT = "object-and-context"
    OPERATORS = "operators"
    BUILT_IN_OBJECTS = "built-in-objects"
    GLOBAL_FUNCTIONS = "global-functions"
    FUNCTION_DECLARATION_FORMS = "function-declaration-forms"
    MULTI_WORD_PHRASES = "multi-word-phrases"

    @property
    def title(self) -> str:
        return _CATEGORY_TITLES[self]

    @property
    def precedence(self) -> int:
        """Lower wins when several aliases share a canonical token."""
        return list(Category).index(self)

    @classmethod
    def from_name(cls, name: str) -> Category | None:
        """Resolve 'control-flow', 'control_flow' or 'Control Flow'."""
        key = name.strip().lower().replace("_", "-").replace(" ", "-")
        for category in cls:
            if category.value == key or category.title.lower().replace(" ", "-") == key:
                return category
        return None


_CATEGORY_TITLES = {
    Category.CONTROL_FLOW: "Control Flow",
    Category.ERROR_HANDLING: "Error Handling",
    Category.VARIABLE_DECLARATION: "Variable Declarations",
    Category.IMPORT_EXPORT: "Import/Export",
    Category.TYPE_LIKE_FORBIDDEN_FORMS: "Forbidden Type Forms",
    Category.LITERAL_VALUES: "Values",
    Category.OBJECT_AND_CONTEXT: "Object and Context",
    Category.OPERATORS: "Operators and Expressions",
    Category.BUILT_IN_OBJECTS: "Built-in Objects",
    Category.GLOBAL_FUNCTIONS: "Global Functions",
    Category.FUNCTION_DECLARATION_FORMS: "Function Declarations",
    Category.MULTI_WORD_PHRASES: "Multi-word Aliases",
}

# Categories whose aliases behave like plain identifiers (object and
# function names), as opposed to language keywords.
_IDENTIFIER_CATEGORIES = frozenset({
    Category.BUILT_IN_OBJECTS,
    Category.GLOBAL_FUNCTIONS,
})


class Direction(Enum):
    FORWARD = "forward"  # dialect → canonical
    REVERSE = "reverse"  # canonical → dialect


@dataclass(frozen=True)
class KeywordEntry:
    """A single alias → canonical pairing.

    Attributes:
        alias: Dialect token (may be several words for phrases)
        canonical: Canonical TypeScript/JavaScript token
        category: Category controlling pass order and inverse priority
        receiver: Canonical object the token is a member of ("console"),
            empty for free-standing tokens
        notes: Short description shown by `nsc keywords`
    """
    alias: str
    canonical: str
    category: Category
    receiver: str = ""
    notes: str = ""

    @property
    def words(self) -> list[str]:
        return self.alias.split()

    @property
    def is_phrase(self) -> bool:
        return len(self.words) > 1

    @property
    def is_word_like(self) -> bool:
        """True when the canonical side is a single identifier-shaped word."""
        return _WORD.fullmatch(self.canonical) is not None

    @property
    def is_identifier_like(self) -> bool:
        """Object/function names that must not be touched after a `.`."""
        return self.category in _IDENTIFIER_CATEGORIES and not self.receiver


@dataclass(frozen=True)
class ForbiddenForm:
    """A canonical-language construct with no legitimate dialect use.

    Attributes:
        token: What is reported to the user
        pattern: Regex searched in comment- and string-free code
        description: Why the construct is rejected
        hint: Dialect replacement or corrective advice
    """
    token: str
    pattern: str
    description: str
    hint: str

    @cached_property
    def regex(self) -> re.Pattern:
        return re.compile(self.pattern)


_WORD = re.compile(r"[A-Za-z_$][\w$]*")


@dataclass(frozen=True)
class KeywordTable:
    """The bidirectional NullScript vocabulary.

    The table supports:
    - Alias lookup (alias → canonical) and reverse lookup
    - Category views for display and pass construction
    - A deterministic inverse that resolves shared canonical tokens
      by category precedence, then by table order
    """
    entries: tuple[KeywordEntry, ...] = ()
    forbidden: tuple[ForbiddenForm, ...] = ()
    name: str = "nullscript"
    version: str = KEYWORD_TABLE_VERSION

    def __post_init__(self) -> None:
        seen: set[tuple[Category, str]] = set()
        for entry in self.entries:
            key = (entry.category, entry.alias)
            if key in seen:
                raise ValueError(
                    f"Duplicate alias '{entry.alias}' in category {entry.category.value}"
                )
            seen.add(key)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[KeywordEntry]:
        return iter(self.entries)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, alias: str) -> str | None:
        """Canonical token for a dialect alias, or None when unknown."""
        entry = self._by_alias.get(alias)
        return entry.canonical if entry else None

    def alias_for(self, canonical: str) -> str | None:
        """Preferred dialect alias for a canonical token, or None."""
        entry = self.inverse().get(canonical)
        return entry.alias if entry else None

    def entry_for(self, canonical: str) -> KeywordEntry:
        """Like alias_for, but returns the entry and raises if absent."""
        entry = self.inverse().get(canonical)
        if entry is None:
            raise KeyError(f"No alias maps to '{canonical}'")
        return entry

    def pairs(self, direction: Direction = Direction.FORWARD) -> list[tuple[str, str]]:
        """(source_token, target_token) pairs for a rewrite direction."""
        if direction is Direction.FORWARD:
            return [(e.alias, e.canonical) for e in self.entries]
        return [(canonical, e.alias) for canonical, e in self.inverse().items()]

    # ------------------------------------------------------------------
    # Views used by the pipelines
    # ------------------------------------------------------------------

    def single_word_pairs(self) -> list[KeywordEntry]:
        """Single-word aliases, excluding function-declaration forms and phrases."""
        excluded = (Category.FUNCTION_DECLARATION_FORMS, Category.MULTI_WORD_PHRASES)
        return [
            e for e in self.entries
            if not e.is_phrase and e.category not in excluded
        ]

    def function_form_pairs(self) -> list[KeywordEntry]:
        return self.by_category(Category.FUNCTION_DECLARATION_FORMS)

    def phrase_pairs(self) -> list[KeywordEntry]:
        """Phrase aliases, including single-token ones for multi-word canonicals."""
        return self.by_category(Category.MULTI_WORD_PHRASES)

    def by_category(self, category: Category) -> list[KeywordEntry]:
        return [e for e in self.entries if e.category is category]

    def categories(self) -> list[Category]:
        """Categories that hold at least one alias, in precedence order."""
        present = {e.category for e in self.entries}
        return [c for c in Category if c in present]

    def reserved_words(self) -> frozenset[str]:
        """Single-token aliases that may not be used as identifiers."""
        return frozenset(e.alias for e in self.entries if not e.is_phrase)

    def forbidden_forms(self) -> tuple[ForbiddenForm, ...]:
        return self.forbidden

    def inverse(self) -> dict[str, KeywordEntry]:
        """canonical → winning entry, ordered by category precedence."""
        return self._inverse

    @cached_property
    def _inverse(self) -> dict[str, KeywordEntry]:
        ranked = sorted(
            enumerate(self.entries),
            key=lambda item: (item[1].category.precedence, item[0]),
        )
        inverse: dict[str, KeywordEntry] = {}
        for _, entry in ranked:
            inverse.setdefault(entry.canonical, entry)
        return inverse

    @cached_property
    def _by_alias(self) -> dict[str, KeywordEntry]:
        by_alias: dict[str, KeywordEntry] = {}
        for entry in self.entries:
            by_alias.setdefault(entry.alias, entry)
        return by_alias

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def check_consistency(self) -> list[str]:
        """Report table properties the rewrite passes rely on.

        Returns:
            List of problems (empty when the table is sound)
        """
        problems = []
        canonical_words = {e.canonical for e in self.entries}
        for entry in self.entries:
            if entry.alias == entry.canonical:
                problems.append(f"identity pair '{entry.alias}'")
            for word in entry.words:
                if word in canonical_words and not entry.is_phrase:
                    problems.append(f"alias '{word}' is also a canonical token")
        return problems

    def to_dict(self) -> dict[str, str]:
        """Convert to simple dict (alias → canonical)."""
        return {e.alias: e.canonical for e in self.entries}


# ============================================================================
# Built-in Vocabulary
# ============================================================================

_TYPE_NAME = r"(?:string|number|boolean|any|unknown|void|never|object|[A-Z][\w$]*)(?:\[\])?"


def _keyword_form(token: str, replacement: str | None, description: str) -> ForbiddenForm:
    hint = (
        f"Use '{replacement}' instead of '{token}'."
        if replacement
        else f"Remove '{token}': NullScript has no equivalent."
    )
    return ForbiddenForm(
        token=token,
        pattern=rf"(?<![\w$]){re.escape(token)}(?![\w$])",
        description=description,
        hint=hint,
    )


def _build_forbidden_forms() -> tuple[ForbiddenForm, ...]:
    forms = [
        _keyword_form("function", "run", "using 'function' instead of 'run'"),
        _keyword_form("const", "fixed", "using 'const' instead of 'fixed'"),
        _keyword_form("if", "whatever", "using 'if' instead of 'whatever'"),
        _keyword_form("else", "otherwise", "using 'else' instead of 'otherwise'"),
        _keyword_form("class", "model", "using 'class' instead of 'model'"),
        _keyword_form("try", "test", "using 'try' instead of 'test'"),
        _keyword_form("catch", "grab", "using 'catch' instead of 'grab'"),
        _keyword_form("finally", "atLast", "using 'finally' instead of 'atLast'"),
        _keyword_form("true", "yes", "using 'true' instead of 'yes'"),
        _keyword_form("false", "no", "using 'false' instead of 'no'"),
    ]
    for token in (
        "interface", "enum", "namespace", "declare", "abstract", "implements",
        "public", "private", "protected", "readonly",
        "satisfies", "asserts", "infer", "keyof",
    ):
        forms.append(_keyword_form(token, None, f"TypeScript keyword '{token}' is not allowed"))
    for token in (
        "Partial", "Required", "Readonly", "Record", "Pick", "Omit",
        "Exclude", "Extract", "NonNullable", "ReturnType", "InstanceType",
        "Parameters", "ConstructorParameters", "ThisType",
    ):
        forms.append(_keyword_form(token, None, f"TypeScript utility type '{token}' is not allowed"))

    forms.extend([
        ForbiddenForm(
            token=": <type>",
            pattern=rf"\b(?:fixed|let|var)\s+[A-Za-z_$][\w$]*\s*:\s*{_TYPE_NAME}",
            description="type annotation on a variable declaration",
            hint="Drop the ': type' part; NullScript infers types.",
        ),
        ForbiddenForm(
            token=": <type>",
            pattern=rf"\brun\s+(?:later\s+|forever\s+)?[A-Za-z_$][\w$]*\s*\(\s*(?:[^)]*,\s*)?[A-Za-z_$][\w$]*\??\s*:\s*{_TYPE_NAME}",
            description="type annotation on a function parameter",
            hint="Drop the ': type' part from the parameter list.",
        ),
        ForbiddenForm(
            token="): <type>",
            pattern=rf"\)\s*:\s*{_TYPE_NAME}(?:\s*\|\s*{_TYPE_NAME})*\s*\{{",
            description="return type annotation",
            hint="Drop the return type; NullScript infers types.",
        ),
        ForbiddenForm(
            token="<T>",
            pattern=rf"<\s*{_TYPE_NAME}(?:\s*,\s*{_TYPE_NAME})*\s*>",
            description="generic type arguments",
            hint="Remove the angle-bracket type arguments.",
        ),
        ForbiddenForm(
            token="as <type>",
            pattern=r"\bas\s+(?:string|number|boolean|any|unknown|const)\b",
            description="type assertion",
            hint="Remove the 'as <type>' assertion.",
        ),
        ForbiddenForm(
            token="@decorator",
            pattern=r"^\s*@[A-Za-z_$][\w$]*",
            description="decorator syntax",
            hint="Call the wrapping function explicitly instead of decorating.",
        ),
    ])
    return tuple(forms)


def _build_entries() -> tuple[KeywordEntry, ...]:
    C = Category
    rows: list[tuple] = [
        # ===== Control Flow =====
        ("whatever", "if", C.CONTROL_FLOW, "", "Run code when a condition holds"),
        ("otherwise", "else", C.CONTROL_FLOW, "", "Fallback branch"),
        ("since", "for", C.CONTROL_FLOW, "", "Loop over a range or items"),
        ("when", "while", C.CONTROL_FLOW, "", "Loop while a condition holds"),
        ("done", "default", C.CONTROL_FLOW, "", "Fallback switch case / default export"),
        ("stop", "break", C.CONTROL_FLOW, "", "Leave a loop or switch"),
        ("keepgoing", "continue", C.CONTROL_FLOW, "", "Skip to the next iteration"),
        ("pause", "yield", C.CONTROL_FLOW, "", "Yield from a generator"),
        ("using", "with", C.CONTROL_FLOW, "", "Use an object as scope"),
        ("freeze", "debugger", C.CONTROL_FLOW, "", "Debugger breakpoint"),

        # ===== Error Handling =====
        ("test", "try", C.ERROR_HANDLING, "", "Attempt code that might throw"),
        ("grab", "catch", C.ERROR_HANDLING, "", "Handle a thrown error"),
        ("atLast", "finally", C.ERROR_HANDLING, "", "Always run after test/grab"),
        ("trigger", "throw", C.ERROR_HANDLING, "", "Throw an error"),

        # ===== Variable Declarations =====
        ("fixed", "const", C.VARIABLE_DECLARATION, "", "Value that cannot change"),

        # ===== Import/Export =====
        ("share", "export", C.IMPORT_EXPORT, "", "Expose code to other modules"),
        ("use", "import", C.IMPORT_EXPORT, "", "Bring in code from another module"),

        # ===== Values =====
        ("yes", "true", C.LITERAL_VALUES, "", "Boolean true"),
        ("no", "false", C.LITERAL_VALUES, "", "Boolean false"),
        ("nothing", "void", C.LITERAL_VALUES, "", "Evaluate and discard"),

        # ===== Object and Context =====
        ("fresh", "new", C.OBJECT_AND_CONTEXT, "", "Create an instance"),
        ("self", "this", C.OBJECT_AND_CONTEXT, "", "Current instance"),
        ("parent", "super", C.OBJECT_AND_CONTEXT, "", "Parent class"),
        ("model", "class", C.OBJECT_AND_CONTEXT, "", "Declare a class"),
        ("remove", "delete", C.OBJECT_AND_CONTEXT, "", "Remove a property"),
        ("inherits", "extends", C.OBJECT_AND_CONTEXT, "", "Inherit from a class"),
        ("later", "async", C.OBJECT_AND_CONTEXT, "", "Mark a function asynchronous"),
        ("hold", "await", C.OBJECT_AND_CONTEXT, "", "Wait for a promise"),
        ("forever", "static", C.OBJECT_AND_CONTEXT, "", "Class-level member"),
        ("getter", "get", C.OBJECT_AND_CONTEXT, "", "Property getter"),
        ("setter", "set", C.OBJECT_AND_CONTEXT, "", "Property setter"),

        # ===== Operators =====
        ("is", "===", C.OPERATORS, "", "Strict equality"),
        ("isnt", "!==", C.OPERATORS, "", "Strict inequality"),
        ("more", ">", C.OPERATORS, "", "Greater than"),
        ("less", "<", C.OPERATORS, "", "Less than"),
        ("moreeq", ">=", C.OPERATORS, "", "Greater than or equal"),
        ("lesseq", "<=", C.OPERATORS, "", "Less than or equal"),
        ("and", "&&", C.OPERATORS, "", "Logical and"),
        ("or", "||", C.OPERATORS, "", "Logical or"),
        ("not", "!", C.OPERATORS, "", "Logical not"),
        ("what", "typeof", C.OPERATORS, "", "Type of a value"),
        ("kind", "instanceof", C.OPERATORS, "", "Instance check"),
        ("inside", "in", C.OPERATORS, "", "Property presence / for-in"),
        ("part", "of", C.OPERATORS, "", "for-of iteration"),

        # ===== Built-in Objects =====
        ("speak", "console", C.BUILT_IN_OBJECTS, "", "The console"),
        ("say", "log", C.BUILT_IN_OBJECTS, "console", "Log a message"),
        ("yell", "warn", C.BUILT_IN_OBJECTS, "console", "Log a warning"),
        ("scream", "error", C.BUILT_IN_OBJECTS, "console", "Log an error"),
        ("whisper", "info", C.BUILT_IN_OBJECTS, "console", "Log an info message"),
        ("peek", "debug", C.BUILT_IN_OBJECTS, "console", "Log a debug message"),
        ("check", "assert", C.BUILT_IN_OBJECTS, "console", "Assert a condition"),
        ("wipe", "clear", C.BUILT_IN_OBJECTS, "console", "Clear the console"),
        ("tally", "count", C.BUILT_IN_OBJECTS, "console", "Count calls"),
        ("resetcount", "countReset", C.BUILT_IN_OBJECTS, "console", "Reset a counter"),
        ("deepdir", "dirxml", C.BUILT_IN_OBJECTS, "console", "Show an XML/HTML tree"),
        ("fold", "groupCollapsed", C.BUILT_IN_OBJECTS, "console", "Start a collapsed group"),
        ("ungroup", "groupEnd", C.BUILT_IN_OBJECTS, "console", "End a group"),
        ("show", "table", C.BUILT_IN_OBJECTS, "console", "Display data as a table"),
        ("stoptimer", "timeEnd", C.BUILT_IN_OBJECTS, "console", "Stop a timer"),
        ("logtimer", "timeLog", C.BUILT_IN_OBJECTS, "console", "Log a running timer"),
        ("backtrace", "trace", C.BUILT_IN_OBJECTS, "console", "Print a stack trace"),
        ("thing", "Object", C.BUILT_IN_OBJECTS, "", "Object constructor"),
        ("list", "Array", C.BUILT_IN_OBJECTS, "", "Array constructor"),
        ("text", "String", C.BUILT_IN_OBJECTS, "", "String constructor"),
        ("num", "Number", C.BUILT_IN_OBJECTS, "", "Number constructor"),
        ("bool", "Boolean", C.BUILT_IN_OBJECTS, "", "Boolean constructor"),
        ("clock", "Date", C.BUILT_IN_OBJECTS, "", "Dates and times"),
        ("maths", "Math", C.BUILT_IN_OBJECTS, "", "Math helpers"),
        ("json", "JSON", C.BUILT_IN_OBJECTS, "", "JSON helpers"),
        ("pattern", "RegExp", C.BUILT_IN_OBJECTS, "", "Regular expressions"),
        ("fail", "Error", C.BUILT_IN_OBJECTS, "", "Error constructor"),
        ("promise", "Promise", C.BUILT_IN_OBJECTS, "", "Promise constructor"),
        ("dict", "Map", C.BUILT_IN_OBJECTS, "", "Map constructor"),
        ("unique", "Set", C.BUILT_IN_OBJECTS, "", "Set constructor"),
        ("weakdict", "WeakMap", C.BUILT_IN_OBJECTS, "", "WeakMap constructor"),
        ("weakunique", "WeakSet", C.BUILT_IN_OBJECTS, "", "WeakSet constructor"),
        ("symbol", "Symbol", C.BUILT_IN_OBJECTS, "", "Symbol factory"),
        ("proxy", "Proxy", C.BUILT_IN_OBJECTS, "", "Proxy constructor"),
        ("reflect", "Reflect", C.BUILT_IN_OBJECTS, "", "Reflection helpers"),
        ("intl", "Intl", C.BUILT_IN_OBJECTS, "", "Internationalisation"),
        ("wasm", "WebAssembly", C.BUILT_IN_OBJECTS, "", "WebAssembly"),

        # ===== Global Functions =====
        ("toint", "parseInt", C.GLOBAL_FUNCTIONS, "", "Parse an integer"),
        ("tofloat", "parseFloat", C.GLOBAL_FUNCTIONS, "", "Parse a float"),
        ("isnan", "isNaN", C.GLOBAL_FUNCTIONS, "", "NaN check"),
        ("isfinite", "isFinite", C.GLOBAL_FUNCTIONS, "", "Finite check"),
        ("encodeurl", "encodeURI", C.GLOBAL_FUNCTIONS, "", "Encode a URI"),
        ("encodeurlpart", "encodeURIComponent", C.GLOBAL_FUNCTIONS, "", "Encode a URI component"),
        ("decodeurl", "decodeURI", C.GLOBAL_FUNCTIONS, "", "Decode a URI"),
        ("decodeurlpart", "decodeURIComponent", C.GLOBAL_FUNCTIONS, "", "Decode a URI component"),
        ("esc", "escape", C.GLOBAL_FUNCTIONS, "", "Legacy escape"),
        ("unesc", "unescape", C.GLOBAL_FUNCTIONS, "", "Legacy unescape"),
        ("runcode", "eval", C.GLOBAL_FUNCTIONS, "", "Evaluate code"),
        ("delay", "setTimeout", C.GLOBAL_FUNCTIONS, "", "Run once after a delay"),
        ("repeat", "setInterval", C.GLOBAL_FUNCTIONS, "", "Run repeatedly"),
        ("stopdelay", "clearTimeout", C.GLOBAL_FUNCTIONS, "", "Cancel a delay"),
        ("stoprepeat", "clearInterval", C.GLOBAL_FUNCTIONS, "", "Cancel a repeat"),
        ("pull", "fetch", C.GLOBAL_FUNCTIONS, "", "HTTP request"),
        ("need", "require", C.GLOBAL_FUNCTIONS, "", "CommonJS require"),

        # ===== Function Declarations =====
        ("run", "function", C.FUNCTION_DECLARATION_FORMS, "", "Declare a function or method"),
        ("run later", "async function", C.FUNCTION_DECLARATION_FORMS, "", "Declare an async function"),
        ("run forever", "static", C.FUNCTION_DECLARATION_FORMS, "", "Declare a static method"),
        ("__init__", "constructor", C.FUNCTION_DECLARATION_FORMS, "", "Class constructor"),

        # ===== Multi-word Aliases =====
        ("orwhatever", "else if", C.MULTI_WORD_PHRASES, "", "Another condition"),
        ("otherwise whatever", "else if", C.MULTI_WORD_PHRASES, "", "Another condition"),
        ("use everything as", "import * as", C.MULTI_WORD_PHRASES, "", "Namespace import"),
        ("hold all", "await Promise.all", C.MULTI_WORD_PHRASES, "", "Wait for every promise"),
    ]
    return tuple(
        KeywordEntry(alias, canonical, category, receiver, notes)
        for alias, canonical, category, receiver, notes in rows
    )


DEFAULT_TABLE = KeywordTable(
    entries=_build_entries(),
    forbidden=_build_forbidden_forms(),
)


def get_default_table() -> KeywordTable:
    """Return the built-in NullScript vocabulary."""
    return DEFAULT_TABLE
