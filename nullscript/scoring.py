"""
Conversion quality scoring for reverse transpilation.

This module provides:
- A heuristic confidence score for JavaScript/TypeScript → NullScript output
- Issue and warning lists explaining the score
- Migration suggestions derived from the original source

The score starts at a ceiling and loses a fixed amount per issue and per
warning category. It is advisory only and never raises.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field

from .keywords import KeywordTable, get_default_table
from .masking import blank_source
from .validator import SyntaxValidator

CEILING = 95.0
ISSUE_PENALTY = 15.0
WARNING_PENALTY = 10.0

EXCELLENT_THRESHOLD = 90.0
GOOD_THRESHOLD = 75.0

LARGE_FILE_CHARS = 10_000
CONSOLE_LOG_LIMIT = 10

_UNDEFINED = re.compile(r"(?<![\w$.])undefined(?![\w$])")
_LOOSE_EQUALITY = re.compile(r"(?<![=!<>])==(?!=)|!=(?!=)")
_VAR = re.compile(r"(?<![\w$.])var\s+")


@dataclass(frozen=True)
class ConversionReport:
    """Outcome of scoring one reverse-transpiled file."""
    original_line_count: int
    converted_line_count: int
    confidence_score: float
    issues: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    @property
    def assessment(self) -> str:
        if self.confidence_score >= EXCELLENT_THRESHOLD:
            return "excellent"
        if self.confidence_score >= GOOD_THRESHOLD:
            return "good"
        return "needs review"

    @property
    def assessment_text(self) -> str:
        return {
            "excellent": "Excellent conversion quality",
            "good": "Good conversion with minor warnings",
            "needs review": "Conversion needs manual review",
        }[self.assessment]

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("issues", "warnings", "suggestions"):
            data[key] = list(data[key])
        data["assessment"] = self.assessment
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def summary(self) -> str:
        """Short multi-line text summary for terminals and logs."""
        lines = [
            f"Lines: {self.original_line_count} → {self.converted_line_count}",
            f"Confidence: {self.confidence_score:.1f}% ({self.assessment_text})",
        ]
        lines += [f"  issue: {text}" for text in self.issues]
        lines += [f"  warning: {text}" for text in self.warnings]
        lines += [f"  suggestion: {text}" for text in self.suggestions]
        return "\n".join(lines)


@dataclass
class ConversionQualityScorer:
    """Scores reverse-transpiled NullScript against its original source."""
    table: KeywordTable = field(default_factory=get_default_table)

    def __post_init__(self) -> None:
        self.validator = SyntaxValidator(self.table)

    def score(self, original_canonical: str, converted_dialect: str) -> ConversionReport:
        code = blank_source(converted_dialect)
        issues: list[str] = []
        warnings: list[str] = []

        if _UNDEFINED.search(code):
            issues.append("Contains 'undefined' - verify this is intentional in NullScript")

        violation = self.validator.first_violation(converted_dialect)
        if violation is not None:
            where = f" (line {violation.line})" if violation.line else ""
            issues.append(f"{violation.message}{where}")

        if _LOOSE_EQUALITY.search(code):
            is_alias = self.table.alias_for("===") or "==="
            isnt_alias = self.table.alias_for("!==") or "!=="
            warnings.append(
                f"Uses loose equality operators - consider using '{is_alias}'/'{isnt_alias}' for strict comparison"
            )
        if _VAR.search(code):
            fixed = self.table.alias_for("const") or "const"
            warnings.append(f"Uses 'var' declarations - consider using 'let' or '{fixed}' instead")

        confidence = CEILING - ISSUE_PENALTY * len(issues) - WARNING_PENALTY * len(warnings)
        return ConversionReport(
            original_line_count=_count_lines(original_canonical),
            converted_line_count=_count_lines(converted_dialect),
            confidence_score=max(0.0, confidence),
            issues=tuple(issues),
            warnings=tuple(warnings),
            suggestions=tuple(self.suggest_improvements(original_canonical)),
        )

    def suggest_improvements(self, original_canonical: str) -> list[str]:
        """Migration hints based on constructs NullScript does not carry over."""
        def alias(canonical: str) -> str:
            return self.table.alias_for(canonical) or canonical

        suggestions = []

        if "interface " in original_canonical:
            suggestions.append("Remove TypeScript interfaces - NullScript doesn't support them")
        if "enum " in original_canonical:
            suggestions.append("Replace TypeScript enums with objects or constants")
        if re.search(r":\s*(?:string|number|boolean)\b", original_canonical):
            suggestions.append("Remove type annotations - NullScript infers types automatically")
        if "<T>" in original_canonical or "extends T" in original_canonical:
            suggestions.append("Remove generic types - NullScript doesn't support generics")
        if "Array.from" in original_canonical:
            suggestions.append(f"Use {alias('Array')}.from with care - check the converted call")
        if "Object.assign" in original_canonical:
            suggestions.append(f"Use {alias('Object')}.assign for object merging")
        if original_canonical.count("console.log") > CONSOLE_LOG_LIMIT:
            speak, say = alias("console"), alias("log")
            suggestions.append(
                f"Consider reducing console output in production - use {speak}.{say} sparingly"
            )
        if len(original_canonical) > LARGE_FILE_CHARS:
            suggestions.append("Large file detected - consider splitting into smaller modules")
        return suggestions


def _count_lines(text: str) -> int:
    return len(text.splitlines())


def score_conversion(original_canonical: str, converted_dialect: str) -> ConversionReport:
    """Score with the built-in keyword table."""
    return ConversionQualityScorer().score(original_canonical, converted_dialect)
