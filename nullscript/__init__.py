"""
NullScript: TypeScript with attitude

A keyword-aliasing dialect of TypeScript/JavaScript. Sources (`.ns`) are
validated, rewritten token-for-token into canonical TypeScript and handed
to the standard TypeScript/Node.js toolchain.

Core pieces:
1. One authoritative, bidirectional keyword table
2. A fail-fast validator for forbidden canonical forms
3. Ordered regex rewrite pipelines (forward and reverse)
4. A heuristic quality score for reverse conversion

License: MIT
"""

__version__ = "0.1.0"

from nullscript.errors import NullScriptError, NullScriptSyntaxError
from nullscript.keywords import KeywordTable, get_default_table
from nullscript.transpiler import ForwardTranspiler, TranspileOptions, transpile
from nullscript.reverse import ReverseTranspiler, reverse_transpile
from nullscript.validator import SyntaxValidator, validate
from nullscript.scoring import ConversionQualityScorer, score_conversion
from nullscript.pipeline import BuildPipeline

__all__ = [
    "NullScriptError",
    "NullScriptSyntaxError",
    "KeywordTable",
    "get_default_table",
    "ForwardTranspiler",
    "TranspileOptions",
    "transpile",
    "ReverseTranspiler",
    "reverse_transpile",
    "SyntaxValidator",
    "validate",
    "ConversionQualityScorer",
    "score_conversion",
    "BuildPipeline",
]
