"""Line normalization for exact and identifier-blinded clone detection."""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum

from clonewatch.types import frozen_slots


class NormalizationPass(Enum):
    """Which line transformation precedes window hashing."""

    EXACT = "exact"  # Strip whitespace, drop blank/comment/import lines
    BLINDED = "blinded"  # Keep every line, replace identifiers with ID


class LineCategory(Enum):
    """Kinds of lines that carry no duplication signal on their own."""

    COMMENT = "comment"
    IMPORT = "import"


@frozen_slots
class NormalizedLine:
    """A normalized line paired with its 1-based line number in the source."""

    text: str
    line: int


# Patterns are matched at the start of the stripped line, case-insensitively.
# New languages only need new rows here.
LINE_PATTERNS: dict[str, LineCategory] = {
    r"//": LineCategory.COMMENT,
    r"#": LineCategory.COMMENT,
    r"/\*": LineCategory.COMMENT,
    r"\*/": LineCategory.COMMENT,
    r"\*(?:\s|$)": LineCategory.COMMENT,  # block comment continuation
    r"--": LineCategory.COMMENT,
    r"import\s": LineCategory.IMPORT,
    r"from\s+\S+\s+import\b": LineCategory.IMPORT,
    r"require\s*\(": LineCategory.IMPORT,
    r"(?:const|let|var)\s+[\w{}\s,]+=\s*require\s*\(": LineCategory.IMPORT,
    r"include\s": LineCategory.IMPORT,
    r"#\s*include\b": LineCategory.IMPORT,
    r"using\s": LineCategory.IMPORT,
    r"use\s": LineCategory.IMPORT,
}


def _compile_categories(
    patterns: dict[str, LineCategory],
) -> tuple[tuple[re.Pattern[str], LineCategory], ...]:
    """Fold the pattern table into one alternation per category."""
    grouped: dict[LineCategory, list[str]] = {}
    for pattern, category in patterns.items():
        grouped.setdefault(category, []).append(f"(?:{pattern})")
    return tuple(
        (re.compile("|".join(alternatives), re.IGNORECASE), category)
        for category, alternatives in grouped.items()
    )


_CATEGORY_RES = _compile_categories(LINE_PATTERNS)

# Reserved words kept verbatim by the blinded pass. Covers Go, Python,
# JS/TS, Java, Rust, Ruby, PHP, Swift, Scala, Elixir, C/C++ and C#.
KEYWORDS = frozenset(
    {
        # Control flow
        "if", "else", "elif", "for", "while", "do", "switch", "case",
        "break", "continue", "return", "yield", "throw", "try", "catch",
        "finally", "except", "raise", "pass",
        # Declarations
        "func", "function", "def", "fn", "var", "let", "const", "val",
        "type", "class", "struct", "enum", "interface", "trait", "impl",
        "module", "package", "namespace", "lambda",
        # Modifiers
        "public", "private", "protected", "static", "final", "abstract",
        "override", "virtual", "async", "await", "mut", "pub",
        # Literals and object references
        "true", "false", "nil", "null", "none", "True", "False", "None",
        "self", "this", "super", "new",
        # Other
        "range", "in", "not", "and", "or", "is", "as", "with", "from",
        "select", "defer", "go", "chan", "map", "end",
    }
)

_IDENTIFIER_RE = re.compile(r"\b[A-Za-z_]\w*\b")
_ID_PLACEHOLDER = "ID"


def classify_line(text: str) -> LineCategory | None:
    """Return the category of a stripped line, or None for ordinary code."""
    for pattern, category in _CATEGORY_RES:
        if pattern.match(text):
            return category
    return None


def _blind_identifier(match: re.Match[str]) -> str:
    word = match.group(0)
    return word if word in KEYWORDS else _ID_PLACEHOLDER


def blind(text: str) -> str:
    """Replace every non-keyword identifier in *text* with the placeholder."""
    return _IDENTIFIER_RE.sub(_blind_identifier, text)


def normalize_exact(lines: Sequence[str]) -> list[NormalizedLine]:
    """Strip lines and drop blank, comment-only and import lines.

    Args:
        lines: Raw source lines without line terminators.

    Returns:
        Surviving lines in order, each tagged with its original line number.
    """
    result: list[NormalizedLine] = []
    for number, raw in enumerate(lines, start=1):
        text = raw.strip()
        if not text or classify_line(text) is not None:
            continue
        result.append(NormalizedLine(text=text, line=number))
    return result


def normalize_blinded(lines: Sequence[str]) -> list[NormalizedLine]:
    """Blind identifiers on every line, preserving keywords and punctuation.

    Unlike :func:`normalize_exact`, no line is dropped: blank, comment and
    import lines take part in the comparison. Surrounding whitespace is
    stripped so that re-indented copies still line up.
    """
    return [
        NormalizedLine(text=blind(raw.strip()), line=number)
        for number, raw in enumerate(lines, start=1)
    ]


def normalize(
    lines: Sequence[str], pass_: NormalizationPass
) -> list[NormalizedLine]:
    """Apply the normalization strategy selected by *pass_*."""
    if pass_ is NormalizationPass.BLINDED:
        return normalize_blinded(lines)
    return normalize_exact(lines)
