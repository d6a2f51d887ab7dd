"""
Recover a subject/mark table from raw OCR text.

The primary pass reads the text line by line. When it finds nothing, a
fallback pass scans the whole text with a few loose templates. Neither pass
raises on bad input; lines that cannot be read are dropped or reported in
``ExtractionResult.errors``.
"""
import math
import re
import logging
from typing import List, NamedTuple, Optional, Tuple
from rapidfuzz import fuzz, process
from aps_extractor.api.schemas import ExtractionResult, SubjectResult
from aps_extractor.services.vocabulary import (
    SUBJECT_ALIASES,
    SUBJECT_ROOT_RE,
    canonical_name,
    find_alias
)

logger = logging.getLogger(__name__)

DEFAULT_SUGGEST_THRESHOLD = 80.0

_NON_WORD_RE = re.compile(r'[^\w\s]', re.ASCII)
_MARK_RE = re.compile(r'\b(\d{1,3})\b', re.ASCII)
_CANDIDATE_WORD_RE = re.compile(r'[a-z]{4,}')

# Single-word aliases long enough to be worth a fuzzy comparison
_SUGGESTION_CHOICES: Tuple[str, ...] = tuple(
    alias for alias, _ in SUBJECT_ALIASES if " " not in alias and len(alias) >= 4
)


class FallbackTemplate(NamedTuple):
    """A whole-text pattern and which of its groups holds the subject word and the mark."""
    name: str
    pattern: re.Pattern
    word_group: int
    mark_group: int


FALLBACK_TEMPLATES: Tuple[FallbackTemplate, ...] = (
    FallbackTemplate("word-colon-number", re.compile(r'(\w+)\s*:?\s*(\d{1,3})', re.IGNORECASE | re.ASCII), 1, 2),
    FallbackTemplate("word-space-number", re.compile(r'(\w+)\s+(\d{1,3})', re.IGNORECASE | re.ASCII), 1, 2),
    FallbackTemplate("number-dash-word", re.compile(r'(\d{1,3})\s*-\s*(\w+)', re.IGNORECASE | re.ASCII), 2, 1),
)


def normalize_line(line: str) -> str:
    return _NON_WORD_RE.sub(' ', line.lower()).strip()


def detect_subject(clean_line: str) -> Optional[str]:
    """
    Canonical subject named in a normalized line, or None.

    The first vocabulary alias contained in the line wins; failing that the
    leftmost common root word (e.g. "science") is used.
    """
    alias = find_alias(clean_line)
    if alias is not None:
        return canonical_name(alias)

    root_match = SUBJECT_ROOT_RE.search(clean_line)
    if root_match:
        return canonical_name(root_match.group(0))
    return None


def parse_line(line: str) -> Optional[SubjectResult]:
    """
    Parse one line of OCR text

    Args:
        line: A single raw line

    Returns:
        SubjectResult if the line names a subject and its first standalone
        1-3 digit number is a mark in [0, 100], otherwise None
    """
    subject = detect_subject(normalize_line(line))
    if subject is None:
        return None

    mark_match = _MARK_RE.search(line)
    if not mark_match:
        return None

    mark = int(mark_match.group(1))
    if not 0 <= mark <= 100:
        return None

    return SubjectResult(name=subject, mark=mark)


def diagnose_line(line: str, line_number: int, suggest_threshold: Optional[float] = DEFAULT_SUGGEST_THRESHOLD) -> Optional[str]:
    """Explain why a line produced no result, when there is something worth saying."""
    clean_line = normalize_line(line)
    subject = detect_subject(clean_line)
    mark_match = _MARK_RE.search(line)

    if subject is not None:
        if not mark_match:
            return f"Line {line_number}: no mark found for {subject}"
        return f"Line {line_number}: mark {mark_match.group(1)} for {subject} is outside 0-100"

    if suggest_threshold is None or not mark_match or int(mark_match.group(1)) > 100:
        return None

    for word in _CANDIDATE_WORD_RE.findall(clean_line):
        best = process.extractOne(word, _SUGGESTION_CHOICES, scorer=fuzz.ratio, score_cutoff=suggest_threshold)
        if best:
            return f"Line {line_number}: unrecognised subject '{word}' (did you mean {canonical_name(best[0])}?)"
    return None


def fallback_parse(text: str, strict: bool = False) -> List[SubjectResult]:
    """
    Scan the whole text with the fallback templates

    Args:
        text: Full raw OCR text
        strict: Keep only the first occurrence of each (subject, mark) pair

    Returns:
        List[SubjectResult]: Matches of every template, in template order.
        Lenient mode keeps duplicates found by more than one template.
    """
    subjects = []
    seen = set()

    for template in FALLBACK_TEMPLATES:
        for match in template.pattern.finditer(text):
            word = match.group(template.word_group)
            alias = find_alias(word.lower())
            if alias is None:
                continue

            mark = int(match.group(template.mark_group))
            if mark > 100:
                continue

            result = SubjectResult(name=canonical_name(alias), mark=mark)
            if strict:
                key = (result.name, result.mark)
                if key in seen:
                    continue
                seen.add(key)

            logger.debug(f"Fallback template '{template.name}' matched {result.name}: {mark}")
            subjects.append(result)

    return subjects


def average_mark(subjects: List[SubjectResult]) -> int:
    """Mean mark rounded half-up, 0 for an empty list."""
    if not subjects:
        return 0
    return math.floor(sum(subject.mark for subject in subjects) / len(subjects) + 0.5)


def extract(
    text: str,
    confidence: float = 0.0,
    *,
    strict: bool = False,
    suggest_threshold: Optional[float] = DEFAULT_SUGGEST_THRESHOLD
) -> ExtractionResult:
    """
    Build a subject/mark table from OCR text

    Args:
        text: Raw recognised text, possibly empty or noisy
        confidence: OCR engine confidence (0-100), passed through unchanged
        strict: De-duplicate fallback matches
        suggest_threshold: Minimum fuzzy score for "did you mean" diagnostics,
            None to disable them

    Returns:
        ExtractionResult: Subjects in the order they appear in the text
    """
    subjects: List[SubjectResult] = []
    errors: List[str] = []

    for line_number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue

        result = parse_line(line)
        if result is not None:
            subjects.append(result)
            continue

        diagnostic = diagnose_line(line, line_number, suggest_threshold)
        if diagnostic:
            errors.append(diagnostic)

    logger.debug(f"Line pass found {len(subjects)} subjects")

    if not subjects:
        subjects = fallback_parse(text, strict=strict)
        logger.debug(f"Fallback pass found {len(subjects)} subjects")

    return ExtractionResult(
        subjects=subjects,
        overall_average=average_mark(subjects),
        errors=errors,
        confidence=confidence
    )
