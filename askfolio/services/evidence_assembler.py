"""
Evidence Assembler: compress ranked items into bounded evidence packs and
compute aggregate confidence signals.
"""

import re
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..models.core import extract_primary_year, get_date_range, get_display_name, get_skills, get_specifics, get_summary, get_term
from ..models.query import ScoredItem
from ..models.response import EvidencePack, EvidenceSignals
from ..utils.display_names import format_skill_id
from ..utils.temporal_utils import months_since
from ..utils.text_utils import truncate

SUMMARY_LIMIT = 300
SPECIFICS_LIMIT = 3
METRICS_LIMIT = 3
MIN_EVIDENCE_COUNT = 2
MIN_COVERAGE_RATIO = 0.5

METRIC_PATTERNS = (
    re.compile(r'\d+(?:\.\d+)?\s?%'),  # percentages
    re.compile(r'[$€£]\s?\d[\d,]*(?:\.\d+)?\s?(?:[kKmMbB]\b|million\b|billion\b)?'),  # currency
    re.compile(r'\b\d+(?:\.\d+)?[kKmMbB]\+?(?=\W|$)'),  # large-number suffixes
    re.compile(r'\b\d+(?:\.\d+)?\s?[xX]\b'),  # multipliers
    re.compile(r'\b\d[\d,]*\+?\s(?:users|customers|clients|students|downloads|requests|records|documents|files|'
               r'transactions|queries|teams|people|hours|projects|models|pages)\b', re.I),  # counts
)


def extract_metrics(text: str, limit: int = METRICS_LIMIT) -> List[str]:
    """
    Pull metric-like substrings out of free text.

    Args:
        text: Summary and highlight text
        limit: Maximum metrics to return

    Returns:
        Distinct metrics in order of appearance
    """
    found = []
    for pattern in METRIC_PATTERNS:
        for match in pattern.finditer(text):
            found.append((match.start(), match.group(0).strip()))

    metrics: List[str] = []
    for _, value in sorted(found):
        if value not in metrics and not any(value in existing for existing in metrics):
            metrics.append(value)
        if len(metrics) >= limit:
            break
    return metrics


def _format_dates(scored: ScoredItem) -> Optional[str]:
    dates = get_date_range(scored.item)
    if dates:
        if dates.end == dates.start:
            return dates.start
        return f"{dates.start} - {dates.end or 'present'}"
    return get_term(scored.item) or None


def build_evidence_packs(results: Sequence[ScoredItem], skill_names: Optional[Dict[str, str]] = None) -> List[EvidencePack]:
    """
    Turn ranked items into generator-friendly evidence packs.

    Args:
        results: Ranked items, best first
        skill_names: Skill id to display name (ids are formatted when missing)

    Returns:
        One pack per item with 1-based rank
    """
    skill_names = skill_names or {}
    packs = []
    for rank, scored in enumerate(results, start=1):
        item = scored.item
        summary = get_summary(item)
        specifics = list(get_specifics(item))
        packs.append(
            EvidencePack(id=item.id,
                         kind=item.kind,
                         title=get_display_name(item),
                         summary=truncate(summary, SUMMARY_LIMIT),
                         specifics=[truncate(s, SUMMARY_LIMIT) for s in specifics[:SPECIFICS_LIMIT]],
                         dates=_format_dates(scored),
                         skills=[skill_names.get(s, format_skill_id(s)) for s in get_skills(item)],
                         metrics=extract_metrics(' '.join([summary, *specifics])),
                         rank=rank))
    return packs


def compute_signals(packs: Sequence[EvidencePack],
                    results: Sequence[ScoredItem],
                    current: Optional[date] = None) -> EvidenceSignals:
    """
    Aggregate confidence signals for an evidence set.

    Freshness is measured from the most recent end (or start) date among the
    items. Coverage and entity-link scores are fixed placeholders.

    Args:
        packs: Evidence packs
        results: Items the packs were built from
        current: Reference date

    Returns:
        EvidenceSignals
    """
    freshness: Optional[int] = None
    for scored in results:
        dates = get_date_range(scored.item)
        if not dates:
            continue
        months = months_since(dates.end, current) if dates.end else 0
        if months is not None and (freshness is None or months < freshness):
            freshness = months

    return EvidenceSignals(evidence_count=len(packs),
                           has_metrics=any(pack.metrics for pack in packs),
                           freshness_months=freshness)


def needs_contact_fallback(signals: EvidenceSignals) -> bool:
    """Thin evidence should end with a contact suggestion."""
    return signals.evidence_count < MIN_EVIDENCE_COUNT or signals.coverage_ratio < MIN_COVERAGE_RATIO


def format_context(packs: Sequence[EvidencePack]) -> str:
    """Render evidence packs as the numbered context block sent to the generator."""
    blocks = []
    for pack in packs:
        lines = [f'[{pack.rank}] {pack.kind.upper()}: {pack.title}']
        if pack.dates:
            lines.append(f'Dates: {pack.dates}')
        if pack.summary:
            lines.append(f'Summary: {pack.summary}')
        for specific in pack.specifics:
            lines.append(f'- {specific}')
        if pack.skills:
            lines.append(f"Skills: {', '.join(pack.skills)}")
        if pack.metrics:
            lines.append(f"Metrics: {', '.join(pack.metrics)}")
        blocks.append('\n'.join(lines))
    return '\n\n'.join(blocks)


def format_context_index(results: Sequence[ScoredItem]) -> str:
    """One line per item: 'N. [kind] label (year) - score X.XX'."""
    lines = []
    for rank, scored in enumerate(results, start=1):
        year = extract_primary_year(scored.item)
        year_part = f' ({year})' if year else ''
        lines.append(f'{rank}. [{scored.item.kind}] {get_display_name(scored.item)}{year_part} - score {scored.score:.2f}')
    return '\n'.join(lines)
