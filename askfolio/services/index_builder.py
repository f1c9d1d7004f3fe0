"""
Offline index builder: importance rankings and item embeddings for the knowledge base.

Run as ``python -m askfolio.services.index_builder`` after editing the knowledge base files.
"""

import argparse
import json
import os
import re
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ..models.core import (Course, DateRange, Experience, ImportanceRanking, KnowledgeItem, Project, Skill, Writing,
                           get_searchable_text)
from ..utils.bedrock_embed import BedrockEmbed, BedrockEmbedError
from ..utils.config import KnowledgeBaseConfig, config
from ..utils.logging_config import get_logger
from ..utils.temporal_utils import months_since
from .record_store import RecordStore, RecordStoreError

logger = get_logger(__name__)

DEFAULT_SKILL_COMPLEXITY = 5

# Complexity on a 1-10 scale used by the importance formulas
SKILL_COMPLEXITY: Dict[str, int] = {
    'python': 6,
    'typescript': 7,
    'java': 6,
    'c_lang': 8,
    'csharp': 6,
    'r_lang': 5,
    'swift': 6,
    'assembly': 9,
    'react': 7,
    'nextjs': 8,
    'pytorch': 9,
    'opencv': 8,
    'pandas': 6,
    'numpy': 6,
    'scikit_learn': 7,
    'sentence_transformers': 8,
    'faiss': 8,
    'docker': 7,
    'aws': 7,
    'dotnet': 6,
    'ci_cd': 6,
    'algorithms': 8,
    'data_structures': 7,
    'compilers': 9,
    'operating_systems': 9,
    'concurrency': 9,
    'machine_learning': 8,
    'deep_learning': 9,
    'transformers': 10,
    'computer_vision': 8,
    'nlp': 8,
    'diffusion_models': 10,
    'rag': 8,
    'openai_api': 5,
    'statistics': 7,
    'product_management': 6,
    'leadership': 6,
    'writing': 5,
    'api_integration': 5,
}

CUTTING_EDGE_AI_SKILLS = ('rag', 'sentence_transformers', 'diffusion_models', 'pytorch', 'opencv')
PROJECT_IMPACT_PATTERN = re.compile(r'\d+\+?\s*(users|downloads|clients|installs)|widely\s+adopted|adopted\s+by|'
                                    r'production\s+deployment|live\s+deployment|serving\s+live', re.I)
EXPERIENCE_IMPACT_PATTERN = re.compile(r'return offer|partnership|strategic|production|\d+[+%]|recognized|award|shipped|'
                                       r'delivered|enabled', re.I)
TERM_PATTERN = re.compile(r'(fall|spring|summer)\s+(\d{4})', re.I)
TERM_MONTHS = {'spring': 3, 'summer': 6, 'fall': 9}


class IndexBuilderError(Exception):
    """Custom exception for index builder errors."""
    pass


def get_skill_complexity(skill_id: str) -> int:
    return SKILL_COMPLEXITY.get(skill_id, DEFAULT_SKILL_COMPLEXITY)


def average_complexity(skill_ids: Sequence[str]) -> float:
    if not skill_ids:
        return float(DEFAULT_SKILL_COMPLEXITY)
    return sum(get_skill_complexity(s) for s in skill_ids) / len(skill_ids)


def compute_recency(dates: Optional[DateRange], current: Optional[date] = None) -> int:
    """
    Recency on a 0-10 scale from the months since an item ended (or started, when ongoing).

    Args:
        dates: Item dates
        current: Reference date

    Returns:
        10 under 6 months, stepping down to 1 after 4 years; 5 without dates
    """
    if not dates or not dates.start:
        return 5
    months = months_since(dates.end or dates.start, current)
    if months is None:
        return 5
    for limit, score in ((6, 10), (12, 9), (18, 8), (24, 7), (36, 5), (48, 3)):
        if months < limit:
            return score
    return 1


def _term_recency(term: str, current: Optional[date]) -> int:
    match = TERM_PATTERN.search(term or '')
    if not match:
        return 5
    month = TERM_MONTHS[match.group(1).lower()]
    months = months_since(f'{match.group(2)}-{month:02d}', current)
    for limit, score in ((6, 10), (12, 9), (18, 8), (24, 7), (36, 5)):
        if months is not None and months < limit:
            return score
    return 3


def _normalize(raw: float, maximum: float) -> float:
    return float(min(round(raw / maximum * 100), 100))


def compute_skill_importance(skill: Skill, items_by_id: Dict[str, KnowledgeItem], current: Optional[date] = None) -> float:
    """Evidence volume, project/experience evidence, complexity and recency of the latest evidence."""
    evidence = [items_by_id[e] for e in skill.evidence if e in items_by_id]
    project_count = sum(1 for e in evidence if e.kind == 'project')
    experience_count = sum(1 for e in evidence if e.kind == 'experience')

    dated = [e.dates for e in evidence if isinstance(e, (Project, Experience)) and e.dates]
    latest = max(dated, key=lambda d: d.end or d.start, default=None)

    raw = (min(len(skill.evidence) * 5, 30) + project_count * 3 + experience_count * 4 + get_skill_complexity(skill.id) * 2 +
           compute_recency(latest, current) * 2)
    return _normalize(raw, 140)


def compute_project_importance(project: Project, current: Optional[date] = None) -> float:
    """Skill complexity and breadth, recency, shipped links, impact language and AI skills."""
    links = project.links or {}
    text = ' '.join([project.summary, *project.specifics])
    tags_text = ' '.join(project.tags)
    production = 'app_store' in links or 'play_store' in links or (
        ('Full-Stack' in tags_text or 'Web' in tags_text) and
        re.search(r'backend|api routes|production|deployed|live|serving', project.architecture, re.I) is not None)

    raw = (average_complexity(project.skills) * 6 + min(len(project.skills) * 3, 25) + compute_recency(project.dates, current) +
           (12 if 'demo' in links else 0) + (12 if production else 0) + (12 if 'image' in links else 0) +
           (5 if 'github' in links else 0) + (25 if PROJECT_IMPACT_PATTERN.search(text) else 0) +
           (10 if any(s in CUTTING_EDGE_AI_SKILLS for s in project.skills) else 0))
    return _normalize(raw, 171)


def compute_experience_importance(experience: Experience, current: Optional[date] = None) -> float:
    """Skill complexity, recency, impact language in highlights and skill breadth."""
    has_impact = any(EXPERIENCE_IMPACT_PATTERN.search(s) for s in experience.specifics)
    raw = (average_complexity(experience.skills) * 5 + compute_recency(experience.dates, current) * 1.5 + (30 if has_impact else 0) +
           len(experience.skills) * 2.5)
    return _normalize(raw, 125)


def compute_class_importance(course: Course, current: Optional[date] = None) -> float:
    raw = (average_complexity(course.skills) * 4 + _term_recency(course.term, current) * 3 + min(len(course.skills) * 2, 20))
    return _normalize(raw, 115)


def compute_writing_importance(writing: Writing, current: Optional[date] = None) -> float:
    months = months_since(writing.published_date, current)
    if months is None:
        recency = 5
    elif months < 6:
        recency = 10
    elif months < 12:
        recency = 8
    elif months < 24:
        recency = 6
    else:
        recency = 3
    related = len(writing.related_projects) + len(writing.related_experiences)
    return _normalize(recency * 5 + related * 10, 80)


def compute_rankings(items: Sequence[KnowledgeItem], current: Optional[date] = None) -> List[ImportanceRanking]:
    """
    Importance for every ranked kind, sorted from most to least important.

    Kinds without a formula are not ranked and read as the default importance.

    Args:
        items: All knowledge items
        current: Reference date for recency

    Returns:
        ImportanceRanking list with scores in 0..100
    """
    items_by_id = {item.id: item for item in items}
    rankings = []
    for item in items:
        if isinstance(item, Skill):
            score = compute_skill_importance(item, items_by_id, current)
        elif isinstance(item, Project):
            score = compute_project_importance(item, current)
        elif isinstance(item, Experience):
            score = compute_experience_importance(item, current)
        elif isinstance(item, Course):
            score = compute_class_importance(item, current)
        elif isinstance(item, Writing):
            score = compute_writing_importance(item, current)
        else:
            continue
        rankings.append(ImportanceRanking(id=item.id, kind=item.kind, score=score))

    rankings.sort(key=lambda r: r.score, reverse=True)
    return rankings


def compute_embeddings(items: Sequence[KnowledgeItem], embedder: BedrockEmbed) -> List[Dict[str, Any]]:
    """
    Embed every item's searchable text.

    Args:
        items: All knowledge items
        embedder: Bedrock embedding client

    Returns:
        ``{id, kind, vector}`` records

    Raises:
        IndexBuilderError: If an item cannot be embedded
    """
    records = []
    for index, item in enumerate(items, start=1):
        try:
            vector = embedder.embed_document(get_searchable_text(item))
        except BedrockEmbedError as e:
            raise IndexBuilderError(f'Failed to embed {item.id}: {e}')
        records.append({'id': item.id, 'kind': item.kind, 'vector': vector})
        if index % 25 == 0:
            logger.info(f'Embedded {index}/{len(items)} items')
    return records


def _write_json(path: str, data: Any) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise IndexBuilderError(f'Failed to write {path}: {e}')


def build_index(kb_config: KnowledgeBaseConfig,
                embedder: Optional[BedrockEmbed] = None,
                rankings: bool = True,
                embeddings: bool = True,
                current: Optional[date] = None) -> None:
    """
    Rebuild the derived files next to the knowledge base.

    Args:
        kb_config: KnowledgeBaseConfig with the data directory and output file names
        embedder: Bedrock embedding client (built from config if None and embeddings are requested)
        rankings: Whether to rebuild the rankings file
        embeddings: Whether to rebuild the embeddings file
        current: Reference date for recency

    Raises:
        IndexBuilderError: If loading, embedding or writing fails
    """
    try:
        items = RecordStore.from_directory(kb_config).load_items()
    except RecordStoreError as e:
        raise IndexBuilderError(f'Failed to load knowledge base: {e}')

    if rankings:
        ranked = compute_rankings(items, current)
        _write_json(os.path.join(kb_config.data_dir, kb_config.rankings_file),
                    [{'id': r.id, 'kind': r.kind, 'score': r.score} for r in ranked])
        logger.info(f'Wrote {len(ranked)} rankings; top items: {[r.id for r in ranked[:5]]}')

    if embeddings:
        records = compute_embeddings(items, embedder or BedrockEmbed(config.bedrock_embed))
        _write_json(os.path.join(kb_config.data_dir, kb_config.embeddings_file), records)
        logger.info(f'Wrote {len(records)} embeddings')


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Rebuild knowledge base rankings and embeddings.')
    parser.add_argument('--skip-rankings', action='store_true', help='Do not rebuild the rankings file')
    parser.add_argument('--skip-embeddings', action='store_true', help='Do not rebuild the embeddings file')
    args = parser.parse_args()

    build_index(config.knowledge_base, rankings=not args.skip_rankings, embeddings=not args.skip_embeddings)
