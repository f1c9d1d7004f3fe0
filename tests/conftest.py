"""Pytest configuration and fixtures."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from askfolio.models.core import Bio, Course, DateRange, Experience, ImportanceRanking, Project, Skill, Story, Value, Writing
from askfolio.services.record_store import RecordStore
from askfolio.utils.bedrock_embed import BedrockEmbed
from askfolio.utils.bedrock_llm import BedrockLLM

TODAY = date(2025, 3, 15)

# Unit vectors per item; the query embedding decides which item is closest
VECTORS = {
    'proj_portfolio': [1.0, 0.0, 0.0, 0.0],
    'proj_hilite': [0.8, 0.6, 0.0, 0.0],
    'proj_knight': [0.0, 0.0, 1.0, 0.0],
    'exp_veson': [0.0, 1.0, 0.0, 0.0],
    'exp_veson_ds': [0.0, 0.8, 0.6, 0.0],
    'exp_lab': [0.6, 0.8, 0.0, 0.0],
    'class_dl': [0.0, 0.6, 0.8, 0.0],
    'writing_rag': [0.8, 0.0, 0.6, 0.0],
    'python': [0.0, 0.0, 0.0, 1.0],
    'pytorch': [0.0, 0.0, 0.6, 0.8],
    'bio_main': [0.5, 0.5, 0.5, 0.5],
    'value_craft': [0.0, 0.0, 0.8, 0.6],
    'story_first': [0.6, 0.0, 0.0, 0.8],
}


@pytest.fixture
def items():
    """A small knowledge base covering every kind the pipeline treats specially."""
    return [
        Project(id='proj_portfolio',
                title='Portfolio Assistant',
                summary='Built a RAG assistant that answers questions about my work for 1,200 users with 40% faster answers.',
                specifics=('Streams answers from Bedrock', 'Precomputed embeddings and rankings'),
                skills=('python', 'rag', 'nextjs'),
                tags=('AI', 'Full-Stack'),
                aliases=('folio bot', ),
                dates=DateRange(start='2024-06'),
                links={
                    'github': 'https://github.com/sam/portfolio',
                    'demo': 'https://sam.dev'
                }),
        Project(id='proj_hilite',
                title='HiLiTe',
                summary='Highlight detection for sports video using neural networks.',
                skills=('python', 'pytorch', 'opencv'),
                tags=('AI', ),
                dates=DateRange(start='2023-01', end='2023-08'),
                links={'github': 'https://github.com/sam/hilite'}),
        Project(id='proj_knight',
                title='Knight Life',
                summary='Schedule app for a high school.',
                skills=('swift', ),
                tags=('Mobile', ),
                dates=DateRange(start='2022-03', end='2022-12')),
        Experience(id='exp_veson',
                   company='Veson Nautical',
                   role='Software Engineering Intern',
                   summary='Built a rule engine for contract parsing in C#.',
                   specifics=('Shipped a document AI pipeline processing 600k records', ),
                   skills=('csharp', 'dotnet', 'sql'),
                   aliases=('veson', ),
                   dates=DateRange(start='2023-06', end='2023-08'),
                   links={'company': 'https://veson.com'}),
        Experience(id='exp_veson_ds',
                   company='Veson Nautical',
                   role='Data Science Intern',
                   summary='Trained NLP models for clause extraction.',
                   skills=('python', 'nlp'),
                   aliases=('veson', ),
                   dates=DateRange(start='2024-06', end='2024-08')),
        Experience(id='exp_lab',
                   company='Rice NLP Lab',
                   role='Research Assistant',
                   summary='Research on transformers for summarization.',
                   skills=('python', 'pytorch', 'transformers'),
                   dates=DateRange(start='2024-01')),
        Course(id='class_dl',
               title='COMP 646 Deep Learning for Vision and Language',
               institution='Rice University',
               term='Fall 2024',
               summary='Transformers and vision-language models.',
               skills=('pytorch', 'deep_learning')),
        Writing(id='writing_rag',
                title='Building RAG Pipelines That Do Not Hallucinate',
                short_name='RAG post',
                url='https://blog.sam.dev/rag',
                published_date='2024-09-01',
                summary='Lessons from building a grounded assistant.',
                tags=('AI', ),
                related_projects=('proj_portfolio', )),
        Skill(id='python',
              name='Python',
              skill_type='language',
              description='Primary language.',
              evidence=('proj_portfolio', 'proj_hilite', 'exp_veson_ds')),
        Skill(id='pytorch',
              name='PyTorch',
              skill_type='framework',
              description='Deep learning framework.',
              evidence=('proj_hilite', 'class_dl')),
        Bio(id='bio_main',
            name='Sam Rivera',
            headline='CS student building AI products',
            bio='Sam builds grounded AI tools.',
            location='Houston, TX',
            availability='Open to summer 2025 internships'),
        Value(id='value_craft', value='Craftsmanship', why='Details matter.'),
        Story(id='story_first', title='First program', text='Wrote a calculator in middle school.'),
    ]


@pytest.fixture
def rankings():
    return [
        ImportanceRanking(id='proj_portfolio', kind='project', score=90),
        ImportanceRanking(id='proj_hilite', kind='project', score=80),
        ImportanceRanking(id='proj_knight', kind='project', score=40),
        ImportanceRanking(id='exp_veson', kind='experience', score=85),
        ImportanceRanking(id='exp_veson_ds', kind='experience', score=70),
        ImportanceRanking(id='exp_lab', kind='experience', score=60),
        ImportanceRanking(id='python', kind='skill', score=75),
        ImportanceRanking(id='pytorch', kind='skill', score=65),
    ]


@pytest.fixture
def vectors():
    return dict(VECTORS)


@pytest.fixture
def store(items, rankings, vectors):
    return RecordStore(items,
                       rankings,
                       vectors,
                       contact={
                           'linkedin': 'https://linkedin.com/in/sam',
                           'github': 'https://github.com/sam',
                           'email': 'sam@example.com'
                       })


@pytest.fixture
def mock_embedder():
    """Embedder whose query vector points at proj_portfolio unless a test overrides it."""
    embedder = MagicMock(spec=BedrockEmbed)
    embedder.embed_query.return_value = [1.0, 0.0, 0.0, 0.0]
    return embedder


@pytest.fixture
def mock_llm():
    """Generation client that streams a fixed answer."""
    llm = MagicMock(spec=BedrockLLM)
    llm.stream_response.side_effect = lambda **kwargs: iter(['Sam built ', 'a grounded assistant.'])
    llm.generate_response.return_value = ('{"intent": "general"}', None)
    return llm


@pytest.fixture
def mock_classifier_llm():
    """Classifier client; tests set generate_response.return_value or side_effect."""
    llm = MagicMock(spec=BedrockLLM)
    llm.generate_response.return_value = ('{"intent": "general", "about_subject": true}', None)
    return llm


@pytest.fixture
def current_date():
    """Fixed reference date so recency and year filters are deterministic."""
    return TODAY
