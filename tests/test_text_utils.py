"""Tests for text normalization, fuzzy matching and temporal hints."""

from datetime import date

import pytest

from askfolio.utils.display_names import format_skill_id, get_short_class_name, get_short_experience_label
from askfolio.utils.temporal_utils import derive_temporal_hints, months_since, parse_year, year_distance
from askfolio.utils.text_utils import contains_word, escape_attribute, is_fuzzy_match, normalize_query_text, normalize_skill_token, truncate


class TestNormalizeQueryText:
    def test_strips_diacritics_and_punctuation(self):
        assert normalize_query_text('Café  Déjà-Vu!') == 'cafe deja vu'

    def test_none_is_empty(self):
        assert normalize_query_text(None) == ''

    def test_skill_token(self):
        assert normalize_skill_token('Sentence Transformers') == 'sentence_transformers'


class TestFuzzyMatch:
    @pytest.mark.parametrize('search,target', [
        ('sentence transformer', 'sentence transformers'),
        ('python', 'python'),
        ('react', 'react native'),
        ('apis', 'api'),
    ])
    def test_matches(self, search, target):
        assert is_fuzzy_match(search, target)

    @pytest.mark.parametrize('search,target', [
        ('r', 'react'),
        ('go', 'django'),
        ('python', 'java'),
        ('', 'python'),
    ])
    def test_non_matches(self, search, target):
        assert not is_fuzzy_match(search, target)

    def test_short_name_matches_whole_word(self):
        assert is_fuzzy_match('r', 'r lang')


class TestStringHelpers:
    def test_contains_word_respects_boundaries(self):
        assert contains_word('what is hl', 'hl')
        assert not contains_word('the html page', 'hl')

    def test_truncate(self):
        assert truncate('abcdefghij', 8) == 'abcde...'
        assert truncate('short', 8) == 'short'

    def test_escape_attribute(self):
        assert escape_attribute('say "hi" <now>') == 'say &quot;hi&quot; &lt;now&gt;'


class TestTemporalHints:
    def test_explicit_year(self):
        assert derive_temporal_hints('projects from 2023', date(2025, 3, 1)).years == [2023]

    def test_relative_years(self):
        current = date(2025, 3, 1)
        assert derive_temporal_hints('what is sam doing this year', current).years == [2025]
        assert derive_temporal_hints('what did sam do last year', current).years == [2024]
        assert derive_temporal_hints('plans for next year', current).years == [2026]
        assert derive_temporal_hints('work over the past two years', current).years == [2025, 2024]

    def test_recent_has_no_years(self):
        hints = derive_temporal_hints('recent work', date(2025, 3, 1))
        assert hints.years == []
        assert hints.relative == 'recent'

    def test_parse_year_and_months(self):
        assert parse_year('Fall 2022') == 2022
        assert parse_year(None) is None
        assert months_since('2024-03', date(2025, 3, 15)) == 12
        assert months_since('2030-01', date(2025, 3, 15)) == 0

    def test_year_distance(self):
        assert year_distance(2023, [2025, 2022]) == 1
        assert year_distance(None, [2025]) is None


class TestDisplayNames:
    def test_format_skill_id(self):
        assert format_skill_id('machine_learning') == 'Machine Learning'
        assert format_skill_id('nlp') == 'NLP'
        assert format_skill_id('csharp') == 'C#'

    def test_short_class_name(self):
        assert get_short_class_name('COMP 646 Deep Learning for Vision and Language') == 'COMP 646'
        assert get_short_class_name('Introduction to Data Science Methods') == 'Data Science Methods'

    def test_short_experience_label(self):
        assert get_short_experience_label('Veson Nautical', 'Software Engineering Intern', ['veson']) == 'veson (SWE)'
