"""Tests for question catalog loading and consistency checks."""

import json
from dataclasses import replace

import pytest

from carbon_readiness.core.catalog import (
    SUPPORTED_LANGUAGES,
    check_parallel,
    filter_by_domains,
    find_option,
    get_domain,
    get_question,
    is_rtl,
    load_catalog,
    load_questions,
    normalize_language,
)
from carbon_readiness.errors import CatalogError


class TestShippedCatalogs:
    def test_every_language_loads(self, catalogs):
        assert set(catalogs) == set(SUPPORTED_LANGUAGES)

    def test_twelve_questions_worth_one_hundred(self, en_catalog):
        assert len(en_catalog.questions) == 12
        assert sum(q.max_points for q in en_catalog.questions) == 100

    def test_domain_points_match_their_questions(self, en_catalog):
        for d in en_catalog.domains:
            qs = filter_by_domains(en_catalog, [d.id])
            assert sum(q.max_points for q in qs) == d.points

    def test_languages_share_ids_and_points(self, catalogs):
        en, ar = catalogs["en"], catalogs["ar"]
        assert [q.id for q in en.questions] == [q.id for q in ar.questions]
        for q_en, q_ar in zip(en.questions, ar.questions):
            assert [(o.value, o.points) for o in q_en.options] == [(o.value, o.points) for o in q_ar.options]
            assert q_en.text != q_ar.text

    def test_some_options_carry_report_context(self, en_catalog):
        contexts = [o.report_context for q in en_catalog.questions for o in q.options if o.report_context]
        assert contexts


class TestLanguage:
    def test_unknown_language_falls_back_to_english(self):
        assert normalize_language("de") == "en"
        assert normalize_language(None) == "en"
        assert normalize_language(" AR ") == "ar"

    def test_arabic_is_rtl(self):
        assert is_rtl("ar")
        assert not is_rtl("fr")

    def test_load_catalog_with_unknown_language_gives_english(self):
        assert load_catalog("xx").language == "en"


class TestLookups:
    def test_filter_none_returns_all(self, en_catalog):
        assert filter_by_domains(en_catalog) == en_catalog.questions

    def test_filter_keeps_catalog_order(self, en_catalog):
        ids = [q.id for q in filter_by_domains(en_catalog, ["finance", "market_awareness"])]
        assert ids == ["q1", "q2", "q3", "q9", "q10"]

    def test_get_domain_and_question(self, en_catalog):
        assert get_domain(en_catalog, "mrv").points == 15
        assert get_domain(en_catalog, "nope") is None
        assert get_question(en_catalog.questions, "q4").domain == "strategy"
        assert get_question(en_catalog.questions, "q99") is None

    def test_find_option_misses_return_none(self, en_catalog):
        q1 = en_catalog.questions[0]
        assert find_option(q1, "expert").points == 7
        assert find_option(q1, "stale-value") is None
        assert find_option(None, "expert") is None
        assert find_option(q1, None) is None


class TestLoadQuestionsErrors:
    def _write(self, tmp_path, payload):
        path = tmp_path / "questions_en.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError):
            load_questions(tmp_path / "missing.json")

    def test_duplicate_question_ids(self, tmp_path):
        q = {"id": "q1", "domain": "d", "text": "T", "options": [{"value": "a", "label": "A", "points": 1}]}
        path = self._write(tmp_path, {"domains": [{"id": "d", "name": "D"}], "questions": [q, q]})
        with pytest.raises(CatalogError, match="unique"):
            load_questions(path)

    def test_negative_points(self, tmp_path):
        q = {"id": "q1", "domain": "d", "text": "T", "options": [{"value": "a", "label": "A", "points": -1}]}
        path = self._write(tmp_path, {"domains": [{"id": "d", "name": "D"}], "questions": [q]})
        with pytest.raises(CatalogError, match="negative"):
            load_questions(path)

    def test_unknown_domain(self, tmp_path):
        q = {"id": "q1", "domain": "other", "text": "T", "options": [{"value": "a", "label": "A", "points": 1}]}
        path = self._write(tmp_path, {"domains": [{"id": "d", "name": "D"}], "questions": [q]})
        with pytest.raises(CatalogError, match="unknown domain"):
            load_questions(path)

    def test_malformed_option(self, tmp_path):
        q = {"id": "q1", "domain": "d", "text": "T", "options": [{"value": "a"}]}
        path = self._write(tmp_path, {"domains": [{"id": "d", "name": "D"}], "questions": [q]})
        with pytest.raises(CatalogError):
            load_questions(path)


class TestCheckParallel:
    def test_shipped_catalogs_are_parallel(self, catalogs):
        check_parallel(catalogs)

    def test_points_drift_is_rejected(self, catalogs):
        fr = catalogs["fr"]
        q1 = fr.questions[0]
        drifted_q1 = replace(q1, options=[replace(q1.options[0], points=99)] + list(q1.options[1:]))
        drifted = replace(fr, questions=[drifted_q1] + list(fr.questions[1:]))
        with pytest.raises(CatalogError, match="q1"):
            check_parallel({"en": catalogs["en"], "fr": drifted})

    def test_missing_question_is_rejected(self, catalogs):
        ar = catalogs["ar"]
        short = replace(ar, questions=list(ar.questions[:-1]))
        with pytest.raises(CatalogError, match="missing"):
            check_parallel({"en": catalogs["en"], "ar": short})
