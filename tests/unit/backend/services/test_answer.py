"""Unit tests for modules.backend.services.answer."""

import pytest

from modules.backend.services.answer import (
    ENTRY_RULES,
    FALLBACK_RULES,
    AnswerRule,
    extract_answer,
    lookup,
    select_output_section,
)


def _section(component: str, *entries: dict) -> dict:
    return {"component_name": component, "outputs": list(entries)}


class TestLookup:
    def test_follows_keys_and_indexes(self):
        data = {"a": [{"b": "x"}, {"b": "y"}]}

        assert lookup(data, ("a", 1, "b")) == "y"

    @pytest.mark.parametrize(
        "data, path",
        [
            ({}, ("a",)),
            ({"a": "text"}, ("a", "b")),
            ({"a": []}, ("a", 0)),
            ({"a": {"0": "x"}}, ("a", 0)),
            ([1, 2], ("a",)),
            (None, ("a",)),
        ],
    )
    def test_missing_steps_yield_none(self, data, path):
        assert lookup(data, path) is None


class TestAnswerRule:
    def test_returns_non_blank_string(self):
        assert AnswerRule("t", ("text",)).apply({"text": "hi"}) == "hi"

    @pytest.mark.parametrize("value", ["", "   \n", 42, None, {"text": "x"}, ["x"]])
    def test_rejects_blank_or_non_string(self, value):
        assert AnswerRule("t", ("text",)).apply({"text": value}) is None

    def test_rule_names_are_unique(self):
        for rules in (ENTRY_RULES, FALLBACK_RULES):
            names = [rule.name for rule in rules]
            assert len(names) == len(set(names))


class TestSelectOutputSection:
    def test_prefers_expected_component(self):
        data = {"outputs": [_section("A"), _section("X")]}

        assert select_output_section(data, "X")["component_name"] == "X"

    def test_matches_component_id(self):
        data = {"outputs": [_section("A"), {"component_id": "ChatOutput-x1", "outputs": []}]}

        assert select_output_section(data, "ChatOutput-x1")["component_id"] == "ChatOutput-x1"

    def test_falls_back_to_first_when_expected_missing(self):
        data = {"outputs": [_section("A"), _section("B")]}

        assert select_output_section(data, "X")["component_name"] == "A"

    def test_first_without_expected_component(self):
        data = {"outputs": [_section("A"), _section("B")]}

        assert select_output_section(data)["component_name"] == "A"

    @pytest.mark.parametrize("data", [{}, {"outputs": []}, {"outputs": "x"}, {"outputs": [1, "a"]}, None])
    def test_no_section(self, data):
        assert select_output_section(data) is None


class TestExtractAnswer:
    def test_nested_message_text_for_expected_component(self):
        data = {
            "outputs": [
                _section("X", {"results": {"message": {"text": "hello"}}}),
            ]
        }

        assert extract_answer(data, "X") == "hello"

    def test_expected_component_chosen_among_sections(self):
        data = {
            "outputs": [
                _section("Debug", {"results": {"message": {"text": "debug output"}}}),
                _section("ChatOutput", {"results": {"message": {"text": "answer"}}}),
            ]
        }

        assert extract_answer(data, "ChatOutput") == "answer"
        assert extract_answer(data) == "debug output"

    def test_top_level_message_fallback(self):
        assert extract_answer({"message": "fallback"}) == "fallback"

    def test_empty_document_is_none(self):
        assert extract_answer({}) is None

    @pytest.mark.parametrize("data", [None, [], "text", 42, True])
    def test_non_mapping_is_none(self, data):
        assert extract_answer(data) is None

    def test_skips_blank_entries(self):
        data = {
            "outputs": [
                _section(
                    "X",
                    {"results": {"message": {"text": "   "}}},
                    {"results": {"text": "second"}},
                )
            ]
        }

        assert extract_answer(data) == "second"

    def test_priority_within_entry(self):
        entry = {
            "results": {"message": {"text": "preferred"}, "text": "flat"},
            "artifacts": {"message": "artifact"},
        }

        assert extract_answer({"outputs": [_section("X", entry)]}) == "preferred"

    @pytest.mark.parametrize(
        "entry, expected",
        [
            ({"results": {"message": {"data": {"text": "data text"}}}}, "data text"),
            ({"results": {"output_text": "out"}}, "out"),
            ({"outputs": {"message": {"message": {"text": "deep"}}}}, "deep"),
            ({"outputs": {"message": {"message": "flat message"}}}, "flat message"),
            ({"artifacts": {"message": "artifact"}}, "artifact"),
            ({"messages": [{"message": "from messages"}]}, "from messages"),
            ({"content": "raw"}, "raw"),
        ],
    )
    def test_entry_shapes(self, entry, expected):
        assert extract_answer({"outputs": [_section("X", entry)]}) == expected

    def test_falls_back_when_sections_have_no_text(self):
        data = {"outputs": [_section("X", {"results": {}})], "text": "top level"}

        assert extract_answer(data) == "top level"

    def test_malformed_outputs_do_not_raise(self):
        data = {"outputs": [{"outputs": "not a list"}, None], "message": {"text": "nested"}}

        assert extract_answer(data) == "nested"
