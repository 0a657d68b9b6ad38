"""
Unit tests for request interception rules.
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from webpdf_service.interception import (
    MOCK_CONTENT_TYPE,
    InterceptRule,
    find_matching_rule,
    resolve_interception,
)


@pytest.fixture
def rules():
    return [
        InterceptRule(apiUrl="/api/x", apiBody={"a": 1}),
        InterceptRule(apiUrl="/api/", apiBody={"fallback": True}),
    ]


class TestResolveInterception:

    def test_matching_request_gets_mock_response(self):
        rules = [InterceptRule(apiUrl="/api/x", apiBody={"a": 1})]

        mock = resolve_interception("https://example.com/api/x?page=2", rules)

        assert mock is not None
        assert mock.status == 200
        assert mock.content_type == MOCK_CONTENT_TYPE
        assert mock.body == '{"a":1}'

    def test_unmatched_request_passes_through(self, rules):
        assert resolve_interception("https://example.com/static/app.js", rules) is None

    def test_first_matching_rule_wins(self, rules):
        mock = resolve_interception("https://example.com/api/x", rules)

        assert json.loads(mock.body) == {"a": 1}

    def test_later_rule_used_when_earlier_does_not_match(self, rules):
        mock = resolve_interception("https://example.com/api/y", rules)

        assert json.loads(mock.body) == {"fallback": True}

    def test_no_rules_passes_through(self):
        assert resolve_interception("https://example.com/api/x", []) is None

    def test_non_object_bodies_are_serialized(self):
        rules = [InterceptRule(apiUrl="list", apiBody=[1, 2, 3])]

        assert resolve_interception("http://h/list", rules).body == "[1,2,3]"

    def test_find_matching_rule_returns_rule(self, rules):
        assert find_matching_rule("http://h/api/x", rules) is rules[0]


class TestInterceptRule:

    def test_requires_match_substring(self):
        with pytest.raises(PydanticValidationError):
            InterceptRule(apiUrl="", apiBody={})
