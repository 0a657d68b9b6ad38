"""
Request interception rules for mocking API calls made by a rendered page.

Kept independent of the browser's routing callbacks so the matching logic
can be exercised without a real browser.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field

MOCK_CONTENT_TYPE = "application/json; charset=utf-8"


class InterceptRule(BaseModel):
    """Mock `apiBody` for every request whose URL contains `apiUrl`."""

    apiUrl: str = Field(..., min_length=1, description="Substring to match against request URLs")
    apiBody: Any = Field(None, description="JSON payload returned to the page")


@dataclass(frozen=True)
class MockResponse:
    """Synthetic response used to fulfil an intercepted request."""

    body: str
    status: int = 200
    content_type: str = MOCK_CONTENT_TYPE


def find_matching_rule(url: str, rules: Sequence[InterceptRule]) -> Optional[InterceptRule]:
    """Return the first rule whose match substring occurs in `url`."""
    for rule in rules:
        if rule.apiUrl in url:
            return rule
    return None


def resolve_interception(url: str, rules: Sequence[InterceptRule]) -> Optional[MockResponse]:
    """
    Decide how an outgoing request is handled.

    Returns:
        A MockResponse to short-circuit the request, or None to let it
        continue to the network unmodified
    """
    rule = find_matching_rule(url, rules)
    if rule is None:
        return None
    return MockResponse(body=json.dumps(rule.apiBody, separators=(",", ":")))
