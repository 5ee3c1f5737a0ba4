"""Best-effort reply extraction from upstream response bodies.

Providers move the generated text around between API versions, so the
extractor walks an ordered list of candidate paths and takes the first one
that yields text. When nothing matches, a truncated serialization of the
whole body is returned instead of an error.
"""

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

PathSegment = str | int

FALLBACK_LIMIT = 1000

_MISSING = object()


def as_text(value: Any) -> str | None:
    """Accept a non-empty string, or a list of content parts with ``text`` fields.

    Returns:
        The text, or None if the value does not count as a reply
    """
    if isinstance(value, str):
        return value or None

    if isinstance(value, list):
        parts = [
            part["text"]
            for part in value
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        return "".join(parts) or None

    return None


@dataclass(frozen=True)
class ExtractionRule:
    """A field path into the response body plus the predicate its value must pass.

    Attributes:
        name: Dotted label used in logs and tests
        path: Keys (str) and list indexes (int) to follow from the body root
        accept: Turns the resolved value into reply text, or None to reject it
    """

    name: str
    path: tuple[PathSegment, ...]
    accept: Callable[[Any], str | None] = as_text

    def resolve(self, body: Any) -> Any:
        """Follow the path, returning _MISSING as soon as a segment does not exist."""
        current = body
        for segment in self.path:
            if isinstance(segment, int):
                if not isinstance(current, list) or not -len(current) <= segment < len(current):
                    return _MISSING
                current = current[segment]
            else:
                if not isinstance(current, dict) or segment not in current:
                    return _MISSING
                current = current[segment]
        return current

    def apply(self, body: Any) -> str | None:
        value = self.resolve(body)
        if value is _MISSING:
            return None
        return self.accept(value)


DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("message.content", ("message", "content")),
    ExtractionRule("output[0].content", ("output", 0, "content")),
    ExtractionRule("output[0].text", ("output", 0, "text")),
    ExtractionRule("generations[0].text", ("generations", 0, "text")),
    ExtractionRule("choices[0].message.content", ("choices", 0, "message", "content")),
    ExtractionRule("result.content", ("result", "content")),
    ExtractionRule("text", ("text",)),
)


class ReplyExtractor:
    """Applies extraction rules in order; first non-empty match wins."""

    def __init__(
        self,
        rules: Sequence[ExtractionRule] = DEFAULT_RULES,
        fallback_limit: int = FALLBACK_LIMIT,
    ) -> None:
        self._rules = tuple(rules)
        self._fallback_limit = fallback_limit

    @property
    def rules(self) -> tuple[ExtractionRule, ...]:
        return self._rules

    def match(self, body: Any) -> tuple[ExtractionRule, str] | None:
        """Return the first rule that yields text, with that text."""
        for rule in self._rules:
            text = rule.apply(body)
            if text is not None:
                return rule, text
        return None

    def extract(self, body: Any) -> str:
        """Extract reply text, falling back to a truncated dump of the body."""
        found = self.match(body)
        if found is not None:
            return found[1]
        return self.fallback(body)

    def fallback(self, body: Any) -> str:
        if isinstance(body, str):
            text = body
        else:
            text = json.dumps(body, ensure_ascii=False, separators=(",", ":"), default=str)
        return text[: self._fallback_limit]
