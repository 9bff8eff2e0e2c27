"""
Filter patterns select the log events a metric filter counts.

Only the text pattern syntax is modelled here. Anything else (JSON or space
delimited patterns) can be passed through `FilterPattern.literal`.
"""

import re
from dataclasses import dataclass
from typing import Protocol
from typing import Sequence

from logmetrics.errors import ValidationError

_BARE_TERM = re.compile(r"^[A-Za-z0-9_]+$")


class IFilterPattern(Protocol):
    @property
    def log_pattern_string(self) -> str: ...


@dataclass(frozen=True)
class TextPattern:
    log_pattern_string: str


def _quote_term(term: str) -> str:
    if _BARE_TERM.match(term):
        return term
    escaped = term.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _require_terms(terms: Sequence[str], what: str) -> None:
    if not terms:
        raise ValidationError(f"{what} requires at least one term")


class FilterPattern:
    """Factory for the filter patterns accepted by CloudWatch Logs."""

    @staticmethod
    def literal(log_pattern_string: str) -> TextPattern:
        """Use the given string verbatim."""
        return TextPattern(log_pattern_string)

    @staticmethod
    def all_events() -> TextPattern:
        """Match every log event."""
        return TextPattern("")

    @staticmethod
    def all_terms(*terms: str) -> TextPattern:
        """Match events that contain every one of `terms`."""
        _require_terms(terms, "all_terms")
        return TextPattern(" ".join(_quote_term(t) for t in terms))

    @staticmethod
    def any_term(*terms: str) -> TextPattern:
        """Match events that contain at least one of `terms`."""
        _require_terms(terms, "any_term")
        return TextPattern(" ".join(f"?{_quote_term(t)}" for t in terms))

    @staticmethod
    def any_term_group(*groups: Sequence[str]) -> TextPattern:
        """Match events that contain all the terms of at least one group."""
        _require_terms(groups, "any_term_group")
        rendered = []
        for group in groups:
            _require_terms(group, "any_term_group")
            rendered.append("?" + " ".join(_quote_term(t) for t in group))
        return TextPattern(" ".join(rendered))
