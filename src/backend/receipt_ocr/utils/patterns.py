"""
Tagged regex pattern tables shared by the date and field extractors.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    flags: int = re.IGNORECASE
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))

    def search(self, text: str) -> Optional[re.Match]:
        return self.compiled.search(text)


def first_match(specs: List[PatternSpec], text: str) -> Optional[re.Match]:
    """Return the match of the first spec (in table order) that matches ``text``."""
    for spec in specs:
        match = spec.compiled.search(text)
        if match:
            return match
    return None


def any_match(specs: List[PatternSpec], text: str) -> bool:
    return first_match(specs, text) is not None
