# Copyright 2025 Espressif Systems (Shanghai) PTE LTD
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Violation vocabulary shared by all conformance rules."""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    """Severity scale, most severe first."""

    ERROR = 0
    WARNING = 1
    INFO = 2

    def __str__(self):
        return self.name.lower()

    @classmethod
    def from_string(cls, name):
        try:
            return cls[name.upper()]
        except KeyError as e:
            raise ValueError(f"Unknown severity: {name}") from e


@dataclass
class Violation:
    """A single rule finding.

    The registry overwrites ``severity`` with its effective severity for the
    rule; no other field changes after the rule returns it.
    """

    rule_id: str
    severity: Severity
    message: str
    pics_codes: List[str] = field(default_factory=list)
    line_numbers: List[int] = field(default_factory=list)
    suggestion: str = ""

    def __str__(self):
        text = f"[{self.rule_id}] {self.severity}: {self.message}"
        if self.pics_codes:
            text += f" (codes: {', '.join(self.pics_codes)})"
        if self.line_numbers:
            text += f" [lines: {', '.join(str(n) for n in self.line_numbers)}]"
        if self.suggestion:
            text += f" -> {self.suggestion}"
        return text

    def to_dict(self):
        return {
            "rule_id": self.rule_id,
            "severity": str(self.severity),
            "message": self.message,
            "pics_codes": list(self.pics_codes),
            "line_numbers": list(self.line_numbers),
            "suggestion": self.suggestion,
        }


class BaseRule:
    """Identity shared by all rules.

    Concrete rules hold a BaseRule and delegate ``id``, ``name``,
    ``category`` and ``default_severity`` to it; ``check(pics)`` returns a
    list of Violation and must not modify the document.
    """

    def __init__(self, rule_id, name, category, default_severity):
        self.id = rule_id
        self.name = name
        self.category = category
        self.default_severity = default_severity

    def violation(self, message, codes=None, lines=None, suggestion="",
                  severity=None):
        """Build a Violation attributed to this rule."""
        return Violation(
            rule_id=self.id,
            severity=self.default_severity if severity is None else severity,
            message=message,
            pics_codes=list(codes or []),
            line_numbers=list(lines or []),
            suggestion=suggestion,
        )


class Rule:
    """Rule composed around a BaseRule identity."""

    def __init__(self, base):
        self.base = base

    @property
    def id(self):
        return self.base.id

    @property
    def name(self):
        return self.base.name

    @property
    def category(self):
        return self.base.category

    @property
    def default_severity(self):
        return self.base.default_severity

    def check(self, pics):
        raise NotImplementedError

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"


def filter_by_severity(violations, min_severity):
    """Keep violations at least as severe as ``min_severity``.

    Args:
        violations: List of Violation
        min_severity: Least severe level to keep
    Returns:
        Filtered list, order preserved

    """
    return [v for v in violations if v.severity <= min_severity]


def has_errors(violations):
    return any(v.severity == Severity.ERROR for v in violations)
