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

"""Style and consistency checks run on top of the rule registry."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List

from mash_pics.configs.constants import (
    APPLICATION_FEATURES,
    LINT_SEVERITY_ORDER,
)
from mash_pics.model.codes import ElementType
from mash_pics.parsers.errors import PICSParseError
from mash_pics.parsers.pics_parser import parse_file
from mash_pics.rules import new_default_registry
from mash_pics.rules.common import endpoint_label
from mash_pics.validators.rules import Severity

logger = logging.getLogger(__name__)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_SUGGESTION = "suggestion"
SEVERITY_INFO = "info"


@dataclass
class LintIssue:
    code: str
    severity: str
    message: str
    line: int = 0
    suggestion: str = ""

    def to_dict(self):
        result = {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
        }
        if self.line:
            result["line"] = self.line
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


@dataclass
class LintResult:
    """Lint outcome for one file.

    A file is clean unless it failed to parse, a rule reported an error or
    a code was declared more than once.
    """

    file: str
    issues: List[LintIssue] = field(default_factory=list)
    clean: bool = True

    def count(self, severity):
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_dict(self):
        return {
            "file": self.file,
            "issues": [issue.to_dict() for issue in self.issues],
            "clean": self.clean,
        }


def severity_order(severity):
    if severity in LINT_SEVERITY_ORDER:
        return LINT_SEVERITY_ORDER.index(severity)
    return len(LINT_SEVERITY_ORDER)


def sort_issues(issues):
    return sorted(issues, key=lambda i: (severity_order(i.severity), i.line))


def check_version(pics):
    if pics.has("MASH.S.VERSION") or pics.has("MASH.C.VERSION"):
        return []
    return [
        LintIssue(
            code="LINT-VERSION",
            severity=SEVERITY_SUGGESTION,
            message="Missing VERSION declaration",
            suggestion="Add MASH.S.VERSION=1 or MASH.C.VERSION=1",
        )
    ]


def check_duplicates(pics):
    """Report codes declared more than once.

    The code index keeps only the last declaration, so this scans the
    ordered entry list instead.
    """
    counts = Counter(str(entry.code) for entry in pics.entries)
    issues = []
    reported = set()
    for entry in pics.entries:
        code = str(entry.code)
        if counts[code] < 2 or code in reported:
            continue
        reported.add(code)
        issues.append(
            LintIssue(
                code="LINT-DUPLICATE",
                severity=SEVERITY_WARNING,
                message=f"Duplicate entry: {code} (appears {counts[code]} times)",
                line=entry.line_number,
                suggestion="Remove duplicate declarations",
            )
        )
    return issues


def check_empty_features(pics):
    """Report application features enabled without any typed declaration."""
    typed = set()
    for entry in pics.entries:
        code = entry.code
        if code.feature and code.element_type != ElementType.NONE:
            typed.add((code.endpoint_id, code.feature))

    issues = []
    for feature in pics.features:
        if feature not in APPLICATION_FEATURES:
            continue
        if not any(f == feature for _, f in typed):
            issues.append(
                LintIssue(
                    code="LINT-EMPTY",
                    severity=SEVERITY_SUGGESTION,
                    message=f"Feature {feature} declared but has no attributes",
                    suggestion="Add attributes or remove the feature declaration",
                )
            )

    for endpoint in pics.endpoints_sorted():
        for feature in endpoint.features:
            if feature not in APPLICATION_FEATURES:
                continue
            if (endpoint.id, feature) not in typed:
                issues.append(
                    LintIssue(
                        code="LINT-EMPTY",
                        severity=SEVERITY_SUGGESTION,
                        message=(
                            f"{endpoint_label(endpoint)}: feature {feature} "
                            "declared but has no attributes"
                        ),
                        suggestion=(
                            "Add attributes or remove the feature declaration"
                        ),
                    )
                )
    return issues


def violation_to_issue(violation):
    if violation.severity == Severity.ERROR:
        severity = SEVERITY_ERROR
    elif violation.severity == Severity.WARNING:
        severity = SEVERITY_WARNING
    else:
        severity = SEVERITY_INFO
    line = violation.line_numbers[0] if violation.line_numbers else 0
    return LintIssue(
        code=violation.rule_id,
        severity=severity,
        message=violation.message,
        line=line,
        suggestion=violation.suggestion,
    )


def lint_pics(pics, registry=None, file_name=""):
    """Lint a parsed document.

    Args:
        pics: Parsed PICS document
        registry: Rule registry, defaults to a fresh default registry
        file_name: Name reported in the result
    Returns:
        LintResult with issues sorted by severity, then line

    """
    if registry is None:
        registry = new_default_registry()

    result = LintResult(file=file_name or pics.source_file)
    for violation in registry.run_rules(pics):
        issue = violation_to_issue(violation)
        if issue.severity == SEVERITY_ERROR:
            result.clean = False
        result.issues.append(issue)

    result.issues.extend(check_version(pics))

    duplicates = check_duplicates(pics)
    if duplicates:
        result.clean = False
    result.issues.extend(duplicates)

    result.issues.extend(check_empty_features(pics))
    result.issues = sort_issues(result.issues)
    logger.debug(f"Lint of {result.file}: {len(result.issues)} issue(s)")
    return result


def lint_file(path, registry=None):
    """Parse and lint a file, reporting parse failures as a PARSE issue."""
    try:
        pics = parse_file(path)
    except PICSParseError as e:
        logger.error(f"Failed to parse {path}: {e}")
        return LintResult(
            file=path,
            issues=[LintIssue("PARSE", SEVERITY_ERROR, str(e))],
            clean=False,
        )
    return lint_pics(pics, registry, file_name=path)
