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

"""Validation facade.

Without a rule registry a small fixed set of checks runs (protocol
declaration, CTRL flag dependencies and, in strict mode, command
consistency and mandatory attributes). With a registry every enabled rule
runs and its violations are folded into errors and warnings.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from mash_pics.parsers.errors import PICSParseError
from mash_pics.parsers.pics_parser import parse_file
from mash_pics.rules.common import endpoint_label
from mash_pics.utils.helpers import format_endpoint_code
from mash_pics.validators.registry import RuleRegistry
from mash_pics.validators.rules import Severity

logger = logging.getLogger(__name__)


@dataclass
class ValidationError:
    code: str
    message: str
    line: int = 0

    def __str__(self):
        if self.line > 0:
            return f"line {self.line}: {self.code}: {self.message}"
        return f"{self.code}: {self.message}"

    def to_dict(self):
        return {"code": self.code, "message": self.message, "line": self.line}


@dataclass
class ValidationResult:
    """Errors and warnings of one validation run. Valid iff no errors."""

    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationError] = field(default_factory=list)

    @property
    def valid(self):
        return not self.errors

    def add_error(self, code, message, line=0):
        self.errors.append(ValidationError(code, message, line))

    def add_warning(self, code, message, line=0):
        self.warnings.append(ValidationError(code, message, line))

    def to_dict(self):
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class ValidateOptions:
    """Registry driven validation settings.

    ``min_severity`` of None keeps violations of every severity.
    ``disabled_rules`` and ``enabled_categories`` are applied to the
    registry itself before the rules run.
    """

    registry: Optional[RuleRegistry] = None
    min_severity: Optional[Severity] = None
    disabled_rules: List[str] = field(default_factory=list)
    enabled_categories: List[str] = field(default_factory=list)


CTRL_MANDATORY = [
    ("01", "deviceType"),
    ("02", "controlState"),
    ("0A", "acceptsLimits"),
    ("0B", "acceptsCurrentLimits"),
    ("0C", "acceptsSetpoints"),
    ("0E", "isPausable"),
    ("46", "failsafeConsumptionLimit"),
    ("48", "failsafeDuration"),
]

ELEC_MANDATORY = [
    ("01", "phaseCount"),
    ("05", "supportedDirections"),
]


class Validator:
    """Validates PICS documents.

    Args:
        strict: Also run the consistency and mandatory checks of the fixed
            check set
    """

    def __init__(self, strict=False):
        self.strict = strict

    def validate(self, pics):
        """Run the fixed check set.

        Args:
            pics: Parsed PICS document
        Returns:
            ValidationResult

        """
        result = ValidationResult()
        self.check_protocol_declaration(pics, result)
        self.check_feature_flag_dependencies(pics, result)
        if self.strict:
            self.check_command_consistency(pics, result)
            self.check_mandatory_attributes(pics, result)
        logger.debug(
            f"Validation finished: {len(result.errors)} error(s), "
            f"{len(result.warnings)} warning(s)"
        )
        return result

    def check_protocol_declaration(self, pics, result):
        has_server = pics.has("MASH.S")
        has_client = pics.has("MASH.C")
        if not has_server and not has_client:
            result.add_error(
                "PROTOCOL",
                "missing protocol declaration (MASH.S or MASH.C required)",
            )
        if has_server and has_client:
            result.add_warning(
                "PROTOCOL", "both MASH.S and MASH.C declared (unusual)"
            )

    def check_feature_flag_dependencies(self, pics, result):
        side = pics.side_code()
        for endpoint in pics.endpoints_with_feature("CTRL"):
            label = endpoint_label(endpoint)

            def has(suffix):
                return pics.has(format_endpoint_code(side, endpoint.id, suffix))

            if has("CTRL.F0A") and not has("CTRL.F03"):
                result.add_error(
                    "DEPENDENCY", f"{label}: V2X (F0A) requires EMOB (F03)"
                )
            if has("CTRL.F09") and not has("ELEC"):
                result.add_warning(
                    "DEPENDENCY",
                    f"{label}: ASYMMETRIC (F09) typically requires "
                    "Electrical feature",
                )
            if has("CTRL.F04") and not has("SIG"):
                result.add_warning(
                    "DEPENDENCY",
                    f"{label}: SIGNALS flag (F04) should have Signals "
                    "feature enabled",
                )
            if has("CTRL.F06") and not has("PLAN"):
                result.add_warning(
                    "DEPENDENCY",
                    f"{label}: PLAN flag (F06) should have Plan feature "
                    "enabled",
                )

    def check_command_consistency(self, pics, result):
        side = pics.side_code()
        for endpoint in pics.endpoints_with_feature("CTRL"):
            label = endpoint_label(endpoint)

            def has(suffix):
                return pics.has(format_endpoint_code(side, endpoint.id, suffix))

            if has("CTRL.A0A") and not has("CTRL.C01.Rsp"):
                result.add_error(
                    "CONSISTENCY",
                    f"{label}: acceptsLimits (A0A) requires SetLimit command "
                    "(C01.Rsp)",
                )
            if has("CTRL.A0B") and not has("CTRL.C03.Rsp"):
                result.add_error(
                    "CONSISTENCY",
                    f"{label}: acceptsCurrentLimits (A0B) requires "
                    "SetCurrentLimits command (C03.Rsp)",
                )
            if has("CTRL.A0C") and not has("CTRL.C05.Rsp"):
                result.add_warning(
                    "CONSISTENCY",
                    f"{label}: acceptsSetpoints (A0C) typically requires "
                    "SetSetpoint command (C05.Rsp)",
                )
            if has("CTRL.A0E"):
                if not has("CTRL.C09.Rsp"):
                    result.add_warning(
                        "CONSISTENCY",
                        f"{label}: isPausable (A0E) typically requires Pause "
                        "command (C09.Rsp)",
                    )
                if not has("CTRL.C0A.Rsp"):
                    result.add_warning(
                        "CONSISTENCY",
                        f"{label}: isPausable (A0E) typically requires Resume "
                        "command (C0A.Rsp)",
                    )

    def check_mandatory_attributes(self, pics, result):
        side = pics.side_code()
        for feature, label, attributes in (
            ("CTRL", "EnergyControl", CTRL_MANDATORY),
            ("ELEC", "Electrical", ELEC_MANDATORY),
        ):
            for endpoint in pics.endpoints_with_feature(feature):
                for attr_id, name in attributes:
                    code = format_endpoint_code(
                        side, endpoint.id, f"{feature}.A{attr_id}"
                    )
                    if not pics.has(code):
                        result.add_error(
                            "MANDATORY",
                            f"{endpoint_label(endpoint)}: {label} requires "
                            f"{name} (A{attr_id})",
                        )

    def validate_with_options(self, pics, options):
        """Validate with a rule registry.

        Falls back to ``validate`` when ``options.registry`` is None.

        Args:
            pics: Parsed PICS document
            options: ValidateOptions
        Returns:
            ValidationResult

        """
        registry = options.registry
        if registry is None:
            return self.validate(pics)

        if options.enabled_categories:
            registry.disable_all()
            for category in options.enabled_categories:
                registry.enable_category(category)

        # Applied after the category selection so it always wins
        for rule_id in options.disabled_rules:
            registry.disable(rule_id)

        result = ValidationResult()
        for violation in registry.run_rules(pics):
            if (options.min_severity is not None
                    and violation.severity > options.min_severity):
                continue

            line = violation.line_numbers[0] if violation.line_numbers else 0
            if violation.severity == Severity.ERROR:
                result.add_error(violation.rule_id, violation.message, line)
            else:
                result.add_warning(violation.rule_id, violation.message, line)
        return result


def validate_pics(pics):
    return Validator().validate(pics)


def validate_pics_strict(pics):
    return Validator(strict=True).validate(pics)


def validate_with_registry(pics, registry):
    """Run a registry, keeping errors and warnings."""
    return Validator().validate_with_options(
        pics, ValidateOptions(registry=registry, min_severity=Severity.WARNING)
    )


def meets_requirements(pics, requirements):
    """Check a list of PICS requirements against a document.

    A requirement is a code that must be true, or ``!CODE`` for a code that
    must not be.

    Args:
        pics: Parsed PICS document
        requirements: List of requirement strings
    Returns:
        Tuple of (all met, list of unmet requirements)

    """
    missing = []
    for requirement in requirements:
        if requirement.startswith("!"):
            if pics.has(requirement[1:]):
                missing.append(f"{requirement} (should NOT be present)")
        elif not pics.has(requirement):
            missing.append(requirement)
    return not missing, missing


def validate_file(path, registry, strict=False, disabled_rules=None,
                  categories=None):
    """Parse and validate a file with a rule registry.

    Args:
        path: PICS file path
        registry: RuleRegistry to run
        strict: Keep info level violations as warnings too
        disabled_rules: Rule IDs to disable before running
        categories: Restrict the run to these rule categories
    Returns:
        Tuple of (PICS or None when parsing failed, ValidationResult)

    """
    try:
        pics = parse_file(path)
    except PICSParseError as e:
        logger.error(f"Failed to parse {path}: {e}")
        result = ValidationResult()
        result.add_error("PARSE", str(e))
        return None, result

    logger.info(f"Validating {path} ({pics.format}, {len(pics.entries)} entries)")
    options = ValidateOptions(
        registry=registry,
        min_severity=Severity.INFO if strict else Severity.WARNING,
        disabled_rules=list(disabled_rules or []),
        enabled_categories=list(categories or []),
    )
    return pics, Validator().validate_with_options(pics, options)
