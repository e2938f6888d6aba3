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

"""Cross-feature dependency rules for EnergyControl feature flags.

Every rule is evaluated independently on each endpoint that declares CTRL;
a dependency satisfied on one endpoint never satisfies it on another.
"""

import logging

from mash_pics.rules.common import (
    endpoint_code,
    endpoint_declares,
    endpoint_label,
    entry_lines,
)
from mash_pics.validators.rules import BaseRule, Rule, Severity

logger = logging.getLogger(__name__)

CATEGORY = "dependency"
BASE_FEATURE = "CTRL"


class FlagRequirementRule(Rule):
    """A CTRL feature flag that requires other codes on the same endpoint.

    Args:
        base: Rule identity
        flag: Flag code suffix, e.g. "CTRL.F0A"
        flag_label: Human name of the flag, e.g. "V2X feature flag (F0A)"
        requirements: List of (code suffix, label) that must be declared
        suggestion: Suggestion text; "{code}" is replaced by the first
            missing code
    """

    def __init__(self, base, flag, flag_label, requirements, suggestion):
        super().__init__(base)
        self.flag = flag
        self.flag_label = flag_label
        self.requirements = requirements
        self.suggestion = suggestion

    def check(self, pics):
        violations = []
        for endpoint in pics.endpoints_with_feature(BASE_FEATURE):
            if not endpoint_declares(pics, endpoint, self.flag):
                continue

            missing = [
                (endpoint_code(pics, endpoint, suffix), label)
                for suffix, label in self.requirements
                if not endpoint_declares(pics, endpoint, suffix)
            ]
            if not missing:
                continue

            flag_code = endpoint_code(pics, endpoint, self.flag)
            labels = ", ".join(label for _, label in missing)
            violations.append(self.base.violation(
                f"{endpoint_label(endpoint)}: {self.flag_label} requires "
                f"{labels}",
                codes=[flag_code] + [code for code, _ in missing],
                lines=entry_lines(pics, flag_code),
                suggestion=self.suggestion.format(code=missing[0][0]),
            ))
        return violations


class AsymmetricRequiresMultiPhase(Rule):
    """ASYMMETRIC (F09) needs an Electrical feature that is not single phase."""

    def __init__(self):
        super().__init__(BaseRule(
            "DEP-002", "ASYMMETRIC requires multi-phase", CATEGORY,
            Severity.WARNING,
        ))

    def check(self, pics):
        violations = []
        for endpoint in pics.endpoints_with_feature(BASE_FEATURE):
            if not endpoint_declares(pics, endpoint, "CTRL.F09"):
                continue

            flag_code = endpoint_code(pics, endpoint, "CTRL.F09")
            if not endpoint.has_feature("ELEC"):
                elec_code = endpoint_code(pics, endpoint, "ELEC")
                violations.append(self.base.violation(
                    f"{endpoint_label(endpoint)}: ASYMMETRIC flag (F09) "
                    "requires the Electrical feature",
                    codes=[flag_code, elec_code],
                    lines=entry_lines(pics, flag_code),
                    suggestion=f"Add {elec_code}=1 to enable the Electrical "
                               "feature",
                ))
                continue

            phase_code = endpoint_code(pics, endpoint, "ELEC.A01")
            if pics.get_int(phase_code) == 1:
                violations.append(self.base.violation(
                    f"{endpoint_label(endpoint)}: ASYMMETRIC flag (F09) "
                    "requires phaseCount > 1",
                    codes=[flag_code, phase_code],
                    lines=entry_lines(pics, flag_code, phase_code),
                    suggestion="Set phaseCount to 3 for three-phase support",
                ))
        return violations


class V2XRequiresSupportedDirections(Rule):
    """V2X (F0A) with Electrical should declare supportedDirections."""

    def __init__(self):
        super().__init__(BaseRule(
            "DEP-009", "V2X requires BIDIRECTIONAL", CATEGORY,
            Severity.WARNING,
        ))

    def check(self, pics):
        violations = []
        for endpoint in pics.endpoints_with_feature(BASE_FEATURE):
            if not endpoint_declares(pics, endpoint, "CTRL.F0A"):
                continue
            # Missing ELEC is reported by the mandatory rules
            if not endpoint.has_feature("ELEC"):
                continue
            if endpoint_declares(pics, endpoint, "ELEC.A05"):
                continue

            flag_code = endpoint_code(pics, endpoint, "CTRL.F0A")
            violations.append(self.base.violation(
                f"{endpoint_label(endpoint)}: V2X (F0A) typically requires "
                "BIDIRECTIONAL in supportedDirections (ELEC.A05)",
                codes=[flag_code, endpoint_code(pics, endpoint, "ELEC.A05")],
                lines=entry_lines(pics, flag_code),
                suggestion="Declare supportedDirections and ensure it "
                           "includes BIDIRECTIONAL",
            ))
        return violations


class BatteryEmobExclusion(Rule):
    """BATTERY (F02) and EMOB (F03) are rarely found on one endpoint."""

    def __init__(self):
        super().__init__(BaseRule(
            "DEP-010", "BATTERY and EMOB mutual exclusion", CATEGORY,
            Severity.WARNING,
        ))

    def check(self, pics):
        violations = []
        for endpoint in pics.endpoints_with_feature(BASE_FEATURE):
            if not (endpoint_declares(pics, endpoint, "CTRL.F02")
                    and endpoint_declares(pics, endpoint, "CTRL.F03")):
                continue
            codes = [
                endpoint_code(pics, endpoint, "CTRL.F02"),
                endpoint_code(pics, endpoint, "CTRL.F03"),
            ]
            violations.append(self.base.violation(
                f"{endpoint_label(endpoint)}: BATTERY (F02) and EMOB (F03) "
                "are typically mutually exclusive",
                codes=codes,
                lines=entry_lines(pics, *codes),
                suggestion="Verify this endpoint genuinely supports both "
                           "stationary battery and e-mobility charging",
            ))
        return violations


def dependency_rules():
    """Return the dependency rules in registration order."""
    return [
        FlagRequirementRule(
            BaseRule("DEP-001", "V2X requires EMOB", CATEGORY,
                     Severity.ERROR),
            "CTRL.F0A", "V2X feature flag (F0A)",
            [("CTRL.F03", "EMOB feature flag (F03)")],
            "Add {code}=1 to enable EMOB",
        ),
        AsymmetricRequiresMultiPhase(),
        FlagRequirementRule(
            BaseRule("DEP-003", "SIGNALS requires SIG feature", CATEGORY,
                     Severity.ERROR),
            "CTRL.F04", "SIGNALS flag (F04)",
            [("SIG", "Signals feature (SIG)")],
            "Add {code}=1 to enable the Signals feature",
        ),
        FlagRequirementRule(
            BaseRule("DEP-004", "TARIFF requires TAR feature", CATEGORY,
                     Severity.ERROR),
            "CTRL.F05", "TARIFF flag (F05)",
            [("TAR", "Tariff feature (TAR)")],
            "Add {code}=1 to enable the Tariff feature",
        ),
        FlagRequirementRule(
            BaseRule("DEP-005", "PLAN flag requires PLAN feature", CATEGORY,
                     Severity.ERROR),
            "CTRL.F06", "PLAN flag (F06)",
            [("PLAN", "Plan feature (PLAN)")],
            "Add {code}=1 to enable the Plan feature",
        ),
        FlagRequirementRule(
            BaseRule("DEP-006", "PROCESS requires process attributes",
                     CATEGORY, Severity.ERROR),
            "CTRL.F07", "PROCESS flag (F07)",
            [
                ("CTRL.A50", "processState (A50)"),
                ("CTRL.A51", "optionalProcess (A51)"),
            ],
            "Add the required process attributes, starting with {code}=1",
        ),
        FlagRequirementRule(
            BaseRule("DEP-007", "FORECAST requires forecast attribute",
                     CATEGORY, Severity.ERROR),
            "CTRL.F08", "FORECAST flag (F08)",
            [("CTRL.A3D", "forecast attribute (A3D)")],
            "Add {code}=1 to declare forecast support",
        ),
        FlagRequirementRule(
            BaseRule("DEP-008", "EMOB requires CHRG feature", CATEGORY,
                     Severity.ERROR),
            "CTRL.F03", "EMOB flag (F03)",
            [("CHRG", "ChargingSession feature (CHRG)")],
            "Add {code}=1 to enable the ChargingSession feature",
        ),
        V2XRequiresSupportedDirections(),
        BatteryEmobExclusion(),
    ]


def register_dependency_rules(registry):
    for rule in dependency_rules():
        registry.register(rule)
