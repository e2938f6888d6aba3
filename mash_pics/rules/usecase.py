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

"""Use case feature requirement rules.

Device documents that declare ``MASH.S.UC.<name>=1`` must host the
features the use case needs on at least one endpoint. Scenario codes
(``MASH.S.UC.<name>.S<hh>=1``) add the features of that scenario to the
BASE scenario's.
"""

import logging

from mash_pics.model.feature_codes import feature_name_to_pics_code
from mash_pics.rules.common import endpoint_code, entry_lines
from mash_pics.usecases.registry import BASE_SCENARIO_BIT, USE_CASE_REGISTRY
from mash_pics.validators.rules import BaseRule, Rule, Severity

logger = logging.getLogger(__name__)

CATEGORY = "usecase"


class UseCaseRequirementsRule(Rule):
    """UC-001: declared use cases have their required features.

    Args:
        registry: Mapping of use case name to UseCaseDef
    """

    def __init__(self, registry=None):
        super().__init__(BaseRule(
            "UC-001", "Use case feature requirements", CATEGORY,
            Severity.ERROR,
        ))
        self.registry = USE_CASE_REGISTRY if registry is None else registry

    def declared_scenarios(self, pics, use_case):
        mask = 1 << BASE_SCENARIO_BIT
        for scenario in use_case.scenarios:
            code = (
                f"MASH.{pics.side_code()}.UC.{use_case.name}"
                f".S{scenario.bit:02X}"
            )
            if pics.has(code):
                mask |= 1 << scenario.bit
        return mask

    def check(self, pics):
        # Controllers are the client side and host no features
        if pics.is_controller():
            return []

        violations = []
        for name in pics.use_cases():
            uc_code = f"MASH.{pics.side_code()}.UC.{name}"
            use_case = self.registry.get(name)
            if use_case is None:
                violations.append(self.base.violation(
                    f"Use case {name} declared but not found in registry",
                    codes=[uc_code],
                    lines=entry_lines(pics, uc_code),
                    suggestion="Verify the use case name is correct",
                    severity=Severity.WARNING,
                ))
                continue

            features = [
                feature
                for feature in use_case.scenario_features(
                    self.declared_scenarios(pics, use_case)
                )
                if feature.required
            ]
            seen_types = []
            for feature in features:
                short_code = feature_name_to_pics_code(feature.feature_name)
                if short_code is None:
                    logger.warning(
                        f"Use case {name}: unknown feature "
                        f"{feature.feature_name}, skipping"
                    )
                    continue

                endpoints = pics.endpoints_with_feature(short_code)
                if not endpoints:
                    violations.append(self.base.violation(
                        f"Use case {name} requires {feature.feature_name} "
                        f"({short_code}) but no endpoint declares it",
                        codes=[uc_code],
                        lines=entry_lines(pics, uc_code),
                        suggestion=f"Add {short_code} feature to an "
                                   "appropriate endpoint",
                        severity=Severity.ERROR,
                    ))
                    continue

                seen_types.extend(endpoint.type for endpoint in endpoints)
                violations.extend(self.check_attributes(
                    pics, name, short_code, feature, endpoints, uc_code
                ))
                violations.extend(self.check_commands(
                    pics, name, short_code, feature, endpoints, uc_code
                ))

            allowed = use_case.endpoint_types
            if allowed and seen_types and not any(
                endpoint_type in allowed for endpoint_type in seen_types
            ):
                violations.append(self.base.violation(
                    f"Use case {name}: features found but not on allowed "
                    f"endpoint type (allowed: {', '.join(allowed)})",
                    codes=[uc_code],
                    lines=entry_lines(pics, uc_code),
                    suggestion="Place required features on an endpoint of "
                               f"type: {', '.join(allowed)}",
                    severity=Severity.WARNING,
                ))
        return violations

    def check_attributes(self, pics, name, short_code, feature, endpoints,
                         uc_code):
        violations = []
        for attr in feature.attributes:
            suffix = f"{short_code}.A{attr.attr_id:02X}"
            if any(
                self.attribute_satisfied(pics, endpoint, suffix, attr)
                for endpoint in endpoints
            ):
                continue

            if attr.required_value is None:
                expectation = "expected to be declared"
            else:
                expectation = (
                    f"expected to be declared as "
                    f"{1 if attr.required_value else 0}"
                )
            violations.append(self.base.violation(
                f"Use case {name}: {short_code}.{attr.name} "
                f"(A{attr.attr_id:02X}) {expectation}",
                codes=[uc_code],
                lines=entry_lines(pics, uc_code),
                suggestion=f"Add attribute A{attr.attr_id:02X} to "
                           f"{short_code} feature on an endpoint",
                severity=Severity.WARNING,
            ))
        return violations

    @staticmethod
    def attribute_satisfied(pics, endpoint, suffix, attr):
        entry = pics.get(endpoint_code(pics, endpoint, suffix))
        if entry is None:
            return False
        if attr.required_value is None:
            return entry.value.is_true()
        return entry.value.is_true() == attr.required_value

    def check_commands(self, pics, name, short_code, feature, endpoints,
                       uc_code):
        violations = []
        for cmd in feature.commands:
            suffix = f"{short_code}.C{cmd.command_id:02X}.Rsp"
            if any(
                pics.has(endpoint_code(pics, endpoint, suffix))
                for endpoint in endpoints
            ):
                continue
            violations.append(self.base.violation(
                f"Use case {name}: {short_code} command {cmd.name} "
                f"(C{cmd.command_id:02X}.Rsp) required but not declared",
                codes=[uc_code],
                lines=entry_lines(pics, uc_code),
                suggestion=f"Add command C{cmd.command_id:02X}.Rsp to "
                           f"{short_code} feature on an endpoint",
                severity=Severity.ERROR,
            ))
        return violations


def usecase_rules(registry=None):
    return [UseCaseRequirementsRule(registry)]


def register_usecase_rules(registry, use_cases=None):
    for rule in usecase_rules(use_cases):
        registry.register(rule)
