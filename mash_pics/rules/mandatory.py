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

"""Mandatory attribute rules.

A feature declared on an endpoint must declare its mandatory attributes on
that same endpoint.
"""

import logging

from mash_pics.configs.constants import AC_ENDPOINT_TYPES, DC_ENDPOINT_TYPES
from mash_pics.rules.common import (
    endpoint_code,
    endpoint_declares,
    endpoint_label,
    entry_lines,
)
from mash_pics.validators.rules import BaseRule, Rule, Severity

logger = logging.getLogger(__name__)

CATEGORY = "mandatory"

# Feature short name -> (feature label, [(attribute ID, attribute name)])
MANDATORY_ATTRIBUTES = {
    "CTRL": ("EnergyControl", [
        ("01", "deviceType"),
        ("02", "controlState"),
        ("0A", "acceptsLimits"),
        ("0B", "acceptsCurrentLimits"),
        ("0C", "acceptsSetpoints"),
        ("0E", "isPausable"),
        ("46", "failsafeConsumptionLimit"),
        ("48", "failsafeDuration"),
    ]),
    "ELEC": ("Electrical", [
        ("01", "phaseCount"),
        ("02", "phaseMapping"),
        ("03", "nominalVoltage"),
        ("04", "nominalFrequency"),
        ("05", "supportedDirections"),
        ("0D", "maxCurrentPerPhase"),
    ]),
    "CHRG": ("ChargingSession", [
        ("01", "state"),
        ("02", "sessionId"),
        ("03", "sessionStartTime"),
        ("0A", "sessionEnergyCharged"),
        ("28", "evDemandMode"),
        ("46", "chargingMode"),
        ("47", "supportedChargingModes"),
    ]),
    "SIG": ("Signals", [
        ("01", "activeSignals"),
        ("02", "signalCount"),
        ("0A", "lastReceivedSignalId"),
        ("0B", "signalStatus"),
    ]),
    "STAT": ("Status", [
        ("01", "operatingState"),
    ]),
}

AC_POWER = ("01", "acActivePower")
DC_POWER = ("28", "dcPower")


def format_attributes(attributes):
    return ", ".join(f"{name} (A{attr_id})" for attr_id, name in attributes)


class ProtocolDeclarationRule(Rule):
    """The document must declare MASH.S or MASH.C."""

    def __init__(self):
        super().__init__(BaseRule(
            "MAN-001", "Protocol declaration required", CATEGORY,
            Severity.ERROR,
        ))

    def check(self, pics):
        if pics.has("MASH.S") or pics.has("MASH.C"):
            return []
        return [self.base.violation(
            "Missing protocol declaration (MASH.S or MASH.C required)",
            codes=["MASH.S", "MASH.C"],
            suggestion="Add MASH.S=1 for device or MASH.C=1 for controller",
        )]


class MandatoryAttributesRule(Rule):
    """Fixed attribute list required wherever a feature is declared."""

    def __init__(self, rule_id, feature):
        label, attributes = MANDATORY_ATTRIBUTES[feature]
        super().__init__(BaseRule(
            rule_id, f"{feature} mandatory attributes", CATEGORY,
            Severity.ERROR,
        ))
        self.feature = feature
        self.label = label
        self.attributes = attributes

    def check(self, pics):
        violations = []
        for endpoint in pics.endpoints_with_feature(self.feature):
            missing = [
                (attr_id, name)
                for attr_id, name in self.attributes
                if not endpoint_declares(
                    pics, endpoint, f"{self.feature}.A{attr_id}"
                )
            ]
            if not missing:
                continue
            violations.append(self.base.violation(
                f"{endpoint_label(endpoint)}: {self.label} missing mandatory "
                f"attributes: {format_attributes(missing)}",
                codes=[
                    endpoint_code(pics, endpoint, f"{self.feature}.A{attr_id}")
                    for attr_id, _ in missing
                ],
                lines=entry_lines(
                    pics, endpoint_code(pics, endpoint, self.feature)
                ),
                suggestion="Add the missing mandatory attributes",
            ))
        return violations


class MeasurementAttributesRule(Rule):
    """Power measurement attribute required by the endpoint type.

    DC endpoint types need dcPower (A28), AC types need acActivePower (A01)
    and endpoints of unknown type need either one.
    """

    def __init__(self):
        super().__init__(BaseRule(
            "MAN-007", "MEAS mandatory attributes", CATEGORY,
            Severity.WARNING,
        ))

    def check(self, pics):
        violations = []
        for endpoint in pics.endpoints_with_feature("MEAS"):
            feature_lines = entry_lines(
                pics, endpoint_code(pics, endpoint, "MEAS")
            )
            has_ac = endpoint_declares(pics, endpoint, f"MEAS.A{AC_POWER[0]}")
            has_dc = endpoint_declares(pics, endpoint, f"MEAS.A{DC_POWER[0]}")

            if endpoint.type in DC_ENDPOINT_TYPES:
                required = [DC_POWER]
            elif endpoint.type in AC_ENDPOINT_TYPES:
                required = [AC_POWER]
            else:
                if has_ac or has_dc:
                    continue
                violations.append(self.base.violation(
                    f"{endpoint_label(endpoint)}: Measurement feature "
                    "requires either acActivePower (A01) for AC or dcPower "
                    "(A28) for DC",
                    codes=[
                        endpoint_code(pics, endpoint, "MEAS.A01"),
                        endpoint_code(pics, endpoint, "MEAS.A28"),
                    ],
                    lines=feature_lines,
                    suggestion="Add A01=1 for AC measurement or A28=1 for DC "
                               "measurement",
                ))
                continue

            missing = [
                (attr_id, name)
                for attr_id, name in required
                if not endpoint_declares(pics, endpoint, f"MEAS.A{attr_id}")
            ]
            if not missing:
                continue
            violations.append(self.base.violation(
                f"{endpoint_label(endpoint)}: Measurement missing mandatory "
                f"attributes: {format_attributes(missing)}",
                codes=[
                    endpoint_code(pics, endpoint, f"MEAS.A{attr_id}")
                    for attr_id, _ in missing
                ],
                lines=feature_lines,
                suggestion="Add the missing mandatory attributes",
            ))
        return violations


def mandatory_rules():
    """Return the mandatory rules in registration order."""
    return [
        ProtocolDeclarationRule(),
        MandatoryAttributesRule("MAN-002", "CTRL"),
        MandatoryAttributesRule("MAN-003", "ELEC"),
        MandatoryAttributesRule("MAN-004", "CHRG"),
        MandatoryAttributesRule("MAN-005", "SIG"),
        MandatoryAttributesRule("MAN-006", "STAT"),
        MeasurementAttributesRule(),
    ]


def register_mandatory_rules(registry):
    for rule in mandatory_rules():
        registry.register(rule)
