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

"""Endpoint type conformance matrix.

For each endpoint type and feature, attributes are either mandatory
(Error when missing) or recommended (Warning when missing). Endpoint types
outside the matrix are not checked.
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

CATEGORY = "conformance"

MANDATORY = "mandatory"
RECOMMENDED = "recommended"

_HEATING_LOAD = {
    "MEAS": {MANDATORY: ["01"], RECOMMENDED: ["1E", "3C"]},
    "ELEC": {MANDATORY: ["01", "0A"]},
}

# Endpoint type -> feature -> attribute IDs by tier
ENDPOINT_CONFORMANCE = {
    "GRID_CONNECTION": {
        "MEAS": {
            MANDATORY: ["01"],
            RECOMMENDED: ["02", "14", "15", "17", "1E", "1F", "18"],
        },
        "ELEC": {
            MANDATORY: ["01", "05", "0A"],
            RECOMMENDED: ["04", "03"],
        },
    },
    "INVERTER": {
        "MEAS": {
            MANDATORY: ["01"],
            RECOMMENDED: ["02", "14", "15", "17", "1E", "1F", "18", "3C"],
        },
        "ELEC": {MANDATORY: ["01", "05", "0A", "0B"]},
    },
    "PV_STRING": {
        "MEAS": {MANDATORY: ["28"], RECOMMENDED: ["2A", "29", "2C", "3C"]},
        "ELEC": {RECOMMENDED: ["0B"]},
    },
    "BATTERY": {
        "MEAS": {
            MANDATORY: ["28", "32"],
            RECOMMENDED: [
                "2A", "29", "2B", "2C", "33", "34", "35", "36", "3C",
            ],
        },
        "ELEC": {MANDATORY: ["05", "0A", "0B", "14"]},
    },
    "EV_CHARGER": {
        "MEAS": {MANDATORY: ["01"], RECOMMENDED: ["14", "15", "1E"]},
        "ELEC": {MANDATORY: ["01", "05", "0A", "0D"], RECOMMENDED: ["0E"]},
    },
    "HEAT_PUMP": _HEATING_LOAD,
    "WATER_HEATER": _HEATING_LOAD,
    "HVAC": _HEATING_LOAD,
    "APPLIANCE": {
        "MEAS": {MANDATORY: ["01"], RECOMMENDED: ["1E"]},
        "ELEC": {MANDATORY: ["0A"]},
    },
    "SUB_METER": {
        "MEAS": {
            MANDATORY: ["01"],
            RECOMMENDED: ["14", "15", "17", "1E", "1F"],
        },
        "ELEC": {MANDATORY: ["01"], RECOMMENDED: ["0A"]},
    },
}


def missing_attributes(pics, endpoint, feature, attr_ids):
    return [
        f"A{attr_id}"
        for attr_id in attr_ids
        if not endpoint_declares(pics, endpoint, f"{feature}.A{attr_id}")
    ]


class EndpointConformanceRule(Rule):
    """Checks declared features against the endpoint type matrix.

    Every missing mandatory attribute is its own Error. Missing recommended
    attributes of a feature are reported together as one Warning.
    """

    def __init__(self, matrix=None):
        super().__init__(BaseRule(
            "EPT-001", "Endpoint type conformance", CATEGORY, Severity.ERROR,
        ))
        self.matrix = ENDPOINT_CONFORMANCE if matrix is None else matrix

    def check(self, pics):
        violations = []
        for endpoint_id in pics.endpoint_ids():
            endpoint = pics.endpoints[endpoint_id]
            conformance = self.matrix.get(endpoint.type)
            if conformance is None:
                logger.debug(
                    f"No conformance requirements for endpoint type "
                    f"'{endpoint.type}' on endpoint {endpoint_id}"
                )
                continue

            for feature in endpoint.features:
                requirement = conformance.get(feature)
                if requirement is None:
                    continue
                feature_lines = entry_lines(
                    pics, endpoint_code(pics, endpoint, feature)
                )

                for attr in missing_attributes(
                    pics, endpoint, feature, requirement.get(MANDATORY, [])
                ):
                    violations.append(self.base.violation(
                        f"{endpoint_label(endpoint)}: {feature} feature "
                        f"missing mandatory attribute: {attr}",
                        codes=[attr],
                        lines=feature_lines,
                        suggestion="Add the required attribute declarations",
                        severity=Severity.ERROR,
                    ))

                missing = missing_attributes(
                    pics, endpoint, feature, requirement.get(RECOMMENDED, [])
                )
                if missing:
                    violations.append(self.base.violation(
                        f"{endpoint_label(endpoint)}: {feature} feature "
                        f"missing recommended attributes: {', '.join(missing)}",
                        codes=missing,
                        lines=feature_lines,
                        suggestion="Consider adding recommended attributes if "
                                   "hardware supports them",
                        severity=Severity.WARNING,
                    ))
        return violations


def conformance_rules():
    return [EndpointConformanceRule()]


def register_conformance_rules(registry):
    for rule in conformance_rules():
        registry.register(rule)
