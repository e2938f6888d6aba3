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

"""Command/attribute consistency rules.

A capability declared on an endpoint implies that the commands needed to
use it are accepted (``.Rsp``) on that same endpoint.
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

CATEGORY = "consistency"


class CommandConsistencyRule(Rule):
    """Capability on an endpoint requires a set of accepted commands.

    Args:
        rule_id: Rule ID
        name: Rule name
        feature: Feature the endpoint must declare
        trigger: Code suffix of the capability, or None when declaring the
            feature itself is the capability
        trigger_label: Human name of the capability
        commands: List of (command code suffix, label)
    """

    def __init__(self, rule_id, name, feature, trigger, trigger_label,
                 commands):
        super().__init__(BaseRule(rule_id, name, CATEGORY, Severity.ERROR))
        self.feature = feature
        self.trigger = trigger
        self.trigger_label = trigger_label
        self.commands = commands

    def check(self, pics):
        violations = []
        trigger = self.trigger or self.feature
        for endpoint in pics.endpoints_with_feature(self.feature):
            if not endpoint_declares(pics, endpoint, trigger):
                continue

            command_codes = [
                endpoint_code(pics, endpoint, suffix)
                for suffix, _ in self.commands
            ]
            missing = [
                label
                for suffix, label in self.commands
                if not endpoint_declares(pics, endpoint, suffix)
            ]
            if not missing:
                continue

            trigger_code = endpoint_code(pics, endpoint, trigger)
            violations.append(self.base.violation(
                f"{endpoint_label(endpoint)}: {self.trigger_label} requires: "
                f"{', '.join(missing)}",
                codes=[trigger_code] + command_codes,
                lines=entry_lines(pics, trigger_code),
                suggestion="Add the required command declarations",
            ))
        return violations


def consistency_rules():
    """Return the consistency rules in registration order."""
    return [
        CommandConsistencyRule(
            "CMD-001", "acceptsLimits requires limit commands",
            "CTRL", "CTRL.A0A", "acceptsLimits (A0A)",
            [("CTRL.C01.Rsp", "SetLimit (C01.Rsp)"),
             ("CTRL.C02.Rsp", "ClearLimit (C02.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-002", "acceptsCurrentLimits requires current limit commands",
            "CTRL", "CTRL.A0B", "acceptsCurrentLimits (A0B)",
            [("CTRL.C03.Rsp", "SetCurrentLimits (C03.Rsp)"),
             ("CTRL.C04.Rsp", "ClearCurrentLimits (C04.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-003", "acceptsSetpoints requires setpoint commands",
            "CTRL", "CTRL.A0C", "acceptsSetpoints (A0C)",
            [("CTRL.C05.Rsp", "SetSetpoint (C05.Rsp)"),
             ("CTRL.C06.Rsp", "ClearSetpoint (C06.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-004", "isPausable requires pause/resume commands",
            "CTRL", "CTRL.A0E", "isPausable (A0E)",
            [("CTRL.C09.Rsp", "Pause (C09.Rsp)"),
             ("CTRL.C0A.Rsp", "Resume (C0A.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-005", "isStoppable requires stop command",
            "CTRL", "CTRL.A10", "isStoppable (A10)",
            [("CTRL.C0B.Rsp", "Stop (C0B.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-006", "V2X requires current setpoint commands",
            "CTRL", "CTRL.F0A", "V2X (F0A)",
            [("CTRL.C07.Rsp", "SetCurrentSetpoints (C07.Rsp)"),
             ("CTRL.C08.Rsp", "ClearCurrentSetpoints (C08.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-007", "PROCESS requires process commands",
            "CTRL", "CTRL.F07", "PROCESS (F07)",
            [("CTRL.C0C.Rsp", "ScheduleProcess (C0C.Rsp)"),
             ("CTRL.C0D.Rsp", "CancelProcess (C0D.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-008", "SIG requires signal commands",
            "SIG", None, "SIG feature",
            [("SIG.C01.Rsp", "SendSignal (C01.Rsp)"),
             ("SIG.C02.Rsp", "ClearSignals (C02.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-009", "CHRG requires SetChargingMode command",
            "CHRG", None, "CHRG feature",
            [("CHRG.C01.Rsp", "SetChargingMode (C01.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-010", "PLAN requires RequestPlan command",
            "PLAN", None, "PLAN feature",
            [("PLAN.C01.Rsp", "RequestPlan (C01.Rsp)")],
        ),
        CommandConsistencyRule(
            "CMD-011", "TAR requires SetTariff command",
            "TAR", None, "TAR feature",
            [("TAR.C01.Rsp", "SetTariff (C01.Rsp)")],
        ),
    ]


def register_consistency_rules(registry):
    for rule in consistency_rules():
        registry.register(rule)
