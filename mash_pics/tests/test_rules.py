#!/usr/bin/env python3

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

import logging
import pytest

from mash_pics.parsers.pics_parser import parse_string
from mash_pics.rules.conformance import EndpointConformanceRule
from mash_pics.rules.consistency import consistency_rules
from mash_pics.rules.dependency import dependency_rules
from mash_pics.rules.mandatory import mandatory_rules
from mash_pics.validators.rules import Severity

logging.basicConfig(level=logging.INFO, format="%(message)s")


def get_rule(rules, rule_id):
    return next(rule for rule in rules if rule.id == rule_id)


def pics_from_lines(*lines):
    return parse_string("\n".join(("MASH.S=1",) + lines) + "\n")


class TestDependencyRules:
    """Test CTRL feature flag dependency rules."""

    def test_catalogue(self):
        """Test IDs, order and default severities."""
        rules = dependency_rules()
        assert [rule.id for rule in rules] == [f"DEP-{i:03d}" for i in range(1, 11)]
        assert {rule.category for rule in rules} == {"dependency"}
        warnings = {r.id for r in rules if r.default_severity == Severity.WARNING}
        assert warnings == {"DEP-002", "DEP-009", "DEP-010"}

    def test_v2x_requires_emob(self):
        """Test V2X without EMOB on a CTRL endpoint."""
        pics = pics_from_lines(
            "MASH.S.E01=EV_CHARGER",
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F0A=1",
        )
        violations = get_rule(dependency_rules(), "DEP-001").check(pics)
        assert len(violations) == 1
        violation = violations[0]
        assert violation.severity == Severity.ERROR
        assert violation.message == (
            "Endpoint 1 (EV_CHARGER): V2X feature flag (F0A) requires EMOB "
            "feature flag (F03)"
        )
        assert violation.pics_codes == [
            "MASH.S.E01.CTRL.F0A",
            "MASH.S.E01.CTRL.F03",
        ]
        assert violation.suggestion == "Add MASH.S.E01.CTRL.F03=1 to enable EMOB"
        assert violation.line_numbers == [4]

    def test_v2x_with_emob_passes(self):
        """Test the dependency is satisfied on the same endpoint."""
        pics = pics_from_lines(
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F0A=1",
            "MASH.S.E01.CTRL.F03=1",
        )
        assert get_rule(dependency_rules(), "DEP-001").check(pics) == []

    def test_endpoint_scoping_independence(self):
        """Test a dependency met on endpoint 1 does not cover endpoint 2."""
        pics = pics_from_lines(
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F0A=1",
            "MASH.S.E01.CTRL.F03=1",
            "MASH.S.E02.CTRL=1",
            "MASH.S.E02.CTRL.F0A=1",
        )
        violations = get_rule(dependency_rules(), "DEP-001").check(pics)
        assert len(violations) == 1
        assert violations[0].message.startswith("Endpoint 2:")

    def test_flag_without_ctrl_feature_ignored(self):
        """Test flags on endpoints without CTRL are not checked."""
        pics = pics_from_lines("MASH.S.E01.CTRL.F0A=1")
        assert get_rule(dependency_rules(), "DEP-001").check(pics) == []

    def test_asymmetric_requires_electrical(self):
        """Test ASYMMETRIC without the Electrical feature."""
        pics = pics_from_lines("MASH.S.E01.CTRL=1", "MASH.S.E01.CTRL.F09=1")
        violations = get_rule(dependency_rules(), "DEP-002").check(pics)
        assert len(violations) == 1
        assert "requires the Electrical feature" in violations[0].message
        assert violations[0].severity == Severity.WARNING

    @pytest.mark.parametrize("phases,expected", [("1", 1), ("3", 0)])
    def test_asymmetric_requires_multi_phase(self, phases, expected):
        """Test ASYMMETRIC on a single phase endpoint."""
        pics = pics_from_lines(
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F09=1",
            "MASH.S.E01.ELEC=1",
            f"MASH.S.E01.ELEC.A01={phases}",
        )
        violations = get_rule(dependency_rules(), "DEP-002").check(pics)
        assert len(violations) == expected

    @pytest.mark.parametrize(
        "rule_id,flag,feature",
        [
            ("DEP-003", "F04", "SIG"),
            ("DEP-004", "F05", "TAR"),
            ("DEP-005", "F06", "PLAN"),
            ("DEP-008", "F03", "CHRG"),
        ],
    )
    def test_flag_requires_feature(self, rule_id, flag, feature):
        """Test flags that require a feature on the same endpoint."""
        lines = ["MASH.S.E01.CTRL=1", f"MASH.S.E01.CTRL.{flag}=1"]
        rule = get_rule(dependency_rules(), rule_id)
        violations = rule.check(pics_from_lines(*lines))
        assert len(violations) == 1
        assert f"MASH.S.E01.{feature}" in violations[0].pics_codes

        lines.append(f"MASH.S.E01.{feature}=1")
        assert rule.check(pics_from_lines(*lines)) == []

    def test_process_requires_attributes(self):
        """Test PROCESS lists every missing process attribute."""
        pics = pics_from_lines(
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F07=1",
            "MASH.S.E01.CTRL.A50=1",
        )
        violations = get_rule(dependency_rules(), "DEP-006").check(pics)
        assert len(violations) == 1
        assert violations[0].message.endswith("requires optionalProcess (A51)")

    def test_forecast_requires_attribute(self):
        """Test FORECAST without the forecast attribute."""
        pics = pics_from_lines("MASH.S.E01.CTRL=1", "MASH.S.E01.CTRL.F08=1")
        assert len(get_rule(dependency_rules(), "DEP-007").check(pics)) == 1

    def test_v2x_supported_directions(self):
        """Test V2X with Electrical but without supportedDirections."""
        lines = [
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F0A=1",
            "MASH.S.E01.ELEC=1",
        ]
        rule = get_rule(dependency_rules(), "DEP-009")
        violations = rule.check(pics_from_lines(*lines))
        assert len(violations) == 1
        assert violations[0].severity == Severity.WARNING

        lines.append("MASH.S.E01.ELEC.A05=1")
        assert rule.check(pics_from_lines(*lines)) == []

    def test_battery_emob_exclusion(self):
        """Test BATTERY and EMOB on the same endpoint."""
        pics = pics_from_lines(
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.F02=1",
            "MASH.S.E01.CTRL.F03=1",
        )
        violations = get_rule(dependency_rules(), "DEP-010").check(pics)
        assert len(violations) == 1
        assert violations[0].severity == Severity.WARNING


class TestMandatoryRules:
    """Test mandatory attribute rules."""

    def test_protocol_declaration(self):
        """Test documents without MASH.S or MASH.C."""
        rule = get_rule(mandatory_rules(), "MAN-001")
        violations = rule.check(parse_string("MASH.S.VERSION=1\n"))
        assert len(violations) == 1
        assert violations[0].pics_codes == ["MASH.S", "MASH.C"]
        assert rule.check(parse_string("MASH.C=1\n")) == []

    def test_ctrl_missing_attributes(self):
        """Test EnergyControl lists all missing attributes in one violation."""
        pics = pics_from_lines(
            "MASH.S.E01=EV_CHARGER",
            "MASH.S.E01.CTRL=1",
            "MASH.S.E01.CTRL.A01=1",
            "MASH.S.E01.CTRL.A02=1",
            "MASH.S.E01.CTRL.A0A=1",
            "MASH.S.E01.CTRL.A0B=1",
            "MASH.S.E01.CTRL.A0C=1",
            "MASH.S.E01.CTRL.A0E=1",
        )
        violations = get_rule(mandatory_rules(), "MAN-002").check(pics)
        assert len(violations) == 1
        assert violations[0].message == (
            "Endpoint 1 (EV_CHARGER): EnergyControl missing mandatory "
            "attributes: failsafeConsumptionLimit (A46), failsafeDuration (A48)"
        )
        assert violations[0].pics_codes == [
            "MASH.S.E01.CTRL.A46",
            "MASH.S.E01.CTRL.A48",
        ]
        assert violations[0].line_numbers == [3]

    def test_attribute_on_other_endpoint_does_not_count(self):
        """Test mandatory attributes are checked per endpoint."""
        pics = pics_from_lines(
            "MASH.S.E01.STAT=1",
            "MASH.S.E02.STAT=1",
            "MASH.S.E02.STAT.A01=1",
        )
        violations = get_rule(mandatory_rules(), "MAN-006").check(pics)
        assert len(violations) == 1
        assert violations[0].pics_codes == ["MASH.S.E01.STAT.A01"]

    @pytest.mark.parametrize("rule_id,feature", [
        ("MAN-003", "ELEC"),
        ("MAN-004", "CHRG"),
        ("MAN-005", "SIG"),
    ])
    def test_feature_without_attributes(self, rule_id, feature):
        """Test each feature rule fires on a bare feature declaration."""
        pics = pics_from_lines(f"MASH.S.E01.{feature}=1")
        violations = get_rule(mandatory_rules(), rule_id).check(pics)
        assert len(violations) == 1
        assert violations[0].severity == Severity.ERROR

    @pytest.mark.parametrize(
        "endpoint_type,attribute,expected",
        [
            ("BATTERY", "A28", 0),
            ("BATTERY", "A01", 1),
            ("EV_CHARGER", "A01", 0),
            ("EV_CHARGER", "A28", 1),
            ("CUSTOM", "A01", 0),
            ("CUSTOM", "A28", 0),
            ("CUSTOM", "A02", 1),
        ],
    )
    def test_measurement_branches_on_type(self, endpoint_type, attribute, expected):
        """Test DC, AC and unknown endpoint types."""
        pics = pics_from_lines(
            f"MASH.S.E01={endpoint_type}",
            "MASH.S.E01.MEAS=1",
            f"MASH.S.E01.MEAS.{attribute}=1",
        )
        violations = get_rule(mandatory_rules(), "MAN-007").check(pics)
        assert len(violations) == expected
        for violation in violations:
            assert violation.severity == Severity.WARNING


class TestConsistencyRules:
    """Test command consistency rules."""

    ACCEPTS_LIMITS = (
        "MASH.S.E01=EV_CHARGER",
        "MASH.S.E01.CTRL=1",
        "MASH.S.E01.CTRL.A0A=1",
    )

    def test_catalogue(self):
        """Test the rule IDs and categories."""
        rules = consistency_rules()
        assert [rule.id for rule in rules] == [f"CMD-{i:03d}" for i in range(1, 12)]
        assert all(rule.default_severity == Severity.ERROR for rule in rules)
        assert {rule.category for rule in rules} == {"consistency"}

    def test_accepts_limits_without_commands(self):
        """Test acceptsLimits without limit commands yields one Error."""
        pics = parse_string("\n".join(("MASH.S=1",) + self.ACCEPTS_LIMITS))
        assert pics.endpoint_type(1) == "EV_CHARGER"
        assert pics.endpoints[1].has_feature("CTRL")

        violations = get_rule(consistency_rules(), "CMD-001").check(pics)
        assert len(violations) == 1
        violation = violations[0]
        assert violation.severity == Severity.ERROR
        assert violation.message == (
            "Endpoint 1 (EV_CHARGER): acceptsLimits (A0A) requires: "
            "SetLimit (C01.Rsp), ClearLimit (C02.Rsp)"
        )
        assert violation.pics_codes == [
            "MASH.S.E01.CTRL.A0A",
            "MASH.S.E01.CTRL.C01.Rsp",
            "MASH.S.E01.CTRL.C02.Rsp",
        ]
        assert violation.line_numbers == [4]

    def test_accepts_limits_with_commands(self):
        """Test that declaring both limit commands clears the violation."""
        pics = pics_from_lines(
            *self.ACCEPTS_LIMITS,
            "MASH.S.E01.CTRL.C01.Rsp=1",
            "MASH.S.E01.CTRL.C02.Rsp=1",
        )
        assert get_rule(consistency_rules(), "CMD-001").check(pics) == []

    def test_partial_commands(self):
        """Test that only the missing command is named."""
        pics = pics_from_lines(*self.ACCEPTS_LIMITS, "MASH.S.E01.CTRL.C01.Rsp=1")
        violations = get_rule(consistency_rules(), "CMD-001").check(pics)
        assert violations[0].message.endswith("requires: ClearLimit (C02.Rsp)")

    def test_capability_declared_false(self):
        """Test that a capability declared 0 needs no commands."""
        pics = pics_from_lines("MASH.S.E01.CTRL=1", "MASH.S.E01.CTRL.A0E=0")
        assert get_rule(consistency_rules(), "CMD-004").check(pics) == []

    @pytest.mark.parametrize(
        "rule_id,feature,command",
        [
            ("CMD-008", "SIG", "SIG.C01.Rsp"),
            ("CMD-009", "CHRG", "CHRG.C01.Rsp"),
            ("CMD-010", "PLAN", "PLAN.C01.Rsp"),
            ("CMD-011", "TAR", "TAR.C01.Rsp"),
        ],
    )
    def test_feature_requires_commands(self, rule_id, feature, command):
        """Test features whose declaration requires commands."""
        pics = pics_from_lines(f"MASH.S.E01.{feature}=1")
        violations = get_rule(consistency_rules(), rule_id).check(pics)
        assert len(violations) == 1
        assert f"MASH.S.E01.{command}" in violations[0].pics_codes

    def test_v2x_requires_current_setpoints(self):
        """Test the V2X flag requires current setpoint commands."""
        pics = pics_from_lines("MASH.S.E01.CTRL=1", "MASH.S.E01.CTRL.F0A=1")
        violations = get_rule(consistency_rules(), "CMD-006").check(pics)
        assert len(violations) == 1
        assert "SetCurrentSetpoints (C07.Rsp)" in violations[0].message


class TestEndpointConformanceRule:
    """Test the endpoint type conformance matrix."""

    def test_battery_missing_dc_attributes(self):
        """Test a BATTERY measurement without DC power or state of charge."""
        pics = parse_string(
            "items:\n"
            "  MASH.S: true\n"
            "  MASH.S.E01: BATTERY\n"
            "  MASH.S.E01.MEAS: true\n"
        )
        violations = EndpointConformanceRule().check(pics)
        errors = [v for v in violations if v.severity == Severity.ERROR]
        assert [v.pics_codes for v in errors] == [["A28"], ["A32"]]
        assert errors[0].message == (
            "Endpoint 1 (BATTERY): MEAS feature missing mandatory attribute: A28"
        )
        warnings = [v for v in violations if v.severity == Severity.WARNING]
        assert len(warnings) == 1
        assert "recommended attributes" in warnings[0].message
        assert all(v.line_numbers == [4] for v in violations)

    def test_complete_endpoint(self):
        """Test an EV charger with every listed attribute."""
        pics = pics_from_lines(
            "MASH.S.E01=EV_CHARGER",
            "MASH.S.E01.MEAS=1",
            "MASH.S.E01.MEAS.A01=1",
            "MASH.S.E01.MEAS.A14=1",
            "MASH.S.E01.MEAS.A15=1",
            "MASH.S.E01.MEAS.A1E=1",
        )
        assert EndpointConformanceRule().check(pics) == []

    def test_recommended_only(self):
        """Test missing recommended attributes are a single Warning."""
        pics = pics_from_lines(
            "MASH.S.E01=EV_CHARGER",
            "MASH.S.E01.MEAS=1",
            "MASH.S.E01.MEAS.A01=1",
        )
        violations = EndpointConformanceRule().check(pics)
        assert len(violations) == 1
        assert violations[0].severity == Severity.WARNING
        assert violations[0].pics_codes == ["A14", "A15", "A1E"]

    def test_unknown_endpoint_type_skipped(self):
        """Test endpoint types outside the matrix are not checked."""
        pics = pics_from_lines("MASH.S.E01=SPACESHIP", "MASH.S.E01.MEAS=1")
        assert EndpointConformanceRule().check(pics) == []

    def test_custom_matrix(self):
        """Test a rule built around its own matrix."""
        rule = EndpointConformanceRule({"PUMP": {"STAT": {"mandatory": ["01"]}}})
        pics = pics_from_lines("MASH.S.E01=PUMP", "MASH.S.E01.STAT=1")
        violations = rule.check(pics)
        assert len(violations) == 1
        assert violations[0].pics_codes == ["A01"]
