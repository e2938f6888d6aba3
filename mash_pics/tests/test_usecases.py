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

import json
import logging

import pytest

from mash_pics.model.codes import Side
from mash_pics.generators.usecase_codes import (
    generate_use_case_codes,
    use_case_name,
)
from mash_pics.parsers.pics_parser import parse_string
from mash_pics.rules import new_default_registry
from mash_pics.rules.usecase import UseCaseRequirementsRule
from mash_pics.usecases.registry import (
    USE_CASE_ID_TO_NAME,
    USE_CASE_REGISTRY,
    UseCaseDecl,
    load_use_case_registry,
    parse_use_case,
)
from mash_pics.validators.rules import Severity

logging.basicConfig(level=logging.INFO, format="%(message)s")


def device(*lines):
    return parse_string("\n".join(("MASH.S=1", "MASH.S.VERSION=1") + lines) + "\n")


LPC_ENDPOINT = (
    "MASH.S.E01=EV_CHARGER",
    "MASH.S.E01.CTRL=1",
    "MASH.S.E01.CTRL.A0A=1",
    "MASH.S.E01.CTRL.C01.Rsp=1",
    "MASH.S.E01.CTRL.C02.Rsp=1",
    "MASH.S.E01.ELEC=1",
    "MASH.S.E01.ELEC.A0A=1",
)

EVC_ENDPOINT = (
    "MASH.S.E01=EV_CHARGER",
    "MASH.S.E01.CTRL=1",
    "MASH.S.E01.CHRG=1",
    "MASH.S.E01.CHRG.A01=1",
    "MASH.S.E01.CHRG.C01.Rsp=1",
)


class TestUseCaseRegistry:
    """Test loading use case definitions."""

    def test_bundled_definitions(self):
        """Test the bundled definitions file."""
        assert len(USE_CASE_REGISTRY) == 11
        lpc = USE_CASE_REGISTRY["LPC"]
        assert lpc.id == 0x01
        assert lpc.full_name == "Limit Power Consumption"
        assert "EV_CHARGER" in lpc.endpoint_types
        assert lpc.base_scenario().name == "BASE"
        assert USE_CASE_ID_TO_NAME[0x04] == "EVC"
        assert USE_CASE_ID_TO_NAME[0x0B] == "TOUT"

    def test_custom_file(self, tmp_path):
        """Test loading definitions from a custom file."""
        path = tmp_path / "use_cases.json"
        path.write_text(json.dumps([
            {
                "name": "PUMP",
                "id": "0x40",
                "scenarios": [
                    {
                        "bit": 0,
                        "name": "BASE",
                        "features": [
                            {
                                "feature": "Status",
                                "attributes": [{"name": "operatingState", "id": "0x01"}],
                            }
                        ],
                    }
                ],
            }
        ]))
        registry = load_use_case_registry(str(path))
        assert list(registry) == ["PUMP"]
        pump = registry["PUMP"]
        assert pump.id == 0x40
        assert pump.endpoint_types == []
        feature = pump.scenarios[0].features[0]
        assert feature.required
        assert feature.attributes[0].attr_id == 0x01
        assert feature.attributes[0].required_value is None

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON is reported as ValueError."""
        path = tmp_path / "broken.json"
        path.write_text("[{")
        with pytest.raises(ValueError):
            load_use_case_registry(str(path))

    def test_not_a_list(self, tmp_path):
        """Test a top-level object is rejected."""
        path = tmp_path / "object.json"
        path.write_text(json.dumps({"name": "LPC"}))
        with pytest.raises(ValueError, match="expected list"):
            load_use_case_registry(str(path))

    def test_missing_field(self, tmp_path):
        """Test a definition without an ID is rejected."""
        path = tmp_path / "missing.json"
        path.write_text(json.dumps([{"name": "LPC"}]))
        with pytest.raises(ValueError, match="Invalid use case definition"):
            load_use_case_registry(str(path))

    @pytest.mark.parametrize(
        "definition",
        [
            {"name": "LPC", "id": "zz"},
            {"name": "LPC", "id": "0x01", "scenarios": [
                {"bit": 0, "name": "BASE", "features": [
                    {"feature": "EnergyControl", "attributes": [
                        {"name": "acceptsLimits", "id": "zz"},
                    ]},
                ]},
            ]},
            {"name": "LPC", "id": "0x01", "scenarios": [
                {"bit": 0, "name": "BASE", "features": [
                    {"feature": "EnergyControl", "commands": [
                        {"name": "SetLimit", "id": ""},
                    ]},
                ]},
            ]},
            {"name": "LPC", "id": "0x01", "scenarios": [
                {"bit": "-1", "name": "BASE"},
            ]},
        ],
    )
    def test_invalid_ids(self, tmp_path, definition):
        """Test unparseable IDs and bits reject the definition."""
        path = tmp_path / "bad_id.json"
        path.write_text(json.dumps([definition]))
        with pytest.raises(ValueError, match="Invalid use case definition"):
            load_use_case_registry(str(path))


class TestScenarioFeatures:
    """Test scenario selection and merging."""

    def test_base_only(self):
        """Test the BASE scenario features."""
        features = USE_CASE_REGISTRY["LPC"].scenario_features(0b01)
        assert [f.feature_name for f in features] == ["EnergyControl", "Electrical"]

    def test_additional_scenario(self):
        """Test a scenario adds its own features."""
        features = USE_CASE_REGISTRY["LPC"].scenario_features(0b11)
        assert [f.feature_name for f in features] == [
            "EnergyControl", "Electrical", "Measurement",
        ]

    def test_same_feature_merged(self):
        """Test requirements of a feature named by two scenarios are merged."""
        evc = USE_CASE_REGISTRY["EVC"]
        features = {f.feature_name: f for f in evc.scenario_features(0b11)}
        assert len(features) == 2
        ctrl = features["EnergyControl"]
        assert [c.command_id for c in ctrl.commands] == [0x07, 0x08]

    def test_merge_does_not_modify_definition(self):
        """Test merging leaves the loaded definitions unchanged."""
        evc = USE_CASE_REGISTRY["EVC"]
        evc.scenario_features(0b11)
        base_ctrl = [
            f for f in evc.base_scenario().features
            if f.feature_name == "EnergyControl"
        ][0]
        assert base_ctrl.commands == []

    def test_all_features(self):
        """Test every defined scenario is selected."""
        mpd = USE_CASE_REGISTRY["MPD"]
        assert mpd.defined_scenario_mask() == 0b11
        assert [f.feature_name for f in mpd.all_features()] == [
            "Measurement", "Electrical",
        ]


class TestUseCaseRule:
    """Test the use case requirements rule."""

    def test_satisfied(self):
        """Test a use case whose requirements are all declared."""
        pics = device("MASH.S.UC.LPC=1", *LPC_ENDPOINT)
        assert UseCaseRequirementsRule().check(pics) == []

    def test_unknown_use_case(self):
        """Test an unknown use case is a single Warning."""
        pics = device("MASH.S.UC.FOO=1")
        violations = UseCaseRequirementsRule().check(pics)
        assert len(violations) == 1
        assert violations[0].severity == Severity.WARNING
        assert violations[0].message == (
            "Use case FOO declared but not found in registry"
        )
        assert violations[0].pics_codes == ["MASH.S.UC.FOO"]

    def test_registry_stamps_rule_severity(self):
        """Test the registry reports UC-001 findings at the rule's severity."""
        pics = device("MASH.S.UC.FOO=1")
        violations = [
            v for v in new_default_registry().run_rules(pics)
            if v.rule_id == "UC-001"
        ]
        assert len(violations) == 1
        assert violations[0].severity == Severity.ERROR

    def test_missing_features(self):
        """Test each missing feature is an Error."""
        pics = device("MASH.S.UC.LPC=1")
        violations = UseCaseRequirementsRule().check(pics)
        assert [v.message for v in violations] == [
            "Use case LPC requires EnergyControl (CTRL) but no endpoint "
            "declares it",
            "Use case LPC requires Electrical (ELEC) but no endpoint "
            "declares it",
        ]
        assert all(v.severity == Severity.ERROR for v in violations)
        assert all(v.line_numbers == [3] for v in violations)

    def test_required_value(self):
        """Test an attribute declared with the wrong value."""
        lines = [line.replace("A0A=1", "A0A=0") if "CTRL.A0A" in line else line
                 for line in LPC_ENDPOINT]
        pics = device("MASH.S.UC.LPC=1", *lines)
        violations = UseCaseRequirementsRule().check(pics)
        assert len(violations) == 1
        assert violations[0].severity == Severity.WARNING
        assert violations[0].message == (
            "Use case LPC: CTRL.acceptsLimits (A0A) expected to be declared as 1"
        )

    def test_missing_attribute(self):
        """Test an attribute that only needs to be present."""
        lines = [line for line in LPC_ENDPOINT if "ELEC.A0A" not in line]
        pics = device("MASH.S.UC.LPC=1", *lines)
        violations = UseCaseRequirementsRule().check(pics)
        assert len(violations) == 1
        assert violations[0].message == (
            "Use case LPC: ELEC.nominalMaxConsumption (A0A) expected to be "
            "declared"
        )

    def test_missing_commands(self):
        """Test each missing command is an Error."""
        lines = [line for line in LPC_ENDPOINT if ".Rsp" not in line]
        pics = device("MASH.S.UC.LPC=1", *lines)
        violations = UseCaseRequirementsRule().check(pics)
        assert [v.message for v in violations] == [
            "Use case LPC: CTRL command SetLimit (C01.Rsp) required but not "
            "declared",
            "Use case LPC: CTRL command ClearLimit (C02.Rsp) required but not "
            "declared",
        ]
        assert all(v.severity == Severity.ERROR for v in violations)

    def test_declared_scenario_adds_features(self):
        """Test a declared scenario requires its features."""
        pics = device("MASH.S.UC.LPC=1", "MASH.S.UC.LPC.S01=1", *LPC_ENDPOINT)
        violations = UseCaseRequirementsRule().check(pics)
        assert len(violations) == 1
        assert "requires Measurement (MEAS)" in violations[0].message

    def test_scenario_commands(self):
        """Test commands of a scenario that extends a BASE feature."""
        pics = device("MASH.S.UC.EVC=1", *EVC_ENDPOINT)
        assert UseCaseRequirementsRule().check(pics) == []

        pics = device("MASH.S.UC.EVC=1", "MASH.S.UC.EVC.S01=1", *EVC_ENDPOINT)
        violations = UseCaseRequirementsRule().check(pics)
        assert [v.message for v in violations] == [
            "Use case EVC: CTRL command SetCurrentSetpoints (C07.Rsp) required "
            "but not declared",
            "Use case EVC: CTRL command ClearCurrentSetpoints (C08.Rsp) "
            "required but not declared",
        ]

    def test_endpoint_type_mismatch(self):
        """Test features found only on disallowed endpoint types."""
        lines = [line.replace("EV_CHARGER", "BATTERY") for line in EVC_ENDPOINT]
        pics = device("MASH.S.UC.EVC=1", *lines)
        violations = UseCaseRequirementsRule().check(pics)
        assert len(violations) == 1
        assert violations[0].severity == Severity.WARNING
        assert violations[0].message == (
            "Use case EVC: features found but not on allowed endpoint type "
            "(allowed: EV_CHARGER)"
        )

    def test_features_on_any_endpoint(self):
        """Test features may be spread over several endpoints."""
        pics = device(
            "MASH.S.UC.MPD=1",
            "MASH.S.E01=GRID_CONNECTION",
            "MASH.S.E02=EV_CHARGER",
            "MASH.S.E02.MEAS=1",
        )
        assert UseCaseRequirementsRule().check(pics) == []

    def test_controller_skipped(self):
        """Test controller documents are not checked."""
        pics = parse_string("MASH.C=1\nMASH.C.UC.LPC=1\n")
        assert pics.use_cases() == ["LPC"]
        assert UseCaseRequirementsRule().check(pics) == []

    def test_custom_registry(self):
        """Test the rule with its own definitions."""
        pics = device("MASH.S.UC.LPC=1")
        assert len(UseCaseRequirementsRule({}).check(pics)) == 1
        assert UseCaseRequirementsRule({}).check(pics)[0].severity == (
            Severity.WARNING
        )

    def test_feature_name_resolved_by_feature_type(self):
        """Test feature names map to short codes through the feature type."""
        use_case = parse_use_case({
            "name": "TEST",
            "id": "0x50",
            "scenarios": [{
                "bit": 0,
                "name": "BASE",
                "features": [
                    {"feature": "TestControl"},
                    {"feature": "Unknown"},
                ],
            }],
        })
        violations = UseCaseRequirementsRule({"TEST": use_case}).check(
            device("MASH.S.UC.TEST=1")
        )
        assert [v.message for v in violations] == [
            "Use case TEST requires TestControl (TCTRL) but no endpoint "
            "declares it",
        ]


class TestGenerateUseCaseCodes:
    """Test PICS code generation from use case declarations."""

    def test_deduplicated_and_sorted(self):
        """Test duplicate declarations across endpoints."""
        decls = [
            UseCaseDecl(endpoint_id=1, id=0x01, scenarios=0b11),
            UseCaseDecl(endpoint_id=2, id=0x04),
            UseCaseDecl(endpoint_id=3, id=0x01, scenarios=0b111),
        ]
        entries = generate_use_case_codes(decls)
        assert [str(entry.code) for entry in entries] == [
            "MASH.S.UC.EVC",
            "MASH.S.UC.EVC.S00",
            "MASH.S.UC.LPC",
            "MASH.S.UC.LPC.S00",
            "MASH.S.UC.LPC.S01",
        ]
        assert all(entry.value.is_true() for entry in entries)

    def test_unknown_id(self):
        """Test unknown use case IDs are rendered in hex."""
        assert use_case_name(0x7F) == "0x7F"
        entries = generate_use_case_codes(
            [UseCaseDecl(endpoint_id=1, id=0x7F, scenarios=0)]
        )
        assert [str(entry.code) for entry in entries] == ["MASH.S.UC.0x7F"]

    def test_high_scenario_bits(self):
        """Test scenario bits are rendered as two hex digits."""
        entries = generate_use_case_codes(
            [UseCaseDecl(endpoint_id=1, id=0x03, scenarios=(1 << 31) | (1 << 10))]
        )
        assert [str(entry.code) for entry in entries] == [
            "MASH.S.UC.MPD",
            "MASH.S.UC.MPD.S0A",
            "MASH.S.UC.MPD.S1F",
        ]

    def test_controller_side(self):
        """Test codes generated for the controller side."""
        entries = generate_use_case_codes(
            [UseCaseDecl(endpoint_id=1, id=0x02, scenarios=0)], side=Side.CLIENT
        )
        assert str(entries[0].code) == "MASH.C.UC.LPP"

    def test_empty(self):
        """Test no declarations produce no entries."""
        assert generate_use_case_codes([]) == []
        assert generate_use_case_codes(None) == []
