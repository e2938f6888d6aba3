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

"""Use case definitions.

Definitions are loaded from ``data/use_cases.json``. Each use case has a
BASE scenario (bit 0) and optional scenarios selected by a scenario bitmap;
every scenario lists the features, attributes and commands it needs.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from mash_pics.configs.constants import DEFAULT_USE_CASES_FILE
from mash_pics.utils.helpers import convert_to_int

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BASE_SCENARIO_BIT = 0


@dataclass
class AttributeRequirement:
    """Attribute needed by a use case.

    ``required_value`` is None when only presence is required.
    """

    name: str
    attr_id: int
    required_value: Optional[bool] = None


@dataclass
class CommandRequirement:
    name: str
    command_id: int


@dataclass
class FeatureRequirement:
    feature_name: str
    required: bool = True
    attributes: List[AttributeRequirement] = field(default_factory=list)
    commands: List[CommandRequirement] = field(default_factory=list)


@dataclass
class ScenarioDef:
    bit: int
    name: str
    features: List[FeatureRequirement] = field(default_factory=list)


@dataclass
class UseCaseDef:
    """A use case and the features each of its scenarios requires.

    An empty ``endpoint_types`` list allows any endpoint type.
    """

    name: str
    id: int
    full_name: str = ""
    description: str = ""
    major: int = 1
    minor: int = 0
    endpoint_types: List[str] = field(default_factory=list)
    scenarios: List[ScenarioDef] = field(default_factory=list)
    commands: List[str] = field(default_factory=list)

    def base_scenario(self):
        for scenario in self.scenarios:
            if scenario.bit == BASE_SCENARIO_BIT:
                return scenario
        return None

    def scenario_features(self, scenarios):
        """Return the features needed by the scenarios set in a bitmap.

        A feature named by several scenarios is returned once, with their
        attribute and command requirements merged. It is required if any of
        those scenarios requires it.
        """
        merged = {}
        for scenario in self.scenarios:
            if not scenarios & (1 << scenario.bit):
                continue
            for feature in scenario.features:
                current = merged.get(feature.feature_name)
                if current is None:
                    merged[feature.feature_name] = FeatureRequirement(
                        feature_name=feature.feature_name,
                        required=feature.required,
                        attributes=list(feature.attributes),
                        commands=list(feature.commands),
                    )
                    continue
                current.required = current.required or feature.required
                known_attrs = {a.attr_id for a in current.attributes}
                current.attributes.extend(
                    a for a in feature.attributes if a.attr_id not in known_attrs
                )
                known_cmds = {c.command_id for c in current.commands}
                current.commands.extend(
                    c for c in feature.commands if c.command_id not in known_cmds
                )
        return list(merged.values())

    def all_features(self):
        return self.scenario_features(self.defined_scenario_mask())

    def defined_scenario_mask(self):
        mask = 0
        for scenario in self.scenarios:
            mask |= 1 << scenario.bit
        return mask


@dataclass
class UseCaseDecl:
    """Use case declared by a device endpoint on the wire."""

    endpoint_id: int
    id: int
    major: int = 1
    minor: int = 0
    scenarios: int = 1 << BASE_SCENARIO_BIT


def _parse_int(value, what):
    number = convert_to_int(value)
    if number is None or number < 0:
        raise ValueError(f"invalid {what} {value!r}")
    return number


def _parse_feature(data):
    return FeatureRequirement(
        feature_name=data["feature"],
        required=data.get("required", True),
        attributes=[
            AttributeRequirement(
                name=attr["name"],
                attr_id=_parse_int(attr["id"], "attribute id"),
                required_value=attr.get("required_value"),
            )
            for attr in data.get("attributes", [])
        ],
        commands=[
            CommandRequirement(
                name=cmd["name"],
                command_id=_parse_int(cmd["id"], "command id"),
            )
            for cmd in data.get("commands", [])
        ],
    )


def parse_use_case(data):
    """Build a UseCaseDef from its JSON representation.

    Args:
        data: Dictionary from the use case definitions file
    Returns:
        UseCaseDef
    Raises:
        ValueError: If a required field is missing or an ID is not a
            non-negative integer

    """
    try:
        return UseCaseDef(
            name=data["name"],
            id=_parse_int(data["id"], "use case id"),
            full_name=data.get("full_name", ""),
            description=data.get("description", ""),
            major=data.get("major", 1),
            minor=data.get("minor", 0),
            endpoint_types=list(data.get("endpoint_types", [])),
            scenarios=[
                ScenarioDef(
                    bit=_parse_int(scenario["bit"], "scenario bit"),
                    name=scenario["name"],
                    features=[
                        _parse_feature(feature)
                        for feature in scenario.get("features", [])
                    ],
                )
                for scenario in data.get("scenarios", [])
            ],
            commands=list(data.get("commands", [])),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid use case definition {data!r}: {e}") from e


def load_use_case_registry(file_path=None) -> Dict[str, UseCaseDef]:
    """Load use case definitions keyed by name.

    Args:
        file_path: Definitions file, the bundled one when not provided
    Returns:
        Dictionary of use case name to UseCaseDef
    Raises:
        ValueError: If the file is not a list of valid definitions

    """
    if not file_path:
        file_path = os.path.join(BASE_DIR, "data", DEFAULT_USE_CASES_FILE)

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            definitions = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Invalid use case definitions file {file_path}: {e}"
        ) from e

    if not isinstance(definitions, list):
        raise ValueError(
            f"Invalid use case definitions format: expected list, got "
            f"{type(definitions).__name__}"
        )

    registry = {}
    for i, data in enumerate(definitions):
        if not isinstance(data, dict):
            logger.warning(f"Skipping use case definition at index {i}: not a dict")
            continue
        use_case = parse_use_case(data)
        if use_case.base_scenario() is None:
            logger.warning(f"Use case {use_case.name} has no BASE scenario")
        if use_case.name in registry:
            logger.warning(f"Duplicate use case definition {use_case.name}")
        registry[use_case.name] = use_case

    logger.debug(f"Loaded {len(registry)} use case definitions")
    return registry


USE_CASE_REGISTRY = load_use_case_registry()

USE_CASE_ID_TO_NAME = {
    use_case.id: name for name, use_case in USE_CASE_REGISTRY.items()
}