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

"""Built-in conformance rule families."""

from mash_pics.rules.conformance import register_conformance_rules
from mash_pics.rules.consistency import register_consistency_rules
from mash_pics.rules.dependency import register_dependency_rules
from mash_pics.rules.mandatory import register_mandatory_rules
from mash_pics.rules.usecase import register_usecase_rules
from mash_pics.validators.registry import RuleRegistry


def register_all(registry, use_cases=None):
    """Register every built-in rule family.

    Args:
        registry: RuleRegistry to populate
        use_cases: Optional use case name -> UseCaseDef mapping for UC-001

    """
    register_dependency_rules(registry)
    register_mandatory_rules(registry)
    register_consistency_rules(registry)
    register_conformance_rules(registry)
    register_usecase_rules(registry, use_cases)


def new_default_registry(use_cases=None):
    registry = RuleRegistry()
    register_all(registry, use_cases)
    return registry
