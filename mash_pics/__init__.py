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

"""
MASH PICS Validator

A Python package for parsing MASH PICS documents and validating them
against the protocol's conformance rules.
"""

__version__ = "0.1.0"

# Public API exports
from .model.codes import Code, Entry, Side, Value
from .model.document import PICS, Format
from .model.feature_codes import (
    FeatureType,
    feature_name_to_pics_code,
    feature_type_to_pics_code,
    pics_code_to_feature_type,
)
from .parsers.errors import PICSParseError
from .parsers.pics_parser import (
    ParseOptions,
    Parser,
    parse_bytes,
    parse_file,
    parse_string,
)
from .rules import new_default_registry
from .validators.registry import RuleRegistry
from .validators.rules import Severity, Violation, filter_by_severity
from .validators.validator import (
    ValidateOptions,
    ValidationResult,
    Validator,
    meets_requirements,
    validate_pics,
    validate_pics_strict,
    validate_with_registry,
)
from .generators.usecase_codes import generate_use_case_codes

__all__ = [
    "Code",
    "Entry",
    "Side",
    "Value",
    "PICS",
    "Format",
    "FeatureType",
    "feature_name_to_pics_code",
    "feature_type_to_pics_code",
    "pics_code_to_feature_type",
    "PICSParseError",
    "ParseOptions",
    "Parser",
    "parse_bytes",
    "parse_file",
    "parse_string",
    "new_default_registry",
    "RuleRegistry",
    "Severity",
    "Violation",
    "filter_by_severity",
    "ValidateOptions",
    "ValidationResult",
    "Validator",
    "meets_requirements",
    "validate_pics",
    "validate_pics_strict",
    "validate_with_registry",
    "generate_use_case_codes",
]
