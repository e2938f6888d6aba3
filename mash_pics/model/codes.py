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

"""Code and value vocabulary of a PICS document.

A code such as ``MASH.S.E01.CTRL.C01.Rsp`` is decomposed into its side,
endpoint, feature, element type, hex ID and qualifier. A value keeps the
original literal alongside its boolean, integer and string interpretations.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum

from mash_pics.configs.constants import PROTOCOL_PREFIX

logger = logging.getLogger(__name__)

INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
FALSE_LITERALS = ("", "0", "false")


class Side(str, Enum):
    """Whether a document describes a device or a controller."""

    SERVER = "S"
    CLIENT = "C"

    def __str__(self):
        return self.value


class ElementType(str, Enum):
    """Kind of sub-declaration within a feature."""

    NONE = ""
    ATTRIBUTE = "A"
    COMMAND = "C"
    FLAG = "F"
    EVENT = "E"
    BEHAVIOR = "B"

    def __str__(self):
        return self.value


class Qualifier(str, Enum):
    """Command direction modifier."""

    NONE = ""
    RESPONSE = "Rsp"
    TRANSMIT = "Tx"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Code:
    """A parsed PICS code.

    ``raw`` is only populated for codes whose literal is their canonical
    form: behavior codes and the ``D.*``/``C.*`` capability shorthands.
    """

    side: Side = None
    endpoint_id: int = 0
    feature: str = ""
    element_type: ElementType = ElementType.NONE
    id: str = ""
    qualifier: Qualifier = Qualifier.NONE
    raw: str = ""

    def __str__(self):
        if self.raw and (self.side is None or self.is_behavior()):
            return self.raw

        parts = [PROTOCOL_PREFIX, str(self.side)]
        if self.endpoint_id > 0:
            parts.append(f"E{self.endpoint_id:02X}")
        if self.feature:
            parts.append(self.feature)
        if self.element_type != ElementType.NONE:
            parts.append(f"{self.element_type}{self.id}")
        if self.qualifier != Qualifier.NONE:
            parts.append(str(self.qualifier))
        return ".".join(parts)

    def is_behavior(self):
        return self.element_type == ElementType.BEHAVIOR

    def is_capability_flag(self):
        """True for the legacy ``D.*``/``C.*`` shorthand keys."""
        return self.side is None

    def is_protocol_declaration(self):
        """True for the bare ``MASH.S``/``MASH.C`` codes."""
        return (
            self.side is not None
            and self.endpoint_id == 0
            and not self.feature
            and self.element_type == ElementType.NONE
        )

    def is_version(self):
        return (
            self.side is not None
            and self.endpoint_id == 0
            and self.feature == "VERSION"
            and self.element_type == ElementType.NONE
        )

    def is_feature_presence(self):
        """True for feature-only codes such as ``MASH.S.E01.CTRL``."""
        return (
            self.side is not None
            and bool(self.feature)
            and self.element_type == ElementType.NONE
        )


@dataclass(frozen=True)
class Value:
    """A literal with its precomputed interpretations."""

    raw: str = ""
    bool_value: bool = False
    int_value: int = 0
    str_value: str = ""

    def is_bool(self):
        return self.raw in ("0", "1")

    def is_true(self):
        return self.bool_value

    def __str__(self):
        return self.str_value


@dataclass(frozen=True)
class Entry:
    """A code/value pair with its 1-based source line (0 when unknown)."""

    code: Code
    value: Value
    line_number: int = field(default=0, compare=False)


def is_truthy_literal(text):
    return text not in FALSE_LITERALS


def parse_value(literal):
    """Interpret a value literal.

    Quoted literals are taken verbatim without their quotes. Otherwise the
    literal is tried as an integer, then as a float (kept in its original
    string form), and finally kept as an opaque string. Only "", "0" and
    "false" are false, whatever their numeric value.

    Args:
        literal: The trimmed value text
    Returns:
        Value

    """
    text = literal
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1]
        return Value(
            raw=text,
            bool_value=is_truthy_literal(text),
            str_value=text,
        )

    if INTEGER_PATTERN.match(text):
        return Value(
            raw=text,
            bool_value=is_truthy_literal(text),
            int_value=int(text),
            str_value=text,
        )

    if FLOAT_PATTERN.match(text):
        number = float(text)
        return Value(
            raw=text,
            bool_value=is_truthy_literal(text),
            int_value=int(number) if math.isfinite(number) else 0,
            str_value=text,
        )

    return Value(raw=text, bool_value=is_truthy_literal(text), str_value=text)


def value_from_bool(flag):
    """Build the Value used for native booleans ("1"/"0")."""
    raw = "1" if flag else "0"
    return Value(raw=raw, bool_value=flag, int_value=int(flag), str_value=raw)


TRUE_VALUE = value_from_bool(True)
