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
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from mash_pics.configs.constants import (
    FORMAT_AUTO,
    FORMAT_KEY_VALUE,
    FORMAT_YAML,
)
from mash_pics.model.codes import ElementType, Entry, Side

logger = logging.getLogger(__name__)


class Format(str, Enum):
    """Source format of a PICS document."""

    AUTO = FORMAT_AUTO
    KEY_VALUE = FORMAT_KEY_VALUE
    YAML = FORMAT_YAML

    def __str__(self):
        return self.value


@dataclass
class DeviceMetadata:
    """Optional ``device`` block of the structured format."""

    vendor: str = ""
    product: str = ""
    model: str = ""
    version: str = ""

    def to_dict(self):
        return {
            "vendor": self.vendor,
            "product": self.product,
            "model": self.model,
            "version": self.version,
        }


@dataclass
class EndpointPICS:
    """Per-endpoint declarations: type name and enabled features."""

    id: int
    type: str = ""
    features: List[str] = field(default_factory=list)

    def has_feature(self, feature):
        return feature in self.features

    def add_feature(self, feature):
        if feature not in self.features:
            self.features.append(feature)


class PICS:
    """A parsed PICS document.

    ``entries`` keeps every parsed line in source order, duplicates
    included. ``by_code`` indexes entries by canonical code string and holds
    the last entry seen for a code.
    """

    def __init__(self):
        self.entries: List[Entry] = []
        self.by_code: Dict[str, Entry] = {}
        self.side: Optional[Side] = None
        self.version = ""
        self.features: List[str] = []
        self.endpoints: Dict[int, EndpointPICS] = {}
        self.device: Optional[DeviceMetadata] = None
        self.format = Format.AUTO
        self.source_file = ""

    def add_entry(self, entry):
        """Append a parsed entry and update side, version and features.

        Args:
            entry: Parsed Entry, in source order

        """
        code = entry.code
        self.entries.append(entry)
        self.by_code[str(code)] = entry

        if code.is_protocol_declaration():
            self.side = code.side
            return
        if code.is_version():
            self.version = entry.value.raw
            return
        if code.is_capability_flag():
            return

        if code.endpoint_id > 0:
            endpoint = self.endpoints.get(code.endpoint_id)
            if endpoint is None:
                endpoint = EndpointPICS(id=code.endpoint_id)
                self.endpoints[code.endpoint_id] = endpoint

            # MASH.S.E01=EV_CHARGER
            if not code.feature and code.element_type == ElementType.NONE:
                endpoint.type = entry.value.str_value
            elif code.is_feature_presence() and entry.value.is_true():
                endpoint.add_feature(code.feature)
        elif code.is_feature_presence() and entry.value.is_true():
            if code.feature not in self.features:
                self.features.append(code.feature)

    def side_code(self):
        """Side letter used to build codes, defaulting to the device side."""
        return str(self.side) if self.side is not None else str(Side.SERVER)

    def get(self, code):
        """Return the entry stored for a code string, or None."""
        return self.by_code.get(code)

    def has(self, code):
        """True if the code is present and its value is true."""
        entry = self.by_code.get(code)
        return entry is not None and entry.value.is_true()

    def get_int(self, code):
        entry = self.by_code.get(code)
        return entry.value.int_value if entry is not None else 0

    def get_string(self, code):
        entry = self.by_code.get(code)
        return entry.value.str_value if entry is not None else ""

    def has_feature(self, feature):
        return self.has(f"MASH.{self.side_code()}.{feature}")

    def has_attribute(self, feature, attr_id):
        return self.has(f"MASH.{self.side_code()}.{feature}.A{attr_id}")

    def has_command(self, feature, cmd_id):
        """True if the command is accepted (``.Rsp``)."""
        return self.has(f"MASH.{self.side_code()}.{feature}.C{cmd_id}.Rsp")

    def has_feature_flag(self, feature, flag_id):
        return self.has(f"MASH.{self.side_code()}.{feature}.F{flag_id}")

    def is_device(self):
        return self.side == Side.SERVER

    def is_controller(self):
        return self.side == Side.CLIENT

    def endpoint_has(self, endpoint_id, code):
        """True if the code is present, true and scoped to the endpoint."""
        entry = self.by_code.get(code)
        return (
            entry is not None
            and entry.code.endpoint_id == endpoint_id
            and entry.value.is_true()
        )

    def endpoint_type(self, endpoint_id):
        endpoint = self.endpoints.get(endpoint_id)
        return endpoint.type if endpoint is not None else ""

    def endpoint_ids(self):
        return sorted(self.endpoints)

    def has_use_case(self, name):
        return self.has(f"MASH.{self.side_code()}.UC.{name}")

    def use_cases(self):
        """Return the sorted names of declared use cases.

        Scenario sub-codes (``UC.<name>.S<hh>``) are not use cases and are
        skipped.
        """
        prefix = f"MASH.{self.side_code()}.UC."
        names = []
        for code, entry in self.by_code.items():
            if not code.startswith(prefix) or not entry.value.is_true():
                continue
            name = code[len(prefix):]
            if "." in name:
                continue
            names.append(name)
        return sorted(names)

    def endpoints_with_feature(self, feature):
        """Return endpoints declaring the feature, in endpoint ID order."""
        return [
            self.endpoints[endpoint_id]
            for endpoint_id in self.endpoint_ids()
            if self.endpoints[endpoint_id].has_feature(feature)
        ]

    def to_dict(self):
        """Convert the document to a serializable dictionary."""
        return {
            "side": self.side_code() if self.side is not None else "",
            "version": self.version,
            "format": str(self.format),
            "source_file": self.source_file,
            "device": self.device.to_dict() if self.device else None,
            "features": list(self.features),
            "endpoints": [
                {
                    "id": endpoint.id,
                    "type": endpoint.type,
                    "features": list(endpoint.features),
                }
                for endpoint in self.endpoints_sorted()
            ],
            "use_cases": self.use_cases(),
            "entries": [
                {
                    "code": str(entry.code),
                    "value": entry.value.raw,
                    "line": entry.line_number,
                }
                for entry in self.entries
            ],
        }

    def endpoints_sorted(self):
        return [self.endpoints[i] for i in self.endpoint_ids()]
