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

PROTOCOL_PREFIX = "MASH"

SIDE_SERVER = "S"
SIDE_CLIENT = "C"

# Features that carry application behaviour (as opposed to VERSION, UC.*,
# ENDPOINTS and other ad hoc device-level keys)
APPLICATION_FEATURES = [
    "INFO", "STAT", "ELEC", "MEAS", "CTRL", "CHRG", "SIG", "TAR", "PLAN",
]

# Canonical grouping order used when rendering key-value documents
FEATURE_GROUP_ORDER = [
    "TRANS", "COMM", "CERT", "ZONE", "CONN", "FAILSAFE", "SUB", "DURATION",
    "DISC", "CTRL", "ELEC", "MEAS", "STAT", "INFO", "CHRG", "SIG", "TAR",
    "PLAN",
]

# Lint issue severities, most severe first
LINT_SEVERITY_ORDER = ["error", "warning", "suggestion"]

# Keys of the structured document root
YAML_DEVICE_KEY = "device"
YAML_ITEMS_KEY = "items"

# Endpoint types measuring DC power (MEAS.A28) instead of AC power (MEAS.A01)
DC_ENDPOINT_TYPES = ["PV_STRING", "BATTERY"]
AC_ENDPOINT_TYPES = [
    "GRID_CONNECTION", "INVERTER", "EV_CHARGER", "HEAT_PUMP",
    "WATER_HEATER", "HVAC", "APPLIANCE", "SUB_METER",
]

FORMAT_AUTO = "auto"
FORMAT_KEY_VALUE = "key-value"
FORMAT_YAML = "yaml"

OUTPUT_FORMATS = ["text", "json", "yaml"]
GROUP_BY_CHOICES = ["feature", "type", "none"]

DEFAULT_USE_CASES_FILE = "use_cases.json"

EXIT_OK = 0
EXIT_COMMAND_ERROR = 1
EXIT_VALIDATION_FAILED = 2
