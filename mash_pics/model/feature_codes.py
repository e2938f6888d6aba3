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

"""Mapping between device model feature type IDs and PICS short codes."""

from enum import IntEnum


class FeatureType(IntEnum):
    """Feature type identifiers of the device model."""

    DEVICE_INFO = 0x01
    STATUS = 0x02
    ELECTRICAL = 0x03
    MEASUREMENT = 0x04
    ENERGY_CONTROL = 0x05
    CHARGING_SESSION = 0x06
    TARIFF = 0x07
    SIGNALS = 0x08
    PLAN = 0x09
    TEST_CONTROL = 0x0A


FEATURE_TYPE_TO_PICS_CODE = {
    FeatureType.DEVICE_INFO: "INFO",
    FeatureType.STATUS: "STAT",
    FeatureType.ELECTRICAL: "ELEC",
    FeatureType.MEASUREMENT: "MEAS",
    FeatureType.ENERGY_CONTROL: "CTRL",
    FeatureType.CHARGING_SESSION: "CHRG",
    FeatureType.TARIFF: "TAR",
    FeatureType.SIGNALS: "SIG",
    FeatureType.PLAN: "PLAN",
    FeatureType.TEST_CONTROL: "TCTRL",
}

PICS_CODE_TO_FEATURE_TYPE = {
    code: feature_type
    for feature_type, code in FEATURE_TYPE_TO_PICS_CODE.items()
}


def feature_type_to_pics_code(feature_type):
    """Return the PICS short code for a feature type ID, or None."""
    try:
        return FEATURE_TYPE_TO_PICS_CODE.get(FeatureType(feature_type))
    except ValueError:
        return None


def pics_code_to_feature_type(code):
    """Return the feature type ID for a PICS short code, or None."""
    feature_type = PICS_CODE_TO_FEATURE_TYPE.get(code)
    return int(feature_type) if feature_type is not None else None


# Feature names as written in use case definitions
FEATURE_NAME_TO_TYPE = {
    "DeviceInfo": FeatureType.DEVICE_INFO,
    "Status": FeatureType.STATUS,
    "Electrical": FeatureType.ELECTRICAL,
    "Measurement": FeatureType.MEASUREMENT,
    "EnergyControl": FeatureType.ENERGY_CONTROL,
    "ChargingSession": FeatureType.CHARGING_SESSION,
    "Tariff": FeatureType.TARIFF,
    "Signals": FeatureType.SIGNALS,
    "Plan": FeatureType.PLAN,
    "TestControl": FeatureType.TEST_CONTROL,
}


def feature_name_to_pics_code(name):
    """Return the PICS short code for a feature name such as "EnergyControl".

    Args:
        name: Feature name from a use case definition
    Returns:
        The short code, or None for unknown names

    """
    feature_type = FEATURE_NAME_TO_TYPE.get(name)
    if feature_type is None:
        return None
    return feature_type_to_pics_code(feature_type)
