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

logger = logging.getLogger(__name__)


def format_endpoint_code(side, endpoint_id, suffix):
    """Build an endpoint-scoped PICS code string.

    Example: ("S", 1, "CTRL.A0A") -> MASH.S.E01.CTRL.A0A

    Args:
        side: Side letter ("S" or "C")
        endpoint_id: Endpoint number (1-255)
        suffix: Remaining dotted code segments
    Returns:
        The code string

    """
    return f"MASH.{side}.E{endpoint_id:02X}.{suffix}"


def convert_to_int(value):
    """Convert value to integer, accepting 0x-prefixed hex strings.

    Args:
        value: The value to convert
    Returns:
        The converted value, or None if invalid

    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        if not value:
            return None
        return int(str(value), 0)
    except ValueError as e:
        logger.error(f"Error converting value to integer: {e}")
        return None
