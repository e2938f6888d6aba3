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

from mash_pics.model.codes import TRUE_VALUE, Code, Entry, Side
from mash_pics.usecases.registry import USE_CASE_ID_TO_NAME

logger = logging.getLogger(__name__)

SCENARIO_BITS = 32


def use_case_name(use_case_id):
    """Registry name of a use case ID, ``0x%02X`` when unknown."""
    name = USE_CASE_ID_TO_NAME.get(use_case_id)
    if name is None:
        logger.debug(f"Unknown use case ID 0x{use_case_id:02X}")
        return f"0x{use_case_id:02X}"
    return name


def generate_use_case_codes(decls, side=Side.SERVER):
    """Generate PICS entries for declared use cases.

    Each use case ID yields ``MASH.<side>.UC.<name>=1`` and one
    ``MASH.<side>.UC.<name>.S<hh>=1`` entry per set scenario bit. A use case
    declared on several endpoints is emitted once, using its first
    declaration.

    Args:
        decls: Iterable of UseCaseDecl
        side: Side of the generated codes
    Returns:
        List of Entry sorted by code string

    """
    side = Side(side)
    seen = set()
    entries = []

    for decl in decls or []:
        if decl.id in seen:
            continue
        seen.add(decl.id)

        name = use_case_name(decl.id)
        feature = f"UC.{name}"
        entries.append(Entry(Code(side=side, feature=feature), TRUE_VALUE))

        for bit in range(SCENARIO_BITS):
            if decl.scenarios & (1 << bit):
                entries.append(
                    Entry(
                        Code(side=side, feature=f"{feature}.S{bit:02X}"),
                        TRUE_VALUE,
                    )
                )

    entries.sort(key=lambda entry: str(entry.code))
    return entries
