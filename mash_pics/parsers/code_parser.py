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

"""PICS code grammar.

Codes are matched against an ordered list of matchers: the special forms
first (protocol declaration, version, behavior), then the general grammar,
then the opaque feature fallback and finally the ``D.*``/``C.*`` capability
shorthands. A matcher returns None when the code is not its form.
"""

import logging
import re

from mash_pics.configs.constants import PROTOCOL_PREFIX
from mash_pics.model.codes import Code, ElementType, Qualifier, Side
from mash_pics.parsers.errors import PICSParseError

logger = logging.getLogger(__name__)

# Groups: side, endpoint, feature, element type, id, qualifier
CODE_PATTERN = re.compile(
    r"^MASH\.([SC])(?:\.(E[0-9A-Fa-f]{2}))?(?:\.([A-Z_]+))?"
    r"(?:\.([ACFEB])([0-9A-Fa-f]+))?(?:\.(Rsp|Tx))?$"
)
ENDPOINT_SEGMENT_PATTERN = re.compile(r"^E[0-9A-Fa-f]{2}$")
# Segments that can only be meant as an endpoint (E followed by a digit)
ENDPOINT_LIKE_PATTERN = re.compile(r"^E[0-9]")

PROTOCOL_CODES = {
    f"{PROTOCOL_PREFIX}.{Side.SERVER}": Side.SERVER,
    f"{PROTOCOL_PREFIX}.{Side.CLIENT}": Side.CLIENT,
}
VERSION_CODES = (
    f"{PROTOCOL_PREFIX}.{Side.SERVER}.VERSION",
    f"{PROTOCOL_PREFIX}.{Side.CLIENT}.VERSION",
)
CAPABILITY_PREFIXES = ("D.", "C.")


def parse_endpoint_segment(segment):
    """Parse an ``E<hex2>`` segment.

    Args:
        segment: The dotted segment following the side
    Returns:
        Tuple of (endpoint_id, consumed). consumed is False when the segment
        is not an endpoint segment at all.
    Raises:
        PICSParseError: If the segment looks like an endpoint but is invalid

    """
    if ENDPOINT_SEGMENT_PATTERN.match(segment):
        endpoint_id = int(segment[1:], 16)
        if endpoint_id == 0:
            raise PICSParseError(
                f"invalid endpoint segment {segment}: endpoint 0 is "
                "declared without an endpoint segment"
            )
        return endpoint_id, True
    if ENDPOINT_LIKE_PATTERN.match(segment):
        raise PICSParseError(
            f"invalid endpoint segment {segment}: expected E followed by "
            "two hex digits"
        )
    return 0, False


def split_side(parts):
    if len(parts) < 2 or parts[0] != PROTOCOL_PREFIX:
        return None
    if parts[1] not in (Side.SERVER.value, Side.CLIENT.value):
        return None
    return Side(parts[1])


def match_protocol_declaration(text):
    side = PROTOCOL_CODES.get(text)
    if side is None:
        return None
    return Code(side=side)


def match_version(text):
    if text not in VERSION_CODES:
        return None
    side = Side.CLIENT if ".C." in text else Side.SERVER
    return Code(side=side, feature="VERSION")


def match_behavior(text):
    """Behavior codes keep their literal since names are free-form."""
    if ".B_" not in text:
        return None
    parts = text.split(".")
    if len(parts) < 4:
        return None
    side = split_side(parts)
    if side is None:
        return None

    index = 2
    endpoint_id, consumed = parse_endpoint_segment(parts[index])
    if consumed:
        index += 1
    if index >= len(parts) - 1:
        return None

    return Code(
        side=side,
        endpoint_id=endpoint_id,
        feature=parts[index],
        element_type=ElementType.BEHAVIOR,
        id=".".join(parts[index + 1:]),
        raw=text,
    )


def match_general(text):
    match = CODE_PATTERN.match(text)
    if match is None:
        return None
    side, endpoint, feature, element_type, element_id, qualifier = (
        match.groups()
    )

    endpoint_id = 0
    if endpoint:
        endpoint_id, _ = parse_endpoint_segment(endpoint)

    return Code(
        side=Side(side),
        endpoint_id=endpoint_id,
        feature=feature or "",
        element_type=ElementType(element_type or ""),
        id=element_id.upper() if element_id else "",
        qualifier=Qualifier(qualifier or ""),
    )


def match_opaque_feature(text):
    """Treat everything after the side (and endpoint) as the feature name.

    Covers device-level keys such as MASH.S.ENDPOINTS and MASH.S.UC.LPC.
    """
    parts = text.split(".")
    if len(parts) < 3:
        return None
    side = split_side(parts)
    if side is None:
        return None

    index = 2
    endpoint_id, consumed = parse_endpoint_segment(parts[index])
    if consumed:
        index += 1
    rest = parts[index:]
    if not rest or not all(rest):
        return None

    return Code(side=side, endpoint_id=endpoint_id, feature=".".join(rest))


def match_capability_flag(text):
    if not text.startswith(CAPABILITY_PREFIXES) or len(text) <= 2:
        return None
    return Code(raw=text)


CODE_MATCHERS = [
    match_protocol_declaration,
    match_version,
    match_behavior,
    match_general,
    match_opaque_feature,
    match_capability_flag,
]


def parse_code(text):
    """Parse a PICS code string.

    Args:
        text: Code string, e.g. MASH.S.E01.CTRL.A0A
    Returns:
        Code
    Raises:
        PICSParseError: If no matcher accepts the code

    """
    for matcher in CODE_MATCHERS:
        code = matcher(text)
        if code is not None:
            logger.debug(f"Code {text} matched by {matcher.__name__}")
            return code
    raise PICSParseError(
        f"invalid PICS code format: {text} (expected MASH.*, D.*, or C.*)"
    )
