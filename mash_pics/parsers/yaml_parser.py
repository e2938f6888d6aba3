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

"""Structured (YAML) PICS format.

    device:
      vendor: Example
      product: Wallbox
    items:
      MASH.S: 1
      MASH.S.E01: EV_CHARGER
      MASH.S.E01.CTRL: true

Items are read from the composed node graph so that every entry keeps the
line of its key and duplicate keys are retained in document order.
"""

import logging
import math

import yaml

from mash_pics.configs.constants import YAML_DEVICE_KEY, YAML_ITEMS_KEY
from mash_pics.model.codes import (
    Entry,
    Value,
    is_truthy_literal,
    parse_value,
    value_from_bool,
)
from mash_pics.model.document import PICS, DeviceMetadata, Format
from mash_pics.parsers.code_parser import parse_code
from mash_pics.parsers.errors import PICSParseError

logger = logging.getLogger(__name__)

DEVICE_KEY = YAML_DEVICE_KEY
ITEMS_KEY = YAML_ITEMS_KEY
NULL_TAG = "tag:yaml.org,2002:null"


def node_line(node):
    return node.start_mark.line + 1


def convert_yaml_value(value, source=None):
    """Map a native YAML scalar onto a Value.

    Floats keep the text they were written with when ``source`` is given.

    Args:
        value: Constructed YAML value
        source: Scalar text from the document
    Returns:
        Value

    """
    if isinstance(value, bool):
        return value_from_bool(value)
    if isinstance(value, int):
        text = str(value)
        return Value(
            raw=text,
            bool_value=is_truthy_literal(text),
            int_value=value,
            str_value=text,
        )
    if isinstance(value, float):
        text = source or str(value)
        number = int(value) if math.isfinite(value) else 0
        return Value(
            raw=text,
            bool_value=is_truthy_literal(text),
            int_value=number,
            str_value=text,
        )
    if isinstance(value, str):
        return parse_value(value)
    if value is None:
        return Value()

    text = str(value)
    return Value(raw=text, bool_value=is_truthy_literal(text), str_value=text)


def construct_value(loader, node):
    try:
        return loader.construct_object(node, deep=True)
    except (ValueError, TypeError) as e:
        raise PICSParseError(f"invalid value: {e}", node_line(node)) from e


def parse_device_block(loader, node):
    if not isinstance(node, yaml.MappingNode):
        raise PICSParseError("device block must be a mapping", node_line(node))
    data = construct_value(loader, node)
    return DeviceMetadata(
        vendor=str(data.get("vendor") or ""),
        product=str(data.get("product") or ""),
        model=str(data.get("model") or ""),
        version=str(data.get("version") or ""),
    )


def parse_items_block(loader, node, pics):
    if not isinstance(node, yaml.MappingNode):
        raise PICSParseError("items block must be a mapping", node_line(node))

    for key_node, value_node in node.value:
        line_number = node_line(key_node)
        if not isinstance(key_node, yaml.ScalarNode):
            raise PICSParseError("item key must be a scalar", line_number)
        try:
            code = parse_code(str(key_node.value).strip())
        except PICSParseError as e:
            raise PICSParseError(e.message, line_number) from e

        source = value_node.value if isinstance(value_node, yaml.ScalarNode) else None
        value = convert_yaml_value(construct_value(loader, value_node), source)
        pics.add_entry(Entry(code=code, value=value, line_number=line_number))


def is_null(node):
    return isinstance(node, yaml.ScalarNode) and node.tag == NULL_TAG


def yaml_error_to_parse_error(error):
    mark = getattr(error, "problem_mark", None)
    problem = getattr(error, "problem", None) or str(error)
    return PICSParseError(
        f"YAML parse error: {problem}",
        mark.line + 1 if mark is not None else None,
    )


def parse_yaml(text):
    """Parse a structured PICS document.

    Args:
        text: Document text
    Returns:
        PICS
    Raises:
        PICSParseError: On invalid YAML, invalid blocks or unknown codes

    """
    pics = PICS()
    pics.format = Format.YAML

    loader = yaml.SafeLoader(text)
    try:
        root = loader.get_single_node()
        if root is None or is_null(root):
            return pics
        if not isinstance(root, yaml.MappingNode):
            raise PICSParseError(
                "YAML document must be a mapping", node_line(root)
            )

        for key_node, value_node in root.value:
            key = key_node.value if isinstance(key_node, yaml.ScalarNode) else None
            if is_null(value_node) and key in (DEVICE_KEY, ITEMS_KEY):
                continue
            if key == DEVICE_KEY:
                pics.device = parse_device_block(loader, value_node)
            elif key == ITEMS_KEY:
                parse_items_block(loader, value_node, pics)
            else:
                logger.warning(
                    f"Ignoring unknown top-level key '{key}' at line "
                    f"{node_line(key_node)}"
                )
    except yaml.YAMLError as e:
        raise yaml_error_to_parse_error(e) from e
    finally:
        loader.dispose()

    logger.debug(
        f"YAML document: {len(pics.entries)} entries, "
        f"{len(pics.endpoints)} endpoints"
    )
    return pics
