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

"""PICS document parser.

Two source formats are understood: the line-oriented ``CODE=VALUE`` form
and the structured YAML form with top-level ``device`` and ``items``
blocks. The format is auto-detected unless selected explicitly.
"""

import logging
import os
from dataclasses import dataclass

from mash_pics.configs.constants import PROTOCOL_PREFIX
from mash_pics.model.codes import Entry, parse_value
from mash_pics.model.document import PICS, Format
from mash_pics.parsers.code_parser import parse_code
from mash_pics.parsers.errors import PICSParseError
from mash_pics.parsers.yaml_parser import parse_yaml

logger = logging.getLogger(__name__)


@dataclass
class ParseOptions:
    """Parser settings.

    ``strict`` is carried for callers that distinguish strict parsing; the
    grammar itself is the same in both modes.
    """

    format: Format = Format.AUTO
    strict: bool = False


def detect_format(text):
    """Detect the source format from the first line carrying a signal.

    Args:
        text: Document text
    Returns:
        Format.YAML or Format.KEY_VALUE

    """
    if not text:
        return Format.KEY_VALUE

    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        if trimmed.startswith("device:") or trimmed.startswith("items:"):
            return Format.YAML
        if "=" in trimmed and trimmed.startswith(f"{PROTOCOL_PREFIX}."):
            return Format.KEY_VALUE
        if line.startswith("  "):
            return Format.YAML
        if ": " in trimmed and "=" not in trimmed:
            return Format.YAML

    return Format.KEY_VALUE


def parse_line(line, line_number):
    """Parse a single ``CODE=VALUE`` line.

    Args:
        line: Trimmed, non-blank, non-comment line
        line_number: 1-based line number
    Returns:
        Entry
    Raises:
        PICSParseError: If the line is malformed

    """
    if "=" not in line:
        raise PICSParseError("invalid format: expected CODE=VALUE")

    code_text, value_text = line.split("=", 1)
    code_text = code_text.strip()
    value_text = value_text.strip()

    comment_index = value_text.find("#")
    if comment_index != -1:
        value_text = value_text[:comment_index].strip()

    return Entry(
        code=parse_code(code_text),
        value=parse_value(value_text),
        line_number=line_number,
    )


class Parser:
    """Parses PICS documents. Holds no state between calls."""

    def __init__(self, strict=False):
        self.strict = strict

    def parse_file(self, path, options=None):
        """Parse a PICS file.

        Args:
            path: Path to the file
            options: Optional ParseOptions
        Returns:
            PICS
        Raises:
            PICSParseError: If the file cannot be read or parsed

        """
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            logger.error(f"Failed to read PICS file {path}: {e}")
            raise PICSParseError(f"failed to read file: {e}") from e

        pics = self.parse_bytes(data, options)
        pics.source_file = path
        logger.info(
            f"Parsed {len(pics.entries)} entries from "
            f"{os.path.basename(path)} ({pics.format})"
        )
        return pics

    def parse_stream(self, stream, options=None):
        try:
            data = stream.read()
        except OSError as e:
            raise PICSParseError(f"failed to read data: {e}") from e
        if isinstance(data, str):
            return self.parse_string(data, options)
        return self.parse_bytes(data, options)

    def parse_bytes(self, data, options=None):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise PICSParseError(f"failed to decode data: {e}") from e
        return self.parse_string(text, options)

    def parse_string(self, text, options=None):
        """Parse PICS text in the selected or detected format.

        Args:
            text: Document text
            options: Optional ParseOptions, auto-detection by default
        Returns:
            PICS
        Raises:
            PICSParseError: On the first malformed line or item

        """
        if options is None:
            options = ParseOptions(strict=self.strict)

        source_format = options.format
        if source_format == Format.AUTO:
            source_format = detect_format(text)
            logger.debug(f"Detected PICS format: {source_format}")

        if source_format == Format.YAML:
            return parse_yaml(text)
        return self.parse_key_value(text)

    def parse_key_value(self, text):
        pics = PICS()
        pics.format = Format.KEY_VALUE

        for line_number, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                entry = parse_line(line, line_number)
            except PICSParseError as e:
                raise PICSParseError(e.message, line_number) from e
            pics.add_entry(entry)

        logger.debug(
            f"Key-value document: {len(pics.entries)} entries, "
            f"{len(pics.endpoints)} endpoints"
        )
        return pics


def parse_file(path, options=None):
    """Parse a PICS file with a default Parser."""
    return Parser().parse_file(path, options)


def parse_string(text, options=None):
    return Parser().parse_string(text, options)


def parse_bytes(data, options=None):
    return Parser().parse_bytes(data, options)
