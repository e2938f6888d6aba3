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

import contextlib
import io
import json

import yaml

from mash_pics.configs.constants import FEATURE_GROUP_ORDER, SIDE_SERVER
from mash_pics.model.codes import ElementType

ELEMENT_TYPE_NAMES = {
    ElementType.ATTRIBUTE: "attribute",
    ElementType.COMMAND: "command",
    ElementType.FLAG: "flag",
    ElementType.EVENT: "event",
    ElementType.BEHAVIOR: "behavior",
}

# Sections of a feature group, in output order
ELEMENT_SECTIONS = [
    (ElementType.FLAG, "Feature Flags"),
    (ElementType.ATTRIBUTE, "Attributes"),
    (ElementType.COMMAND, "Commands"),
    (ElementType.BEHAVIOR, "Behavior"),
]


def capture_output(func, *args, **kwargs):
    """Run a print based renderer and return what it printed."""
    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        func(*args, **kwargs)
    return buffer.getvalue()


def table_lines(headers, rows, separator=" | "):
    """Lay out rows under a header, each column as wide as its widest cell.

    Args:
        headers: Column titles
        rows: Rows of cells, one cell per column
        separator: Text between columns
    Returns:
        List of lines: header, rule, then one line per row

    """
    cells = [[str(cell) for cell in headers]]
    cells += [[str(cell) for cell in row] for row in rows]
    widths = [max(len(cell) for cell in column) for column in zip(*cells)]

    lines = [
        separator.join(
            cell.ljust(width) for cell, width in zip(row, widths)
        ).rstrip()
        for row in cells
    ]
    rule = "-" * (sum(widths) + len(separator) * (len(widths) - 1))
    return [lines[0], rule] + lines[1:]


def to_json(data):
    return json.dumps(data, indent=2)


def to_yaml(data):
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def issue_line(prefix, code, message, line):
    if line > 0:
        return f"  {prefix} [line {line}] {code}: {message}"
    return f"  {prefix} {code}: {message}"


# validate


def build_validation_output(pics, result):
    """Convert a validation result to the JSON report structure.

    Args:
        pics: Parsed document, None when parsing failed
        result: ValidationResult
    Returns:
        Dictionary with valid, format, errors, warnings and device keys

    """
    output = {"valid": result.valid}
    if pics is not None:
        output["format"] = str(pics.format)
    if result.errors:
        output["errors"] = [
            {k: v for k, v in e.to_dict().items() if v} for e in result.errors
        ]
    if result.warnings:
        output["warnings"] = [
            {k: v for k, v in w.to_dict().items() if v} for w in result.warnings
        ]
    if pics is not None and pics.device is not None:
        output["device"] = {
            k: v for k, v in pics.device.to_dict().items() if v
        }
    return output


def print_validation_result(file_name, result, verbose=False):
    if result.valid and not result.errors and not result.warnings:
        print(f"{file_name}: OK")
        return

    if result.valid:
        print(f"{file_name}: OK (with {len(result.warnings)} warnings)")
    else:
        print(
            f"{file_name}: FAILED ({len(result.errors)} errors, "
            f"{len(result.warnings)} warnings)"
        )

    if verbose or not result.valid:
        for error in result.errors:
            print(issue_line("ERROR", error.code, error.message, error.line))

    if verbose:
        for warning in result.warnings:
            print(issue_line("WARNING", warning.code, warning.message, warning.line))


def format_validation_result(file_name, result, verbose=False):
    return capture_output(print_validation_result, file_name, result, verbose)


# lint


def print_lint_result(result, verbose=False):
    """Print a lint result.

    Suggestions and their fix hints are only listed in verbose mode.
    """
    if result.clean and not result.issues:
        print(f"{result.file}: clean")
        return

    parts = []
    for severity, label in (
        ("error", "errors"),
        ("warning", "warnings"),
        ("suggestion", "suggestions"),
    ):
        count = result.count(severity)
        if count:
            parts.append(f"{count} {label}")
    print(f"{result.file}: {', '.join(parts)}")

    for issue in result.issues:
        if not verbose and issue.severity == "suggestion":
            continue
        print(issue_line(issue.severity.upper(), issue.code, issue.message, issue.line))
        if verbose and issue.suggestion:
            print(f"    -> {issue.suggestion}")


def format_lint_result(result, verbose=False):
    return capture_output(print_lint_result, result, verbose)


# show


def entry_to_dict(entry):
    output = {"code": str(entry.code), "value": entry.value.raw}
    if entry.line_number:
        output["line"] = entry.line_number
    if entry.code.feature:
        output["feature"] = entry.code.feature
    type_name = ELEMENT_TYPE_NAMES.get(entry.code.element_type, "")
    if type_name:
        output["type"] = type_name
    return output


def group_key(entry_dict, group_by):
    if group_by == "feature":
        return entry_dict.get("feature") or "(protocol)"
    return entry_dict.get("type") or "(feature)"


def build_show_output(pics, feature=None, group_by=None):
    """Build the ``show`` structure of a document.

    Args:
        pics: Parsed PICS document
        feature: Only keep entries of this feature
        group_by: "feature", "type" or "none"
    Returns:
        Dictionary ready for text, JSON or YAML rendering

    """
    output = {
        "file": pics.source_file,
        "format": str(pics.format),
        "side": str(pics.side) if pics.side is not None else "",
        "version": pics.version,
    }
    if pics.device is not None:
        output["device"] = {k: v for k, v in pics.device.to_dict().items() if v}
    if pics.features:
        output["features"] = list(pics.features)
    if pics.endpoints:
        output["endpoints"] = [
            {"id": ep.id, "type": ep.type, "features": list(ep.features)}
            for ep in pics.endpoints_sorted()
        ]

    entries = [
        entry_to_dict(entry)
        for entry in pics.entries
        if not feature or entry.code.feature == feature
    ]
    entries.sort(key=lambda e: e["code"])

    if group_by and group_by != "none":
        grouped = {}
        for entry in entries:
            grouped.setdefault(group_key(entry, group_by), []).append(entry)
        output["grouped"] = {key: grouped[key] for key in sorted(grouped)}
    else:
        output["entries"] = entries

    return {k: v for k, v in output.items() if v not in ("", None)}


def count_show_entries(output):
    if "grouped" in output:
        return sum(len(entries) for entries in output["grouped"].values())
    return len(output.get("entries", []))


def print_show_text(output):
    print(f"File: {output.get('file', '')}")
    print(f"Format: {output.get('format', '')}")
    print(f"Side: {output.get('side', '')}")
    if output.get("version"):
        print(f"Version: {output['version']}")

    device = output.get("device")
    if device:
        print("\nDevice:")
        for key in ("vendor", "product", "model", "version"):
            if device.get(key):
                print(f"  {key.title()}: {device[key]}")

    if output.get("features"):
        print(f"\nFeatures: {', '.join(output['features'])}")

    if output.get("endpoints"):
        rows = [
            [f"0x{ep['id']:02X}", ep["type"] or "-", ", ".join(ep["features"])]
            for ep in output["endpoints"]
        ]
        print("\nEndpoints:")
        for line in table_lines(["Endpoint", "Type", "Features"], rows):
            print(f"  {line}")

    print("\nEntries:")
    if "grouped" in output:
        for key, entries in output["grouped"].items():
            print(f"\n  [{key}]")
            for entry in entries:
                print(f"    {entry['code']} = {entry['value']}")
    else:
        for entry in output.get("entries", []):
            print(f"  {entry['code']} = {entry['value']}")

    print(f"\nTotal: {count_show_entries(output)} entries")


def format_show_output(output, output_format="text"):
    if output_format == "json":
        return to_json(output) + "\n"
    if output_format == "yaml":
        return to_yaml(output)
    return capture_output(print_show_text, output)


# convert


def format_entry_value(value):
    """Render a value literal, quoting free text that would not re-parse."""
    raw = value.raw
    if not value.is_bool() and value.int_value == 0 and raw != "0":
        if " " in raw or "=" in raw:
            return f'"{raw}"'
    return raw


def write_feature_group(name, entries):
    if not entries:
        return

    print(f"# {name}")
    for entry in entries:
        if entry.code.element_type == ElementType.NONE:
            print(f"{entry.code}={format_entry_value(entry.value)}")

    remaining = [e for e in entries if e.code.element_type != ElementType.NONE]
    for element_type, title in ELEMENT_SECTIONS:
        section = [e for e in remaining if e.code.element_type == element_type]
        if not section:
            continue
        print(f"# {name} {title}")
        for entry in section:
            print(f"{entry.code}={format_entry_value(entry.value)}")
        remaining = [e for e in remaining if e.code.element_type != element_type]

    for entry in remaining:
        print(f"{entry.code}={format_entry_value(entry.value)}")
    print()


def print_key_value(pics, default_side=SIDE_SERVER):
    print("# MASH PICS File")
    device = pics.device
    if device is not None:
        if device.vendor or device.product:
            print(f"# Device: {device.vendor} {device.product}")
        if device.model:
            print(f"# Model: {device.model}")
        if device.version:
            print(f"# Version: {device.version}")
    print("#")
    print(f"# Converted from: {pics.source_file}")
    print()

    side = str(pics.side) if pics.side is not None else (default_side or SIDE_SERVER)
    written = set()

    print("# Protocol Support")
    for protocol_side in ("S", "C"):
        code = f"MASH.{protocol_side}"
        if pics.has(code) or side == protocol_side:
            print(f"{code}=1")
            written.add(code)
    if pics.version:
        print(f"MASH.{side}.VERSION={pics.version}")
        written.add(f"MASH.{side}.VERSION")
    print()

    if pics.features:
        print("# Features")
        for feature in pics.features:
            code = f"MASH.{side}.{feature}"
            print(f"{code}=1")
            written.add(code)
        print()

    groups = {}
    endpoint_types = []
    capability_flags = []
    for entry in pics.entries:
        code = entry.code
        if str(code) in written:
            continue
        if code.is_capability_flag():
            capability_flags.append(entry)
        elif not code.feature:
            if code.endpoint_id > 0:
                endpoint_types.append(entry)
        else:
            groups.setdefault(code.feature, []).append(entry)

    if endpoint_types:
        print("# Endpoints")
        for entry in sorted(endpoint_types, key=lambda e: str(e.code)):
            print(f"{entry.code}={format_entry_value(entry.value)}")
        print()

    for entries in groups.values():
        entries.sort(key=lambda e: str(e.code))

    ordered = [name for name in FEATURE_GROUP_ORDER if name in groups]
    ordered += sorted(name for name in groups if name not in FEATURE_GROUP_ORDER)
    for name in ordered:
        write_feature_group(name, groups[name])

    if capability_flags:
        print("# Capability Flags")
        for entry in capability_flags:
            print(f"{entry.code}={format_entry_value(entry.value)}")
        print()


def convert_to_key_value(pics, default_side=SIDE_SERVER):
    """Render a document as grouped key-value text.

    Args:
        pics: Parsed PICS document
        default_side: Side used when the document declares none
    Returns:
        Key-value document text

    """
    return capture_output(print_key_value, pics, default_side)
