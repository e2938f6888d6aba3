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

"""
MASH PICS Tool

A command-line utility for validating, linting, inspecting and converting
MASH PICS documents (key-value or YAML).

This tool provides the following major capabilities:
  • validate: check PICS files against the conformance rule registry
  • lint: report style and consistency issues on top of validation
  • show: display PICS contents as text, JSON or YAML
  • convert: rewrite a PICS file in the grouped key-value format
"""

import click
import logging
import os
import sys

from mash_pics import __version__
from mash_pics.configs.constants import (
    EXIT_COMMAND_ERROR,
    EXIT_OK,
    EXIT_VALIDATION_FAILED,
    GROUP_BY_CHOICES,
    OUTPUT_FORMATS,
    SIDE_CLIENT,
    SIDE_SERVER,
)
from mash_pics.parsers.errors import PICSParseError

logger = logging.getLogger(__name__)


def setup_logging(verbose):
    """Configure logging behavior based on verbosity."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s: %(filename)s:%(lineno)d - %(message)s",
        )
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(levelname)s: %(filename)s:%(lineno)d - %(message)s",
        )


def fail(ctx, message):
    """Print an error with the command usage and exit with a command error."""
    click.echo(f"Error: {message}", err=True)
    click.echo(ctx.get_usage(), err=True)
    sys.exit(EXIT_COMMAND_ERROR)


@click.group()
@click.version_option(__version__, prog_name="mash-pics")
def cli():
    """MASH PICS validation and conversion tool

    \b
    Common Use Cases:
      # Validate PICS files against conformance rules
      mash-pics validate device.pics

      # Check PICS files for style and consistency issues
      mash-pics lint --verbose *.yaml

      # Display PICS file contents as JSON
      mash-pics show --format json device.pics

      # Convert a YAML PICS file to key-value format
      mash-pics convert device.yaml -o device.pics
    """
    pass


@cli.command(name="validate")
@click.argument("files", nargs=-1, type=click.Path())
@click.option(
    "--strict",
    is_flag=True,
    help="Also report info level rule violations",
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option(
    "--disable",
    "disabled_rules",
    multiple=True,
    help="Disable a rule by ID (repeatable)",
)
@click.option(
    "--category",
    "categories",
    multiple=True,
    help="Only run rules of this category (repeatable)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show all warnings and enable debug logging",
)
@click.pass_context
def validate_command(ctx, files, strict, as_json, disabled_rules, categories,
                     verbose):
    """Validate PICS files against conformance rules

    Runs every enabled rule of the default registry (dependency, mandatory,
    consistency, conformance and use case rules) and reports errors and
    warnings per file. Exits with status 2 if any file fails.
    """
    setup_logging(verbose)
    if not files:
        fail(ctx, "no files specified")

    from mash_pics.rules import new_default_registry
    from mash_pics.validators.reporting import (
        build_validation_output,
        format_validation_result,
        to_json,
    )
    from mash_pics.validators.validator import validate_file

    registry = new_default_registry()
    has_errors = False
    results = {}

    for file_path in files:
        pics, result = validate_file(
            file_path,
            registry,
            strict=strict,
            disabled_rules=disabled_rules,
            categories=categories,
        )
        results[file_path] = build_validation_output(pics, result)
        if not result.valid:
            has_errors = True
        if not as_json:
            click.echo(
                format_validation_result(file_path, result, verbose), nl=False
            )

    if as_json:
        click.echo(to_json(results))

    sys.exit(EXIT_VALIDATION_FAILED if has_errors else EXIT_OK)


@cli.command(name="lint")
@click.argument("files", nargs=-1, type=click.Path())
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show all issues including suggestions",
)
@click.pass_context
def lint_command(ctx, files, as_json, verbose):
    """Check PICS files for style and consistency issues

    Reports rule violations together with missing VERSION declarations,
    duplicate codes and features declared without any attribute. Exits with
    status 2 if any file is not clean.
    """
    setup_logging(verbose)
    if not files:
        fail(ctx, "no files specified")

    from mash_pics.rules import new_default_registry
    from mash_pics.validators.lint import lint_file
    from mash_pics.validators.reporting import format_lint_result, to_json

    registry = new_default_registry()
    results = []
    has_issues = False

    for file_path in files:
        result = lint_file(file_path, registry)
        results.append(result)
        if not result.clean:
            has_issues = True
        if not as_json:
            click.echo(format_lint_result(result, verbose), nl=False)

    if as_json:
        click.echo(to_json([result.to_dict() for result in results]))

    sys.exit(EXIT_VALIDATION_FAILED if has_issues else EXIT_OK)


@cli.command(name="show")
@click.argument("file_path", required=False, type=click.Path())
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format",
)
@click.option("--feature", help="Only show entries of this feature")
@click.option(
    "--group-by",
    type=click.Choice(GROUP_BY_CHOICES, case_sensitive=False),
    help="Group entries by feature or element type",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable detailed debug logging",
)
@click.pass_context
def show_command(ctx, file_path, output_format, feature, group_by, verbose):
    """Display PICS file contents in various formats"""
    setup_logging(verbose)
    if not file_path:
        fail(ctx, "no file specified")

    from mash_pics.parsers.pics_parser import parse_file
    from mash_pics.validators.reporting import (
        build_show_output,
        format_show_output,
    )

    try:
        pics = parse_file(file_path)
    except PICSParseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_COMMAND_ERROR)

    output = build_show_output(pics, feature=feature, group_by=group_by)
    click.echo(format_show_output(output, output_format.lower()), nl=False)


@cli.command(name="convert")
@click.argument("file_path", required=False, type=click.Path())
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    help="Output file (default: stdout)",
)
@click.option(
    "--side",
    type=click.Choice([SIDE_SERVER, SIDE_CLIENT]),
    default=SIDE_SERVER,
    show_default=True,
    help="Side used when the document declares none",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable detailed debug logging",
)
@click.pass_context
def convert_command(ctx, file_path, output_path, side, verbose):
    """Convert a PICS file to the key-value format

    Entries are grouped by feature and, within a feature, by flags,
    attributes, commands and behaviors.
    """
    setup_logging(verbose)
    if not file_path:
        fail(ctx, "no input file specified")

    from mash_pics.parsers.pics_parser import parse_file
    from mash_pics.validators.reporting import convert_to_key_value

    try:
        pics = parse_file(file_path)
    except PICSParseError as e:
        click.echo(f"Error parsing input: {e}", err=True)
        sys.exit(EXIT_COMMAND_ERROR)

    text = convert_to_key_value(pics, side)

    if not output_path or output_path == "-":
        click.echo(text, nl=False)
        return

    try:
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        logger.error(f"Failed to write {output_path}: {e}")
        click.echo(f"Error writing output: {e}", err=True)
        sys.exit(EXIT_COMMAND_ERROR)

    click.echo(f"Converted {file_path} -> {output_path}")


def main():
    """Main entry point for mash-pics."""
    cli()


if __name__ == "__main__":
    main()
