#!/usr/bin/env python3
"""XmlText -> RichText command line converter.

Converts one legacy XmlText document into a RichText (DocBook) document,
reporting every warning and validation error on stderr.

Usage:
  xmltext2richtext field.xml -o field.richtext.xml
  xmltext2richtext field.xml --check-duplicate-ids --check-id-values
  xmltext2richtext field.xml --repository repo.yaml --image-content-type 5
  xmltext2richtext field.xml --config richtext.yaml

Exit codes:
  0  converted, output is valid
  1  converted, output has validation errors
  2  bad input or configuration
  3  conversion failed
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from lxml import etree

from richtext_core.config.settings import ConverterConfig, get_default_config, load_config
from richtext_core.converter import RichTextConverter
from richtext_core.exceptions import ConfigurationError, StructuralConversionError, ValidatorConfigurationError
from richtext_core.mapping.repository import StaticRepository
from richtext_core.transform.xslt import StylesheetSpec

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2
EXIT_FAILED = 3


def parse_stylesheet_arg(value: str) -> StylesheetSpec:
    """Parse ``PATH:PRIORITY`` into a StylesheetSpec."""
    path, sep, priority = value.rpartition(":")
    if not sep or not path:
        raise argparse.ArgumentTypeError(f"expected PATH:PRIORITY, got {value!r}")
    try:
        return StylesheetSpec(path, int(priority))
    except ValueError:
        raise argparse.ArgumentTypeError(f"priority must be an integer, got {priority!r}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="xmltext2richtext",
        description="Convert a legacy XmlText document to RichText (DocBook) and validate it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Basic conversion to stdout:
    xmltext2richtext field.xml

  Fix invalid ids and report duplicated ones:
    xmltext2richtext field.xml --check-id-values --check-duplicate-ids

  Tag embedded images (content types 5 and 7 are images):
    xmltext2richtext field.xml --repository repo.yaml --image-content-type 5 --image-content-type 7

  Custom stylesheet overriding base rules:
    xmltext2richtext field.xml --stylesheet custom.xsl:10
        """
    )
    ap.add_argument("input", help="Path to the XmlText document")
    ap.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    ap.add_argument("--config", default=None, help="YAML or JSON converter configuration")

    checks = ap.add_argument_group("Id checks")
    checks.add_argument("--check-duplicate-ids", action="store_true",
                        help="Report ids renamed because they were duplicated")
    checks.add_argument("--check-id-values", action="store_true",
                        help="Rewrite id values that are not valid identifiers")
    checks.add_argument("--content-field-id", type=int, default=None,
                        help="Field id used in diagnostic messages")

    embeds = ap.add_argument_group("Embeds")
    embeds.add_argument("--repository", default=None,
                        help="YAML/JSON mapping of content and location ids")
    embeds.add_argument("--image-content-type", type=int, action="append", default=None,
                        help="Content type id treated as image (repeatable)")

    resources = ap.add_argument_group("Stylesheets and schemas")
    resources.add_argument("--stylesheet", type=parse_stylesheet_arg, action="append", default=None,
                           metavar="PATH:PRIORITY", help="Custom stylesheet (repeatable)")
    resources.add_argument("--validator", action="append", default=None, metavar="PATH",
                           help="Custom schema, .rng/.xsd/.sch/.xsl (repeatable)")

    ap.add_argument("--log-level", default=None,
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                    help="Logging level (default: from config, else INFO)")
    return ap


def merge_args(config: ConverterConfig, args: argparse.Namespace) -> ConverterConfig:
    """Apply command line overrides on top of a loaded configuration."""
    if args.check_duplicate_ids:
        config.check_duplicate_ids = True
    if args.check_id_values:
        config.check_id_values = True
    if args.repository:
        config.embeds.repository_file = str(Path(args.repository).expanduser().resolve())
    if args.image_content_type:
        config.embeds.image_content_types = list(args.image_content_type)
    if args.stylesheet:
        config.transform.custom_stylesheets = config.transform.custom_stylesheets + args.stylesheet
    if args.validator:
        config.validation.custom_validators = config.validation.custom_validators + args.validator
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(Path(args.config)) if args.config else get_default_config()
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    config = merge_args(config, args)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    diagnostics_logger = logging.getLogger("richtext_core.diagnostics")

    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        print(f"ERROR: Input not found: {input_path}", file=sys.stderr)
        return EXIT_USAGE

    try:
        document = etree.parse(str(input_path))
    except etree.XMLSyntaxError as e:
        print(f"ERROR: Input is not well-formed XML: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        repository = (
            StaticRepository.from_file(Path(config.embeds.repository_file))
            if config.embeds.repository_file else None
        )
        converter = RichTextConverter.from_config(config, repository, diagnostics_logger)
        result = converter.convert_document(
            document,
            check_duplicate_ids=config.check_duplicate_ids,
            check_id_values=config.check_id_values,
            content_field_id=args.content_field_id,
        )
    except (FileNotFoundError, ConfigurationError, ValidatorConfigurationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    except StructuralConversionError as e:
        print(f"ERROR: Conversion failed: {e}", file=sys.stderr)
        return EXIT_FAILED

    if not result.succeeded:
        print(f"ERROR: {result.summary()}", file=sys.stderr)
        return EXIT_FAILED

    if args.output:
        output_path = Path(args.output).expanduser()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.output, encoding="utf-8")
    else:
        sys.stdout.write(result.output)

    print(result.summary(), file=sys.stderr)
    return EXIT_OK if result.is_valid else EXIT_INVALID


if __name__ == "__main__":
    raise SystemExit(main())
