"""
Command-line interface

Translates a JSON message catalog into one or more target languages:

    autotranslate -i locales/en.json -t ko,ja,zh-Hans
    autotranslate -i locales/en.json -t de --echo     # dry run, no API key needed
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

from autotranslate import __version__
from autotranslate import language_codes as lc
from autotranslate.config import get_api_key, get_api_url, load_config, validate_config
from autotranslate.logger import LOG_MODE_ENV, LOG_MODES, clear_log_mode_cache, get_logger
from autotranslate.provider.exceptions import TranslationError
from autotranslate.translation.manager import CatalogConfig, CatalogManager
from autotranslate.translation.translator import DeepLTranslator, EchoTranslator, TranslationOptions

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autotranslate",
        description=f"autotranslate v{__version__} - translate JSON message catalogs with DeepL",
    )
    parser.add_argument("-i", "--input", help="Source catalog file: .json, .ts or .js (default from config: locales/en.json)")
    parser.add_argument("-o", "--output", help="Output directory (default: the input file's directory)")
    parser.add_argument("-t", "--lang", help="Comma-separated target language codes, e.g. ko,ja,zh-Hans")
    parser.add_argument("-s", "--source", help="Source language code (default from config: en)")
    parser.add_argument(
        "--format",
        choices=lc.FILE_NAME_FORMATS,
        help="Output file-name style for language codes",
    )
    parser.add_argument("--flat", action="store_true", help="Write flat dotted keys instead of nested objects")
    parser.add_argument("--no-skip", action="store_true", help="Retranslate keys that already exist")
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--log-mode", choices=LOG_MODES, help="Logging mode")
    parser.add_argument("--echo", action="store_true", help="Use the echo translator (no network, no API key)")
    parser.add_argument("--list-languages", action="store_true", help="List supported languages and exit")
    return parser


def parse_languages(value: Optional[str]) -> List[str]:
    """Split a comma-separated language list, resolving file-name style codes."""
    if not value:
        return []
    languages = []
    for part in value.split(','):
        part = part.strip()
        if not part:
            continue
        resolved = lc.resolve_language_code(part)
        if resolved is None:
            logger.warning(f"Unknown language code '{part}', passing it through")
            resolved = part
        languages.append(resolved)
    return languages


def build_catalog_config(args: argparse.Namespace, config: dict) -> CatalogConfig:
    """Config file values, overridden by command-line flags."""
    catalog_config = CatalogConfig.from_config(config)

    if args.input:
        input_path = Path(args.input)
        catalog_config.input_directory = str(input_path.parent)
        catalog_config.input_file = input_path.name
        if not args.output:
            catalog_config.output_directory = str(input_path.parent)
    if args.output:
        catalog_config.output_directory = args.output
    if args.lang:
        catalog_config.target_languages = parse_languages(args.lang)
    if args.source:
        catalog_config.source_language = lc.resolve_language_code(args.source) or args.source
    if args.format:
        catalog_config.file_name_format = args.format
    if args.flat:
        catalog_config.preserve_nested_structure = False
    if args.no_skip:
        catalog_config.skip_existing_keys = False
    return catalog_config


def list_languages() -> None:
    for code, name in lc.get_all_language_names().items():
        print(f"{code:<10} {name}")


async def run(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config) if args.config else None)
    catalog_config = build_catalog_config(args, config)

    if args.echo:
        def translator_factory(options: TranslationOptions):
            return EchoTranslator(options)
    else:
        validate_config(config)
        api_key = get_api_key(config)
        api_url = get_api_url(api_key, config)

        def translator_factory(options: TranslationOptions):
            return DeepLTranslator(options, api_key, api_url=api_url)

    manager = CatalogManager(catalog_config, translator_factory, app_config=config)
    results = await manager.translate_all()

    for language, stats in results.items():
        print(
            f"{language}: {stats.translated} translated, {stats.skipped} skipped, "
            f"{stats.degraded} best effort, {stats.failed} failed -> {stats.output_path}"
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_mode:
        os.environ[LOG_MODE_ENV] = args.log_mode
        clear_log_mode_cache()

    if args.list_languages:
        list_languages()
        return 0

    try:
        return asyncio.run(run(args))
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except TranslationError as e:
        logger.error(f"{e.message} (code={e.code})")
        return 1


if __name__ == "__main__":
    sys.exit(main())
