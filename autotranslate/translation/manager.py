"""
Catalog Manager Module

CatalogManager coordinates translating a JSON message catalog:
- Load the source catalog (nested objects flattened to dotted keys)
- Skip keys that already exist in a target catalog
- Translate each key with the key as context hint
- Write one catalog file per target language, in the source file's format
  (.json, or a .ts / .js module exporting the catalog object)
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from autotranslate import language_codes as lc
from autotranslate.config import load_config, resolve_translation_options
from autotranslate.logger import get_logger
from autotranslate.provider.exceptions import InputValidationError, TranslationError, TranslationFailed
from autotranslate.translation.progress import LanguageStats
from autotranslate.translation.translator import TranslationOptions, Translator
from autotranslate.translation.utils import (
    MODULE_EXTENSIONS,
    build_json_from_pairs,
    has_nested_structure,
    module_variable_name,
    parse_catalog_module,
    render_catalog_module,
    translatable_pairs,
)

logger = get_logger(__name__)

# Progress is logged every N keys
PROGRESS_LOG_INTERVAL = 50

TranslatorFactory = Callable[[TranslationOptions], Translator]


@dataclass
class CatalogConfig:
    """Where catalogs are read from and written to, and which languages to produce."""
    input_directory: str = "locales"
    input_file: str = "en.json"
    output_directory: str = "locales"
    pretty_print: bool = True
    preserve_nested_structure: bool = True
    file_name_format: str = "simple"
    target_languages: List[str] = field(default_factory=list)
    source_language: str = "en"
    auto_detect: bool = True
    use_cache: bool = True
    skip_existing_keys: bool = True

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CatalogConfig":
        """Build from the `input`, `output`, `catalog` and `translation` config sections."""
        input_config = config.get('input', {}) or {}
        output_config = config.get('output', {}) or {}
        catalog_config = config.get('catalog', {}) or {}
        translation_config = config.get('translation', {}) or {}
        return cls(
            input_directory=input_config.get('directory', cls.input_directory),
            input_file=input_config.get('file', cls.input_file),
            output_directory=output_config.get('directory', cls.output_directory),
            pretty_print=output_config.get('pretty_print', True),
            preserve_nested_structure=output_config.get('preserve_nested_structure', True),
            file_name_format=output_config.get('file_name_format', cls.file_name_format),
            target_languages=list(catalog_config.get('target_languages', []) or []),
            source_language=catalog_config.get('source_language', cls.source_language),
            auto_detect=translation_config.get('auto_detect', True),
            use_cache=translation_config.get('use_cache', True),
            skip_existing_keys=catalog_config.get('skip_existing_keys', True),
        )

    @property
    def source_path(self) -> Path:
        return Path(self.input_directory) / self.input_file

    @property
    def file_extension(self) -> str:
        """Catalog format, taken from the source file: .ts, .js, or .json."""
        suffix = Path(self.input_file).suffix.lower()
        return suffix if suffix in MODULE_EXTENSIONS else ".json"


class CatalogManager:
    """
    Translates one source catalog into every configured target language.

    Target languages are processed one after another; each gets its own
    translator from `translator_factory`.
    """

    def __init__(
        self,
        config: CatalogConfig,
        translator_factory: TranslatorFactory,
        app_config: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            config: Catalog locations and target languages
            translator_factory: Builds a Translator for resolved TranslationOptions
            app_config: Full application config (default: load_config())
        """
        self.config = config
        self.translator_factory = translator_factory
        self.app_config = app_config if app_config is not None else load_config()
        self._source_nested: Optional[bool] = None

    def _read_catalog(self, path: Path) -> Any:
        """Parse a catalog file in the configured format."""
        with open(path, 'r', encoding='utf-8') as f:
            if self.config.file_extension == ".json":
                return json.load(f)
            return parse_catalog_module(f.read())

    def load_source_data(self) -> Dict[str, str]:
        """
        Read the source catalog.

        Returns:
            Flat {key_path: text} of every non-blank string leaf

        Raises:
            FileNotFoundError: The source catalog does not exist
            TranslationError: The source catalog cannot be parsed
        """
        path = self.config.source_path
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {path}")

        try:
            data = self._read_catalog(path)
        except ValueError as e:
            raise TranslationError(
                f"Could not parse source catalog {path}: {e}",
                code="invalid_catalog",
                details={"path": str(path)},
            ) from e

        self._source_nested = has_nested_structure(data)
        source_data = translatable_pairs(data)
        logger.info(f"Loaded {len(source_data)} strings from {path}")
        return source_data

    def format_output(self, language: str) -> str:
        return lc.format_language_code_for_file(language, self.config.file_name_format)

    def output_path(self, language: str) -> Path:
        file_name = f"{self.format_output(language)}{self.config.file_extension}"
        return Path(self.config.output_directory) / file_name

    def load_existing_translation(self, language: str) -> Optional[Dict[str, str]]:
        """Flat existing target catalog, or None if it is missing or unreadable."""
        path = self.output_path(language)
        if not path.exists():
            return None

        try:
            data = self._read_catalog(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read existing translation {path}: {e}")
            return None

        existing = translatable_pairs(data)
        logger.info(f"Found {len(existing)} existing translations for {language}")
        return existing

    def save_translation(self, language: str, translations: Dict[str, str]) -> Path:
        """
        Write a target catalog.

        JSON sources produce JSON files; .ts and .js sources produce modules
        exporting a constant named after the formatted language code.

        Args:
            language: Target language code
            translations: Flat {key_path: text}

        Returns:
            Path of the written file
        """
        path = self.output_path(language)
        path.parent.mkdir(parents=True, exist_ok=True)

        nested = self.config.preserve_nested_structure and self._source_nested is not False
        data = build_json_from_pairs(list(translations.items())) if nested else dict(translations)
        indent = 2 if self.config.pretty_print else None
        extension = self.config.file_extension

        with open(path, 'w', encoding='utf-8') as f:
            if extension == ".json":
                json.dump(data, f, ensure_ascii=False, indent=indent)
                f.write('\n')
            else:
                f.write(render_catalog_module(
                    data,
                    extension,
                    module_variable_name(self.format_output(language)),
                    self.config.source_language,
                    indent=indent,
                ))

        logger.info(f"Saved {len(translations)} translations to {path}")
        return path

    def _ordered(self, translations: Dict[str, str], source_data: Dict[str, str]) -> Dict[str, str]:
        """Source key order first, then keys only the existing catalog has."""
        ordered = {key: translations[key] for key in source_data if key in translations}
        for key, value in translations.items():
            ordered.setdefault(key, value)
        return ordered

    async def translate_to_language(self, language: str, source_data: Dict[str, str]) -> LanguageStats:
        """
        Translate the source catalog into one language and save it.

        Raises:
            TranslationFailed: The provider failed; the keys translated so far are saved first
        """
        start_time = time.time()
        stats = LanguageStats(language=language, total=len(source_data))

        existing = self.load_existing_translation(language) if self.config.skip_existing_keys else None
        translations: Dict[str, str] = dict(existing or {})

        options = resolve_translation_options(
            language,
            self.config.source_language,
            self.app_config,
            auto_detect=self.config.auto_detect,
            use_cache=self.config.use_cache,
        )
        logger.info(f"Translating {len(source_data)} strings to {language} ({lc.get_language_name(language) or language})")

        async with self.translator_factory(options) as translator:
            for index, (key, text) in enumerate(source_data.items(), start=1):
                if existing is not None and key in existing:
                    stats.skipped += 1
                    continue

                try:
                    result = await translator.translate(text, context=key)
                except InputValidationError as e:
                    logger.warning(f"Skipping {key}: {e.message}")
                    stats.failed += 1
                    continue
                except TranslationFailed as e:
                    logger.error(f"Translation to {language} failed at {key}: {e.message}")
                    stats.failed += 1
                    self.save_translation(language, self._ordered(translations, source_data))
                    raise

                translations[key] = result.translated_text
                stats.translated += 1
                if result.best_effort:
                    stats.degraded += 1
                    stats.degraded_keys.append(key)

                if index % PROGRESS_LOG_INTERVAL == 0:
                    logger.info(f"{language}: {index}/{len(source_data)} processed")

        stats.output_path = str(self.save_translation(language, self._ordered(translations, source_data)))
        stats.elapsed_seconds = time.time() - start_time
        logger.info(
            f"Finished {language}: {stats.translated} translated, {stats.skipped} skipped, "
            f"{stats.degraded} best effort, {stats.failed} failed"
        )
        return stats

    def _resolve_target_languages(self) -> List[str]:
        """Deduplicated targets, excluding the source language."""
        targets: List[str] = []
        for code in self.config.target_languages:
            if not isinstance(code, str):
                continue
            trimmed = code.strip()
            if not trimmed or lc.languages_match(trimmed, self.config.source_language, strict=True):
                continue
            if trimmed not in targets:
                targets.append(trimmed)
        return targets

    async def translate_all(self) -> Dict[str, LanguageStats]:
        """Translate the source catalog into every target language, one after another."""
        source_data = self.load_source_data()
        results: Dict[str, LanguageStats] = {}

        targets = self._resolve_target_languages()
        if not targets:
            logger.warning("No target languages configured")
            return results

        for language in targets:
            results[language] = await self.translate_to_language(language, source_data)
        return results
