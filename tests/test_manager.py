"""Tests for the catalog manager, using the echo translator and tmp_path catalogs."""

from __future__ import annotations

import copy
import json

import pytest

from autotranslate.config import DEFAULT_CONFIG
from autotranslate.provider.exceptions import DispatchErrorKind, TranslationError, TranslationFailed
from autotranslate.translation.manager import CatalogConfig, CatalogManager
from autotranslate.translation.translator import EchoTranslator

SOURCE = {
    "home": {"title": "Hello {name}", "subtitle": "Welcome"},
    "item_count": "{count} items",
    "version": 3,
    "blank": "   ",
}


@pytest.fixture
def catalog_dir(tmp_path):
    locales = tmp_path / "locales"
    locales.mkdir()
    (locales / "en.json").write_text(json.dumps(SOURCE), encoding="utf-8")
    return locales


def make_manager(catalog_dir, targets, **overrides):
    overrides.setdefault("input_file", "en.json")
    config = CatalogConfig(
        input_directory=str(catalog_dir),
        output_directory=str(catalog_dir),
        target_languages=targets,
        **overrides,
    )

    def factory(options):
        return EchoTranslator(options, prefix=f"[{options.target_language}] ")

    return CatalogManager(config, factory, app_config=copy.deepcopy(DEFAULT_CONFIG))


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class FailingTranslator(EchoTranslator):
    """Echoes the first `limit` strings, then fails like an unreachable provider."""

    def __init__(self, options, limit):
        super().__init__(options)
        self.limit = limit
        self.calls = 0

    async def _translate_text(self, request):
        self.calls += 1
        if self.calls > self.limit:
            raise TranslationFailed("provider unreachable", code=DispatchErrorKind.NETWORK_ERROR.value)
        return await super()._translate_text(request)


class TestLoading:
    """Source and existing catalogs."""

    def test_source_flattened(self, catalog_dir) -> None:
        """Nested keys are dotted; non-string and blank leaves are dropped."""
        manager = make_manager(catalog_dir, ["de"])
        assert manager.load_source_data() == {
            "home.title": "Hello {name}",
            "home.subtitle": "Welcome",
            "item_count": "{count} items",
        }

    def test_missing_source(self, tmp_path) -> None:
        """A missing source file raises FileNotFoundError."""
        manager = make_manager(tmp_path, ["de"])
        with pytest.raises(FileNotFoundError):
            manager.load_source_data()

    def test_existing_translation(self, catalog_dir) -> None:
        """An existing target catalog is returned flattened."""
        (catalog_dir / "de.json").write_text(json.dumps({"home": {"title": "Hallo {name}"}}), encoding="utf-8")
        manager = make_manager(catalog_dir, ["de"])
        assert manager.load_existing_translation("de") == {"home.title": "Hallo {name}"}

    def test_existing_translation_missing_or_corrupt(self, catalog_dir) -> None:
        """Missing or unreadable target catalogs yield None."""
        manager = make_manager(catalog_dir, ["de", "fr"])
        (catalog_dir / "fr.json").write_text("{not json", encoding="utf-8")
        assert manager.load_existing_translation("de") is None
        assert manager.load_existing_translation("fr") is None


class TestTranslateAll:
    """Batch translation across languages."""

    @pytest.mark.asyncio
    async def test_writes_nested_catalogs(self, catalog_dir) -> None:
        """Each target gets a nested catalog; the source language is skipped."""
        manager = make_manager(catalog_dir, ["de", "en", "zh-Hans"])
        results = await manager.translate_all()

        assert list(results) == ["de", "zh-Hans"]
        assert read_json(catalog_dir / "de.json") == {
            "home": {"title": "[de] Hello {name}", "subtitle": "[de] Welcome"},
            "item_count": "[de] {count} items",
        }
        assert (catalog_dir / "zhHans.json").exists()
        assert results["de"].translated == 3
        assert results["de"].output_path == str(catalog_dir / "de.json")

    @pytest.mark.asyncio
    async def test_key_passed_as_context(self, catalog_dir) -> None:
        """Every translate() call receives its catalog key as context."""
        contexts = []

        class RecordingTranslator(EchoTranslator):
            async def translate(self, text, context=None):
                contexts.append(context)
                return await super().translate(text, context)

        manager = make_manager(catalog_dir, ["de"])
        manager.translator_factory = RecordingTranslator
        await manager.translate_all()

        assert contexts == ["home.title", "home.subtitle", "item_count"]

    @pytest.mark.asyncio
    async def test_existing_keys_skipped(self, catalog_dir) -> None:
        """Keys already translated are kept and not retranslated."""
        (catalog_dir / "de.json").write_text(json.dumps({"home": {"title": "Hallo {name}"}}), encoding="utf-8")
        manager = make_manager(catalog_dir, ["de"])
        stats = (await manager.translate_all())["de"]

        assert stats.skipped == 1
        assert stats.translated == 2
        catalog = read_json(catalog_dir / "de.json")
        assert catalog["home"]["title"] == "Hallo {name}"
        assert catalog["home"]["subtitle"] == "[de] Welcome"

    @pytest.mark.asyncio
    async def test_no_skip_retranslates(self, catalog_dir) -> None:
        """skip_existing_keys=False overwrites existing values."""
        (catalog_dir / "de.json").write_text(json.dumps({"home": {"title": "Hallo"}}), encoding="utf-8")
        manager = make_manager(catalog_dir, ["de"], skip_existing_keys=False)
        await manager.translate_all()

        assert read_json(catalog_dir / "de.json")["home"]["title"] == "[de] Hello {name}"

    @pytest.mark.asyncio
    async def test_flat_output(self, catalog_dir) -> None:
        """preserve_nested_structure=False writes dotted keys."""
        manager = make_manager(catalog_dir, ["de"], preserve_nested_structure=False)
        await manager.translate_all()

        assert "home.title" in read_json(catalog_dir / "de.json")

    @pytest.mark.asyncio
    async def test_failure_saves_partial_and_raises(self, catalog_dir) -> None:
        """A provider failure saves what was translated, then propagates."""
        manager = make_manager(catalog_dir, ["de"])
        manager.translator_factory = lambda options: FailingTranslator(options, limit=1)

        with pytest.raises(TranslationFailed):
            await manager.translate_all()

        assert read_json(catalog_dir / "de.json") == {"home": {"title": "Hello {name}"}}

    @pytest.mark.asyncio
    async def test_no_targets(self, catalog_dir) -> None:
        """Nothing to do without target languages."""
        manager = make_manager(catalog_dir, [])
        assert await manager.translate_all() == {}


class TestOutputNames:
    """File-name formatting of language codes."""

    @pytest.mark.parametrize(
        "file_name_format, expected",
        [
            ("default", "zh-Hans"),
            ("simple", "zhHans"),
            ("camelCase", "zhHans"),
            ("pascalCase", "ZhHans"),
            ("snake_case", "zh_hans"),
            ("kebab-case", "zh-hans"),
        ],
    )
    def test_format_output(self, catalog_dir, file_name_format, expected) -> None:
        """zh-Hans in every supported style."""
        manager = make_manager(catalog_dir, [], file_name_format=file_name_format)
        assert manager.format_output("zh-Hans") == expected

    def test_from_config(self) -> None:
        """CatalogConfig picks its values from the config sections."""
        config = copy.deepcopy(DEFAULT_CONFIG)
        config["catalog"]["target_languages"] = ["ko"]
        config["output"]["file_name_format"] = "kebab-case"
        catalog_config = CatalogConfig.from_config(config)

        assert catalog_config.target_languages == ["ko"]
        assert catalog_config.file_name_format == "kebab-case"
        assert catalog_config.source_path.name == "en.json"


class TestModuleCatalogs:
    """TypeScript and CommonJS catalogs."""

    def write_module_source(self, tmp_path, extension):
        locales = tmp_path / "locales"
        locales.mkdir()
        (locales / f"en{extension}").write_text(
            'const en = {\n  "home": {"title": "Hello {name}"},\n  "bye": "Bye"\n};\n\nexport default en;\n',
            encoding="utf-8",
        )
        return locales

    @pytest.mark.asyncio
    async def test_typescript_output(self, tmp_path) -> None:
        """A .ts source produces `as const` modules with a default export."""
        locales = self.write_module_source(tmp_path, ".ts")
        manager = make_manager(locales, ["zh-Hans"], input_file="en.ts")
        results = await manager.translate_all()

        written = locales / "zhHans.ts"
        assert results["zh-Hans"].output_path == str(written)
        content = written.read_text(encoding="utf-8")
        assert content.startswith("/**\n * zhHans translations\n * Auto-generated from en source\n */")
        assert "const zhHans = {" in content
        assert "} as const;" in content
        assert content.rstrip().endswith("export default zhHans;")
        assert manager.load_existing_translation("zh-Hans") == {
            "home.title": "[zh-Hans] Hello {name}",
            "bye": "[zh-Hans] Bye",
        }

    @pytest.mark.asyncio
    async def test_commonjs_output(self, tmp_path) -> None:
        """A .js source produces module.exports catalogs."""
        locales = self.write_module_source(tmp_path, ".js")
        manager = make_manager(locales, ["de"], input_file="en.js", file_name_format="kebab-case")
        await manager.translate_all()

        content = (locales / "de.js").read_text(encoding="utf-8")
        assert "const de = {" in content
        assert content.rstrip().endswith("module.exports = de;")
        assert not (locales / "de.json").exists()

    @pytest.mark.asyncio
    async def test_existing_module_keys_skipped(self, tmp_path) -> None:
        """Keys in an existing .ts catalog are read back and kept."""
        locales = self.write_module_source(tmp_path, ".ts")
        (locales / "de.ts").write_text(
            'const de = {"home": {"title": "Hallo {name}"}} as const;\n\nexport default de;\n',
            encoding="utf-8",
        )
        manager = make_manager(locales, ["de"], input_file="en.ts")
        stats = (await manager.translate_all())["de"]

        assert stats.skipped == 1
        assert stats.translated == 1
        assert '"title": "Hallo {name}"' in (locales / "de.ts").read_text(encoding="utf-8")

    def test_unparseable_source(self, tmp_path) -> None:
        """A module source that is not a JSON object literal is a TranslationError."""
        locales = tmp_path / "locales"
        locales.mkdir()
        (locales / "en.ts").write_text("export default { title: 'Hello' };\n", encoding="utf-8")
        manager = make_manager(locales, ["de"], input_file="en.ts")

        with pytest.raises(TranslationError) as exc_info:
            manager.load_source_data()
        assert exc_info.value.code == "invalid_catalog"
