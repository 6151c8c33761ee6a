"""
autotranslate - DeepL translation pipeline for i18n message catalogs

This package provides:
- DeepLTranslator: placeholder-safe, context-aware, rate-limited translation
- EchoTranslator: network-free translator for dry runs
- CatalogManager: batch translation of JSON catalogs
"""

__version__ = "0.1.0"
