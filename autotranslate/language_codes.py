"""
Language code mappings and utilities.

Standards:
- ISO 639-1: 2-letter language codes (en, ja, ko)
- BCP 47: Language + Region/Script codes (en-GB, pt-BR, zh-Hans)

Catalog File Naming Convention:
Translated catalogs are written as `<formatted-code>.json`. The formatting
style is selectable (see FILE_NAME_FORMATS), e.g. 'zh-Hans' can become
'zh-Hans.json', 'zhHans.json', 'ZhHans.json', 'zh_hans.json' or 'zh-hans.json'.
"""

import re
from typing import Dict, List, Optional

# Languages accepted by the DeepL translate endpoint
DEEPL_LANGUAGES = {
    'ar': 'Arabic',
    'bg': 'Bulgarian',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English (US)',
    'en-GB': 'English (UK)',
    'es': 'Spanish',
    'et': 'Estonian',
    'fi': 'Finnish',
    'fr': 'French',
    'hu': 'Hungarian',
    'id': 'Indonesian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'lt': 'Lithuanian',
    'lv': 'Latvian',
    'nb': 'Norwegian',
    'nl': 'Dutch',
    'pl': 'Polish',
    'pt': 'Portuguese (Portugal)',
    'pt-BR': 'Portuguese (Brazil)',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sk': 'Slovak',
    'sl': 'Slovenian',
    'sv': 'Swedish',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'zh-Hans': 'Chinese (Simplified)',
    'zh-Hant': 'Chinese (Traditional)',
}

# File-name style codes (as used in catalog file names) -> language codes
LANGUAGE_CODE_MAPPING = {
    code.replace('-', '')[:2] + code.replace('-', '')[2:].capitalize(): code
    for code in DEEPL_LANGUAGES
}

FILE_NAME_FORMATS = (
    "default",      # keep as is (zh-Hans)
    "simple",       # drop hyphens (zhHans)
    "camelCase",    # zhHans
    "pascalCase",   # ZhHans
    "snake_case",   # zh_hans
    "kebab-case",   # zh-hans
)


def is_supported_language(code: str) -> bool:
    """
    Check if a language code is supported by the translation provider.

    Examples:
        >>> is_supported_language('ko')
        True
        >>> is_supported_language('zh-Hans')
        True
        >>> is_supported_language('xx')
        False
    """
    return code in DEEPL_LANGUAGES


def get_language_name(code: str) -> Optional[str]:
    """
    Get the full language name from code.

    Examples:
        >>> get_language_name('pt-BR')
        'Portuguese (Brazil)'
    """
    return DEEPL_LANGUAGES.get(code)


def get_supported_languages() -> List[str]:
    """Return all supported language codes."""
    return list(DEEPL_LANGUAGES.keys())


def get_all_language_names() -> Dict[str, str]:
    """Return a copy of the code -> name mapping."""
    return DEEPL_LANGUAGES.copy()


def resolve_language_code(code: str) -> Optional[str]:
    """
    Resolve a language code or file-name style code to a supported code.

    Examples:
        >>> resolve_language_code('zhHans')
        'zh-Hans'
        >>> resolve_language_code('en-gb')
        'en-GB'
    """
    if not code:
        return None
    code = code.strip()
    if code in DEEPL_LANGUAGES:
        return code
    if code in LANGUAGE_CODE_MAPPING:
        return LANGUAGE_CODE_MAPPING[code]
    lowered = code.lower().replace('_', '-')
    for known in DEEPL_LANGUAGES:
        if known.lower() == lowered:
            return known
    return None


def extract_base_language(code: str) -> str:
    """
    Extract base language from code (remove region or script).

    Examples:
        >>> extract_base_language('zh-Hans')
        'zh'
        >>> extract_base_language('fr')
        'fr'
    """
    return code.split('-')[0].lower()


def languages_match(code1: str, code2: str, strict: bool = False) -> bool:
    """
    Check if two language codes match.

    Args:
        code1: First language code
        code2: Second language code
        strict: If True, must match exactly. If False, base language match is ok.

    Examples:
        >>> languages_match('en', 'en-GB')
        True
        >>> languages_match('en', 'en-GB', strict=True)
        False
    """
    if strict:
        return code1 == code2

    return extract_base_language(code1) == extract_base_language(code2)


def format_language_code_for_api(code: str) -> str:
    """
    Convert a language code to the provider's API format.

    Examples:
        >>> format_language_code_for_api('en-GB')
        'EN-GB'
        >>> format_language_code_for_api('zh-Hans')
        'ZH-HANS'
    """
    return code.upper()


def format_language_code_for_file(code: str, file_name_format: str = "simple") -> str:
    """
    Convert a language code to the output file-name style.

    Examples:
        >>> format_language_code_for_file('zh-Hans', 'simple')
        'zhHans'
        >>> format_language_code_for_file('zh-Hans', 'pascalCase')
        'ZhHans'
        >>> format_language_code_for_file('zh-Hans', 'snake_case')
        'zh_hans'
    """
    if file_name_format == "default":
        return code

    if file_name_format == "camelCase":
        parts = code.lower().split('-')
        return parts[0] + ''.join(part.capitalize() for part in parts[1:])

    if file_name_format == "pascalCase":
        return ''.join(part.capitalize() for part in code.lower().split('-'))

    if file_name_format == "snake_case":
        return code.lower().replace('-', '_')

    if file_name_format == "kebab-case":
        return code.lower()

    # "simple" and anything unknown: drop hyphens
    return re.sub('-', '', code)


def get_language_file_name(code: str, file_name_format: str = "simple") -> str:
    """
    Get the expected catalog filename for a language.

    Examples:
        >>> get_language_file_name('en-GB', 'default')
        'en-GB.json'
    """
    return f"{format_language_code_for_file(code, file_name_format)}.json"
