
import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import load_dotenv

# Get base directory (project root)
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.json"

API_KEY_ENV = "DEEPL_API_KEY"
API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"


def read_log_mode(path: Optional[Path] = None) -> str:
    """Read only the log mode from the config file (used while logging bootstraps)."""
    config_path = Path(path) if path else CONFIG_FILE
    if not config_path.exists():
        return "info"
    with open(config_path, 'r', encoding='utf-8') as f:
        return str(json.load(f).get('log_mode', 'info')).lower()


from autotranslate.logger import get_logger, clear_log_mode_cache  # noqa: E402

logger = get_logger(__name__)

# Provider configuration constants
DEEPL_FREE_API_URL = "https://api-free.deepl.com/v2/translate"
DEEPL_PRO_API_URL = "https://api.deepl.com/v2/translate"

# Opaque provider options, merged into every request payload
DEFAULT_PROVIDER_OPTIONS = {
    "preserve_formatting": True,
    "tag_handling": "xml",
    "outline_detection": False,
    "splitting_tags": [],
    "non_splitting_tags": [],
}

# Translation option defaults (delays in milliseconds)
DEFAULT_TRANSLATION_OPTIONS = {
    "auto_detect": True,
    "max_length": 5000,
    "use_cache": True,
    "delay_between_requests": 1000,
    "max_retries": 3,
    "retry_delay": 2000,
    "use_context": True,
    "value_only": False,
    "detect_language_mismatch": True,
    "retry_issue_threshold": 3,
    "strict_validation": False,
}

# Declarative per-target-language overrides, matched by exact code then base language
DEFAULT_LANGUAGE_OVERRIDES = {
    "ja": {
        "use_context": False,
        "value_only": True,
        "delay_between_requests": 1500,
    },
}

# Default configuration template
DEFAULT_CONFIG = {
    "deepl": {
        "api_key": API_KEY_PLACEHOLDER,
        "api_url": "",
        "timeout": 30,
        "options": DEFAULT_PROVIDER_OPTIONS,
    },
    "translation": DEFAULT_TRANSLATION_OPTIONS,
    "language_overrides": DEFAULT_LANGUAGE_OVERRIDES,
    "input": {
        "directory": "locales",
        "file": "en.json",
    },
    "output": {
        "directory": "locales",
        "pretty_print": True,
        "preserve_nested_structure": True,
        "file_name_format": "simple",
    },
    "catalog": {
        "source_language": "en",
        "target_languages": [],
        "skip_existing_keys": True,
    },
    "log_mode": "info",
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of base with override merged in recursively."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def ensure_config_directory(config_dir: Path = CONFIG_DIR):
    """Ensure the config directory exists."""
    config_dir.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Config directory ensured: {config_dir}")


def create_default_config(path: Optional[Path] = None):
    """Create the default config.json file."""
    config_path = Path(path) if path else CONFIG_FILE
    ensure_config_directory(config_path.parent)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
    logger.info(f"Created default config file: {config_path}")


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the configuration file merged over the defaults."""
    config_path = Path(path) if path else CONFIG_FILE
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config file {config_path}: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)
    except OSError as e:
        logger.error(f"Failed to read config file {config_path}: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(user_config, dict):
        logger.warning(f"Config file {config_path} is not a JSON object, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    logger.debug(f"Configuration loaded from {config_path}")
    return _deep_merge(DEFAULT_CONFIG, user_config)


def save_config(config: Dict[str, Any], path: Optional[Path] = None):
    """Save the configuration to a JSON file."""
    config_path = Path(path) if path else CONFIG_FILE
    try:
        ensure_config_directory(config_path.parent)
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4, ensure_ascii=False)
        logger.info(f"Configuration saved to {config_path}")
    except OSError as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        raise

    # Pick up a changed log_mode
    clear_log_mode_cache()


def get_api_key(config: Optional[Dict[str, Any]] = None) -> str:
    """
    Get the DeepL API key.

    Priority:
    1. DEEPL_API_KEY environment variable (a .env file is loaded first)
    2. deepl.api_key from the configuration

    Returns an empty string when no usable key is configured.
    """
    load_dotenv()
    env_key = os.environ.get(API_KEY_ENV, "").strip()
    if env_key:
        return env_key

    config = config if config is not None else load_config()
    api_key = str(config.get('deepl', {}).get('api_key', '') or '').strip()
    if api_key == API_KEY_PLACEHOLDER:
        return ""
    return api_key


def get_api_url(api_key: str, config: Optional[Dict[str, Any]] = None) -> str:
    """Pick the endpoint: configured URL, else free/pro by key suffix."""
    config = config if config is not None else load_config()
    configured = config.get('deepl', {}).get('api_url', '')
    if configured:
        return configured
    return DEEPL_FREE_API_URL if api_key.endswith(":fx") else DEEPL_PRO_API_URL


def validate_config(config: Optional[Dict[str, Any]] = None) -> None:
    """
    Validate that the provider configuration is usable.

    Raises:
        ConfigError: If the API key is missing, with code and details.
    """
    from autotranslate.provider.exceptions import ConfigError

    if not get_api_key(config):
        raise ConfigError(
            f"DeepL API key not configured. Set {API_KEY_ENV} or deepl.api_key in {CONFIG_FILE.name}.",
            code="api_key_missing",
            details={"env": API_KEY_ENV},
        )


def get_language_overrides(target_language: str, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return option overrides for a target language (base language first, exact code wins)."""
    config = config if config is not None else load_config()
    overrides = config.get('language_overrides', {}) or {}

    from autotranslate.language_codes import extract_base_language

    resolved: Dict[str, Any] = {}
    base = extract_base_language(target_language)
    if base != target_language and base in overrides:
        resolved.update(overrides[base])
    if target_language in overrides:
        resolved.update(overrides[target_language])
    return resolved


def resolve_translation_options(
    target_language: str,
    source_language: str,
    config: Optional[Dict[str, Any]] = None,
    **explicit: Any,
):
    """
    Build TranslationOptions for one target language.

    Priority (highest first): explicit keyword arguments, language overrides,
    the `translation` config section, built-in defaults.
    """
    from autotranslate.translation.translator import TranslationOptions

    config = config if config is not None else load_config()
    values: Dict[str, Any] = dict(DEFAULT_TRANSLATION_OPTIONS)
    values.update(config.get('translation', {}) or {})
    values.update(get_language_overrides(target_language, config))
    values.update({k: v for k, v in explicit.items() if v is not None})

    deepl_config = config.get('deepl', {}) or {}
    values.setdefault('timeout', deepl_config.get('timeout', 30))
    values.setdefault('provider_options', _deep_merge(DEFAULT_PROVIDER_OPTIONS, deepl_config.get('options', {}) or {}))

    known = set(TranslationOptions.__dataclass_fields__)
    unknown = sorted(set(values) - known)
    if unknown:
        logger.warning(f"Ignoring unknown translation options: {', '.join(unknown)}")

    return TranslationOptions(
        source_language=source_language,
        target_language=target_language,
        **{k: v for k, v in values.items() if k in known and k not in ('source_language', 'target_language')},
    )
