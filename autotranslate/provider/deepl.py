"""
DeepL API wire format

Request building and response parsing for the DeepL v2 translate endpoint.
Everything provider-specific lives here; the dispatcher only moves bytes and
the translation pipeline never sees provider markup options.
"""

from typing import Any, Dict, Optional

import httpx

from autotranslate.language_codes import extract_base_language, format_language_code_for_api
from autotranslate.logger import get_logger
from autotranslate.provider.exceptions import DispatchError, DispatchErrorKind

logger = get_logger(__name__)


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (total timeout) or a dict with
            connect, write, read, pool keys

    Returns:
        httpx.Timeout object
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 30.0),
            read=timeout_config.get('read', 30.0),
            pool=timeout_config.get('pool', 10.0),
        )
    else:
        timeout_value = float(timeout_config) if timeout_config else 30.0
        return httpx.Timeout(
            connect=10.0,
            write=timeout_value,
            read=timeout_value,
            pool=10.0,
        )


def build_headers(api_key: str) -> Dict[str, str]:
    return {
        "Authorization": f"DeepL-Auth-Key {api_key}",
        "Content-Type": "application/json",
    }


def build_payload(
    wire_text: str,
    target_language: str,
    source_language: Optional[str] = None,
    provider_options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the JSON body for one translate request.

    `source_language` is omitted when None so the provider auto-detects it.
    `provider_options` (tag handling, outline detection, ...) are passed through
    untouched.
    """
    body: Dict[str, Any] = {
        "text": [wire_text],
        "target_lang": format_language_code_for_api(target_language),
    }
    if source_language:
        # Source codes carry no region or script
        body["source_lang"] = format_language_code_for_api(extract_base_language(source_language))
    if provider_options:
        body.update(provider_options)
    return body


def parse_translation(response: httpx.Response) -> str:
    """
    Extract the first translation from a DeepL response.

    Raises:
        DispatchError: INVALID_RESPONSE when the body is not the documented shape.
    """
    try:
        data = response.json()
        text = data["translations"][0]["text"]
        if not isinstance(text, str):
            raise TypeError(f"translation text is {type(text).__name__}, not str")
        return text
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.debug(f"Unparseable DeepL response body: {response.text[:500]}")
        raise DispatchError(
            f"DeepL API returned an unexpected response: {e}",
            kind=DispatchErrorKind.INVALID_RESPONSE,
            status_code=response.status_code,
        ) from e


def describe_http_error(response: httpx.Response) -> str:
    """Best-effort error message from a failed DeepL response."""
    try:
        error_json = response.json()
        if isinstance(error_json, dict) and "message" in error_json:
            return str(error_json["message"])
    except ValueError:
        pass
    return response.text[:500] if response.text else "No details"
