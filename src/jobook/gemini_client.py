import json
import logging
import os
import re
from typing import Any, Dict, Optional

import requests

log = logging.getLogger(__name__)

DEFAULT_ENDPOINT = 'https://generativelanguage.googleapis.com/v1beta/models'
DEFAULT_MODEL = 'gemini-2.0-flash'

_FENCE_RE = re.compile(r'```(?:json|sql)?', re.I)


class GeminiError(Exception):
    """Any failure calling Gemini or reading its answer. Never carries the API key."""


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub('', text or '').strip()


def parse_json_text(text: str) -> Any:
    """Parse model output as JSON, falling back to the outermost {...} block."""
    cleaned = strip_fences(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        start = cleaned.find('{')
        end = cleaned.rfind('}')
        if start != -1 and end != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except ValueError:
                pass
    raise GeminiError('Invalid JSON output')


class GeminiClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 endpoint: Optional[str] = None, timeout: float = 20.0):
        self.api_key = api_key if api_key is not None else os.getenv('GEMINI_API_KEY')
        self.model = model or os.getenv('GEMINI_MODEL', DEFAULT_MODEL)
        self.endpoint = endpoint or os.getenv('GEMINI_ENDPOINT', DEFAULT_ENDPOINT)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> 'GeminiClient':
        return cls(api_key=settings.gemini_api_key, model=settings.gemini_model,
                   endpoint=settings.gemini_endpoint, timeout=settings.gemini_timeout_sec)

    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate_text(self, prompt: str, model: Optional[str] = None,
                      generation_config: Optional[Dict[str, Any]] = None) -> str:
        if not self.enabled():
            raise GeminiError('Gemini not configured')
        url = f"{self.endpoint}/{model or self.model}:generateContent"
        body: Dict[str, Any] = {'contents': [{'parts': [{'text': prompt}]}]}
        if generation_config:
            body['generationConfig'] = generation_config
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        try:
            r = requests.post(url, json=body, headers=headers, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            raise GeminiError(f'Gemini request failed: {type(e).__name__}') from None
        except ValueError:
            raise GeminiError('Gemini returned a non-JSON response') from None
        try:
            text = data['candidates'][0]['content']['parts'][0].get('text', '')
        except (KeyError, IndexError, TypeError, AttributeError):
            text = ''
        if not text:
            raise GeminiError('Gemini returned no text')
        return text

    def generate_json(self, prompt: str, model: Optional[str] = None,
                      generation_config: Optional[Dict[str, Any]] = None) -> Any:
        return parse_json_text(self.generate_text(prompt, model=model, generation_config=generation_config))
