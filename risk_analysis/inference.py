"""
Risk Analysis - Gemini Inference Client.

One generateContent call per analysis. The client knows nothing
about tiers: it runs whichever model id it is handed.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

from core.config import InferenceConfig
from core.exceptions import MalformedResponseError, NotConfiguredError
from core.http import JsonHttpClient


logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Minimal Gemini REST client.

    Usage:
        client = GeminiClient(config.inference)
        text = await client.generate("gemini-2.0-flash", prompt)
    """

    API_VERSION = "v1beta"
    SOURCE_NAME = "gemini"

    def __init__(
        self,
        config: InferenceConfig,
        http: Optional[JsonHttpClient] = None,
    ) -> None:
        self.config = config
        self._http = http or JsonHttpClient(default_timeout=config.timeout_seconds)
        self._owns_http = http is None

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def generate_url(self, model_id: str) -> str:
        """``models/`` prefix is added unless the id already carries it."""
        model_path = model_id if model_id.startswith("models/") else f"models/{model_id}"
        return (
            f"{self.config.base_url}/{self.API_VERSION}/{model_path}:generateContent"
            f"?key={quote(self.config.api_key, safe='')}"
        )

    async def generate(self, model_id: str, prompt: str) -> str:
        """
        Run ``prompt`` against ``model_id`` and return the response text.

        Raises:
            NotConfiguredError: no API key
            UpstreamUnavailableError: network failure or non-2xx
            MalformedResponseError: no text in the response
        """
        self._require_key()

        body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        data = await self._http.post_json(
            self.generate_url(model_id),
            body,
            headers={"Content-Type": "application/json"},
            timeout=self.config.timeout_seconds,
            source_name=self.SOURCE_NAME,
        )

        text = extract_text(data)
        if not text.strip():
            raise MalformedResponseError(
                "Empty Gemini response",
                source_name=self.SOURCE_NAME,
                raw_data=str(data) if data is not None else None,
            )

        logger.debug(f"[{self.SOURCE_NAME}] {model_id} answered {len(text)} chars")
        return text

    async def list_generate_content_models(self) -> List[str]:
        """Model ids that support generateContent, without the ``models/`` prefix."""
        self._require_key()

        data = await self._http.get_json(
            f"{self.config.base_url}/{self.API_VERSION}/models"
            f"?key={quote(self.config.api_key, safe='')}",
            timeout=self.config.timeout_seconds,
            source_name=self.SOURCE_NAME,
        )

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            raise MalformedResponseError(
                "Model listing has no 'models' array",
                source_name=self.SOURCE_NAME,
                raw_data=str(data),
            )

        names = []
        for model in models:
            if not isinstance(model, dict):
                continue
            methods = model.get("supportedGenerationMethods") or []
            name = str(model.get("name") or "")
            if name and "generateContent" in methods:
                names.append(name[len("models/"):] if name.startswith("models/") else name)
        return names

    async def close(self) -> None:
        if self._owns_http:
            await self._http.close()

    def _require_key(self) -> None:
        if not self.config.api_key:
            raise NotConfiguredError(
                "GOOGLE_API_KEY is not set",
                source_name=self.SOURCE_NAME,
                setting="GOOGLE_API_KEY",
            )


def extract_text(data: Any) -> str:
    """First part's text of the first candidate, else every part's text joined."""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        return ""

    first = parts[0].get("text") if isinstance(parts[0], dict) else None
    if isinstance(first, str) and first:
        return first

    texts = [
        part["text"] for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    return "\n".join(texts)
