import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends

from backend.config import COMPLETION_TIMEOUT
from backend.database.store import DomainStore, get_store
from backend.models.log_model import NO_RESPONSE

# Set up logger
logger = logging.getLogger("llm_service")


class CompletionError(Exception):
    """The provider call failed; the message is meant for humans (and the log)."""


class CompletionClient:
    """
    One non-streaming chat completion against an OpenAI-compatible endpoint.

    The model record names the provider; the provider record carries the
    base URL and the API key. Every failure surfaces as CompletionError.
    """

    def __init__(
        self,
        store: DomainStore,
        timeout: float = COMPLETION_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.timeout = timeout
        self.transport = transport

    def _resolve(self, model_id: str) -> tuple[dict, dict]:
        model = self.store.get_model(model_id)
        if not model:
            raise CompletionError("Model not found")
        provider = self.store.get_provider(model["provider_id"])
        if not provider:
            raise CompletionError("Provider not found")
        return model, provider

    @staticmethod
    def _build_messages(prompt_text: str, system_prompt: Optional[str]) -> List[Dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt_text})
        return messages

    async def complete(self, prompt_text: str, model_id: str, system_prompt: Optional[str] = None) -> str:
        model, provider = self._resolve(model_id)
        try:
            url = f"{provider['base_url'].rstrip('/')}/chat/completions"
            headers = {
                "Authorization": f"Bearer {provider['api_key']}",
                "Content-Type": "application/json",
            }
            body = {
                "model": model["model_id"],
                "messages": self._build_messages(prompt_text, system_prompt),
                "stream": False,
            }
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f"Provider/model record {model.get('id')} is incomplete: {e!r}")
            raise CompletionError("Provider is misconfigured") from e

        logger.info(f"Completion request to {provider['base_url']} (model={model['model_id']})")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=headers, json=body)
                response.raise_for_status()
                data: Dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:300]
            logger.error(f"Provider returned {e.response.status_code}: {detail}")
            raise CompletionError(f"Provider returned HTTP {e.response.status_code}: {detail}") from e
        # InvalidURL is not an HTTPError
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Provider request failed: {e}")
            raise CompletionError(f"Provider request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Provider returned invalid JSON: {e}")
            raise CompletionError("Invalid response from AI provider") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError("Malformed response from AI provider: missing choices") from e

        return content or NO_RESPONSE


# FastAPI dependency
def get_completion_client(store: DomainStore = Depends(get_store)) -> CompletionClient:
    return CompletionClient(store)
