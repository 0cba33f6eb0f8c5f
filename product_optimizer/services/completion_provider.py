"""
Generation provider adapter.

The task runner makes one logical ``complete(prompt)`` call per task and
treats any failure as a reason to fall back to the heuristic. The shipped
provider talks to an OpenAI-compatible chat-completions endpoint over httpx
with bounded retries and exponential backoff.
"""

import asyncio
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from product_optimizer.config import get_service_logger, get_settings
from product_optimizer.core.exceptions import ConfigurationException, ProviderException


logger = get_service_logger(__name__)
settings = get_settings()

SYSTEM_PROMPT = (
    "You are an e-commerce copywriting assistant. "
    "Reply with a single JSON value and no commentary."
)


@runtime_checkable
class CompletionProvider(Protocol):
    async def complete(self, prompt: str) -> str: ...


class HttpCompletionProvider:
    """
    Chat-completions client.

    Retries timeouts, transport errors and 5xx/429 responses. Other HTTP
    errors fail immediately. Every failure surfaces as ProviderException.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.provider_base_url).rstrip("/")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationException(
                f"Provider base URL must be http(s): {self.base_url!r}"
            )
        self.api_key = api_key if api_key is not None else settings.provider_api_key
        self.model = model or settings.provider_model
        self.timeout = timeout or settings.provider_timeout
        self.max_retries = max(1, max_retries or settings.retry_attempts)
        self.retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self.max_tokens = settings.provider_max_tokens
        self._transport = transport

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
            "max_tokens": self.max_tokens,
        }

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the raw completion text.

        Raises:
            ProviderException: If no usable completion was obtained
        """
        url = f"{self.base_url}/chat/completions"
        payload = self._build_payload(prompt)

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(
                    headers=self._headers(),
                    timeout=self.timeout,
                    transport=self._transport,
                ) as client:
                    response = await client.post(url, json=payload)
                    response.raise_for_status()
                    return self._parse_completion(response.json())

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if (status >= 500 or status == 429) and attempt < self.max_retries - 1:
                    logger.warning(
                        f"Provider returned {status}, attempt {attempt + 1}"
                    )
                    await asyncio.sleep(self.retry_delay * (2**attempt))
                    continue
                raise ProviderException(f"Provider HTTP error {status}", {"url": url})

            except (httpx.TimeoutException, httpx.TransportError) as e:
                logger.warning(
                    f"Provider unreachable, attempt {attempt + 1}", error=str(e)
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay * (2**attempt))
                    continue
                raise ProviderException(
                    f"Provider unreachable after {self.max_retries} attempts: {e}"
                )

            except ValueError as e:
                raise ProviderException(f"Provider returned malformed body: {e}")

        raise ProviderException(f"Provider failed after {self.max_retries} attempts")

    @staticmethod
    def _parse_completion(body: Any) -> str:
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ProviderException("Provider response has no completion content")
        if not isinstance(content, str) or not content.strip():
            raise ProviderException("Provider returned an empty completion")
        return content
