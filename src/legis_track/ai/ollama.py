# ABOUTME: Ollama HTTP client implementing the AI model port.
# ABOUTME: Handles readiness bootstrap, model availability, pulls and retried generation calls.

import asyncio

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from legis_track.ai.prompts import (
    economic_effect_prompt,
    general_effect_prompt,
    industry_tags_prompt,
    parse_industry_tags,
)
from legis_track.config import Settings, get_settings
from legis_track.ports import AiModelPort

log = structlog.get_logger()

DEFAULT_TOP_P = 0.9
DEFAULT_CONTEXT_SIZE = 4096
MAX_INDUSTRY_TAGS = 5
RETRY_ATTEMPTS = 3
AVAILABILITY_CHECK_INTERVAL_SECONDS = 30
MAX_SERVICE_WAIT_ATTEMPTS = 20
MAX_MODEL_WAIT_ATTEMPTS = 60


class OllamaClient(AiModelPort):
    """Client for a local Ollama model service.

    The client starts not ready; ``initialize`` waits for the service, pulls
    the configured model if missing and then flips readiness on. Generation
    calls return ``None`` while not ready or when the service keeps failing.
    """

    retry_wait: wait_base = wait_exponential(multiplier=1, min=2, max=30)

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = http_client
        self._ready = False

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialized HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.ollama_base_url,
                timeout=self.settings.ollama_timeout,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def is_service_ready(self) -> bool:
        return self._ready

    def mark_ready(self, ready: bool = True) -> None:
        self._ready = ready

    async def initialize(self, check_interval: float = AVAILABILITY_CHECK_INTERVAL_SECONDS) -> bool:
        """Wait for the service and make sure the model is present.

        Returns:
            True when the service ended up ready.
        """
        if not self.settings.ollama_base_url:
            log.info("ollama_disabled", reason="no base url")
            return False
        if not self.settings.ollama_bootstrap_enabled:
            log.info("ollama_bootstrap_skipped")
            return False

        log.info("ollama_initializing", model=self.settings.ollama_model)
        try:
            await self._wait_for_service(check_interval)
            if not await self.is_model_available():
                await self._pull_model()
                await self._wait_for_model(check_interval)
        except Exception:
            log.exception("ollama_initialization_failed")
            self._ready = False
            return False

        self._ready = True
        log.info("ollama_ready", model=self.settings.ollama_model)
        return True

    async def _wait_for_service(self, check_interval: float) -> None:
        for attempt in range(1, MAX_SERVICE_WAIT_ATTEMPTS + 1):
            try:
                response = await self.client.get("/api/tags", timeout=10.0)
                response.raise_for_status()
                return
            except httpx.HTTPError as e:
                log.debug("ollama_not_available", attempt=attempt, error=str(e))
            await asyncio.sleep(check_interval)
        raise RuntimeError("Ollama service did not become available")

    async def _pull_model(self) -> None:
        log.info("ollama_model_pull", model=self.settings.ollama_model)
        response = await self.client.post(
            "/api/pull",
            json={"name": self.settings.ollama_model, "stream": False},
            timeout=300.0,
        )
        response.raise_for_status()

    async def _wait_for_model(self, check_interval: float) -> None:
        for attempt in range(1, MAX_MODEL_WAIT_ATTEMPTS + 1):
            if await self.is_model_available():
                return
            log.debug("ollama_model_pending", model=self.settings.ollama_model, attempt=attempt)
            await asyncio.sleep(check_interval)
        raise RuntimeError(f"Model {self.settings.ollama_model} did not become available")

    async def is_model_available(self) -> bool:
        try:
            response = await self.client.get("/api/tags", timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.debug("ollama_tags_failed", error=str(e))
            return False
        models = response.json().get("models", [])
        return any(model.get("name") == self.settings.ollama_model for model in models)

    async def generate_analysis(self, prompt: str, temperature: float | None = None) -> str | None:
        if not self._ready:
            log.warning("ollama_not_ready")
            return None

        payload = {
            "model": self.settings.ollama_model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.settings.ollama_temperature if temperature is None else temperature,
                "top_p": DEFAULT_TOP_P,
                "num_ctx": DEFAULT_CONTEXT_SIZE,
            },
        }
        log.debug("ollama_generate", model=self.settings.ollama_model, prompt_length=len(prompt))

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.HTTPError),
                stop=stop_after_attempt(RETRY_ATTEMPTS),
                wait=self.retry_wait,
                before_sleep=lambda retry_state: log.warning(
                    "ollama_retry",
                    attempt=retry_state.attempt_number,
                    wait=retry_state.next_action.sleep,
                ),
                reraise=True,
            ):
                with attempt:
                    response = await self.client.post("/api/generate", json=payload)
                    response.raise_for_status()
        except httpx.HTTPError:
            log.exception("ollama_generate_failed")
            return None

        text = response.json().get("response")
        return text.strip() if text else None

    async def generate_general_effect_analysis(
        self, bill_title: str, bill_summary: str | None
    ) -> str | None:
        return await self.generate_analysis(general_effect_prompt(bill_title, bill_summary))

    async def generate_economic_effect_analysis(
        self, bill_title: str, bill_summary: str | None
    ) -> str | None:
        return await self.generate_analysis(economic_effect_prompt(bill_title, bill_summary))

    async def generate_industry_tags(self, bill_title: str, bill_summary: str | None) -> list[str]:
        raw = await self.generate_analysis(
            industry_tags_prompt(bill_title, bill_summary, MAX_INDUSTRY_TAGS)
        )
        return parse_industry_tags(raw, MAX_INDUSTRY_TAGS)
