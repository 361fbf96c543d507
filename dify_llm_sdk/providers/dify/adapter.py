from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from ...config.constants import DEFAULT_TIMEOUT_SECONDS, RESPONSE_MODE_BLOCKING, RESPONSE_MODE_STREAMING
from ...config.settings import DifyChatSettings
from ...models.generation import CallOptions, GenerationResult
from ...observability.logging import ProviderLogger
from ...streaming.reasoning import generate_block_id
from ..base import LanguageModel, ProviderError, StreamResult
from ..errors import ErrorMapper
from .parsers import map_completion_response
from .payloads import build_request_body, split_call_headers
from .schema import CompletionResponse
from .streaming import StreamTranslator, stream_chat_messages

logger = ProviderLogger("dify")


@dataclass
class DifyModelConfig:
    """Connection details a provider hands to each model it creates.

    Attributes:
        provider: Provider identifier reported by the model
        endpoint: Full chat-messages URL
        headers: Callable returning the base headers (authorization included)
        timeout: Request timeout in seconds
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
    """
    provider: str
    endpoint: str
    headers: Callable[[], Dict[str, str]] = dict
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    transport: Optional[httpx.AsyncBaseTransport] = None
    id_generator: Callable[[], str] = field(default=generate_block_id)


class DifyChatLanguageModel(LanguageModel):
    """Language model backed by one Dify chat application."""

    def __init__(self, model_id: str, settings: DifyChatSettings, config: DifyModelConfig):
        self.model_id = model_id
        self.settings = settings
        self.config = config
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def provider(self) -> str:
        return self.config.provider

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self.config.transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _prepare(self, options: CallOptions, response_mode: str):
        user_id, conversation_id, forwarded = split_call_headers(options.headers)
        body = build_request_body(
            options.prompt,
            self.settings,
            user_id=user_id,
            conversation_id=conversation_id,
            response_mode=response_mode,
        )
        headers = {**self.config.headers(), **forwarded}
        return body, headers

    def _failed(self, error: ProviderError, request_info: Dict) -> ProviderError:
        logger.error(
            "Dify request rejected",
            model=self.model_id,
            request_id=request_info['request_id'],
            **ErrorMapper.get_error_classification(error),
        )
        return error

    async def generate(self, options: CallOptions) -> GenerationResult:
        """Send a blocking chat-messages request and map the JSON answer."""
        body, headers = self._prepare(options, RESPONSE_MODE_BLOCKING)

        with logger.track_request("generate", self.model_id) as request_info:
            try:
                response = await self.client.post(self.config.endpoint, json=body, headers=headers)
            except httpx.HTTPError as e:
                raise self._failed(ErrorMapper.map_dify_error(e), request_info) from e

            if response.is_error:
                raise self._failed(ErrorMapper.map_error_response(response), request_info)

            try:
                completion = CompletionResponse.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                error = ProviderError(
                    f"Invalid Dify response: {e}",
                    provider="dify",
                    status_code=response.status_code,
                )
                error.original_error = e
                raise self._failed(error, request_info) from e

            result = map_completion_response(completion, body, dict(response.headers))
            logger.log_usage(result.usage.model_dump(), self.model_id, request_info['request_id'])
            return result

    async def stream(self, options: CallOptions) -> StreamResult:
        """Open a streaming chat-messages request.

        Returns once the response headers arrive; parts are produced lazily
        as the caller iterates ``StreamResult.stream``.
        """
        body, headers = self._prepare(options, RESPONSE_MODE_STREAMING)

        # Timing here covers opening the stream; stream_chat_messages logs the rest
        with logger.track_request("open_stream", self.model_id) as request_info:
            request = self.client.build_request("POST", self.config.endpoint, json=body, headers=headers)
            try:
                response = await self.client.send(request, stream=True)
            except httpx.HTTPError as e:
                raise self._failed(ErrorMapper.map_dify_error(e), request_info) from e

            if response.is_error:
                try:
                    await response.aread()
                finally:
                    await response.aclose()
                raise self._failed(ErrorMapper.map_error_response(response), request_info)

            translator = StreamTranslator(id_generator=self.config.id_generator)
            return StreamResult(
                stream=stream_chat_messages(
                    response,
                    translator,
                    model=self.model_id,
                    request_id=request_info['request_id'],
                ),
                request=body,
                response_headers=dict(response.headers),
            )
