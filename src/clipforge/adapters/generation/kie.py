"""kie.ai generation provider (Sora 2 text-to-video and character models)."""

import json
from typing import Any

import httpx

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.config import settings
from clipforge.domain.enums import TaskKind, TaskStatus
from clipforge.domain.models import TaskObservation
from clipforge.errors import ProviderError, TransportError
from clipforge.logging import get_logger

logger = get_logger(__name__)

SUCCESS_CODE = 200


class KieProvider(GenerationProvider):
    """kie.ai jobs API.

    Jobs are created with ``POST /api/v1/jobs/createTask`` and observed with
    ``GET /api/v1/jobs/recordInfo``. Every response carries an application-level
    ``code``; anything other than 200 is a failure even when the HTTP status is 200.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.kie_api_key
        self.base_url = (base_url or settings.kie_base_url).rstrip("/")
        self.timeout = timeout or settings.provider_timeout_seconds
        self._transport = transport

        if not self.api_key:
            logger.warning("kie_api_key_not_configured")

    @property
    def name(self) -> str:
        return "kie"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _model_for(self, kind: TaskKind, parameters: dict[str, Any]) -> str:
        if kind == TaskKind.CHARACTER_CREATION:
            return settings.kie_character_model
        if parameters.get("image_urls"):
            return settings.kie_image_video_model
        return settings.kie_video_model

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Perform one call and return the ``data`` member of a successful envelope."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=self._headers(),
                    **kwargs,
                )
        except httpx.HTTPError as e:
            raise TransportError(f"kie.ai request failed: {e}") from e

        if response.status_code >= 500:
            raise TransportError(f"kie.ai HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"kie.ai returned a non-JSON body (HTTP {response.status_code})") from e

        if not isinstance(body, dict):
            raise TransportError("kie.ai returned an unexpected body")

        code = body.get("code", response.status_code)
        if code != SUCCESS_CODE or response.is_error:
            message = body.get("msg") or body.get("message") or f"HTTP {response.status_code}"
            raise ProviderError(message, code=code)

        data = body.get("data")
        if not isinstance(data, dict):
            raise TransportError("kie.ai response is missing its data object")
        return data

    async def submit_job(self, kind: TaskKind, parameters: dict[str, Any]) -> str:
        model = self._model_for(kind, parameters)
        logger.info("kie_job_submitting", kind=str(kind), model=model)

        data = await self._request(
            "POST",
            "/api/v1/jobs/createTask",
            json={"model": model, "input": parameters},
        )

        task_id = data.get("taskId")
        if not task_id:
            raise TransportError("kie.ai did not return a taskId")

        logger.info("kie_job_submitted", kind=str(kind), provider_task_id=task_id)
        return str(task_id)

    async def query_status(self, provider_task_id: str) -> TaskObservation:
        data = await self._request(
            "GET",
            "/api/v1/jobs/recordInfo",
            params={"taskId": provider_task_id},
        )

        try:
            status = TaskStatus(data.get("state"))
        except ValueError as e:
            raise TransportError(f"kie.ai returned unknown state {data.get('state')!r}") from e

        observation = TaskObservation(
            status=status,
            progress=_coerce_progress(data.get("progress"), status),
            fail_message=data.get("failMsg") or None,
            raw=data,
        )

        if status == TaskStatus.SUCCESS:
            result = _parse_result_json(data.get("resultJson"), provider_task_id)
            observation.result_urls = [u for u in result.get("resultUrls") or [] if u]
            character_id = result.get("character_id")
            observation.character_id = str(character_id) if character_id else None

        return observation

    async def health_check(self) -> bool:
        """kie.ai exposes no health endpoint; report whether a key is configured."""
        return bool(self.api_key)


def _coerce_progress(value: Any, status: TaskStatus) -> int:
    if status == TaskStatus.SUCCESS:
        return 100
    try:
        progress = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, progress))


def _parse_result_json(raw: Any, provider_task_id: str) -> dict[str, Any]:
    """``resultJson`` is a JSON document encoded as a string."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("kie_result_json_unparseable", provider_task_id=provider_task_id)
        return {}
    return parsed if isinstance(parsed, dict) else {}
