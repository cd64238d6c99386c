"""
Stage service backed by a remote HTTP endpoint.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import requests

from .base import StageService
from ..config import WorkflowConfig
from ..core.errors import StageFailure


class RemoteStageService(StageService[Any, Any]):
    """
    Delegates a stage to a JSON endpoint.

    The request record is POSTed as its `to_dict()` form and the response
    body is parsed with `parse_result`. Non-2xx responses and bodies that
    carry an "error" field fail the stage with the remote message.

    Display attributes and messages are borrowed from the local service
    the endpoint stands in for.
    """

    def __init__(
        self,
        config: WorkflowConfig,
        url: str,
        local: StageService,
        parse_result: Callable[[Dict[str, Any]], Any],
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config)
        self.url = url
        self.local = local
        self.parse_result = parse_result
        self.session = session or requests.Session()
        self.name = local.name
        self.title = local.title
        self.description = f"{local.description} (remote)"
        self.active_message = local.active_message

    def run(self, request: Any) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.config.service_api_key:
            headers["x-api-key"] = self.config.service_api_key

        try:
            resp = self.session.post(
                self.url,
                json=request.to_dict(),
                headers=headers,
                timeout=self.config.remote_timeout_sec,
            )
        except requests.RequestException as e:
            raise StageFailure(f"{self.title} request failed: {e}") from e

        data = self._json_body(resp)
        if not 200 <= resp.status_code < 300:
            message = data.get("error") if isinstance(data, dict) else None
            raise StageFailure(message or f"{self.title} failed ({resp.status_code}): {resp.text[:200]}")
        if not isinstance(data, dict):
            raise StageFailure(f"{self.title} returned an invalid response body")
        if data.get("error"):
            raise StageFailure(str(data["error"]))

        try:
            return self.parse_result(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StageFailure(f"{self.title} response missing or invalid field: {e}") from e

    @staticmethod
    def _json_body(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    def completed_message(self, output: Any) -> str:
        return self.local.completed_message(output)

    def summarize(self, output: Any) -> List[str]:
        return self.local.summarize(output)

    def __repr__(self) -> str:
        return f"RemoteStageService(name='{self.name}', url='{self.url}')"
