"""CircleCI API client.

Two trigger shapes are supported:

* the v1.1 job API: one POST, string parameters, the build URL comes back directly
* the pipeline API: POST to create, then a single GET for the pipeline's
  workflows; the build link points at the first workflow

Nothing here retries. Any transport error, non-2xx status or unexpected body
raises :class:`~ci_trigger_bot.errors.CITriggerError`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel, Field, ValidationError

from ci_trigger_bot.circleci.parameters import (
    Parameter,
    ParameterSet,
    serialize_parameters,
    stringify_parameters,
)
from ci_trigger_bot.errors import CITriggerError

logger = logging.getLogger(__name__)

_ResponseT = TypeVar("_ResponseT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class TriggerRequest:
    """What to build: project, branch and the trigger parameters."""

    project: str
    branch: str
    parameters: ParameterSet = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.project.strip():
            raise ValueError("project is required")
        if not self.branch.strip():
            raise ValueError("branch is required")


@dataclass(frozen=True, slots=True)
class PipelineHandle:
    id: str


@dataclass(frozen=True, slots=True)
class PipelineStatus:
    branch: str
    workflow_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TriggerResult:
    """Where a triggered build runs and the link a human should follow."""

    branch: str
    build_url: str


class _BuildResponse(BaseModel):
    branch: str
    build_url: str


class _PipelineCreated(BaseModel):
    id: str = Field(min_length=1)


class _Workflow(BaseModel):
    id: str


class _Vcs(BaseModel):
    branch: str


class _Pipeline(BaseModel):
    vcs: _Vcs
    workflows: list[_Workflow] = Field(default_factory=list)


class CircleCIClient:
    """Small wrapper around the CircleCI REST endpoints the bot needs."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://circleci.com",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("CircleCI token is required")

        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "ci-trigger-bot",
            }
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _project_url(self, *, project: str, branch: str) -> str:
        project = project.strip().strip("/")
        return f"{self._base_url}/api/v1.1/project/github/{project}/tree/{quote(branch, safe='/')}"

    def _pipeline_url(self, *, pipeline_id: str) -> str:
        return f"{self._base_url}/api/v2/pipeline/{quote(pipeline_id, safe='')}"

    def workflow_url(self, workflow_id: str) -> str:
        return f"{self._base_url}/workflow-run/{workflow_id}"

    def _call(
        self,
        method: str,
        url: str,
        model: type[_ResponseT],
        *,
        payload: dict[str, Any] | None = None,
    ) -> _ResponseT:
        try:
            resp = self._session.request(
                method,
                url,
                params={"circle-token": self._token},
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise CITriggerError(f"CircleCI request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise CITriggerError(
                f"CircleCI responded with HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise CITriggerError(
                f"Unexpected CircleCI response: {e}", status_code=resp.status_code
            ) from e

    def trigger_job(
        self,
        *,
        project: str,
        branch: str,
        parameters: Mapping[str, Parameter | str],
    ) -> TriggerResult:
        """Trigger a build through the v1.1 job API."""

        url = self._project_url(project=project, branch=branch)
        body = {"build_parameters": stringify_parameters(parameters)}
        logger.info("Triggering CircleCI job", extra={"project": project, "branch": branch})

        build = self._call("POST", url, _BuildResponse, payload=body)
        return TriggerResult(branch=build.branch, build_url=build.build_url)

    def create_pipeline(self, request: TriggerRequest) -> PipelineHandle:
        url = self._project_url(project=request.project, branch=request.branch)
        body = {
            "branch": request.branch,
            "parameters": serialize_parameters(request.parameters),
        }
        created = self._call("POST", url, _PipelineCreated, payload=body)
        logger.info(
            "Created CircleCI pipeline",
            extra={"project": request.project, "branch": request.branch, "pipeline_id": created.id},
        )
        return PipelineHandle(id=created.id)

    def get_pipeline(self, handle: PipelineHandle) -> PipelineStatus:
        pipeline = self._call("GET", self._pipeline_url(pipeline_id=handle.id), _Pipeline)
        return PipelineStatus(
            branch=pipeline.vcs.branch,
            workflow_ids=tuple(w.id for w in pipeline.workflows),
        )

    def trigger_pipeline(self, request: TriggerRequest) -> TriggerResult:
        """Create a pipeline and resolve the link to its first workflow.

        The pipeline is looked up exactly once, right after creation. CircleCI
        may not have registered a workflow yet; the link then falls back to the
        CircleCI base URL.
        """

        handle = self.create_pipeline(request)
        status = self.get_pipeline(handle)

        if status.workflow_ids:
            build_url = self.workflow_url(status.workflow_ids[0])
        else:
            logger.warning(
                "Pipeline has no workflows yet; falling back to base URL",
                extra={"pipeline_id": handle.id, "branch": status.branch},
            )
            build_url = self._base_url

        return TriggerResult(branch=status.branch, build_url=build_url)

    def close(self) -> None:
        self._session.close()
