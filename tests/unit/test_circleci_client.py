"""Unit tests for the CircleCI client (mocked HTTP session)."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from ci_trigger_bot.circleci.client import (
    CircleCIClient,
    PipelineHandle,
    TriggerRequest,
)
from ci_trigger_bot.circleci.parameters import BoolParameter, StringParameter
from ci_trigger_bot.errors import CITriggerError


def _response(status_code: int, body: Any) -> Mock:
    resp = Mock()
    resp.status_code = status_code
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


def _session(*responses: Mock) -> Mock:
    session = Mock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return session


def _client(session: Mock) -> CircleCIClient:
    return CircleCIClient(
        token="secret",
        base_url="https://circleci.com/",
        timeout_seconds=5.0,
        session=session,
    )


def test_client_requires_token() -> None:
    with pytest.raises(ValueError):
        CircleCIClient(token="", session=_session())


def test_trigger_request_requires_project_and_branch() -> None:
    with pytest.raises(ValueError):
        TriggerRequest(project="acme/ios-app", branch=" ")
    with pytest.raises(ValueError):
        TriggerRequest(project="", branch="develop")


def test_trigger_job_posts_string_parameters() -> None:
    session = _session(
        _response(201, {"branch": "develop", "build_url": "https://circleci.com/gh/acme/ios-app/1"})
    )
    client = _client(session)

    result = client.trigger_job(
        project="acme/ios-app",
        branch="develop",
        parameters={"push": BoolParameter(False), "lane": StringParameter("beta")},
    )

    assert result.branch == "develop"
    assert result.build_url == "https://circleci.com/gh/acme/ios-app/1"

    call = session.request.call_args
    assert call.args == (
        "POST",
        "https://circleci.com/api/v1.1/project/github/acme/ios-app/tree/develop",
    )
    assert call.kwargs["params"] == {"circle-token": "secret"}
    assert call.kwargs["json"] == {"build_parameters": {"push": "false", "lane": "beta"}}
    assert call.kwargs["timeout"] == 5.0


def test_trigger_pipeline_creates_then_polls_once() -> None:
    session = _session(
        _response(201, {"id": "abc"}),
        _response(200, {"vcs": {"branch": "release/babylon/3.13.0"}, "workflows": [{"id": "wf-1"}, {"id": "wf-2"}]}),
    )
    client = _client(session)
    request = TriggerRequest(
        project="acme/ios-app",
        branch="release/babylon/3.13.0",
        parameters={"push": BoolParameter(False), "lane": StringParameter("testflight")},
    )

    result = client.trigger_pipeline(request)

    assert result.branch == "release/babylon/3.13.0"
    assert result.build_url == "https://circleci.com/workflow-run/wf-1"

    create, poll = session.request.call_args_list
    assert create.args == (
        "POST",
        "https://circleci.com/api/v1.1/project/github/acme/ios-app/tree/release/babylon/3.13.0",
    )
    assert create.kwargs["json"] == {
        "branch": "release/babylon/3.13.0",
        "parameters": {"push": False, "lane": "testflight"},
    }
    assert poll.args == ("GET", "https://circleci.com/api/v2/pipeline/abc")
    assert poll.kwargs["json"] is None
    assert session.request.call_count == 2


def test_trigger_pipeline_without_workflows_falls_back_to_base_url() -> None:
    session = _session(
        _response(201, {"id": "abc"}),
        _response(200, {"vcs": {"branch": "develop"}, "workflows": []}),
    )
    client = _client(session)

    result = client.trigger_pipeline(TriggerRequest(project="acme/ios-app", branch="develop"))

    assert result.branch == "develop"
    assert result.build_url == "https://circleci.com"


def test_get_pipeline_returns_workflow_ids() -> None:
    session = _session(
        _response(200, {"vcs": {"branch": "develop"}, "workflows": [{"id": "a"}, {"id": "b"}]})
    )

    status = _client(session).get_pipeline(PipelineHandle(id="p-1"))

    assert status.branch == "develop"
    assert status.workflow_ids == ("a", "b")


def test_non_success_status_raises() -> None:
    session = _session(_response(404, {"message": "Project not found"}))

    with pytest.raises(CITriggerError) as excinfo:
        _client(session).trigger_pipeline(TriggerRequest(project="acme/ios-app", branch="develop"))

    assert excinfo.value.status_code == 404
    assert session.request.call_count == 1


def test_undecodable_body_raises() -> None:
    session = _session(_response(201, ValueError("not json")))

    with pytest.raises(CITriggerError):
        _client(session).create_pipeline(TriggerRequest(project="acme/ios-app", branch="develop"))


def test_missing_fields_raise() -> None:
    session = _session(_response(201, {"state": "pending"}))

    with pytest.raises(CITriggerError):
        _client(session).create_pipeline(TriggerRequest(project="acme/ios-app", branch="develop"))


def test_transport_error_raises() -> None:
    session = _session(requests.ConnectionError("boom"))

    with pytest.raises(CITriggerError, match="boom"):
        _client(session).trigger_job(project="acme/ios-app", branch="develop", parameters={})


def test_poll_failure_is_not_retried() -> None:
    session = _session(
        _response(201, {"id": "abc"}),
        _response(500, {"message": "oops"}),
    )

    with pytest.raises(CITriggerError) as excinfo:
        _client(session).trigger_pipeline(TriggerRequest(project="acme/ios-app", branch="develop"))

    assert excinfo.value.status_code == 500
    assert session.request.call_count == 2
