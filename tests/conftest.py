"""
Shared fixtures: an AltTextClient wired to a mocked requests.Session.
"""
import json
from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from alttext_mcp.api.client import AltTextClient

API_KEY = "test-api-key-123"
BASE_URL = "https://alttext.ai/api/v1"


def make_response(
    status: int = 200,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    raw: Optional[bytes] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
    response.headers = CaseInsensitiveDict({"Content-Type": "application/json", **(headers or {})})
    response.encoding = "utf-8"
    return response


def sent_body(session: Mock, call_index: int = -1) -> Dict[str, Any]:
    call = session.request.call_args_list[call_index]
    return json.loads(call.kwargs["data"])


@pytest.fixture
def session():
    mock_session = Mock(spec=requests.Session)
    mock_session.request.return_value = make_response(200, {})
    return mock_session


@pytest.fixture
def client(session):
    return AltTextClient(API_KEY, session=session)
