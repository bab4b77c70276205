"""공통 pytest fixtures"""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest
import requests

from xraider.core.blobstore import MemoryBlobStore
from xraider.library.store import DocumentStore


class FakeResponse:
    """requests.Response 대체"""

    def __init__(self, status_code=200, content=b"", json_data=None):
        self.status_code = status_code
        if json_data is not None:
            content = json.dumps(json_data).encode("utf-8")
        self.content = content if isinstance(content, bytes) else content.encode("utf-8")
        self._json = json_data

    @property
    def ok(self):
        return self.status_code < 400

    @property
    def text(self):
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        if self._json is None:
            return json.loads(self.content)
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """URL 접두어 → 응답 매핑. 호출 기록을 남김"""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []

    def get(self, url, timeout=None, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        for prefix, resp in self.routes.items():
            if url.startswith(prefix):
                return resp
        return FakeResponse(404)


@pytest.fixture()
def tmp_dir(tmp_path):
    """깨끗한 임시 디렉토리"""
    return tmp_path


@pytest.fixture()
def fake_env(tmp_path):
    """테스트용 환경변수 세트"""
    env = {
        "GOOGLE_DRIVE_TOKEN": "ya29.test-fake-token-for-unit-tests",
        "XRAIDER_USER": "tester",
    }
    with patch.dict(os.environ, env, clear=False):
        yield env


@pytest.fixture()
def config_dir(tmp_path):
    """격리된 config 디렉토리"""
    cfg_dir = tmp_path / ".xraider"
    cfg_dir.mkdir()
    return cfg_dir


@pytest.fixture()
def blobs():
    return MemoryBlobStore()


@pytest.fixture()
def store(blobs):
    """사용자 u1로 열린 빈 라이브러리"""
    return DocumentStore(blobs, user_id="u1")
