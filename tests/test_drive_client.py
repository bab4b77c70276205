"""Drive 클라이언트 재시도 / 토큰 갱신 테스트"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import requests

from tests.conftest import FakeResponse
from xraider.core.errors import DriveAPIError
from xraider.drive import client as drive_client
from xraider.drive.client import GoogleDriveClient


class ScriptedSession:
    """요청마다 준비된 응답(또는 예외)을 순서대로 반환"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


FILES_PAYLOAD = {"files": [
    {"id": "f1", "name": "paper.pdf", "mimeType": "application/pdf", "size": "2048",
     "modifiedTime": "2024-05-01T10:00:00Z", "webViewLink": "https://drive.google.com/file/d/f1/view"},
    {"id": "d1", "name": "Folder", "mimeType": "application/vnd.google-apps.folder"},
]}


class TestListFiles:
    def test_query_and_mapping(self):
        session = ScriptedSession(FakeResponse(200, json_data=FILES_PAYLOAD))
        client = GoogleDriveClient(lambda: "tok", session=session)

        files = client.list_files("folder-1", page_size=50)

        call = session.calls[0]
        assert call["headers"]["Authorization"] == "Bearer tok"
        assert call["params"]["q"] == "trashed=false and 'folder-1' in parents"
        assert call["params"]["pageSize"] == 50
        assert files[0].size == 2048
        assert files[0].web_view_link.endswith("/f1/view")
        assert not files[0].is_folder
        assert files[1].is_folder

    def test_root_listing_has_no_parent_clause(self):
        session = ScriptedSession(FakeResponse(200, json_data={"files": []}))
        GoogleDriveClient(lambda: "tok", session=session).list_files()
        assert session.calls[0]["params"]["q"] == "trashed=false"

    def test_root_alias_lists_top_level_only(self):
        session = ScriptedSession(FakeResponse(200, json_data={"files": []}))
        GoogleDriveClient(lambda: "tok", session=session).list_files("root")
        assert session.calls[0]["params"]["q"] == "trashed=false and 'root' in parents"

    def test_no_token(self):
        client = GoogleDriveClient(lambda: None, session=ScriptedSession())
        assert not client.is_connected()
        with pytest.raises(DriveAPIError) as exc_info:
            client.list_files()
        assert exc_info.value.status_code == 401


class TestTokenRefresh:
    def test_401_refreshes_once(self):
        tokens = ["old"]

        def refresh():
            tokens[0] = "new"
            return "new"

        session = ScriptedSession(FakeResponse(401), FakeResponse(200, json_data={"files": []}))
        client = GoogleDriveClient(lambda: tokens[0], on_unauthorized=refresh, session=session)

        assert client.list_files() == []
        assert [c["headers"]["Authorization"] for c in session.calls] == ["Bearer old", "Bearer new"]

    def test_401_without_refresh_raises(self):
        session = ScriptedSession(FakeResponse(401))
        client = GoogleDriveClient(lambda: "tok", session=session)
        with pytest.raises(DriveAPIError) as exc_info:
            client.list_files()
        assert exc_info.value.status_code == 401


class TestRetry:
    @patch.object(drive_client, "API_RETRY_BASE_SEC", 0)
    def test_5xx_then_success(self):
        session = ScriptedSession(FakeResponse(503), FakeResponse(200, json_data={"files": []}))
        client = GoogleDriveClient(lambda: "tok", session=session)
        assert client.list_files() == []
        assert len(session.calls) == 2

    @patch.object(drive_client, "API_RETRY_BASE_SEC", 0)
    def test_connection_error_retried(self):
        session = ScriptedSession(
            requests.ConnectionError("reset"),
            FakeResponse(200, json_data={"files": []}),
        )
        client = GoogleDriveClient(lambda: "tok", session=session)
        assert client.list_files() == []

    @patch.object(drive_client, "API_RETRY_BASE_SEC", 0)
    def test_exhausted_retries_raise(self):
        session = ScriptedSession(*[FakeResponse(429) for _ in range(drive_client.API_MAX_RETRIES)])
        client = GoogleDriveClient(lambda: "tok", session=session)
        with pytest.raises(DriveAPIError) as exc_info:
            client.list_files()
        assert exc_info.value.status_code == 429

    def test_4xx_not_retried(self):
        session = ScriptedSession(FakeResponse(404))
        client = GoogleDriveClient(lambda: "tok", session=session)
        with pytest.raises(DriveAPIError):
            client.get_file_metadata("missing")
        assert len(session.calls) == 1


class TestMutations:
    def test_create_folder(self):
        session = ScriptedSession(FakeResponse(200, json_data={
            "id": "new", "name": "Papers", "mimeType": "application/vnd.google-apps.folder",
        }))
        folder = GoogleDriveClient(lambda: "tok", session=session).create_folder("Papers", parent_id="p")
        assert folder.is_folder
        assert session.calls[0]["json"]["parents"] == ["p"]

    def test_delete_file(self):
        session = ScriptedSession(FakeResponse(204))
        GoogleDriveClient(lambda: "tok", session=session).delete_file("f1")
        assert session.calls[0]["method"] == "DELETE"
