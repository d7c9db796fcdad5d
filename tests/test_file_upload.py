"""Tests for the file upload resource."""

import pytest
import responses

from pingen2sdk.clients.file_upload import FileUpload, FileUploadTarget
from pingen2sdk.core.errors import PingenError

BASE_URL = "http://pingen.test"
UPLOAD_URL = "https://upload.pingen.test/slot-1?X-Amz-Signature=sig"

FILE_UPLOAD_RESPONSE = {
    "data": {
        "id": "slot-1",
        "type": "file_uploads",
        "attributes": {
            "url": UPLOAD_URL,
            "url_signature": "$2y$10$abc",
            "expires_at": "2026-10-19T12:00:00+0100",
        },
        "links": {"self": f"{BASE_URL}/file-upload"},
    }
}


class TestFileUpload:
    @responses.activate
    def test_request_file_upload(self, requestor):
        responses.add(responses.GET, f"{BASE_URL}/file-upload", json=FILE_UPLOAD_RESPONSE, status=200)

        target = FileUpload(requestor).request_file_upload()

        assert target == FileUploadTarget(
            id="slot-1",
            url=UPLOAD_URL,
            url_signature="$2y$10$abc",
            expires_at="2026-10-19T12:00:00+0100",
        )

    @responses.activate
    def test_request_file_upload_malformed(self, requestor):
        responses.add(responses.GET, f"{BASE_URL}/file-upload", json={"data": {}}, status=200)
        with pytest.raises(PingenError, match="Failed to parse response body"):
            FileUpload(requestor).request_file_upload()

    @responses.activate
    def test_put_file(self, requestor, tmp_path):
        document = tmp_path / "letter.pdf"
        document.write_bytes(b"%PDF-1.4 letter")
        responses.add(responses.PUT, UPLOAD_URL, status=200)

        FileUpload(requestor).put_file(str(document), UPLOAD_URL)

        request = responses.calls[0].request
        body = request.body.read() if hasattr(request.body, "read") else request.body
        assert body == b"%PDF-1.4 letter"
        assert request.headers["Content-Type"] == "application/octet-stream"

    def test_put_missing_file(self, requestor, tmp_path):
        with pytest.raises(PingenError) as excinfo:
            FileUpload(requestor).put_file(str(tmp_path / "missing.pdf"), UPLOAD_URL)
        assert excinfo.value.message == "Failed to open file"
        assert excinfo.value.status_code == 500

    @responses.activate
    def test_put_file_rejected(self, requestor, tmp_path):
        document = tmp_path / "letter.pdf"
        document.write_bytes(b"%PDF")
        responses.add(responses.PUT, UPLOAD_URL, status=403)

        with pytest.raises(PingenError) as excinfo:
            FileUpload(requestor).put_file(str(document), UPLOAD_URL)
        assert excinfo.value.message == "Api error"
        assert excinfo.value.status_code == 403
