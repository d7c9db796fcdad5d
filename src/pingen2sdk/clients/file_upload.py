import logging
from dataclasses import dataclass
from typing import Any, Dict

from ..core.errors import PingenError
from .http import ApiRequestor

logger = logging.getLogger(__name__)

FILE_UPLOAD_ENDPOINT = "/file-upload"


@dataclass(frozen=True)
class FileUploadTarget:
    """A pre-signed upload slot returned by GET /file-upload."""

    id: str
    url: str
    url_signature: str
    expires_at: str

    @classmethod
    def from_dict(cls, document: Dict[str, Any]) -> "FileUploadTarget":
        data = document["data"]
        attributes = data["attributes"]
        return cls(
            id=data["id"],
            url=attributes["url"],
            url_signature=attributes["url_signature"],
            expires_at=attributes.get("expires_at", ""),
        )


class FileUpload:
    """Uploads documents to Pingen's file storage before they are submitted."""

    def __init__(self, requestor: ApiRequestor):
        self.requestor = requestor

    def request_file_upload(self) -> FileUploadTarget:
        return self.requestor.get(FILE_UPLOAD_ENDPOINT, target=FileUploadTarget.from_dict)

    def put_file(self, path_to_file: str, file_url: str) -> None:
        """Upload a local file to a pre-signed URL.

        Raises:
            PingenError: If the file cannot be opened or the upload fails.
        """
        try:
            f = open(path_to_file, "rb")
        except OSError as e:
            logger.error("Failed to open %s: %s", path_to_file, e)
            raise PingenError("Failed to open file", "", 500) from e

        with f:
            self.requestor.put_file(file_url, f)
        logger.info("Uploaded %s", path_to_file)
