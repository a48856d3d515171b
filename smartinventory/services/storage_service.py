# smartinventory/services/storage_service.py
import io
import logging
import mimetypes
from pathlib import Path
from typing import Union

from googleapiclient.discovery import Resource

from smartinventory.config import Settings
from smartinventory.exceptions import ExportIOError
from smartinventory.google_client import get_drive_service
from .drive_service import (
    ensure_file_public_and_get_url,
    find_file_in_folder_by_name,
    upload_file_to_folder,
)

logger = logging.getLogger(__name__)

MIMETYPES = {
    ".csv": "text/csv",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".pdf": "application/pdf",
    ".json": "application/json",
}


def guess_mimetype(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix in MIMETYPES:
        return MIMETYPES[suffix]
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class LocalFileSink:
    """
    Save documents into a directory on disk. Returns the written path.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def save(self, data: bytes, filename: str) -> str:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / filename
            path.write_bytes(data)
        except OSError as e:
            raise ExportIOError(f"Failed to save {filename}: {e}") from e

        logger.info('Saved "%s" (%d bytes)', path, len(data))
        return str(path)


class DriveFileSink:
    """
    Save documents into a Google Drive folder. A file with the same name in
    the folder is overwritten. Returns the Drive file id.
    """

    def __init__(self, drive: Resource, folder_id: str):
        if not folder_id:
            raise ValueError("folder_id must be a non-empty string")
        self.drive = drive
        self.folder_id = folder_id

    def save(self, data: bytes, filename: str) -> str:
        try:
            existing = find_file_in_folder_by_name(self.drive, self.folder_id, filename)
            file_id = upload_file_to_folder(
                drive=self.drive,
                folder_id=self.folder_id,
                filename=filename,
                mimetype=guess_mimetype(filename),
                media_stream=io.BytesIO(data),
                existing_file_id=existing["id"] if existing else None,
            )
        except Exception as e:
            raise ExportIOError(f"Failed to upload {filename} to Drive: {e}") from e

        logger.info('Uploaded "%s" as fileId=%s', filename, file_id)
        return file_id

    def public_url(self, file_id: str) -> str:
        return ensure_file_public_and_get_url(self.drive, file_id)


def create_sink(settings: Settings) -> Union[LocalFileSink, DriveFileSink]:
    """
    Drive folder when DRIVE_FOLDER_ID is configured, local export directory
    otherwise.
    """
    if settings.drive_folder_id:
        drive = get_drive_service(settings.google_credentials_json)
        return DriveFileSink(drive, settings.drive_folder_id)
    return LocalFileSink(settings.export_dir)
