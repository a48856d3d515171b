# smartinventory/services/drive_service.py
from typing import Dict, List, Optional

from googleapiclient.discovery import Resource
from googleapiclient.http import MediaIoBaseUpload


def find_file_in_folder_by_name(
    drive: Resource,
    folder_id: str,
    filename: str,
) -> Optional[Dict]:
    safe_name = filename.replace("\\", "\\\\").replace("'", "\\'")
    query = (
        f"name = '{safe_name}' and "
        f"'{folder_id}' in parents and "
        f"trashed = false"
    )

    resp = drive.files().list(
        q=query,
        fields="files(id, name, mimeType)",
        pageSize=1,
    ).execute()

    files: List[Dict] = resp.get("files", [])
    return files[0] if files else None


def upload_file_to_folder(
    drive: Resource,
    folder_id: str,
    filename: str,
    mimetype: str,
    media_stream,
    existing_file_id: Optional[str] = None,
) -> str:
    """
    Upload a stream into `folder_id`. When `existing_file_id` is given the
    file content is replaced instead of creating a second file of the same
    name.
    """
    media = MediaIoBaseUpload(
        media_stream,
        mimetype=mimetype,
        resumable=False,
    )

    if existing_file_id:
        file = drive.files().update(
            fileId=existing_file_id,
            media_body=media,
            fields="id",
        ).execute()
        return file["id"]

    metadata = {
        "name": filename,
        "parents": [folder_id],
    }

    file = drive.files().create(
        body=metadata,
        media_body=media,
        fields="id",
    ).execute()

    return file["id"]


def ensure_file_public_and_get_url(drive: Resource, file_id: str) -> str:
    """
    Make the file readable by anyone with the link and return a direct download URL.
    """
    drive.permissions().create(
        fileId=file_id,
        body={"type": "anyone", "role": "reader"},
        fields="id",
    ).execute()

    return f"https://drive.google.com/uc?id={file_id}&export=download"
