# smartinventory/google_client.py
import os
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

SCOPES = [
    "https://www.googleapis.com/auth/drive.file",
]

TOKEN_FILE = "token_drive.json"


def get_credentials(credentials_json: Optional[str], token_file: str = TOKEN_FILE):
    creds = None

    if os.path.exists(token_file):
        creds = Credentials.from_authorized_user_file(token_file, SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    else:
        if not credentials_json:
            raise RuntimeError("GOOGLE_CREDENTIALS_JSON is not set in the environment")
        flow = InstalledAppFlow.from_client_secrets_file(
            credentials_json,
            SCOPES,
        )
        creds = flow.run_local_server(port=0)

    with open(token_file, "w") as token:
        token.write(creds.to_json())

    return creds


def get_drive_service(credentials_json: Optional[str]):
    creds = get_credentials(credentials_json)
    return build("drive", "v3", credentials=creds)
