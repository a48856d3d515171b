# smartinventory/config.py

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from smartinventory.domain.models import CompanyProfile


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    schema: Optional[str] = None
    local_storage_file: str = "localStorage.json"
    export_dir: str = "exports"
    drive_folder_id: Optional[str] = None
    google_credentials_json: Optional[str] = None
    pdf_font_path: Optional[str] = None
    company: CompanyProfile = field(default_factory=CompanyProfile)


def _company_from_env() -> CompanyProfile:
    default = CompanyProfile()
    return CompanyProfile(
        name=os.getenv("COMPANY_NAME", default.name),
        address=os.getenv("COMPANY_ADDRESS", default.address),
        phone=os.getenv("COMPANY_PHONE", default.phone),
        email=os.getenv("COMPANY_EMAIL", default.email),
        website=os.getenv("COMPANY_WEBSITE", default.website) or None,
        gst_id=os.getenv("COMPANY_GST_ID", default.gst_id),
        tagline=os.getenv("COMPANY_TAGLINE", default.tagline),
    )


def get_settings() -> Settings:
    """
    Read settings from the environment, loading `.env` first.
    """
    load_dotenv()
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        schema=os.getenv("SCHEMA") or None,
        local_storage_file=os.getenv("LOCAL_STORAGE_FILE", "localStorage.json"),
        export_dir=os.getenv("EXPORT_DIR", "exports"),
        drive_folder_id=os.getenv("DRIVE_FOLDER_ID") or None,
        google_credentials_json=os.getenv("GOOGLE_CREDENTIALS_JSON") or None,
        pdf_font_path=os.getenv("PDF_FONT_PATH") or None,
        company=_company_from_env(),
    )
