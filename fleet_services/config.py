import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_RESERVATION_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/1UmO-JT_Eb3_4OryXgZip6M_Z0cIRPBpQau6RQc_iygI"
    "/gviz/tq?tqx=out:csv&gid=0"
)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class FleetSettings:
    def __init__(self):
        # Admin access
        self.admin_pin = os.getenv("ADMIN_PIN", "")
        self.secret_key = os.getenv("SECRET_KEY", "your-secret-key-change-in-production-" + os.urandom(16).hex())

        # Reservation spreadsheet feed
        self.reservation_sheet_url = os.getenv("RESERVATION_SHEET_URL", DEFAULT_RESERVATION_SHEET_URL)
        self.reservation_cache_seconds = int(os.getenv("RESERVATION_CACHE_SECONDS", "60"))

        # Cloudinary photo hosting
        self.cloudinary_cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME", "")
        self.cloudinary_api_key = os.getenv("CLOUDINARY_API_KEY", "")
        self.cloudinary_api_secret = os.getenv("CLOUDINARY_API_SECRET", "")
        self.cloudinary_root_folder = os.getenv("CLOUDINARY_ROOT_FOLDER", "PremiumCare")

        # Google Drive photo backup (OAuth refresh token)
        self.google_client_id = os.getenv("GOOGLE_CLIENT_ID", "")
        self.google_client_secret = os.getenv("GOOGLE_CLIENT_SECRET", "")
        self.google_refresh_token = os.getenv("GOOGLE_REFRESH_TOKEN", "")
        self.google_drive_folder_id = os.getenv("GOOGLE_DRIVE_FOLDER_ID", "")
        self.google_drive_top_folder_name = os.getenv("GOOGLE_DRIVE_TOP_FOLDER_NAME", "PremiumCare")

        # Google Sheets inspection log (service account)
        self.google_service_account_email = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
        self.google_private_key = os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")
        self.google_sheets_id = os.getenv("GOOGLE_SHEETS_ID", "")
        self.google_sheets_name = os.getenv("GOOGLE_SHEETS_NAME", "점검기록")

        # Email notifications
        self.email_user = os.getenv("EMAIL_USER", "")
        self.email_app_password = os.getenv("EMAIL_APP_PASSWORD", "")
        self.email_recipient = os.getenv("EMAIL_RECIPIENT", "")
        self.email_smtp_host = os.getenv("EMAIL_SMTP_HOST", "smtp.gmail.com")
        self.email_smtp_port = int(os.getenv("EMAIL_SMTP_PORT", "587"))

        # Local photo storage is unavailable on serverless hosts
        self.upload_dir = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
        on_vercel = bool(os.getenv("VERCEL") or os.getenv("VERCEL_ENV"))
        self.local_uploads_enabled = _env_flag("LOCAL_UPLOADS", not on_vercel)

        self.max_photo_bytes = 10 * 1024 * 1024
        self.max_email_attachment_bytes = 20 * 1024 * 1024

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)

    @property
    def google_drive_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_refresh_token)

    @property
    def google_sheets_configured(self) -> bool:
        return bool(self.google_service_account_email and self.google_private_key and self.google_sheets_id)

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user and self.email_app_password and self.email_recipient)


fleet_settings = FleetSettings()


def configure_logging(level: str = None) -> None:
    """Configure the root logger for the dashboard process.

    Handlers installed by the host (uvicorn --log-config, pytest) are kept;
    the stdout handler is only added when the root logger has none.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL setting.
    """
    log_level = (level or fleet_settings.log_level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"))
        root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
