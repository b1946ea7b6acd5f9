import logging
import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from database import format_korean_datetime, parse_iso_datetime
from fleet_services.config import fleet_settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates", "email"
)
GOOD_STATUS = "양호"


@dataclass
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.content)


def split_into_batches(attachments: List[EmailAttachment], max_bytes: int) -> List[List[EmailAttachment]]:
    """Group attachments in order so each batch stays within max_bytes.

    A single attachment larger than max_bytes gets a batch of its own.
    """
    batches: List[List[EmailAttachment]] = []
    current: List[EmailAttachment] = []
    current_size = 0

    for attachment in attachments:
        if current and current_size + attachment.size > max_bytes:
            batches.append(current)
            current, current_size = [], 0
        current.append(attachment)
        current_size += attachment.size

    if current:
        batches.append(current)
    return batches


class EmailService:
    """Sends inspection notifications over SMTP (Gmail by default)"""

    def __init__(self, template_dir: Optional[str] = None):
        self.templates = Environment(
            loader=FileSystemLoader(template_dir or TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def enabled(self) -> bool:
        return fleet_settings.email_configured

    def render(self, template_name: str, **context: Any) -> str:
        return self.templates.get_template(template_name).render(**context)

    def _build_message(self, subject: str, html: str, attachments: List[EmailAttachment]) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = fleet_settings.email_user
        message["To"] = fleet_settings.email_recipient
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")

        for attachment in attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            message.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(fleet_settings.email_smtp_host, fleet_settings.email_smtp_port, timeout=30) as smtp:
            smtp.ehlo()
            smtp.starttls()
            smtp.login(fleet_settings.email_user, fleet_settings.email_app_password)
            smtp.send_message(message)

    def send_inspection_email(
        self,
        inspection: Dict[str, Any],
        photo_count: int = 0,
        attachments: Optional[List[EmailAttachment]] = None,
    ) -> bool:
        """Send the inspection completed notification for an inspection dict with its vehicle"""
        if not self.enabled:
            logger.warning("Email settings incomplete (EMAIL_USER, EMAIL_APP_PASSWORD, EMAIL_RECIPIENT)")
            return False

        vehicle = inspection.get("vehicle") or {}
        subject = (
            f"[점검완료] {vehicle.get('vehicleNumber', '')} - {vehicle.get('ownerName', '')} "
            f"({inspection.get('inspectionType', '')})"
        )
        html = self.render(
            "inspection_completed.html",
            vehicle=vehicle,
            inspection=inspection,
            inspection_date=format_korean_datetime(parse_iso_datetime(inspection.get("inspectionDate"))),
            status_color="#28a745" if inspection.get("overallStatus") == GOOD_STATUS else "#dc3545",
            photo_count=photo_count,
        )

        attached = list(attachments or [])
        total_size = sum(attachment.size for attachment in attached)
        if total_size > fleet_settings.max_email_attachment_bytes:
            logger.warning(f"Attachments too large ({total_size // (1024 * 1024)}MB), sending without them")
            attached = []

        try:
            self._send(self._build_message(subject, html, attached))
        except Exception as e:
            logger.error(f"Inspection email failed for {vehicle.get('vehicleNumber')}: {e}")
            return False

        logger.info(f"Inspection email sent: {vehicle.get('vehicleNumber')} -> {fleet_settings.email_recipient}")
        return True

    def send_photos_email(
        self,
        vehicle_number: str,
        owner_name: str,
        inspection_type: str,
        inspection_date: str,
        attachments: List[EmailAttachment],
    ) -> bool:
        """Email uploaded photos, split into several messages when they exceed the size limit"""
        if not self.enabled:
            logger.warning("Email settings incomplete (EMAIL_USER, EMAIL_APP_PASSWORD, EMAIL_RECIPIENT)")
            return False
        if not attachments:
            return False

        subject = f"[사진백업] {vehicle_number} - {owner_name} ({inspection_type}) - {len(attachments)}장"
        html = self.render(
            "photo_backup.html",
            vehicle_number=vehicle_number,
            owner_name=owner_name,
            inspection_type=inspection_type,
            inspection_date=inspection_date,
            photo_count=len(attachments),
        )

        batches = split_into_batches(attachments, fleet_settings.max_email_attachment_bytes)
        try:
            for number, batch in enumerate(batches, start=1):
                batch_subject = subject if len(batches) == 1 else f"{subject} ({number}/{len(batches)})"
                self._send(self._build_message(batch_subject, html, batch))
                logger.info(f"Photo email {number}/{len(batches)} sent for {vehicle_number}")
        except Exception as e:
            logger.error(f"Photo email failed for {vehicle_number}: {e}")
            return False

        return True
