"""
Email service for notification emails
"""
import logging
from pathlib import Path
from typing import List, Optional

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

template_dir = Path(__file__).parent.parent / "templates" / "emails"

# Email configuration
conf = ConnectionConfig(
    MAIL_USERNAME=settings.mail_username,
    MAIL_PASSWORD=settings.mail_password,
    MAIL_FROM=settings.mail_from,
    MAIL_PORT=settings.mail_port,
    MAIL_SERVER=settings.mail_server,
    MAIL_FROM_NAME=settings.mail_from_name,
    MAIL_STARTTLS=settings.mail_starttls,
    MAIL_SSL_TLS=settings.mail_ssl_tls,
    USE_CREDENTIALS=True,
    VALIDATE_CERTS=settings.mail_validate_certs,
    TEMPLATE_FOLDER=template_dir
)

# Jinja2 environment for template rendering
jinja_env = Environment(
    loader=FileSystemLoader(str(template_dir)),
    autoescape=select_autoescape(["html"])
)


def absolute_url(url: str) -> str:
    """Action links are app-relative paths; emails need full URLs."""
    if url.startswith(("http://", "https://")):
        return url
    return f"{settings.frontend_url.rstrip('/')}/{url.lstrip('/')}"


def render_notification_email(
    name: Optional[str],
    title: str,
    message: str,
    actions: List[dict]
) -> str:
    template = jinja_env.get_template("notification.html")
    return template.render(
        name=name or "there",
        title=title,
        message=message,
        actions=[
            {"label": action["label"], "url": absolute_url(action["url"])}
            for action in actions
        ],
        app_name=settings.app_name,
        frontend_url=settings.frontend_url
    )


async def send_notification_email(
    email: str,
    name: Optional[str],
    title: str,
    message: str,
    actions: Optional[List[dict]] = None
) -> bool:
    """Send a notification email. Failures are logged, never raised."""
    try:
        html_content = render_notification_email(name, title, message, actions or [])

        email_message = MessageSchema(
            subject=f"{title} - {settings.app_name}",
            recipients=[email],
            body=html_content,
            subtype=MessageType.html
        )

        fm = FastMail(conf)
        await fm.send_message(email_message)
        logger.info(f"Notification email sent: {title}")
        return True
    except Exception as e:
        logger.error(f"Failed to send notification email: {type(e).__name__}: {e}")
        return False
