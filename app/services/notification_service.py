import asyncio
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, List, Optional
import logging

from fastapi import BackgroundTasks

from app.config import settings

logger = logging.getLogger(__name__)


WELCOME = "welcome"
LOW_STOCK = "low_stock"


class EmailService:
    """Email service for sending transactional emails via SMTP."""

    def __init__(
        self,
        smtp_host: str = "smtp.gmail.com",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "StockMaster IMS"
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email over SMTP with STARTTLS.

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.warning(f"Email not configured, skipping '{subject}' to {to_email}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP Authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {e}")
            return False
        except OSError as e:
            logger.error(f"Network error sending email: {e}")
            return False

    def send_welcome_email(self, to_email: str, user_name: str, login_id: str) -> bool:
        subject = f"Welcome to {self.from_name}"

        html_content = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Welcome, {user_name}!</h2>
            <p>Your account has been created. You can sign in with the login ID
            <strong>{login_id}</strong>.</p>
        </body>
        </html>
        """
        text_content = f"Welcome, {user_name}! Your login ID is {login_id}."

        return self.send_email(to_email, subject, html_content, text_content)

    def send_low_stock_email(self, to_email: str, products: list) -> bool:
        subject = f"Low stock alert: {len(products)} product(s)"

        rows = "".join(
            f"<tr><td>{p['sku']}</td><td>{p['name']}</td>"
            f"<td>{p['current_stock']}</td><td>{p['reorder_level']}</td></tr>"
            for p in products
        )
        html_content = f"""
        <html>
        <body style="font-family: Arial, sans-serif;">
            <h2>Low stock alert</h2>
            <table border="1" cellpadding="6" cellspacing="0">
                <tr><th>SKU</th><th>Product</th><th>Stock</th><th>Reorder level</th></tr>
                {rows}
            </table>
        </body>
        </html>
        """
        text_content = "\n".join(
            f"{p['sku']} {p['name']}: {p['current_stock']} (reorder at {p['reorder_level']})"
            for p in products
        )

        return self.send_email(to_email, subject, html_content, text_content)


def get_email_service() -> EmailService:
    """Get configured email service instance."""
    return EmailService(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
    )


def _dispatch(kind: str, payload: Dict[str, Any]) -> bool:
    service = get_email_service()

    if kind == WELCOME:
        return service.send_welcome_email(
            to_email=payload["email"],
            user_name=payload.get("name", "User"),
            login_id=payload.get("login_id", ""),
        )

    if kind == LOW_STOCK:
        recipient = settings.LOW_STOCK_ALERT_EMAIL
        if not recipient:
            logger.info(
                f"Low stock: {', '.join(p['sku'] for p in payload['products'])} "
                "(no alert recipient configured)"
            )
            return False
        return service.send_low_stock_email(recipient, payload["products"])

    logger.warning(f"Unknown notification kind: {kind}")
    return False


async def send_notification(kind: str, payload: Dict[str, Any]) -> bool:
    """
    Send a notification without ever failing the caller.

    SMTP runs in a worker thread. Failures are logged and reported as False.
    Endpoints schedule this as a background task so the response does not
    wait on the mail server.
    """
    try:
        return await asyncio.to_thread(_dispatch, kind, payload)
    except Exception as e:
        logger.error(f"Failed to send {kind} notification: {e}")
        return False


def low_stock_alerts(products) -> List[Dict[str, Any]]:
    """Snapshot of the products left at or below their reorder level."""
    return [
        {
            "sku": p.sku,
            "name": p.name,
            "current_stock": p.current_stock,
            "reorder_level": p.reorder_level,
        }
        for p in products
        if p.current_stock <= p.reorder_level
    ]


def schedule_notification(background_tasks: BackgroundTasks, kind: str, payload: Dict[str, Any]) -> None:
    background_tasks.add_task(send_notification, kind, payload)


def schedule_low_stock_alert(background_tasks: BackgroundTasks, low_stock: List[Dict[str, Any]]) -> None:
    if low_stock:
        schedule_notification(background_tasks, LOW_STOCK, {"products": low_stock})
