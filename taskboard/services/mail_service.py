import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from fastapi import BackgroundTasks

from taskboard.core import get_settings
from taskboard.logs import debug_logger, api_logger

settings = get_settings()


def build_help_message(reply_to: str, message: str) -> MIMEMultipart:
    recipient = settings.SUPPORT_EMAIL or settings.SMTP_USER

    msg = MIMEMultipart("alternative")
    msg["From"] = f"Support <{settings.SMTP_USER}>"
    msg["To"] = recipient
    msg["Reply-To"] = reply_to
    msg["Subject"] = "Help Request"
    msg.attach(MIMEText(f"Help request from ({reply_to}):\n\n{message}", "plain"))
    return msg


def send_help_email(reply_to: str, message: str) -> None:
    """Deliver a help request to the support mailbox"""
    if not settings.SMTP_SERVER or not settings.SMTP_USER:
        # No transport configured, keep the request in the logs
        api_logger.info(f"Help request from {reply_to} (SMTP not configured): {message}")
        return

    msg = build_help_message(reply_to, message)
    try:
        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT) as server:
            server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.SMTP_USER, [msg["To"]], msg.as_string())
    except (smtplib.SMTPException, OSError):
        # Runs after the response was sent, nothing to propagate to
        debug_logger.log_exception(f"Failed to send help request from {reply_to}")
        return

    debug_logger.info(f"Help request from {reply_to} delivered")


def queue_help_email(background_tasks: BackgroundTasks, reply_to: str, message: str) -> None:
    background_tasks.add_task(send_help_email, reply_to, message)
