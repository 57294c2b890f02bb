import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from flask import current_app

EMAIL_NOT_CONFIGURED = "Email not configured"


def _build_message(to_email: str, subject: str, body: str) -> EmailMessage:
    cfg = current_app.config
    sender = cfg.get("SMTP_FROM_EMAIL") or cfg.get("SMTP_USERNAME")

    msg = EmailMessage()
    msg["From"] = formataddr((cfg.get("SMTP_FROM_NAME") or "", sender))
    msg["To"] = to_email
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid(domain=sender.split("@")[-1])
    if cfg.get("SMTP_REPLY_TO"):
        msg["Reply-To"] = cfg["SMTP_REPLY_TO"]
    # Japanese body text
    msg.set_content(body, charset="utf-8")
    return msg


def send_email(to_email: str, subject: str, body: str):
    """Send one plain text mail. Returns (ok, error); SMTP problems never raise."""
    cfg = current_app.config
    host = cfg.get("SMTP_HOST")
    if not host or not (cfg.get("SMTP_FROM_EMAIL") or cfg.get("SMTP_USERNAME")):
        current_app.logger.info("SMTP not configured, skipping mail to %s: %s", to_email, subject)
        return False, EMAIL_NOT_CONFIGURED
    if not to_email:
        return False, "No recipient"

    msg = _build_message(to_email, subject, body)
    port = cfg.get("SMTP_PORT", 587)
    username = cfg.get("SMTP_USERNAME")
    password = cfg.get("SMTP_PASSWORD")

    try:
        if cfg.get("SMTP_USE_SSL"):
            server = smtplib.SMTP_SSL(host, port, timeout=10)
        else:
            server = smtplib.SMTP(host, port, timeout=10)
        with server:
            if cfg.get("SMTP_USE_TLS", True) and not cfg.get("SMTP_USE_SSL"):
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)

    current_app.logger.info("mail sent to %s: %s", to_email, subject)
    return True, None
