import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from html import escape

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("EMAIL_PORT", "587"))
SMTP_USER = os.getenv("EMAIL_USER")
SMTP_PASSWORD = os.getenv("EMAIL_PASSWORD")
DEFAULT_SENDER = os.getenv("EMAIL_SENDER", SMTP_USER or "noreply@example.com")
DEFAULT_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Contract Desk")

def send_email(
    to: str,
    subject: str,
    body: str,
    html_body: str | None = None,
    sender_name: str | None = None,
):
    display_name = (sender_name or DEFAULT_SENDER_NAME).strip()
    from_value = formataddr((display_name, DEFAULT_SENDER)) if display_name else DEFAULT_SENDER
    if SMTP_USER and SMTP_PASSWORD:
        msg = EmailMessage()
        msg["From"] = from_value
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body or "")
        if html_body:
            msg.add_alternative(html_body, subtype="html")
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT) as smtp:
            smtp.starttls()
            smtp.login(SMTP_USER, SMTP_PASSWORD)
            smtp.send_message(msg)
    else:
        print(f"""
--- EMAIL (stub) ---
From: {from_value}
To: {to}
Subject: {subject}

{body}
--------------------
""")


class EmailNotifier:
    """Delivers signing links to clients by email."""

    def __init__(self, session):
        self.session = session

    def __call__(self, notification):
        from .models import Client

        client = self.session.get(Client, int(notification.signer_id))
        if not client:
            raise LookupError(f"client {notification.signer_id} not found")
        name = f"{client.first_name} {client.last_name}".strip()
        title = notification.document_title or "Document"
        link = notification.signing_link
        subject = f"Please sign: {title}"
        text_body = f"""Hello {name},

You have been requested to sign the document: “{title}”

Open document: {link}

This link is unique to you and should not be shared with others.
"""
        title_html = escape(title)
        link_html = escape(link)
        html_body = f"""
<html>
  <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; background: #f5f6f8; padding: 24px;">
    <div style="max-width: 520px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 24px;">
      <h2 style="margin-top: 0; font-size: 20px; color: #0f172a;">Document Signature Request</h2>
      <p style="font-size: 14px; color: #1e293b;">Hello {escape(name)},</p>
      <p style="font-size: 14px; color: #1e293b; line-height: 1.5;">
        You have been requested to sign the document: <strong>{title_html}</strong>
      </p>
      <div style="margin: 24px 0;">
        <a href="{link_html}" style="display: inline-block; background: #2563eb; color: #fff; padding: 12px 24px; border-radius: 999px; text-decoration: none; font-weight: 600;">
          Sign Document
        </a>
      </div>
      <p style="font-size: 12px; color: #64748b;">This link is unique to you and should not be shared with others.</p>
    </div>
  </body>
</html>
"""
        send_email(client.email, subject, text_body, html_body=html_body)
        logger.info("signing link for contract %s sent to client %s", notification.document_id, client.id)
