import html
import logging
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

logger = logging.getLogger(__name__)

_LAYOUT = """
<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
  {body}
  <hr style="margin-top: 30px; border: none; border-top: 1px solid #ddd;">
  <p style="color: #999; font-size: 12px;">
    This is an automated email from {app_name}. Please do not reply to this email.
  </p>
</div>
"""


class EmailService:
    """Service sending notification emails over SMTP (STARTTLS)"""

    def __init__(self, host: str, port: int, username: str = "", password: str = "",
                 sender: str = "", app_name: str = "ShareLink", enabled: bool = True):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.app_name = app_name
        self.enabled = enabled and bool(host and self.sender)

    async def send_email(self, to_email: str, subject: str, body_html: str) -> bool:
        """
        Send one HTML email.

        Notifications are best effort: failures are logged and reported
        as False, never raised to the request that triggered them.
        """
        if not self.enabled:
            logger.info("Email disabled, skipping '%s' to %s", subject, to_email)
            return False
        try:
            message = MIMEMultipart("alternative")
            message["From"] = self.sender
            message["To"] = to_email
            message["Subject"] = subject
            message.attach(MIMEText(_LAYOUT.format(body=body_html, app_name=self.app_name), "html"))

            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                start_tls=True,
                username=self.username or None,
                password=self.password or None,
            )
            logger.info("Email '%s' sent to %s", subject, to_email)
            return True
        except (aiosmtplib.SMTPException, OSError):
            logger.exception("Email sending to %s failed", to_email)
            return False

    async def send_welcome(self, to_email: str, name: str) -> bool:
        subject = f"Welcome to {self.app_name}"
        body = f"""
        <h2>Welcome to {self.app_name}, {html.escape(name)}!</h2>
        <p>Thank you for joining. With your account you can:</p>
        <ul>
          <li>Share files through time-limited links</li>
          <li>Keep track of everything you uploaded</li>
          <li>Upgrade a file for more space and a longer lifetime</li>
        </ul>
        """
        return await self.send_email(to_email, subject, body)

    async def send_file_shared(self, to_email: str, filename: str, download_url: str,
                               expires_at: datetime) -> bool:
        subject = f"File shared: {filename}"
        safe_url = html.escape(download_url, quote=True)
        body = f"""
        <h2>A file has been shared with you</h2>
        <p>You have received <strong>{html.escape(filename)}</strong>.</p>
        <p style="text-align: center; margin: 25px 0;">
          <a href="{safe_url}" style="background-color: #4CAF50; color: white; padding: 12px 20px;
             text-decoration: none; border-radius: 4px; font-weight: bold;">Download File</a>
        </p>
        <p><strong>Important:</strong> this link expires on {expires_at:%Y-%m-%d %H:%M} UTC.</p>
        <p style="color: #666; font-size: 14px;">Or copy this link:<br><code>{safe_url}</code></p>
        """
        return await self.send_email(to_email, subject, body)

    async def send_payment_confirmation(self, to_email: str, amount: float, currency: str,
                                        plan_name: str, transaction_id: str) -> bool:
        subject = f"Payment confirmation - {plan_name}"
        body = f"""
        <h2>Payment confirmation</h2>
        <p>Thank you for your payment!</p>
        <div style="background-color: #f9f9f9; padding: 15px; border-left: 4px solid #4CAF50; margin: 20px 0;">
          <p><strong>Plan:</strong> {html.escape(plan_name)}</p>
          <p><strong>Amount:</strong> {amount:g} {html.escape(currency)}</p>
          <p><strong>Transaction ID:</strong> {html.escape(transaction_id)}</p>
        </div>
        <p>Your file has been upgraded and its new limits are active now.</p>
        """
        return await self.send_email(to_email, subject, body)
