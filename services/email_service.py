import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from core.config import Settings
from utils.logger import get_logger

logger = get_logger(__name__)


class EmailService:

    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, to_email: str, subject: str, body: str):
        settings = self.settings

        if settings.ENV == "testing":
            logger.info(
                "[TEST MODE] Email skipped",
                extra={"recipient": to_email, "subject": subject}
            )
            return

        logger.debug(
            "Attempting to send email",
            extra={"recipient": to_email, "subject": subject}
        )

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = settings.MAIL_FROM
        message["To"] = to_email
        message.attach(MIMEText(body, "html"))

        try:
            with smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT) as server:
                server.starttls()
                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM, to_email, message.as_string())

            logger.info(
                "Email sent successfully",
                extra={"recipient": to_email, "subject": subject}
            )

        except OSError as e:
            # smtplib.SMTPException is an OSError, as are connection failures
            logger.error(
                f"Failed to send email: {str(e)}",
                extra={
                    "recipient": to_email,
                    "subject": subject,
                    "error": str(e),
                    "error_type": type(e).__name__
                },
                exc_info=True
            )
            raise


def reset_email_body(reset_url: str, expires_minutes: int) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #2c3e50;">Your Password Reset Token is here!</h2>
            <p>We received a request to reset your password.</p>
            <div style="margin: 30px 0;">
                <a href="{reset_url}"
                style="display: inline-block; padding: 14px 28px; background-color: #3498db;
                        color: white; text-decoration: none; border-radius: 4px; margin: 10px 0;
                        font-weight: bold;">
                    Click Here to Reset
                </a>
            </div>
            <p style="color: #666; font-size: 14px; margin-top: 30px;">
                This link expires in {expires_minutes} minutes.
            </p>
            <p style="color: #999; font-size: 12px;">
                If you didn't request this, you can ignore this email.
                <br><br>
                {reset_url}
            </p>
        </div>
    </body>
    </html>
    """
