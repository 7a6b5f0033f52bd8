"""
Amazon SES Email Service
Delivers invitation and credential notices
"""
import boto3
import logging
from datetime import datetime
from typing import List, Optional
from botocore.exceptions import ClientError, BotoCoreError
from jinja2 import Environment, BaseLoader, TemplateNotFound, select_autoescape
from app.core.config import settings

logger = logging.getLogger(__name__)


_BASE_STYLE = '''
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: #0070f3; color: white; padding: 20px; text-align: center; border-radius: 10px 10px 0 0; }
        .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }
        .button { display: inline-block; background: #0070f3; color: white; padding: 12px 30px; text-decoration: none; border-radius: 5px; margin: 20px 0; font-weight: bold; }
        .box { background: #f0f0f0; padding: 15px; border-radius: 5px; margin: 20px 0; }
        .footer { text-align: center; margin-top: 30px; font-size: 14px; color: #666; }
'''


class TemplateLoader(BaseLoader):
    """In-memory loader for the email templates"""

    def __init__(self):
        self.templates = {
            'invitation': '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>You are invited - {{ project_name }}</title>
    <style>''' + _BASE_STYLE + '''</style>
</head>
<body>
    <div class="header">
        <h1>{{ project_name }}</h1>
    </div>
    <div class="content">
        <h2>You're Invited</h2>
        <p>You have been invited to access the following application(s):</p>
        <ul>
        {% for tenant in tenants %}
            <li>{{ tenant }}</li>
        {% endfor %}
        </ul>
        <p style="text-align: center;">
            <a href="{{ acceptance_url }}" class="button">Accept Invitation</a>
        </p>
        <p>This invitation expires on <strong>{{ expires_at }}</strong> (UTC). It can only be used once.</p>
        <p>If the button above doesn't work, copy and paste this link into your browser:</p>
        <p style="word-break: break-all;" class="box">{{ acceptance_url }}</p>
        <p>If you didn't expect this invitation, you can safely ignore this email.</p>
    </div>
    <div class="footer">
        <p>This email was sent to {{ user_email }}</p>
    </div>
</body>
</html>
            ''',
            'credentials': '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Your Login Credentials - {{ project_name }}</title>
    <style>''' + _BASE_STYLE + '''</style>
</head>
<body>
    <div class="header">
        <h1>{{ project_name }}</h1>
    </div>
    <div class="content">
        <h2>Your Login Credentials</h2>
        <p>Your account has been set up. Here are your login details:</p>
        <div class="box">
            <p><strong>Email:</strong> {{ user_email }}</p>
            <p><strong>Username:</strong> {{ username }}</p>
            <p><strong>Password:</strong> {{ password }}</p>
        </div>
        {% if tenants %}
        <p>You have been granted access to:</p>
        <ul>
        {% for tenant in tenants %}
            <li>{{ tenant }}{% if expires_at %} (access expires {{ expires_at }} UTC){% endif %}</li>
        {% endfor %}
        </ul>
        {% endif %}
        <p><strong>Important:</strong> this is the only time the password is shown. Save it in a secure location.</p>
    </div>
    <div class="footer">
        <p>This email was sent to {{ user_email }}</p>
    </div>
</body>
</html>
            ''',
        }

    def get_source(self, environment, template):
        if template not in self.templates:
            raise TemplateNotFound(template)
        source = self.templates[template]
        return source, None, lambda: True


class EmailService:
    """Amazon SES email service for invitation and credential notices"""

    def __init__(self):
        """Initialize SES client"""
        self.ses_client = None
        self.env = Environment(loader=TemplateLoader(), autoescape=select_autoescape(default=True))

        # Only initialize if we have AWS credentials
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            try:
                self.ses_client = boto3.client(
                    'ses',
                    region_name=settings.SES_REGION,
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY
                )
                logger.info(f"SES client initialized for region: {settings.SES_REGION}")
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Failed to initialize SES client: {str(e)}")
                self.ses_client = None
        else:
            logger.warning("AWS credentials not configured. Email service disabled.")

    def _send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_body: str,
    ) -> bool:
        """
        Send an email using Amazon SES

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        if not self.ses_client:
            logger.error("SES client not initialized. Cannot send email.")
            return False

        if not settings.SES_SENDER_EMAIL:
            logger.error("SES_SENDER_EMAIL not configured. Cannot send email.")
            return False

        try:
            response = self.ses_client.send_email(
                Source=settings.SES_SENDER_EMAIL,
                Destination={'ToAddresses': to_emails},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {'Html': {'Data': html_body, 'Charset': 'UTF-8'}},
                },
            )

            message_id = response['MessageId']
            logger.info(f"Email sent successfully. MessageId: {message_id}")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError [{error_code}]: {error_message}")
            return False
        except BotoCoreError as e:
            logger.error(f"AWS SES BotoCoreError: {str(e)}")
            return False

    def send_invitation_email(
        self,
        user_email: str,
        acceptance_url: str,
        tenants: List[str],
        expires_at: datetime,
    ) -> bool:
        """Send the invitation notice containing the one-time acceptance link"""
        template = self.env.get_template('invitation')
        html_content = template.render(
            user_email=user_email,
            acceptance_url=acceptance_url,
            tenants=tenants,
            expires_at=expires_at.strftime("%Y-%m-%d %H:%M"),
            project_name=settings.PROJECT_NAME,
        )

        return self._send_email(
            to_emails=[user_email],
            subject=f"You are invited to {settings.PROJECT_NAME}",
            html_body=html_content,
        )

    def send_credentials_email(
        self,
        user_email: str,
        username: str,
        password: str,
        tenants: List[str],
        expires_at: Optional[datetime] = None,
    ) -> bool:
        """Send the generated credentials right after acceptance"""
        template = self.env.get_template('credentials')
        html_content = template.render(
            user_email=user_email,
            username=username,
            password=password,
            tenants=tenants,
            expires_at=expires_at.strftime("%Y-%m-%d") if expires_at else None,
            project_name=settings.PROJECT_NAME,
        )

        return self._send_email(
            to_emails=[user_email],
            subject="Your Login Credentials",
            html_body=html_content,
        )


# Global email service instance
email_service = EmailService()


def get_email_service() -> EmailService:
    return email_service
