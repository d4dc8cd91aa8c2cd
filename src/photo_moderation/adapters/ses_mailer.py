"""SES-backed mailer."""

from dataclasses import dataclass
from typing import Any

from photo_moderation.services.notifications import Mailer


@dataclass
class SesMailer(Mailer):
    """Mailer implemented with a boto3 SES client."""

    client: Any
    source: str

    def send_email(
        self, recipients: list[str], subject: str, html_body: str, text_body: str
    ) -> None:
        """Send an HTML e-mail with a plain-text alternative."""
        self.client.send_email(
            Source=self.source,
            Destination={"ToAddresses": list(recipients)},
            Message={
                "Subject": {"Charset": "UTF-8", "Data": subject},
                "Body": {
                    "Html": {"Charset": "UTF-8", "Data": html_body},
                    "Text": {"Charset": "UTF-8", "Data": text_body},
                },
            },
        )
