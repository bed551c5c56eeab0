"""
Irregularity report email via MS Graph.
"""

import traceback
from datetime import date
from functools import lru_cache
from pathlib import Path

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient
from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.file_attachment import FileAttachment
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.message import Message
from msgraph.generated.models.recipient import Recipient
from msgraph.generated.users.item.send_mail.send_mail_post_request_body import (
    SendMailPostRequestBody,
)

from core.config import (
    ERROR_EMAIL,
    FROM_EMAIL,
    GRAPH_APP_ID,
    GRAPH_CLIENT_SECRET,
    GRAPH_TENANT_ID,
    TO_EMAIL,
)
from models.timesheet import FraudReport
from services.reports import format_date_display, format_date_for_subject

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@lru_cache(maxsize=1)
def graph_client() -> GraphServiceClient:
    """MS Graph client, created on first use."""
    credential = ClientSecretCredential(
        tenant_id=GRAPH_TENANT_ID,
        client_id=GRAPH_APP_ID,
        client_secret=GRAPH_CLIENT_SECRET,
    )
    return GraphServiceClient(credentials=credential)


def format_report_for_email(employee: str, report: FraudReport, as_of: date) -> str:
    """
    Plain-text email body: summary counts, then high and medium flags grouped
    by category. Low severity flags are left to the attached workbook.
    """
    summary = report.summary
    lines = [
        f"Timesheet Irregularities - {employee} - {format_date_for_subject(as_of)}",
        "",
        f"High: {summary.high}  Medium: {summary.medium}  Low: {summary.low}",
        f"Admin hours: {summary.admin_hours} ({summary.admin_pct}%)",
        f"Longest streak: {summary.longest_streak} days",
        "",
    ]

    for severity in ("high", "medium"):
        flags = [f for f in report.flags if f.severity == severity]
        if not flags:
            continue
        lines.append(f"{severity.upper()} severity:")
        by_category: dict[str, list] = {}
        for flag in flags:
            by_category.setdefault(flag.category, []).append(flag)
        for category in sorted(by_category):
            lines.append(f"  {category}")
            for flag in by_category[category]:
                lines.append(f"    - {format_date_display(flag.date)}: {flag.detail}")
        lines.append("")

    if not report.flags:
        lines.append("No irregularities found.")

    return "\n".join(lines)


async def send_report_email(employee: str, file_path: Path, report: FraudReport, as_of: date):
    """Send the irregularity report with the workbook attached."""
    graph = graph_client()
    subject = f"Timesheet Irregularities {employee} {format_date_for_subject(as_of)}"
    body_text = format_report_for_email(employee, report, as_of)

    with open(file_path, "rb") as f:
        attachment_bytes = f.read()

    attachment = FileAttachment(
        odata_type="#microsoft.graph.fileAttachment",
        name=file_path.name,
        content_type=XLSX_CONTENT_TYPE,
        content_bytes=attachment_bytes,
    )

    message = Message(
        subject=subject,
        body=ItemBody(content_type=BodyType.Text, content=body_text),
        to_recipients=[Recipient(email_address=EmailAddress(address=TO_EMAIL))],
        attachments=[attachment],
    )

    request_body = SendMailPostRequestBody(message=message, save_to_sent_items=True)

    await graph.users.by_user_id(FROM_EMAIL).send_mail.post(request_body)
    print(f"Sent report email to {TO_EMAIL}")


async def send_error_email(error: Exception):
    """Send error notification email."""
    graph = graph_client()
    subject = "Timesheet Irregularity Report - Script Error"
    body_text = (
        f"An error occurred while generating the irregularity report:\n\n"
        f"{''.join(traceback.format_exception(error))}"
    )

    message = Message(
        subject=subject,
        body=ItemBody(content_type=BodyType.Text, content=body_text),
        to_recipients=[Recipient(email_address=EmailAddress(address=ERROR_EMAIL))],
    )

    request_body = SendMailPostRequestBody(message=message, save_to_sent_items=True)

    try:
        await graph.users.by_user_id(FROM_EMAIL).send_mail.post(request_body)
        print(f"Sent error email to {ERROR_EMAIL}")
    except Exception as e:
        print(f"Failed to send error email: {e}")
