"""HTML email bodies and the RFC 2822 envelope sent through Gmail.

All user-supplied text (comment bodies, project, task and author names) is
HTML-escaped before it is interpolated into a template.
"""

import base64
import html
from dataclasses import dataclass
from datetime import UTC, date, datetime
from email.message import EmailMessage

BRAND_COLOR = "#81bb26"
BRAND_GRADIENT = "linear-gradient(135deg, #81bb26 0%, #6fa01f 100%)"


@dataclass(frozen=True)
class CommentMention:
    project_name: str
    comment_text: str
    author_name: str
    project_url: str


@dataclass(frozen=True)
class TaskAssignment:
    task_title: str
    project_name: str
    project_url: str
    task_description: str | None = None
    due_date: str | None = None


def escape_text(text: str) -> str:
    """Escape ``< > & " '`` and turn newlines into ``<br>``."""
    escaped = html.escape(text or "", quote=True)
    return escaped.replace("\r\n", "\n").replace("\n", "<br>")


def _format_due_date(value: str) -> str:
    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        return value
    return parsed.strftime("%d %b %Y")


def _detail_row(label: str, value_html: str) -> str:
    return (
        '<tr><td style="padding: 8px 0; border-bottom: 1px solid #f0f0f0;">'
        f'<strong style="color: #333;">{label}:</strong>'
        f'<div style="color: #666; margin-top: 5px; line-height: 1.5;">{value_html}</div>'
        "</td></tr>"
    )


def _layout(title: str, intro_html: str, details_html: str, cta_url: str, cta_label: str) -> str:
    year = datetime.now(UTC).year
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f8f9fa;">
  <div style="max-width: 600px; margin: 20px auto; background-color: #ffffff; border-radius: 8px; overflow: hidden;">
    <div style="background: {BRAND_GRADIENT}; padding: 30px 40px; text-align: center;">
      <h1 style="color: #ffffff; margin: 0; font-size: 24px; font-weight: 600;">{title}</h1>
    </div>
    <div style="padding: 40px;">
      <p style="color: #666; font-size: 16px; line-height: 1.6; margin: 0 0 30px 0;">{intro_html}</p>
      <div style="background-color: #f8f9fa; border-radius: 8px; border-left: 4px solid {BRAND_COLOR}; padding: 25px; margin: 30px 0;">
        <table style="width: 100%; border-collapse: collapse;">{details_html}</table>
      </div>
      <div style="text-align: center; margin: 40px 0;">
        <a href="{html.escape(cta_url, quote=True)}" style="display: inline-block; background: {BRAND_GRADIENT}; color: #ffffff; text-decoration: none; font-weight: 600; font-size: 16px; padding: 15px 30px; border-radius: 25px;">{cta_label}</a>
      </div>
      <p style="color: #999; font-size: 14px; line-height: 1.5; margin: 30px 0 0 0; text-align: center;">This is an automated notification from Grawtz.</p>
    </div>
    <div style="background-color: #f8f9fa; padding: 20px 40px; text-align: center; border-top: 1px solid #e9ecef;">
      <p style="color: #999; font-size: 12px; margin: 0;">&copy; {year} Gol Centres. All rights reserved.</p>
    </div>
  </div>
</body>
</html>"""


def comment_mention_subject(data: CommentMention) -> str:
    return f"{data.author_name} mentioned you in {data.project_name}"


def render_comment_mention_email(data: CommentMention) -> str:
    intro = (
        f"<strong>{escape_text(data.author_name)}</strong> mentioned you in a comment on the "
        f'<strong style="color: {BRAND_COLOR};">{escape_text(data.project_name)}</strong> project.'
    )
    details = _detail_row("Comment", escape_text(data.comment_text))
    return _layout("You were mentioned", intro, details, data.project_url, "View Project")


def task_assignment_subject(data: TaskAssignment) -> str:
    return f"New Task Assigned: {data.task_title}"


def render_task_assignment_email(data: TaskAssignment) -> str:
    intro = (
        "You've been assigned a new task in the "
        f'<strong style="color: {BRAND_COLOR};">{escape_text(data.project_name)}</strong> project.'
    )
    details = _detail_row("Task", escape_text(data.task_title))
    if data.task_description:
        details += _detail_row("Description", escape_text(data.task_description))
    if data.due_date:
        details += _detail_row("Due Date", escape_text(_format_due_date(data.due_date)))
    return _layout("New Task Assigned", intro, details, data.project_url, "View Your Tasks")


def build_raw_message(to: str, sender: str, subject: str, html_body: str) -> str:
    """Encode an HTML email the way ``users.messages.send`` expects (base64url)."""
    message = EmailMessage()
    message["To"] = to
    message["From"] = sender
    message["Subject"] = " ".join(subject.split())
    message.set_content(html_body, subtype="html", charset="utf-8")
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")
