import base64
import email
from email import policy

from teamboard.notifications.templates import (
    CommentMention,
    TaskAssignment,
    build_raw_message,
    comment_mention_subject,
    escape_text,
    render_comment_mention_email,
    render_task_assignment_email,
)


def _mention(text: str) -> CommentMention:
    return CommentMention(
        project_name="Website Relaunch",
        comment_text=text,
        author_name="Sam Author",
        project_url="https://board.example.test/projects/p1",
    )


def test_escape_text_covers_markup_characters() -> None:
    assert escape_text("""<a href="x">'&'</a>""") == (
        "&lt;a href=&quot;x&quot;&gt;&#x27;&amp;&#x27;&lt;/a&gt;"
    )


def test_escape_text_converts_newlines() -> None:
    assert escape_text("one\ntwo\r\nthree") == "one<br>two<br>three"


def test_comment_body_never_contains_user_markup() -> None:
    body = render_comment_mention_email(_mention('<script>alert("x")</script>'))
    assert "<script>" not in body
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in body


def test_comment_body_contains_context() -> None:
    body = render_comment_mention_email(_mention("Looks good\nship it"))
    assert "Website Relaunch" in body
    assert "Sam Author" in body
    assert "Looks good<br>ship it" in body
    assert 'href="https://board.example.test/projects/p1"' in body


def test_author_and_project_names_are_escaped() -> None:
    data = CommentMention(
        project_name="<i>P</i>",
        comment_text="hi",
        author_name="<b>Eve</b>",
        project_url="https://board.example.test/projects/p1",
    )
    body = render_comment_mention_email(data)
    assert "<i>P</i>" not in body
    assert "<b>Eve</b>" not in body


def test_comment_subject() -> None:
    assert comment_mention_subject(_mention("x")) == "Sam Author mentioned you in Website Relaunch"


def test_task_body_optional_rows() -> None:
    data = TaskAssignment(
        task_title="Write copy",
        project_name="Website Relaunch",
        project_url="https://board.example.test/projects/p1",
        task_description="Homepage & hero",
        due_date="2026-03-05",
    )
    body = render_task_assignment_email(data)
    assert "Homepage &amp; hero" in body
    assert "05 Mar 2026" in body

    bare = render_task_assignment_email(
        TaskAssignment(task_title="T", project_name="P", project_url="https://x.test")
    )
    assert "Description:" not in bare
    assert "Due Date:" not in bare


def test_raw_message_is_base64url_html_email() -> None:
    raw = build_raw_message(
        to="jane@example.com",
        sender="notifications@example.com",
        subject="Hello\nthere",
        html_body="<p>hi</p>",
    )
    assert "+" not in raw and "/" not in raw
    parsed = email.message_from_bytes(base64.urlsafe_b64decode(raw), policy=policy.default)
    assert parsed["To"] == "jane@example.com"
    assert parsed["From"] == "notifications@example.com"
    assert parsed["Subject"] == "Hello there"
    assert parsed.get_content_type() == "text/html"
    assert "<p>hi</p>" in parsed.get_content()
