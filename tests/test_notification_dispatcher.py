from teamboard.notifications.dispatcher import NotificationDispatcher, NotificationOutcome
from teamboard.notifications.templates import CommentMention, TaskAssignment
from teamboard.observability.metrics import MetricsRegistry

MENTION = CommentMention(
    project_name="Board",
    comment_text="ping @[Jane Doe]",
    author_name="Sam",
    project_url="https://board.example.test/projects/p1",
)


class FakeDirectory:
    def __init__(self, emails: dict) -> None:
        self.emails = emails
        self.lookups: list[str] = []

    def get_user_email(self, user_id: str) -> str | None:
        self.lookups.append(user_id)
        value = self.emails.get(user_id)
        if isinstance(value, Exception):
            raise value
        return value


class RecordingSender:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.sent: list[str] = []

    def send(self, to: str, subject: str, html_body: str) -> str:  # noqa: ARG002
        if to in self.fail_for:
            raise RuntimeError("boom")
        self.sent.append(to)
        return "id"


def test_each_recipient_gets_one_attempt_in_order() -> None:
    directory = FakeDirectory({"u1": "a@x.test", "u3": "c@x.test"})
    sender = RecordingSender()
    outcomes = NotificationDispatcher(directory, sender).dispatch_comment_mention(["u3", "u1"], MENTION)
    assert outcomes == [
        NotificationOutcome(recipient_id="u3", success=True),
        NotificationOutcome(recipient_id="u1", success=True),
    ]
    assert sender.sent == ["c@x.test", "a@x.test"]


def test_send_failure_does_not_abort_others() -> None:
    directory = FakeDirectory({"u1": "a@x.test", "u3": "c@x.test"})
    sender = RecordingSender(fail_for={"a@x.test"})
    outcomes = NotificationDispatcher(directory, sender).dispatch_comment_mention(["u1", "u3"], MENTION)
    assert [o.to_dict() for o in outcomes] == [
        {"userId": "u1", "success": False},
        {"userId": "u3", "success": True},
    ]


def test_missing_email_skips_send() -> None:
    sender = RecordingSender()
    outcomes = NotificationDispatcher(FakeDirectory({}), sender).dispatch_comment_mention(["u1"], MENTION)
    assert outcomes == [NotificationOutcome(recipient_id="u1", success=False)]
    assert sender.sent == []


def test_directory_error_is_recorded_as_failure() -> None:
    directory = FakeDirectory({"u1": RuntimeError("auth admin down"), "u3": "c@x.test"})
    outcomes = NotificationDispatcher(directory, RecordingSender()).dispatch_comment_mention(
        ["u1", "u3"], MENTION
    )
    assert [o.success for o in outcomes] == [False, True]


def test_no_recipients_no_lookups() -> None:
    directory = FakeDirectory({})
    assert NotificationDispatcher(directory, RecordingSender()).dispatch_comment_mention([], MENTION) == []
    assert directory.lookups == []


def test_metrics_track_sent_and_failed() -> None:
    metrics = MetricsRegistry()
    directory = FakeDirectory({"u1": "a@x.test"})
    NotificationDispatcher(directory, RecordingSender(), metrics).dispatch_comment_mention(["u1", "u2"], MENTION)
    assert metrics.counter("mention_notifications_sent_total") == 1
    assert metrics.counter("mention_notifications_failed_total") == 1


def test_task_self_assignment_is_not_sent() -> None:
    sender = RecordingSender()
    dispatcher = NotificationDispatcher(FakeDirectory({"u1": "a@x.test"}), sender)
    task = TaskAssignment(task_title="T", project_name="P", project_url="https://x.test")
    assert dispatcher.dispatch_task_assignment("u1", "u1", task).success is False
    assert sender.sent == []
    assert dispatcher.dispatch_task_assignment("u1", "u2", task).success is True
    assert sender.sent == ["a@x.test"]
