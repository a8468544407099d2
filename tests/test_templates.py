"""Tests for template placeholder rendering."""

from app.application.use_cases.notifications.templates import (
    build_template_request,
    extract_variables,
    render_template,
)
from app.domain.entities import (
    NotificationChannel,
    NotificationTemplate,
    NotificationType,
)


def test_render_replaces_placeholders():
    assert render_template("Hi {{name}}", {"name": "Ana"}) == "Hi Ana"


def test_render_tolerates_inner_whitespace():
    assert render_template("Hi {{ name }}!", {"name": "Ana"}) == "Hi Ana!"


def test_render_walks_dotted_paths():
    data = {"student": {"name": "Luis", "grade": 18}}

    assert render_template("{{student.name}} got {{student.grade}}", data) == "Luis got 18"


def test_missing_values_keep_the_placeholder():
    assert render_template("Due {{date}} for {{course.name}}", {"course": {}}) == (
        "Due {{date}} for {{course.name}}"
    )


def test_extract_variables_in_order_without_duplicates():
    assert extract_variables("{{a}} and {{b}}", "{{b}} then {{c.d}}") == ["a", "b", "c.d"]


def test_build_template_request_copies_template_settings():
    template = NotificationTemplate(
        id="tpl-1",
        name="grade",
        type=NotificationType.GRADE_POSTED,
        title_template="New grade in {{course}}",
        message_template="You got {{grade}}",
        channels=[NotificationChannel.IN_APP, NotificationChannel.EMAIL],
    )

    request = build_template_request(template, user_id="u1", data={"course": "Math", "grade": "A"})

    assert request["title"] == "New grade in Math"
    assert request["message"] == "You got A"
    assert request["channels"] == [NotificationChannel.IN_APP, NotificationChannel.EMAIL]
    assert request["templateId"] == "tpl-1"
    assert request["templateData"] == {"course": "Math", "grade": "A"}
