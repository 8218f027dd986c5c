"""
Test the Resend dispatcher wrapper and message formatting.
"""
from datetime import datetime, timezone
from email.utils import getaddresses
from unittest.mock import patch

import pytest

from campus_events.core.config import settings
from campus_events.core.exceptions import DispatchError
from campus_events.services.calendar_invites import Attachment
from campus_events.services.notifications import (
    EmailDispatcher,
    EmailMessage,
    format_local,
    get_dispatcher,
    registration_subject,
    reminder_subject,
)


@pytest.fixture
def message():
    return EmailMessage(
        to="alice@example.edu",
        to_name="Alice",
        subject="Registration Confirmed: Workshop",
        html="<p>Hi</p>",
        attachments=[Attachment(filename="Workshop.ics", content="QkVHSU4=")],
    )


class TestEmailDispatcher:

    def test_send_maps_message_to_resend_params(self, message):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "NutriLife Campus")

        with patch("campus_events.services.notifications.resend.Emails.send", return_value={"id": "e1"}) as send:
            assert dispatcher.send(message) == "e1"

        params = send.call_args.args[0]
        assert params["from"] == "NutriLife Campus <events@example.edu>"
        assert params["to"] == ["Alice <alice@example.edu>"]
        assert params["subject"] == "Registration Confirmed: Workshop"
        assert params["attachments"] == [
            {"filename": "Workshop.ics", "content": "QkVHSU4=", "content_type": "text/calendar"}
        ]

    def test_send_failure_becomes_dispatch_error(self, message):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "NutriLife Campus")

        with patch("campus_events.services.notifications.resend.Emails.send", side_effect=RuntimeError("boom")):
            with pytest.raises(DispatchError, match="boom"):
                dispatcher.send(message)

    def test_display_name_with_comma_stays_one_recipient(self, message):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "Campus, Events")
        message.to_name = "Doe, Jane <admin>"

        with patch("campus_events.services.notifications.resend.Emails.send", return_value={"id": "e1"}) as send:
            dispatcher.send(message)

        params = send.call_args.args[0]
        assert getaddresses(params["to"]) == [("Doe, Jane <admin>", "alice@example.edu")]
        assert getaddresses([params["from"]]) == [("Campus, Events", "events@example.edu")]

    def test_recipient_without_name(self, message):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "NutriLife Campus")
        message.to_name = None

        with patch("campus_events.services.notifications.resend.Emails.send", return_value={"id": "e1"}) as send:
            dispatcher.send(message)

        assert send.call_args.args[0]["to"] == ["alice@example.edu"]

    def test_send_batch_sends_each_message_with_its_invite(self, message):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "NutriLife Campus")
        messages = [
            EmailMessage(
                to=f"user{i}@example.edu",
                subject=message.subject,
                html=message.html,
                attachments=message.attachments,
            )
            for i in range(150)
        ]

        with patch("campus_events.services.notifications.resend.Emails.send", return_value={"id": "e"}) as send, \
                patch("campus_events.services.notifications.resend.Batch.send") as batch:
            assert dispatcher.send_batch(messages) == 150

        batch.assert_not_called()
        assert send.call_count == 150
        for call in send.call_args_list:
            params = call.args[0]
            assert len(params["to"]) == 1
            assert params["attachments"][0]["filename"] == "Workshop.ics"

    def test_send_batch_stops_at_first_failure(self, message):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "NutriLife Campus")

        with patch(
            "campus_events.services.notifications.resend.Emails.send",
            side_effect=[{"id": "e1"}, RuntimeError("rate limited"), {"id": "e3"}],
        ) as send:
            with pytest.raises(DispatchError, match="after 1 of 3 emails"):
                dispatcher.send_batch([message, message, message])

        assert send.call_count == 2

    def test_empty_batch_is_not_sent(self):
        dispatcher = EmailDispatcher("re_key", "events@example.edu", "NutriLife Campus")

        with patch("campus_events.services.notifications.resend.Emails.send") as send:
            assert dispatcher.send_batch([]) == 0

        send.assert_not_called()


class TestGetDispatcher:

    def test_none_without_api_key(self):
        assert get_dispatcher() is None

    def test_configured_with_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_key")

        dispatcher = get_dispatcher()

        assert isinstance(dispatcher, EmailDispatcher)
        assert dispatcher.api_key == "re_key"


class TestFormatting:

    def test_format_local_uses_display_timezone(self):
        # Melbourne is UTC+10 in winter
        assert format_local(datetime(2024, 7, 1, 0, 5, tzinfo=timezone.utc)) == "1 Jul 2024, 10:05 am"

    def test_format_local_missing(self):
        assert format_local(None) == ""

    def test_subjects(self):
        assert registration_subject("confirmed", "Yoga") == "Registration Confirmed: Yoga"
        assert registration_subject("waitlist", "Yoga") == "Waitlist Confirmation: Yoga"
        assert reminder_subject("Yoga", None) == "Reminder: Yoga starts"
