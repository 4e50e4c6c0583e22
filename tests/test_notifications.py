"""Tests for the Postmark email sender and the invitation service."""

from __future__ import annotations

from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse
from uuid import uuid4

import httpx
import pytest

from app.core.errors import NotFoundError, ValidationError
from app.core.security import hash_token
from app.services.notifications import PostmarkEmailSender, TemplateEmail
from tests.fakes import World, make_settings


class TestPostmarkEmailSender:

    @patch("app.services.notifications.httpx.post")
    def test_skipped_without_api_key(self, mock_post: MagicMock) -> None:
        sender = PostmarkEmailSender(make_settings(EMAIL_API_KEY=""))

        sender.send(TemplateEmail(to="ada@example.com", template="candidate-invitation"))
        sender.send_batch([TemplateEmail(to="ada@example.com", template="candidate-invitation")])

        mock_post.assert_not_called()

    @patch("app.services.notifications.httpx.post")
    def test_send_posts_template(self, mock_post: MagicMock) -> None:
        sender = PostmarkEmailSender(make_settings(EMAIL_API_KEY="pm-token"))

        sender.send(TemplateEmail(to="ada@example.com", template="first-exam-joining", model={"firstname": "Ada"}))

        url = mock_post.call_args.args[0]
        kwargs = mock_post.call_args.kwargs
        assert url == "https://api.postmarkapp.com/email/withTemplate"
        assert kwargs["headers"]["X-Postmark-Server-Token"] == "pm-token"
        assert kwargs["json"]["To"] == "ada@example.com"
        assert kwargs["json"]["TemplateAlias"] == "first-exam-joining"
        assert kwargs["json"]["TemplateModel"] == {"product_name": "Preppit", "firstname": "Ada"}

    @patch("app.services.notifications.httpx.post")
    def test_send_batch_single_request(self, mock_post: MagicMock) -> None:
        sender = PostmarkEmailSender(make_settings(EMAIL_API_KEY="pm-token"))
        messages = [TemplateEmail(to=f"{n}@example.com", template="t") for n in ("a", "b")]

        sender.send_batch(messages)

        mock_post.assert_called_once()
        assert mock_post.call_args.args[0].endswith("/email/batchWithTemplates")
        assert [m["To"] for m in mock_post.call_args.kwargs["json"]["Messages"]] == [
            "a@example.com",
            "b@example.com",
        ]

    @patch("app.services.notifications.httpx.post")
    def test_provider_error_raises(self, mock_post: MagicMock) -> None:
        request = httpx.Request("POST", "https://api.postmarkapp.com/email/withTemplate")
        mock_post.return_value.raise_for_status.side_effect = httpx.HTTPStatusError(
            "422", request=request, response=httpx.Response(422, request=request)
        )
        sender = PostmarkEmailSender(make_settings(EMAIL_API_KEY="pm-token"))

        with pytest.raises(httpx.HTTPStatusError):
            sender.send(TemplateEmail(to="ada@example.com", template="t"))


class TestInvitationService:

    def test_invite_stores_hash_and_links_token(self, world: World) -> None:
        partner = world.partners.add()
        user = world.users.add("ada@example.com")

        world.c.invitations.invite(user, partner)

        [message] = world.email.sent
        query = parse_qs(urlparse(message.model["invite_url"]).query)
        token = query["token"][0]
        assert query["candidate_id"] == [str(user.id)]
        stored = world.users.rows[user.id]
        assert stored.invite_token_hash == hash_token(token)
        assert stored.invite_token_hash != token
        assert message.model["partner_name"] == partner.organization_name

    def test_tokens_differ_per_invite(self, world: World) -> None:
        partner = world.partners.add()
        user = world.users.add("ada@example.com")

        world.c.invitations.invite(user, partner)
        world.c.invitations.invite(user, partner)

        first, second = (m.model["invite_url"] for m in world.email.sent)
        assert first != second

    def test_invite_many_single_batch(self, world: World) -> None:
        partner = world.partners.add()
        users = [world.users.add(f"u{i}@example.com") for i in range(3)]

        warnings = world.c.invitations.invite_many(users, partner)

        assert warnings == []
        assert {m.to for m in world.email.sent} == {u.email for u in users}
        assert all(world.users.rows[u.id].invite_token_hash for u in users)

    def test_verify_unknown_candidate(self, world: World) -> None:
        with pytest.raises(NotFoundError):
            world.c.invitations.verify(uuid4(), "token")

    def test_verify_rejects_wrong_token(self, world: World) -> None:
        partner = world.partners.add()
        user = world.users.add("ada@example.com")
        world.c.invitations.invite(user, partner)

        with pytest.raises(ValidationError) as exc_info:
            world.c.invitations.verify(user.id, "wrong")
        assert "token" in exc_info.value.details
