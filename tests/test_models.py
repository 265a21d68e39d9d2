"""Tests for the Comment / Comments value model."""

import dataclasses
import json

import pytest


def _thread():
    from scrapers.models import Comment, Comments

    reply = Comment.from_epoch("r1", "bob", "Bob", "agreed", 1700000100,
                               parent_comment_id="c1")
    parent = Comment.from_epoch("c1", "alice", "Alice", "first!", 1700000000,
                                avatar="https://p16.example/a.jpeg", total_reply=1,
                                replies=[reply])
    lonely = Comment.from_epoch("c2", "carol", "Carol", "hello", 1700000200)
    return Comments("my video", "https://www.tiktok.com/@a/video/1", [parent, lonely])


class TestTimestamp:
    def test_epoch_seconds_to_utc_iso(self):
        from utils.common import format_timestamp

        assert format_timestamp(1700000000) == "2023-11-14T22:13:20"

    def test_float_is_truncated_to_seconds(self):
        from utils.common import format_timestamp

        assert format_timestamp(1700000000.987) == "2023-11-14T22:13:20"

    def test_numeric_string(self):
        from utils.common import format_timestamp

        assert format_timestamp("1700000000") == "2023-11-14T22:13:20"

    def test_fractional_numeric_string(self):
        from utils.common import format_timestamp

        assert format_timestamp("1700000000.5") == "2023-11-14T22:13:20"

    def test_non_numeric_string_passes_through(self):
        from utils.common import format_timestamp

        assert format_timestamp("2 days ago") == "2 days ago"

    def test_missing_timestamp(self):
        from utils.common import format_timestamp

        assert format_timestamp(0) == ""
        assert format_timestamp(None) == ""

    def test_comment_normalizes_create_time(self):
        from scrapers.models import Comment

        c = Comment.from_epoch("1", "u", "U", "text", 1700000000)
        assert c.create_time == "2023-11-14T22:13:20"


class TestComment:
    def test_frozen(self):
        comments = _thread()
        with pytest.raises(dataclasses.FrozenInstanceError):
            comments.comments[0].comment = "edited"

    def test_replies_are_a_tuple(self):
        comments = _thread()
        assert isinstance(comments.comments[0].replies, tuple)

    def test_top_level_dict_has_no_parent_fields(self):
        data = _thread().comments[1].to_dict()
        assert "parent_comment_id" not in data
        assert "is_orphan_reply" not in data
        assert data["replies"] == []

    def test_reply_dict_carries_parent(self):
        reply = _thread().comments[0].replies[0]
        data = reply.to_dict()
        assert data["parent_comment_id"] == "c1"
        assert data["is_orphan_reply"] is False
        assert reply.is_reply

    def test_dict_field_names(self):
        data = _thread().comments[0].to_dict()
        assert list(data) == [
            "comment_id", "username", "nickname", "comment",
            "create_time", "avatar", "total_reply", "replies",
        ]


class TestComments:
    def test_dict_fields(self):
        data = _thread().to_dict()
        assert list(data) == ["caption", "video_url", "comments", "has_more"]
        assert data["has_more"] == 0

    def test_json_round_trip_two_levels(self):
        from scrapers.models import Comments

        original = _thread()
        decoded = json.loads(original.to_json())
        assert decoded == original.to_dict()
        assert decoded["comments"][0]["replies"][0]["parent_comment_id"] == "c1"

        rebuilt = Comments.from_dict(decoded)
        assert rebuilt == original
        assert rebuilt.comments[0].replies[0].comment == "agreed"

    def test_auth_required(self):
        from scrapers.models import Comments

        result = Comments.auth_required("Instagram Post", "https://instagram.com/p/x",
                                        "Please log in")
        data = result.to_dict()
        assert data["comments"] == []
        assert data["needs_auth"] is True
        assert data["auth_message"] == "Please log in"

    def test_total_count_includes_replies(self):
        assert _thread().total_count == 3

    def test_accepts_list_of_comments(self):
        comments = _thread()
        assert isinstance(comments.comments, tuple)
        assert len(comments.comments) == 2
