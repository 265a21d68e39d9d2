"""
Comment value model.

``Comment`` and ``Comments`` are frozen: built once while walking pages and
shared read-only afterwards. ``to_dict()`` produces the JSON projection used
by the CLI, the Streamlit app and the exports.
"""

import json
from dataclasses import dataclass, field

from utils.common import format_timestamp


@dataclass(frozen=True)
class Comment:
    comment_id: str
    username: str
    nickname: str
    comment: str
    create_time: str                      # UTC, "YYYY-MM-DDTHH:MM:SS"
    avatar: str = ""
    total_reply: int = 0
    replies: tuple = ()
    parent_comment_id: str | None = None  # only set on replies
    is_orphan_reply: bool = False

    @classmethod
    def from_epoch(
        cls,
        comment_id: str,
        username: str,
        nickname: str,
        comment: str,
        create_time: int | float,
        avatar: str = "",
        total_reply: int = 0,
        replies=(),
        parent_comment_id: str | None = None,
        is_orphan_reply: bool = False,
    ) -> "Comment":
        """Build a comment from a platform epoch-seconds timestamp."""
        return cls(
            comment_id=str(comment_id),
            username=username or "",
            nickname=nickname or "",
            comment=comment or "",
            create_time=format_timestamp(create_time),
            avatar=avatar or "",
            total_reply=int(total_reply or 0),
            replies=tuple(replies),
            parent_comment_id=parent_comment_id,
            is_orphan_reply=is_orphan_reply,
        )

    @property
    def is_reply(self) -> bool:
        return self.parent_comment_id is not None

    def to_dict(self) -> dict:
        data = {
            "comment_id": self.comment_id,
            "username": self.username,
            "nickname": self.nickname,
            "comment": self.comment,
            "create_time": self.create_time,
            "avatar": self.avatar,
            "total_reply": self.total_reply,
            "replies": [r.to_dict() for r in self.replies],
        }
        if self.parent_comment_id is not None:
            data["parent_comment_id"] = self.parent_comment_id
            data["is_orphan_reply"] = self.is_orphan_reply
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> "Comment":
        """Inverse of ``to_dict`` (``create_time`` is taken as already formatted)."""
        return cls(
            comment_id=str(data["comment_id"]),
            username=data.get("username", ""),
            nickname=data.get("nickname", ""),
            comment=data.get("comment", ""),
            create_time=data.get("create_time", ""),
            avatar=data.get("avatar", ""),
            total_reply=int(data.get("total_reply", 0)),
            replies=tuple(cls.from_dict(r) for r in data.get("replies", [])),
            parent_comment_id=data.get("parent_comment_id"),
            is_orphan_reply=bool(data.get("is_orphan_reply", False)),
        )


@dataclass(frozen=True)
class Comments:
    caption: str
    video_url: str
    comments: tuple = ()
    has_more: int = 0
    needs_auth: bool = False
    auth_message: str = ""
    platform: str = field(default="", compare=False)

    def __post_init__(self):
        # Accept any iterable of Comment; store as a tuple
        object.__setattr__(self, "comments", tuple(self.comments))

    @classmethod
    def auth_required(cls, caption: str, video_url: str, message: str,
                      platform: str = "") -> "Comments":
        return cls(
            caption=caption,
            video_url=video_url,
            comments=(),
            has_more=0,
            needs_auth=True,
            auth_message=message,
            platform=platform,
        )

    @property
    def total_count(self) -> int:
        """Top-level comments plus all resolved replies."""
        return sum(1 + len(c.replies) for c in self.comments)

    def to_dict(self) -> dict:
        data = {
            "caption": self.caption,
            "video_url": self.video_url,
            "comments": [c.to_dict() for c in self.comments],
            "has_more": self.has_more,
        }
        if self.needs_auth:
            data["needs_auth"] = True
            data["auth_message"] = self.auth_message
        return data

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> "Comments":
        return cls(
            caption=data.get("caption", ""),
            video_url=data.get("video_url", ""),
            comments=tuple(Comment.from_dict(c) for c in data.get("comments", [])),
            has_more=int(data.get("has_more", 0)),
            needs_auth=bool(data.get("needs_auth", False)),
            auth_message=data.get("auth_message", ""),
        )

    def __str__(self) -> str:
        return self.to_json()
