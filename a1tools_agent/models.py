"""Data models for chat notifications and blog drafts."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class InboundMessage:
    """An unread chat message read from a poll response."""
    id: int
    from_username: str
    display_name: str
    text: str
    has_attachment: bool = False
    group_id: Optional[int] = None     # set for group messages only
    group_name: Optional[str] = None

    @property
    def is_group(self) -> bool:
        return self.group_id is not None


@dataclass
class NotificationRequest:
    """What a sink needs to show one notification."""
    notification_id: int   # platform id; group ids are offset
    title: str
    body: str
    payload: str           # routing payload, "chat:<username>" or "group:<id>"


@dataclass
class RelatedKeyphrase:
    """An additional keyphrase tracked alongside the focus keyphrase."""
    keyphrase: str
    synonyms: str = ""   # comma-separated


@dataclass
class BlogDraft:
    """A blog post as composed in the editor, before publishing."""
    title: str
    ops: List[Dict[str, Any]] = field(default_factory=list)   # delta op stream
    excerpt: str = ""
    slug: str = ""
    seo_title: str = ""
    meta_description: str = ""
    focus_keyphrase: str = ""
    keyphrase_synonyms: str = ""   # comma-separated
    related_keyphrases: List[RelatedKeyphrase] = field(default_factory=list)
    canonical_url: str = ""
    is_cornerstone: bool = False
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_image: str = ""
    categories: List[int] = field(default_factory=list)   # site publishing, by id
    tags: List[int] = field(default_factory=list)
    category_names: str = ""   # group publishing, comma-separated
    tag_names: str = ""
    featured_media: int = 0
    author_id: int = 0
    author_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlogDraft":
        """Build a draft from JSON, ignoring unknown keys."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        ops = values.get("ops", [])
        if isinstance(ops, dict):
            ops = ops.get("ops", [])
        values["ops"] = list(ops)
        values["related_keyphrases"] = [
            rk if isinstance(rk, RelatedKeyphrase) else RelatedKeyphrase(
                keyphrase=rk.get("keyphrase", ""),
                synonyms=rk.get("synonyms", ""),
            )
            for rk in values.get("related_keyphrases", [])
        ]
        return cls(**values)
