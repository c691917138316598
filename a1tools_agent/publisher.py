"""Publish blog drafts to WordPress through the A1 Tools publishing endpoint."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .api_client import A1ApiClient
from .delta import convert, to_plain_text
from .models import BlogDraft

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """The draft was rejected locally or by the server."""


@dataclass
class PublishResult:
    message: str
    results: List[Dict[str, Any]] = field(default_factory=list)   # one per site
    post: Optional[Dict[str, Any]] = None


def slugify(title: str) -> str:
    """URL-friendly slug for a post title."""
    slug = title.strip().lower()
    slug = re.sub(r"#geolocation", "", slug, flags=re.IGNORECASE)
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def split_names(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def build_seo_fields(draft: BlogDraft) -> Dict[str, Any]:
    """SEO, Open Graph and Twitter fields sent with every publish call."""
    return {
        "slug": draft.slug.strip(),
        "seo_title": draft.seo_title.strip(),
        "seo_description": draft.meta_description.strip(),
        "focus_keyphrase": draft.focus_keyphrase.strip(),
        "keyphrase_synonyms": draft.keyphrase_synonyms.strip(),
        "related_keyphrases": [
            {"keyphrase": rk.keyphrase.strip(), "synonyms": rk.synonyms.strip()}
            for rk in draft.related_keyphrases
            if rk.keyphrase.strip()
        ],
        "canonical_url": draft.canonical_url.strip(),
        "is_cornerstone": draft.is_cornerstone,
        "og_title": draft.og_title.strip(),
        "og_description": draft.og_description.strip(),
        "og_image": draft.og_image.strip(),
        "twitter_title": draft.twitter_title.strip(),
        "twitter_description": draft.twitter_description.strip(),
        "twitter_image": draft.twitter_image.strip(),
    }


class WordPressPublisher:
    """Create and update posts on one WordPress site or a group of sites."""

    def __init__(self, api: A1ApiClient):
        self.api = api

    def _base_payload(self, draft: BlogDraft) -> Dict[str, Any]:
        if not to_plain_text(draft.ops).strip():
            raise PublishError("Content is required")
        payload = {
            "title": draft.title.strip(),
            "content": convert(draft.ops),
            "excerpt": draft.excerpt.strip(),
        }
        payload.update(build_seo_fields(draft))
        return payload

    def _post(self, action: str, payload: Dict[str, Any]) -> PublishResult:
        logger.info(f"Sending WordPress '{action}' request: {payload.get('title')!r}")
        data = self.api.post_json(
            self.api.config.wordpress_publish_url,
            payload,
            params={"action": action},
        )
        if data.get("success") is not True:
            error = data.get("error") or f"WordPress {action} failed"
            logger.error(f"WordPress {action} rejected: {error}")
            raise PublishError(error)

        results = data.get("results")
        if not isinstance(results, list):
            results = []
        post = data.get("post") if isinstance(data.get("post"), dict) else None
        logger.info(f"WordPress {action} succeeded: {data.get('message', '')}")
        return PublishResult(message=data.get("message") or "", results=results, post=post)

    def publish_to_site(self, draft: BlogDraft, site_id: int, as_draft: bool = False) -> PublishResult:
        payload = self._base_payload(draft)
        payload.update({
            "site_id": site_id,
            "categories": list(draft.categories),
            "tags": list(draft.tags),
            "featured_media": draft.featured_media or 0,
            "author_id": draft.author_id or 0,
            "author_name": draft.author_name or self.api.username or "",
        })
        return self._post("draft" if as_draft else "publish", payload)

    def publish_to_group(self, draft: BlogDraft, group_id: int, as_draft: bool = False) -> PublishResult:
        payload = self._base_payload(draft)
        payload.update({
            "group_id": group_id,
            "category_names": split_names(draft.category_names),
            "tag_names": split_names(draft.tag_names),
            "author_name": draft.author_name or self.api.username or "",
        })
        return self._post("draft_group" if as_draft else "publish_group", payload)

    def update_post(self, draft: BlogDraft, group_publish_id: int) -> PublishResult:
        payload = self._base_payload(draft)
        payload.update({
            "group_publish_id": group_publish_id,
            "categories": list(draft.categories),
            "tags": list(draft.tags),
        })
        return self._post("update_post", payload)

    def update_group(self, draft: BlogDraft, group_publish_id: int) -> PublishResult:
        payload = self._base_payload(draft)
        payload.update({
            "group_publish_id": group_publish_id,
            "category_names": split_names(draft.category_names),
            "tag_names": split_names(draft.tag_names),
        })
        return self._post("update_group", payload)
