"""Yoast-style SEO checks for a blog draft, run client-side before publishing."""

import logging
import re
from dataclasses import dataclass, field
from typing import List

from .delta import convert, to_plain_text, word_count
from .models import BlogDraft, RelatedKeyphrase

logger = logging.getLogger(__name__)

INTRO_LENGTH = 300
MIN_DENSITY = 0.5
MAX_DENSITY = 3.0
META_DESCRIPTION_RANGE = (120, 160)
TITLE_RANGE = (30, 60)
SHORT_CONTENT_WORDS = 100
GOOD_CONTENT_WORDS = 300
MIN_RELATED_OCCURRENCES = 3
MAX_KEYPHRASE_WORDS = 4

_IMG_ALT_RE = re.compile(r"""<img[^>]*alt=["']([^"']*)["'][^>]*>""", re.IGNORECASE)


@dataclass
class SeoCheck:
    message: str
    detail: str


@dataclass
class RelatedKeyphraseReport:
    keyphrase: str
    synonyms: str
    problems: List[SeoCheck] = field(default_factory=list)
    good: List[SeoCheck] = field(default_factory=list)


@dataclass
class SeoReport:
    problems: List[SeoCheck] = field(default_factory=list)
    improvements: List[SeoCheck] = field(default_factory=list)
    good: List[SeoCheck] = field(default_factory=list)
    related: List[RelatedKeyphraseReport] = field(default_factory=list)
    word_count: int = 0

    @property
    def status(self) -> str:
        """Overall traffic light: "problems", "improvements" or "good"."""
        if self.problems:
            return "problems"
        if self.improvements:
            return "improvements"
        return "good"


def _synonym_list(synonyms: str) -> List[str]:
    return [s.strip().lower() for s in synonyms.split(",") if s.strip()]


def contains_keyphrase(text: str, keyphrase: str, synonyms: str = "") -> bool:
    """True if the keyphrase or any synonym occurs in ``text`` (already lowered)."""
    if keyphrase in text:
        return True
    return any(syn in text for syn in _synonym_list(synonyms))


def count_keyphrase(text: str, keyphrase: str, synonyms: str = "") -> int:
    """Non-overlapping occurrences of the keyphrase plus each synonym."""
    count = text.count(keyphrase) if keyphrase else 0
    for syn in _synonym_list(synonyms):
        count += text.count(syn)
    return count


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _alt_texts(html_content: str) -> List[str]:
    return [m.group(1).lower() for m in _IMG_ALT_RE.finditer(html_content)]


class _Analysis:
    """Inputs shared by all checks, normalised once."""

    def __init__(self, draft: BlogDraft):
        self.title = draft.title.strip()
        self.seo_title = draft.seo_title.strip()
        self.meta_description = draft.meta_description.strip()
        self.content = to_plain_text(draft.ops).lower()
        self.html = convert(draft.ops).lower()
        self.intro = self.content[:INTRO_LENGTH]
        self.words = word_count(self.content)
        self.alt_texts = _alt_texts(self.html)

    @property
    def effective_title(self) -> str:
        return self.seo_title or self.title


def _check_focus_keyphrase(a: _Analysis, keyphrase: str, synonyms: str, report: SeoReport) -> None:
    if contains_keyphrase(a.effective_title.lower(), keyphrase, synonyms):
        report.good.append(SeoCheck(
            "Keyphrase in title",
            "The focus keyphrase appears in the title.",
        ))
    else:
        report.problems.append(SeoCheck(
            "Keyphrase missing in title",
            "The focus keyphrase does not appear in the title.",
        ))

    if contains_keyphrase(a.intro, keyphrase, synonyms):
        report.good.append(SeoCheck(
            "Keyphrase in introduction",
            "The focus keyphrase appears in the first paragraph.",
        ))
    else:
        report.problems.append(SeoCheck(
            "Keyphrase not in introduction",
            "Your keyphrase or its synonyms do not appear in the first paragraph. "
            "Make sure the topic is clear immediately.",
        ))

    if a.words > 0:
        count = count_keyphrase(a.content, keyphrase, synonyms)
        density = count / a.words * 100
        if density < MIN_DENSITY:
            report.problems.append(SeoCheck(
                f"Keyphrase density is low ({count} times)",
                f"The keyphrase was found {count} time{_plural(count)}. That's less than "
                "the recommended minimum of 3 times for a text of this length. "
                "Focus on your keyphrase!",
            ))
        elif density > MAX_DENSITY:
            report.problems.append(SeoCheck(
                f"Keyphrase density is too high ({density:.1f}%)",
                "Reduce the use of the focus keyphrase to avoid over-optimization.",
            ))
        else:
            report.good.append(SeoCheck(
                f"Keyphrase density is optimal ({density:.1f}%)",
                "The focus keyphrase appears at a good frequency.",
            ))

    if a.meta_description:
        if contains_keyphrase(a.meta_description.lower(), keyphrase, synonyms):
            report.good.append(SeoCheck(
                "Keyphrase in meta description",
                "Keyphrase or synonym appear in the meta description.",
            ))
        else:
            report.problems.append(SeoCheck(
                "Keyphrase not in meta description",
                "The meta description has been specified, but it does not contain "
                "the keyphrase. Fix that!",
            ))

    if not a.alt_texts:
        report.problems.append(SeoCheck(
            "Keyphrase in image alt attributes",
            "This page does not have images, a keyphrase, or both. Add some images "
            "with alt attributes that include the keyphrase or synonyms!",
        ))
    elif not any(contains_keyphrase(alt, keyphrase, synonyms) for alt in a.alt_texts):
        report.problems.append(SeoCheck(
            "Keyphrase in image alt attributes",
            "Images on this page do not have alt attributes that contain the keyphrase. "
            "Add the keyphrase to at least one image alt attribute.",
        ))
    else:
        report.good.append(SeoCheck(
            "Keyphrase in image alt attributes",
            "The keyphrase appears in at least one image alt attribute.",
        ))


def _check_meta_description(a: _Analysis, report: SeoReport) -> None:
    length = len(a.meta_description)
    low, high = META_DESCRIPTION_RANGE
    if not length:
        report.problems.append(SeoCheck(
            "No meta description",
            "Write a meta description to tell search engines what your page is about.",
        ))
    elif length < low:
        report.improvements.append(SeoCheck(
            f"Meta description too short ({length} chars)",
            "Your meta description should be 120-160 characters for best results.",
        ))
    elif length > high:
        report.improvements.append(SeoCheck(
            f"Meta description too long ({length} chars)",
            "Your meta description may be truncated. Keep it under 160 characters.",
        ))
    else:
        report.good.append(SeoCheck(
            f"Meta description length is good ({length} chars)",
            "Your meta description is an optimal length.",
        ))


def _check_title(a: _Analysis, report: SeoReport) -> None:
    length = len(a.effective_title)
    low, high = TITLE_RANGE
    if not length:
        report.problems.append(SeoCheck("No title set", "Add a title for your post."))
    elif length < low:
        report.improvements.append(SeoCheck(
            f"Title too short ({length} chars)",
            "Your title should be 50-60 characters for best SEO results.",
        ))
    elif length > high:
        report.improvements.append(SeoCheck(
            f"Title may be too long ({length} chars)",
            "Your title may be truncated in search results. Aim for 50-60 characters.",
        ))
    else:
        report.good.append(SeoCheck(
            f"Title length is good ({length} chars)",
            "Your title is an optimal length for search engines.",
        ))


def _check_content_length(a: _Analysis, report: SeoReport) -> None:
    if a.words < SHORT_CONTENT_WORDS:
        report.problems.append(SeoCheck(
            f"Content is too short ({a.words} words)",
            "Write at least 300 words for better SEO performance.",
        ))
    elif a.words < GOOD_CONTENT_WORDS:
        report.improvements.append(SeoCheck(
            f"Content could be longer ({a.words} words)",
            "Consider expanding your content to 300+ words for better rankings.",
        ))
    else:
        report.good.append(SeoCheck(
            f"Content length is good ({a.words} words)",
            "Your content has enough words for SEO.",
        ))


def analyze_related_keyphrase(a: _Analysis, related: RelatedKeyphrase) -> RelatedKeyphraseReport:
    keyphrase = related.keyphrase.strip().lower()
    synonyms = related.synonyms.strip().lower()
    report = RelatedKeyphraseReport(
        keyphrase=related.keyphrase.strip(), synonyms=related.synonyms.strip()
    )

    if contains_keyphrase(a.intro, keyphrase, synonyms):
        report.good.append(SeoCheck(
            "Keyphrase in introduction",
            "The keyphrase or its synonyms appear in the first paragraph.",
        ))
    else:
        report.problems.append(SeoCheck(
            "Keyphrase in introduction",
            "Your keyphrase or its synonyms do not appear in the first paragraph. "
            "Make sure the topic is clear immediately.",
        ))

    if a.words > 0:
        count = count_keyphrase(a.content, keyphrase, synonyms)
        density = count / a.words * 100
        if count < MIN_RELATED_OCCURRENCES:
            report.problems.append(SeoCheck(
                "Keyphrase density",
                f"The keyphrase was found {count} time{_plural(count)}. That's less than "
                "the recommended minimum of 3 times for a text of this length. "
                "Focus on your keyphrase!",
            ))
        elif density > MAX_DENSITY:
            report.problems.append(SeoCheck(
                "Keyphrase density",
                f"The keyphrase density is too high ({density:.1f}%). "
                "Reduce usage to avoid over-optimization.",
            ))
        else:
            report.good.append(SeoCheck(
                "Keyphrase density",
                f"The keyphrase appears at a good frequency ({count} times).",
            ))

    if a.meta_description:
        if contains_keyphrase(a.meta_description.lower(), keyphrase, synonyms):
            report.good.append(SeoCheck(
                "Keyphrase in meta description",
                "Keyphrase or synonym appear in the meta description.",
            ))
        else:
            report.problems.append(SeoCheck(
                "Keyphrase in meta description",
                "The meta description has been specified, but it does not contain "
                "the keyphrase. Fix that!",
            ))

    if not a.alt_texts:
        report.problems.append(SeoCheck(
            "Keyphrase in image alt attributes",
            "This page does not have images, a keyphrase, or both. Add some images "
            "with alt attributes that include the keyphrase or synonyms!",
        ))
    elif not any(contains_keyphrase(alt, keyphrase, synonyms) for alt in a.alt_texts):
        report.problems.append(SeoCheck(
            "Keyphrase in image alt attributes",
            "Images on this page do not have alt attributes that contain the keyphrase.",
        ))
    else:
        report.good.append(SeoCheck(
            "Keyphrase in image alt attributes",
            "The keyphrase appears in at least one image alt attribute.",
        ))

    kp_words = word_count(keyphrase)
    if kp_words <= MAX_KEYPHRASE_WORDS:
        report.good.append(SeoCheck("Keyphrase length", "Good job!"))
    else:
        report.problems.append(SeoCheck(
            "Keyphrase length",
            f"The keyphrase is {kp_words} words long. Consider using a shorter keyphrase.",
        ))

    return report


def analyze(draft: BlogDraft) -> SeoReport:
    """
    Run every check against a draft.

    Args:
        draft: The blog draft; content is read from ``draft.ops``.

    Returns:
        An SeoReport grouping checks into problems, improvements and good.
    """
    a = _Analysis(draft)
    report = SeoReport(word_count=a.words)

    keyphrase = draft.focus_keyphrase.strip().lower()
    if not keyphrase:
        report.problems.append(SeoCheck(
            "No focus keyphrase set",
            "Set a focus keyphrase to optimize your content for search engines.",
        ))
    else:
        _check_focus_keyphrase(a, keyphrase, draft.keyphrase_synonyms.strip().lower(), report)

    _check_meta_description(a, report)
    _check_title(a, report)
    _check_content_length(a, report)

    for related in draft.related_keyphrases:
        if not related.keyphrase.strip():
            continue
        report.related.append(analyze_related_keyphrase(a, related))

    logger.debug(
        f"SEO analysis: {len(report.problems)} problems, "
        f"{len(report.improvements)} improvements, {len(report.good)} good"
    )
    return report
