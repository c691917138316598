from a1tools_agent.models import BlogDraft, RelatedKeyphrase
from a1tools_agent.seo import analyze, contains_keyphrase, count_keyphrase

GOOD_TITLE = "Chimney Sweep Guide: How Often You Really Need One"
GOOD_META = ("Learn when to book a chimney sweep and why it matters. " * 3)[:140]


# -----------------------------
# Helpers
# -----------------------------
def body_ops(text, alt=None):
    ops = [{"insert": text + "\n"}]
    if alt is not None:
        ops.append({"insert": {"image": "https://img.example/a.jpg"}, "attributes": {"alt": alt}})
        ops.append({"insert": "\n"})
    return ops


def good_text():
    return "chimney sweep " + "filler " * 300 + "chimney sweep chimney sweep chimney sweep"


def messages(checks):
    return [c.message for c in checks]


# -----------------------------
# Focus keyphrase
# -----------------------------
def test_well_optimised_draft_has_no_problems():
    draft = BlogDraft(
        title=GOOD_TITLE,
        ops=body_ops(good_text(), alt="Chimney sweep at work"),
        meta_description=GOOD_META,
        focus_keyphrase="Chimney Sweep",
    )

    report = analyze(draft)

    assert report.problems == []
    assert report.improvements == []
    assert report.status == "good"
    assert report.word_count == 308
    assert "Keyphrase in title" in messages(report.good)
    assert "Keyphrase density is optimal (1.3%)" in messages(report.good)


def test_missing_keyphrase_meta_and_short_content():
    report = analyze(BlogDraft(title="", ops=body_ops("just a few words")))

    assert messages(report.problems) == [
        "No focus keyphrase set",
        "No meta description",
        "No title set",
        "Content is too short (4 words)",
    ]
    assert report.status == "problems"


def test_low_and_high_density():
    low = analyze(BlogDraft(
        title=GOOD_TITLE,
        ops=body_ops("chimney sweep " + "filler " * 300),
        focus_keyphrase="chimney sweep",
    ))
    assert "Keyphrase density is low (1 times)" in messages(low.problems)

    high = analyze(BlogDraft(
        title=GOOD_TITLE,
        ops=body_ops("chimney sweep " * 20),
        focus_keyphrase="chimney sweep",
    ))
    assert "Keyphrase density is too high (50.0%)" in messages(high.problems)


def test_keyphrase_not_in_title_intro_or_meta():
    report = analyze(BlogDraft(
        title="Winter maintenance checklist for your whole home",
        ops=body_ops("filler " * 400 + "chimney sweep"),
        meta_description="Everything you need to prepare for the cold.",
        focus_keyphrase="chimney sweep",
    ))

    problems = messages(report.problems)
    assert "Keyphrase missing in title" in problems
    assert "Keyphrase not in introduction" in problems
    assert "Keyphrase not in meta description" in problems
    assert "Meta description too short (44 chars)" in messages(report.improvements)


def test_synonyms_count_as_keyphrase():
    report = analyze(BlogDraft(
        title="Flue cleaning basics for homeowners this winter",
        ops=body_ops("filler " * 50),
        focus_keyphrase="chimney sweep",
        keyphrase_synonyms="Flue cleaning, chimney cleaning",
    ))
    assert "Keyphrase in title" in messages(report.good)


def test_image_alt_checks():
    no_images = analyze(BlogDraft(title=GOOD_TITLE, ops=body_ops(good_text()), focus_keyphrase="chimney sweep"))
    wrong_alt = analyze(BlogDraft(title=GOOD_TITLE, ops=body_ops(good_text(), alt="a roof"), focus_keyphrase="chimney sweep"))
    right_alt = analyze(BlogDraft(title=GOOD_TITLE, ops=body_ops(good_text(), alt="Chimney sweep"), focus_keyphrase="chimney sweep"))

    def alt_detail(checks):
        return [c.detail for c in checks if c.message == "Keyphrase in image alt attributes"]

    assert alt_detail(no_images.problems)[0].startswith("This page does not have images")
    assert alt_detail(wrong_alt.problems)[0].startswith("Images on this page do not have alt")
    assert alt_detail(right_alt.good)


def test_seo_title_overrides_title_for_length():
    report = analyze(BlogDraft(title=GOOD_TITLE, seo_title="Short", ops=body_ops(good_text())))
    assert "Title too short (5 chars)" in messages(report.improvements)


def test_long_title_and_long_meta_are_improvements():
    report = analyze(BlogDraft(
        title="x" * 61,
        meta_description="y" * 161,
        ops=body_ops("filler " * 150),
    ))
    improvements = messages(report.improvements)
    assert "Title may be too long (61 chars)" in improvements
    assert "Meta description too long (161 chars)" in improvements
    assert "Content could be longer (150 words)" in improvements


# -----------------------------
# Related keyphrases
# -----------------------------
def test_related_keyphrases_are_analysed_separately():
    draft = BlogDraft(
        title=GOOD_TITLE,
        ops=body_ops("flue liner " + "filler " * 100),
        related_keyphrases=[
            RelatedKeyphrase("Flue liner"),
            RelatedKeyphrase("   "),
            RelatedKeyphrase("one two three four five"),
        ],
    )

    report = analyze(draft)

    assert [r.keyphrase for r in report.related] == ["Flue liner", "one two three four five"]
    liner, long_phrase = report.related
    assert "Keyphrase in introduction" in messages(liner.good)
    assert liner.problems[0].detail.startswith("The keyphrase was found 1 time.")
    assert "Keyphrase length" in messages(liner.good)
    assert any(
        c.message == "Keyphrase length" and "5 words" in c.detail for c in long_phrase.problems
    )


def test_related_keyphrase_good_density():
    draft = BlogDraft(
        title=GOOD_TITLE,
        ops=body_ops("flue liner " * 3 + "filler " * 200),
        related_keyphrases=[RelatedKeyphrase("flue liner")],
    )
    related = analyze(draft).related[0]
    assert any(c.detail == "The keyphrase appears at a good frequency (3 times)." for c in related.good)


# -----------------------------
# Helpers
# -----------------------------
def test_keyphrase_helpers():
    assert contains_keyphrase("clean flue today", "chimney", "flue, soot")
    assert not contains_keyphrase("clean today", "chimney", "flue, soot")
    assert count_keyphrase("soot soot chimney", "chimney", " soot ,") == 3
