"""
Unit tests for heading-based section decomposition.

Covers:
- Label cleaning and anchor ID derivation
- Offset tiling (sections reconstruct the input exactly)
- Edge cases: blank input, no headings, duplicate labels, script content
- Readable-text conversion preserving label/anchor/offsets
"""

import pytest

from edgar_filing_text.parsers.section_parser import (
    clean_label,
    decompose,
    find_headings,
    generate_anchor_id,
    to_readable_text,
)


def assert_tiles(markup, sections):
    """Sections must cover the input with no gaps or overlaps."""
    position = 0
    for section in sections:
        assert section.start_offset == position
        assert section.content == markup[section.start_offset:section.end_offset]
        position = section.end_offset
    assert position == len(markup)
    assert "".join(s.content for s in sections) == markup


# ============================================================================
# Labels and anchors
# ============================================================================

class TestCleanLabel:
    """Test heading text → label."""

    def test_strips_tags_and_collapses_whitespace(self):
        assert clean_label("<span>Item&nbsp;1A.</span>\n   <b>Risk Factors</b> ") == "Item 1A. Risk Factors"

    def test_plain_text_unchanged(self):
        assert clean_label("Business") == "Business"

    def test_blank(self):
        assert clean_label("  <br/> ") == ""
        assert clean_label(None) == ""


class TestGenerateAnchorId:
    """Test label → anchor ID."""

    @pytest.mark.parametrize("label,expected", [
        ("Risk Factors", "risk_factors"),
        ("Item 7. Management's Discussion & Analysis", "item_7_management_s_discussion_analysis"),
        ("  --Hello--  ", "hello"),
        ("PART II", "part_ii"),
        ("Überblick", "berblick"),
        ("!!!", ""),
    ])
    def test_derivation(self, label, expected):
        assert generate_anchor_id(label) == expected

    def test_truncated_to_100_characters(self):
        assert generate_anchor_id("a" * 150) == "a" * 100

    def test_trailing_underscore_removed_after_truncation(self):
        anchor = generate_anchor_id("a" * 99 + " b")
        assert anchor == "a" * 99

    def test_deterministic(self):
        label = "Quantitative and Qualitative Disclosures About Market Risk"
        assert generate_anchor_id(label) == generate_anchor_id(label)


# ============================================================================
# Decompose
# ============================================================================

class TestDecompose:
    """Test decompose() structure and offsets."""

    def test_blank_input_has_no_sections(self):
        assert decompose("") == []
        assert decompose("   \n\t") == []

    def test_no_headings_is_one_complete_document_section(self):
        markup = "<html><body><p>Just a letter.</p></body></html>"

        sections = decompose(markup)

        assert len(sections) == 1
        assert sections[0].label == "Complete Document"
        assert sections[0].anchor_id == "document"
        assert sections[0].start_offset == 0
        assert sections[0].length == len(markup)
        assert sections[0].content == markup

    def test_one_section_per_heading(self, primary_document):
        sections = decompose(primary_document)

        assert [s.label for s in sections] == ["Annual Report", "Risk Factors", "Legal Proceedings"]
        assert [s.anchor_id for s in sections] == ["annual_report", "risk_factors", "legal_proceedings"]
        assert_tiles(primary_document, sections)

    def test_section_starts_at_heading_tag(self, primary_document):
        sections = decompose(primary_document)

        assert sections[1].start_offset == primary_document.index("<h2>Risk Factors")
        assert sections[1].content.startswith("<h2>Risk Factors</h2>")
        assert sections[2].end_offset == len(primary_document)

    def test_content_before_first_heading_belongs_to_first_section(self):
        markup = "<p>Cover page</p><h1>Alpha</h1><p>a</p><h2>Beta</h2><p>b</p>"

        sections = decompose(markup)

        assert len(sections) == 2
        assert sections[0].start_offset == 0
        assert sections[0].content.startswith("<p>Cover page</p>")
        assert sections[1].start_offset == markup.index("<h2>")
        assert_tiles(markup, sections)

    def test_offsets_exact_across_lines(self):
        markup = (
            "<html>\n<body>\n  <h1>First</h1>\n<p>x</p>\n"
            "<h2 class=\"title\">Second\n   Part</h2>\n<p>y &amp; z</p>\n"
            "<H3>Third</H3>\n</body>\n</html>\n"
        )

        sections = decompose(markup)

        assert [s.label for s in sections] == ["First", "Second Part", "Third"]
        assert sections[1].start_offset == markup.index("<h2")
        assert sections[2].start_offset == markup.index("<H3")
        assert_tiles(markup, sections)

    def test_duplicate_labels_get_numeric_suffixes(self):
        markup = "<h2>Notes</h2>a<h2>Notes</h2>b<h2>NOTES</h2>c"

        sections = decompose(markup)

        assert [s.anchor_id for s in sections] == ["notes", "notes_2", "notes_3"]
        assert [s.label for s in sections] == ["Notes", "Notes", "NOTES"]

    def test_suffix_skips_anchor_already_taken(self):
        markup = "<h2>Notes 2</h2>a<h2>Notes</h2>b<h2>Notes</h2>c"

        sections = decompose(markup)

        assert [s.anchor_id for s in sections] == ["notes_2", "notes", "notes_3"]

    def test_label_without_alphanumerics_gets_fallback_anchor(self):
        sections = decompose("<h2>***</h2>a<h2>Summary</h2>b")

        assert sections[0].label == "***"
        assert sections[0].anchor_id == "section"

    def test_empty_headings_are_ignored(self):
        markup = "<h1> </h1><p>body</p><h2><img src='x.png'></h2>"

        sections = decompose(markup)

        assert len(sections) == 1
        assert sections[0].label == "Complete Document"

    def test_heading_markup_inside_script_is_ignored(self):
        markup = "<script>var s = '<h1>fake</h1>';</script><h2>Real</h2><p>text</p>"

        sections = decompose(markup)

        assert [s.label for s in sections] == ["Real"]
        assert_tiles(markup, sections)

    def test_unclosed_heading_is_ignored(self):
        sections = decompose("<h2>Open heading<p>text</p>")
        assert sections[0].anchor_id == "document"

    def test_repeatable(self, primary_document):
        assert decompose(primary_document) == decompose(primary_document)


class TestFindHeadings:
    """Test heading discovery."""

    def test_returns_offsets_and_labels(self):
        markup = "<p>x</p><h4>Exhibits</h4>"
        assert find_headings(markup) == [(8, "Exhibits")]

    def test_nested_heading_inside_open_heading_is_skipped(self):
        markup = "<h1>Outer <h2>Inner</h2> tail</h1><h2>Next</h2>"

        labels = [label for _, label in find_headings(markup)]

        assert labels[-1] == "Next"
        assert "Inner" not in labels


# ============================================================================
# Readable text
# ============================================================================

class TestToReadableText:
    """Test markup → markdown conversion of section lists."""

    def test_converts_content_and_preserves_metadata(self, primary_document):
        sections = decompose(primary_document)

        readable = to_readable_text(sections)

        assert len(readable) == len(sections)
        for original, converted in zip(sections, readable):
            assert converted.label == original.label
            assert converted.anchor_id == original.anchor_id
            assert converted.start_offset == original.start_offset
            assert converted.length == original.length

        assert readable[0].content == "# Annual Report\n\nApple Inc. designs **smartphones**."
        assert readable[1].content == "## Risk Factors\n\nThe Company faces *many* risks."
        assert readable[2].content == (
            "## Legal Proceedings\n\nSee [details](https://example.com/legal)."
        )

    def test_does_not_mutate_input(self, primary_document):
        sections = decompose(primary_document)

        to_readable_text(sections)

        assert sections[0].content.startswith("<html>")

    def test_empty_list(self):
        assert to_readable_text([]) == []
