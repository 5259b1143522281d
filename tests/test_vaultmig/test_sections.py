"""Unit tests for vaultmig.sections."""

import textwrap

import pytest

from vaultmig.errors import EmptyContentRunError, HeadingPatternError, UnbalancedHeadingError
from vaultmig.events import End, Start, Text, heading, heading_events
from vaultmig.parser import parse_markdown
from vaultmig.sections import GroupKind, heading_text_of_level, match_heading, segment_sections

SAMPLE = textwrap.dedent("""\
    Preamble is skipped.

    # Tasks
    ## Fix login
    Steps here.
    ## Write docs
    Draft.
    # Journal
    Some text.
""")


# ---------------------------------------------------------------------------
# Heading matchers
# ---------------------------------------------------------------------------


class TestHeadingMatchers:
    def test_text_of_level(self):
        assert heading_text_of_level(2, heading_events(2, "Fix login")) == "Fix login"

    def test_wrong_level_is_a_pattern_error(self):
        with pytest.raises(HeadingPatternError):
            heading_text_of_level(1, heading_events(2, "x"))

    def test_too_few_events(self):
        with pytest.raises(HeadingPatternError):
            heading_text_of_level(1, [Text("x")])

    def test_unbalanced_levels(self):
        with pytest.raises(UnbalancedHeadingError):
            heading_text_of_level(1, [Start(heading(1)), Text("x"), End(heading(2))])

    def test_match_heading_any_level(self):
        assert match_heading(heading_events(3, "Deep")) == (3, "Deep")

    def test_match_heading_rejects_inline_markup(self):
        assert match_heading(parse_markdown("# Bold *x*\n")) is None


# ---------------------------------------------------------------------------
# segment_sections
# ---------------------------------------------------------------------------


class TestSegmentSections:
    def test_groups_of_sample(self):
        groups = segment_sections(parse_markdown(SAMPLE))
        assert [(g.kind, g.text) for g in groups] == [
            (GroupKind.HEADING1, "Tasks"),
            (GroupKind.HEADING2, "Fix login"),
            (GroupKind.CONTENT, ""),
            (GroupKind.HEADING2, "Write docs"),
            (GroupKind.CONTENT, ""),
            (GroupKind.HEADING1, "Journal"),
            (GroupKind.CONTENT, ""),
        ]

    def test_groups_are_contiguous(self):
        events = parse_markdown(SAMPLE)
        groups = segment_sections(events)
        for before, after in zip(groups, groups[1:]):
            assert before.stop == after.start
        assert groups[-1].stop == len(events)

    def test_content_group_events(self):
        groups = segment_sections(parse_markdown(SAMPLE))
        assert Text("Steps here.") in groups[2].events

    def test_deeper_headings_stay_in_content(self):
        groups = segment_sections(parse_markdown("# A\n### Deep\ntext\n"))
        assert [g.kind for g in groups] == [GroupKind.HEADING1, GroupKind.CONTENT]

    def test_no_sections(self):
        assert segment_sections(parse_markdown("Just text.\n")) == []

    def test_markup_inside_heading_is_an_empty_run(self):
        with pytest.raises(EmptyContentRunError):
            segment_sections(parse_markdown("# Tasks\n\n# Bold *x*\n"))
