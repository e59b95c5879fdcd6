"""Tests for citation rendering and transcript search."""
from services.citations import get_section, render_citations, search_transcript

TRANSCRIPT = {
    "sections": [
        {
            "id": "s1",
            "question": "What is your role?",
            "answer": {"summary": "Head of pricing", "bullet_points": ["Owns the pricing roadmap"],
                       "raw_text": "I run pricing."},
        },
        {
            "id": "s2",
            "question": "Biggest challenge?",
            "answer": {"summary": "Discount creep", "bullet_points": ["Sales discounts erode pricing"],
                       "raw_text": "Honestly the discounts."},
        },
    ]
}


class TestRenderCitations:

    def test_markers_become_citations(self):
        segments = render_citations("Role [1] and pain [2].", ["s1", "s2"], TRANSCRIPT)
        assert segments == [
            {"type": "text", "text": "Role "},
            {"type": "citation", "number": 1, "section_id": "s1", "question": "What is your role?"},
            {"type": "text", "text": " and pain "},
            {"type": "citation", "number": 2, "section_id": "s2", "question": "Biggest challenge?"},
            {"type": "text", "text": "."},
        ]

    def test_out_of_range_marker_stays_text(self):
        segments = render_citations("See [3] here", ["s1"], TRANSCRIPT)
        assert segments == [{"type": "text", "text": "See [3] here"}]

    def test_unknown_section_stays_text(self):
        segments = render_citations("See [1]", ["missing"], TRANSCRIPT)
        assert segments == [{"type": "text", "text": "See [1]"}]

    def test_zero_marker_stays_text(self):
        segments = render_citations("[0] first", ["s1"], TRANSCRIPT)
        assert segments == [{"type": "text", "text": "[0] first"}]

    def test_empty_content(self):
        assert render_citations("", ["s1"], TRANSCRIPT) == []


class TestSearchTranscript:

    def test_counts_matches_across_fields(self):
        result = search_transcript(TRANSCRIPT, "PRICING")
        # summary + bullet + raw text in s1, bullet in s2
        assert result["match_count"] == 4
        assert result["section_ids"] == ["s1", "s2"]

    def test_blank_query(self):
        assert search_transcript(TRANSCRIPT, "   ") == {"query": "", "match_count": 0, "section_ids": []}

    def test_no_matches(self):
        result = search_transcript(TRANSCRIPT, "blockchain")
        assert result["match_count"] == 0
        assert result["section_ids"] == []

    def test_get_section(self):
        assert get_section(TRANSCRIPT, "s2")["question"] == "Biggest challenge?"
        assert get_section(TRANSCRIPT, "nope") is None
