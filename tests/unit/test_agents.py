"""Tests for the heuristic fallbacks of the research assistant, transcript Q&A and summarizer agents."""
import asyncio

from agents.research_assistant import (
    analyze_context, draft_guide, ContextAnalysisInput, GuideDraftInput,
)
from agents.session_summarizer import summarize_sessions, SessionSummaryInput
from agents.transcript_qa import answer_question, TranscriptQAInput
from services.llm_tracker import get_all_logs

SECTIONS = [
    {"id": "s1", "question": "What is your role?",
     "answer": {"summary": "Runs procurement for a grocery chain", "bullet_points": [], "raw_text": ""}},
    {"id": "s2", "question": "How do you negotiate discounts?",
     "answer": {"summary": "Annual negotiations with volume discounts", "bullet_points": ["Volume tiers"],
                "raw_text": ""}},
]


def run(coro):
    return asyncio.run(coro)


class TestAnalyzeContext:

    def test_detailed_context_needs_no_clarification(self):
        context = (
            "We want to interview procurement managers at grocery chains about how they negotiate "
            "supplier discounts, which levers they use, and what makes them switch suppliers. "
            "Each customer interview should take 45 minutes."
        )
        result = run(analyze_context(ContextAnalysisInput(context_dump=context)))
        assert not result.needs_clarification
        assert result.clarification_questions == []
        assert result.target_duration == 45
        assert result.archetype == "customer_user"
        assert result.interview_context.startswith("Research goal:")
        assert len(result.title) <= 60

    def test_vague_context_asks_questions(self):
        result = run(analyze_context(ContextAnalysisInput(context_dump="Pricing research.")))
        assert result.needs_clarification
        assert "Who will you interview (role, industry, seniority)?" in result.clarification_questions
        assert result.archetype == "expert_deep_dive"
        assert result.archetype_confidence == 0.3
        assert result.target_duration == 30

    def test_duration_is_clamped(self):
        result = run(analyze_context(ContextAnalysisInput(context_dump="A 300 min expert session.")))
        assert result.target_duration == 120

    def test_mock_call_is_tracked(self):
        run(analyze_context(ContextAnalysisInput(context_dump="Quick survey")))
        last = get_all_logs(1)[-1]
        assert last["agent_name"] == "research_assistant"
        assert last["model"] == "mock"


class TestDraftGuide:

    def test_follow_up_answer_adds_question(self):
        result = run(draft_guide(GuideDraftInput(
            interview_context="Research goal: Understand discounting.",
            follow_up_answers={"Who?": "category managers"},
            archetype="expert_deep_dive",
            target_duration=30,
        )))
        titles = [s["title"] for s in result.guide["sections"]]
        assert titles == ["Background", "Core Topics", "Wrap-up"]
        core_ids = [q["id"] for q in result.guide["sections"][1]["questions"]]
        assert core_ids == ["core-1", "core-2", "core-3"]
        assert "30 minutes" in result.introduction

    def test_without_answers(self):
        result = run(draft_guide(GuideDraftInput("Research goal: x.", {}, "rapid_survey", 15)))
        assert len(result.guide["sections"][1]["questions"]) == 2


class TestTranscriptQA:

    def test_cites_matching_sections(self):
        result = run(answer_question(TranscriptQAInput(question="How do they handle discounts?", sections=SECTIONS)))
        assert result.citations[0] == "s2"
        assert "[1]" in result.content

    def test_no_match_cites_first_section(self):
        result = run(answer_question(TranscriptQAInput(question="Favourite colour?", sections=SECTIONS)))
        assert result.citations == ["s1"]

    def test_empty_transcript(self):
        result = run(answer_question(TranscriptQAInput(question="Anything?", sections=[])))
        assert result.citations == []


class TestSessionSummarizer:

    def test_takeaways_follow_most_covered_questions(self):
        sections = SECTIONS + [
            {"id": "b:s2", "question": "How do you negotiate discounts?",
             "answer": {"summary": "", "bullet_points": ["Quarterly rebates"], "raw_text": ""}},
        ]
        result = run(summarize_sessions(SessionSummaryInput(sections=sections, session_count=2)))
        assert result.headline == "Executive Summary"
        assert result.key_takeaways[0] == "How do you negotiate discounts: Annual negotiations with volume discounts"
        assert len(result.key_takeaways) == 2
        assert result.narrative_paragraph.startswith("Across 2 completed sessions, respondents discussed 2 topics.")
        assert get_all_logs(1)[-1]["agent_name"] == "session_summarizer"

    def test_no_sessions(self):
        result = run(summarize_sessions(SessionSummaryInput(sections=[], session_count=0)))
        assert result.key_takeaways == []
        assert result.narrative_paragraph.startswith("No completed sessions yet")
