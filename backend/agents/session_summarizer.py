"""
Session Summarizer Agent

Purpose: write the executive summary shown above an interviewer's insights.

INPUT: combined transcript sections from completed sessions
OUTPUT: headline, narrative paragraph and key takeaways
"""
import os
import json
import logging
from collections import Counter
from typing import List
from dataclasses import dataclass

from mistralai import Mistral

from services.llm_tracker import LLMCallTimer, log_usage

logger = logging.getLogger("genie.agents.session_summarizer")

USE_MOCK = os.getenv("SESSION_SUMMARIZER_MOCK", "false").lower() == "true"
MODEL = os.getenv("SESSION_SUMMARIZER_MODEL", "mistral-small-latest")
MAX_TAKEAWAYS = 3
DEFAULT_HEADLINE = "Executive Summary"


@dataclass
class SessionSummaryInput:
    sections: List[dict]
    session_count: int


@dataclass
class SessionSummaryOutput:
    headline: str
    narrative_paragraph: str
    key_takeaways: List[str]


def _answer_summary(section: dict) -> str:
    answer = section.get("answer") or {}
    return (answer.get("summary") or next(iter(answer.get("bullet_points") or []), "") or "").strip()


async def summarize_sessions(input_data: SessionSummaryInput) -> SessionSummaryOutput:
    if not USE_MOCK and os.environ.get("MISTRAL_API_KEY") and input_data.sections:
        excerpts = "\n\n".join(
            f"Q: {s.get('question', '')}\nA: {_answer_summary(s)}" for s in input_data.sections[:80]
        )
        prompt = f"""Summarize {input_data.session_count} research interviews for a busy executive.

{excerpts}

Return a JSON object with these exact fields:
- "headline": string, under 80 characters
- "narrative_paragraph": string, 3-5 sentences on the main patterns across interviews
- "key_takeaways": array of {MAX_TAKEAWAYS} short strings

Return ONLY valid JSON."""
        try:
            client = Mistral(api_key=os.environ.get("MISTRAL_API_KEY"))
            with LLMCallTimer("session_summarizer", MODEL) as timer:
                response = client.chat.complete(
                    model=MODEL,
                    messages=[{"role": "user", "content": prompt}],
                    response_format={"type": "json_object"},
                )
                if response.usage:
                    timer.input_tokens = response.usage.prompt_tokens
                    timer.output_tokens = response.usage.completion_tokens
            result = json.loads(response.choices[0].message.content)
            return SessionSummaryOutput(
                headline=result.get("headline") or DEFAULT_HEADLINE,
                narrative_paragraph=result["narrative_paragraph"],
                key_takeaways=list(result.get("key_takeaways") or [])[:MAX_TAKEAWAYS],
            )
        except Exception as e:
            logger.warning(f"Mistral summary failed: {e}, falling back to extractive summary")

    return _mock_summary(input_data)


def _mock_summary(input_data: SessionSummaryInput) -> SessionSummaryOutput:
    log_usage("session_summarizer", "mock", latency_ms=3, metadata={"mode": "mock"})

    if not input_data.sections:
        return SessionSummaryOutput(
            headline=DEFAULT_HEADLINE,
            narrative_paragraph="No completed sessions yet. A summary appears once respondents finish their interviews.",
            key_takeaways=[],
        )

    # Questions asked in the most sessions come first
    topics = Counter(s.get("question", "").strip() for s in input_data.sections if s.get("question"))
    takeaways = []
    for question, _ in topics.most_common():
        answer = next((_answer_summary(s) for s in input_data.sections
                       if s.get("question", "").strip() == question and _answer_summary(s)), "")
        if answer:
            takeaways.append(f"{question.rstrip('?')}: {answer}")
        if len(takeaways) == MAX_TAKEAWAYS:
            break

    noun = "session" if input_data.session_count == 1 else "sessions"
    narrative = (
        f"Across {input_data.session_count} completed {noun}, respondents discussed "
        f"{len(topics)} topic{'' if len(topics) == 1 else 's'}."
    )
    top_question = topics.most_common(1)[0][0] if topics else ""
    if top_question:
        narrative += f' The most covered question was "{top_question}".'
    return SessionSummaryOutput(headline=DEFAULT_HEADLINE, narrative_paragraph=narrative, key_takeaways=takeaways)
