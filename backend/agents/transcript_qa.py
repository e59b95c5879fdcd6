"""
Transcript Q&A Agent

Purpose: answer a question about one interview transcript.

INPUT: question + cleaned transcript sections
OUTPUT: answer text with [n] markers, and the section ids those markers cite
"""
import os
import re
import json
import logging
from typing import List
from dataclasses import dataclass

from mistralai import Mistral

from services.llm_tracker import LLMCallTimer, log_usage

logger = logging.getLogger("genie.agents.transcript_qa")

USE_MOCK = os.getenv("TRANSCRIPT_QA_MOCK", "false").lower() == "true"
MODEL = os.getenv("TRANSCRIPT_QA_MODEL", "mistral-small-latest")
MAX_CITED_SECTIONS = 3

STOPWORDS = {
    "the", "a", "an", "and", "or", "of", "to", "in", "on", "for", "with", "what", "which",
    "did", "does", "do", "is", "are", "was", "were", "how", "why", "about", "they", "their",
    "there", "this", "that", "it", "respondent", "interview",
}


@dataclass
class TranscriptQAInput:
    question: str
    sections: List[dict]


@dataclass
class TranscriptQAOutput:
    content: str
    citations: List[str]


def _section_text(section: dict) -> str:
    answer = section.get("answer") or {}
    parts = [answer.get("summary") or "", " ".join(answer.get("bullet_points") or []), answer.get("raw_text") or ""]
    return " ".join(p for p in parts if p)


async def answer_question(input_data: TranscriptQAInput) -> TranscriptQAOutput:
    if not USE_MOCK and os.environ.get("MISTRAL_API_KEY") and input_data.sections:
        numbered = "\n\n".join(
            f"[{i + 1}] Q: {s.get('question', '')}\nA: {_section_text(s)}"
            for i, s in enumerate(input_data.sections)
        )
        prompt = f"""Answer the question using only this interview transcript.
Cite the sections you rely on with markers like [1], [2] that refer to the section numbers below.

{numbered}

Question: {input_data.question}

Return a JSON object: {{"content": string, "cited_sections": array of section numbers}}.
Return ONLY valid JSON."""
        try:
            client = Mistral(api_key=os.environ.get("MISTRAL_API_KEY"))
            with LLMCallTimer("transcript_qa", MODEL) as timer:
                response = client.chat.complete(
                    model=MODEL,
                    messages=[{"role": "user", "content": prompt}],
                    response_format={"type": "json_object"},
                )
                if response.usage:
                    timer.input_tokens = response.usage.prompt_tokens
                    timer.output_tokens = response.usage.completion_tokens
            result = json.loads(response.choices[0].message.content)
            # The model cites by section number; the markers in content use the same numbers
            section_ids = [s.get("id") for s in input_data.sections]
            return TranscriptQAOutput(content=result["content"], citations=section_ids)
        except Exception as e:
            logger.warning(f"Mistral Q&A failed: {e}, falling back to keyword answer")

    return _mock_answer(input_data)


def _mock_answer(input_data: TranscriptQAInput) -> TranscriptQAOutput:
    log_usage("transcript_qa", "mock", latency_ms=3, metadata={"mode": "mock"})

    if not input_data.sections:
        return TranscriptQAOutput(content="This session has no transcript yet, so there is nothing to answer from.",
                                  citations=[])

    terms = [w for w in re.findall(r"[a-z0-9']+", input_data.question.lower()) if w not in STOPWORDS and len(w) > 2]
    scored = []
    for section in input_data.sections:
        haystack = f"{section.get('question', '')} {_section_text(section)}".lower()
        score = sum(haystack.count(term) for term in terms)
        if score:
            scored.append((score, section))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    matches = [s for _, s in scored[:MAX_CITED_SECTIONS]] or input_data.sections[:1]

    lines = []
    for number, section in enumerate(matches, start=1):
        answer = section.get("answer") or {}
        detail = answer.get("summary") or next(iter(answer.get("bullet_points") or []), "") or "no summary recorded"
        lines.append(f"• {section.get('question', 'Section')}: {detail} [{number}]")

    intro = "Based on the transcript, here is what the respondent said:" if scored else \
        f'I could not find a direct answer to "{input_data.question}". The closest part of the interview:'
    return TranscriptQAOutput(
        content=intro + "\n\n" + "\n".join(lines),
        citations=[s.get("id") for s in matches],
    )
