"""
Research Assistant Agent

Purpose: power the guided configuration wizard.
  analyze_context: context dump -> clarification questions, research brief, drafted settings
  draft_guide:     research brief + answers -> introduction, structured guide, closing

Uses Mistral when MISTRAL_API_KEY is set, otherwise (or on any API error)
a deterministic heuristic drafter.
"""
import os
import re
import json
import logging
from typing import Dict, List
from dataclasses import dataclass, field

from mistralai import Mistral

from services.llm_tracker import LLMCallTimer, log_usage

logger = logging.getLogger("genie.agents.research_assistant")

USE_MOCK = os.getenv("RESEARCH_ASSISTANT_MOCK", "false").lower() == "true"
MODEL = os.getenv("RESEARCH_ASSISTANT_MODEL", "mistral-large-latest")

ARCHETYPE_KEYWORDS = {
    "expert_deep_dive": ["expert", "technical", "specialist", "deep-dive", "deep dive"],
    "client_stakeholder": ["stakeholder", "executive", "client", "leadership", "c-suite"],
    "customer_user": ["customer", "user", "usability", "experience", "journey"],
    "rapid_survey": ["survey", "nps", "poll", "pulse", "quick"],
    "diagnostic": ["problem", "root cause", "diagnos", "issue", "bottleneck"],
    "investigative": ["competitor", "competitive", "due diligence", "market landscape", "investigat"],
    "panel_moderator": ["focus group", "workshop", "panel", "group discussion"],
}

AUDIENCE_HINTS = ["interview", "respondent", "expert", "customer", "user", "manager", "executive", "stakeholder"]
MIN_CONTEXT_WORDS = 25


@dataclass
class ContextAnalysisInput:
    context_dump: str
    document_texts: List[str] = field(default_factory=list)


@dataclass
class ContextAnalysisOutput:
    needs_clarification: bool
    clarification_questions: List[str]
    interview_context: str
    title: str
    description: str
    archetype: str
    archetype_confidence: float
    target_duration: int


@dataclass
class GuideDraftInput:
    interview_context: str
    follow_up_answers: Dict[str, str]
    archetype: str
    target_duration: int


@dataclass
class GuideDraftOutput:
    introduction: str
    guide: dict
    closing_context: str


def _complete_json(agent_name: str, prompt: str) -> dict:
    client = Mistral(api_key=os.environ.get("MISTRAL_API_KEY"))
    with LLMCallTimer(agent_name, MODEL) as timer:
        response = client.chat.complete(
            model=MODEL,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        usage = response.usage
        if usage:
            timer.input_tokens = usage.prompt_tokens
            timer.output_tokens = usage.completion_tokens

    text = response.choices[0].message.content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0].strip()
    return json.loads(text)


def _use_llm() -> bool:
    return not USE_MOCK and bool(os.environ.get("MISTRAL_API_KEY"))


async def analyze_context(input_data: ContextAnalysisInput) -> ContextAnalysisOutput:
    if _use_llm():
        documents = "\n\n".join(t[:4000] for t in input_data.document_texts)
        prompt = f"""You help researchers configure an AI interviewer.

Research description:
{input_data.context_dump}

Supporting documents:
{documents or "(none)"}

Return a JSON object with these exact fields:
- "needs_clarification": boolean, true only if the audience or research goal is unclear
- "clarification_questions": array of at most 3 short questions (empty if not needed)
- "interview_context": string, a research brief of 120-200 words
- "title": string, under 60 characters
- "description": string, one sentence
- "archetype": one of {json.dumps(list(ARCHETYPE_KEYWORDS))}
- "archetype_confidence": number between 0 and 1
- "target_duration": integer minutes (10-60)

Return ONLY valid JSON."""
        try:
            result = _complete_json("research_assistant", prompt)
            if result.get("archetype") not in ARCHETYPE_KEYWORDS:
                result["archetype"] = "expert_deep_dive"
            return ContextAnalysisOutput(**result)
        except Exception as e:
            logger.warning(f"Mistral analysis failed: {e}, falling back to heuristic drafter")

    return _mock_analyze(input_data)


async def draft_guide(input_data: GuideDraftInput) -> GuideDraftOutput:
    if _use_llm():
        prompt = f"""Write an interview guide for an AI interviewer.

Research brief:
{input_data.interview_context}

Answers to clarification questions:
{json.dumps(input_data.follow_up_answers, indent=2)}

Interview style: {input_data.archetype}
Target length: {input_data.target_duration} minutes

Return a JSON object with these exact fields:
- "introduction": string the interviewer says first
- "guide": object with "objectives" (array of strings) and "sections" (array of
  {{"title": string, "questions": [{{"id": string, "type": "open", "prompt": string, "required": boolean}}]}})
- "closing_context": string the interviewer says at the end

Return ONLY valid JSON."""
        try:
            result = _complete_json("research_assistant", prompt)
            return GuideDraftOutput(**result)
        except Exception as e:
            logger.warning(f"Mistral guide drafting failed: {e}, falling back to heuristic drafter")

    return _mock_draft_guide(input_data)


# ─── HEURISTIC FALLBACK ───

def _pick_archetype(text: str) -> tuple:
    lowered = text.lower()
    scores = {
        archetype: sum(1 for kw in keywords if kw in lowered)
        for archetype, keywords in ARCHETYPE_KEYWORDS.items()
    }
    best = max(scores, key=lambda a: scores[a])
    if scores[best] == 0:
        return "expert_deep_dive", 0.3
    return best, round(min(0.5 + 0.15 * scores[best], 0.95), 2)


def _first_sentence(text: str, limit: int) -> str:
    sentence = re.split(r"(?<=[.!?])\s+|\n", text.strip(), maxsplit=1)[0].strip()
    if len(sentence) > limit:
        sentence = sentence[: limit - 1].rstrip() + "…"
    return sentence


def _mock_analyze(input_data: ContextAnalysisInput) -> ContextAnalysisOutput:
    log_usage("research_assistant", "mock", latency_ms=5, metadata={"mode": "mock", "op": "analyze"})

    combined = " ".join([input_data.context_dump] + input_data.document_texts)
    lowered = combined.lower()
    archetype, confidence = _pick_archetype(combined)

    duration_match = re.search(r"(\d{1,3})\s*(?:-\s*)?min", lowered)
    target_duration = int(duration_match.group(1)) if duration_match else 30
    target_duration = max(5, min(target_duration, 120))

    questions = []
    if not any(hint in lowered for hint in AUDIENCE_HINTS):
        questions.append("Who will you interview (role, industry, seniority)?")
    if len(combined.split()) < MIN_CONTEXT_WORDS:
        questions.append("What is the main question you want these interviews to answer?")
    if not duration_match:
        questions.append("How long should each interview take?")

    # Duration alone is not worth an extra wizard step
    needs_clarification = any(not q.startswith("How long") for q in questions)

    title = _first_sentence(input_data.context_dump, 60) or "Untitled Research"
    brief = (
        f"Research goal: {input_data.context_dump.strip()}\n\n"
        f"Interview style: {archetype.replace('_', ' ')}, about {target_duration} minutes per interview."
    )
    if input_data.document_texts:
        brief += f"\n\nBackground material: {len(input_data.document_texts)} document(s) provided."

    return ContextAnalysisOutput(
        needs_clarification=needs_clarification,
        clarification_questions=questions if needs_clarification else [],
        interview_context=brief,
        title=title,
        description=_first_sentence(input_data.context_dump, 160),
        archetype=archetype,
        archetype_confidence=confidence,
        target_duration=target_duration,
    )


def _mock_draft_guide(input_data: GuideDraftInput) -> GuideDraftOutput:
    log_usage("research_assistant", "mock", latency_ms=5, metadata={"mode": "mock", "op": "draft_guide"})

    goal = _first_sentence(input_data.interview_context.replace("Research goal:", ""), 200)
    sections = [
        {
            "title": "Background",
            "questions": [
                {"id": "background-role", "type": "open",
                 "prompt": "Could you briefly describe your current role and responsibilities?", "required": True},
            ],
        },
        {
            "title": "Core Topics",
            "questions": [
                {"id": "core-1", "type": "open",
                 "prompt": f"Thinking about {goal.rstrip('.').lower() or 'this topic'}, what stands out to you most?",
                 "required": True},
                {"id": "core-2", "type": "open",
                 "prompt": "What are the biggest challenges you see today?", "required": False},
            ],
        },
    ]
    answered = [a for a in input_data.follow_up_answers.values() if a.strip()]
    if answered:
        sections[1]["questions"].append({
            "id": "core-3", "type": "open",
            "prompt": f"You mentioned {answered[0].strip().rstrip('.')}. Can you say more about that?",
            "required": False,
        })
    sections.append({
        "title": "Wrap-up",
        "questions": [
            {"id": "wrapup-1", "type": "open",
             "prompt": "Is there anything we haven't covered that you think is important?", "required": False},
        ],
    })

    return GuideDraftOutput(
        introduction=(
            f"Hi, thanks for taking the time to talk today. This conversation will take about "
            f"{input_data.target_duration} minutes."
        ),
        guide={"objectives": [goal] if goal else [], "sections": sections},
        closing_context="Thank you for sharing your insights. That's all the questions we have.",
    )
