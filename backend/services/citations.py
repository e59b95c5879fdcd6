"""Citation markers in Q&A answers and search over cleaned transcripts."""
import re
from typing import List, Optional

CITATION_SPLIT = re.compile(r"(\[\d+\])")
CITATION_MARKER = re.compile(r"^\[(\d+)\]$")


def get_section(transcript: dict, section_id: str) -> Optional[dict]:
    for section in (transcript or {}).get("sections", []):
        if section.get("id") == section_id:
            return section
    return None


def render_citations(content: str, citations: List[str], transcript: dict) -> List[dict]:
    """
    Split answer text into text and citation segments.

    "[n]" refers to citations[n - 1]. A marker whose index is out of range,
    or whose section id is not in the transcript, stays plain text.
    """
    segments = []
    for part in CITATION_SPLIT.split(content or ""):
        if not part:
            continue
        match = CITATION_MARKER.match(part)
        if match:
            index = int(match.group(1)) - 1
            section_id = citations[index] if 0 <= index < len(citations) else None
            section = get_section(transcript, section_id) if section_id else None
            if section:
                segments.append({
                    "type": "citation",
                    "number": index + 1,
                    "section_id": section_id,
                    "question": section.get("question", ""),
                })
                continue
        if segments and segments[-1]["type"] == "text":
            segments[-1]["text"] += part
        else:
            segments.append({"type": "text", "text": part})
    return segments


def _section_texts(section: dict) -> List[str]:
    answer = section.get("answer") or {}
    texts = [section.get("question") or "", answer.get("summary") or "", answer.get("raw_text") or ""]
    texts.extend(answer.get("bullet_points") or [])
    return texts


def search_transcript(transcript: dict, query: str) -> dict:
    """Count case-insensitive matches of query per section."""
    query = (query or "").strip()
    if not query:
        return {"query": "", "match_count": 0, "section_ids": []}

    needle = query.casefold()
    total = 0
    section_ids = []
    for section in (transcript or {}).get("sections", []):
        count = sum(text.casefold().count(needle) for text in _section_texts(section))
        if count:
            total += count
            section_ids.append(section.get("id"))
    return {"query": query, "match_count": total, "section_ids": section_ids}
