"""
Aggregate recorded votes into per-section results.

Select sections get one counter per defined option; text sections collect the
non-blank responses in vote order. Stored answers that no longer match the
session (renamed options, wrong shape) are skipped, so a reconfigured session
can still be tallied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from eventvote.db_models import isoformat_utc
from eventvote.models import Section


@dataclass
class OptionTally:
    name: str
    votes: int = 0
    imageUrl: Optional[str] = None


@dataclass
class TextResponse:
    response: str
    timestamp: Optional[datetime]


@dataclass
class SectionTally:
    id: str
    label: str
    type: str
    options: List[OptionTally] = field(default_factory=list)
    responses: List[TextResponse] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "label": self.label, "type": self.type}
        if self.type == "text-input":
            out["responses"] = [
                {
                    "response": r.response,
                    "timestamp": isoformat_utc(r.timestamp),
                }
                for r in self.responses
            ]
        else:
            out["options"] = [
                {"name": o.name, "votes": o.votes, "imageUrl": o.imageUrl} for o in self.options
            ]
        return out


@dataclass
class TallyResult:
    sections: List[SectionTally]
    total_votes: int

    def section(self, section_id: str) -> SectionTally:
        for s in self.sections:
            if s.id == section_id:
                return s
        raise KeyError(section_id)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {s.id: s.to_dict() for s in self.sections}


def tally(sections: Sequence[Section], votes: Iterable[Any]) -> TallyResult:
    """
    Count ``votes`` (objects exposing ``answers`` and ``timestamp``) per section.

    Options come back ordered by descending count; ties keep the order the
    options were defined in.
    """
    counters: Dict[str, Dict[str, OptionTally]] = {}
    responses: Dict[str, List[TextResponse]] = {}
    for section in sections:
        if section.type == "text-input":
            responses[section.id] = []
        else:
            counters[section.id] = {
                o.name: OptionTally(name=o.name, imageUrl=o.imageUrl) for o in section.options
            }

    total = 0
    for vote in votes:
        total += 1
        answers = vote.answers or {}
        for section in sections:
            answer = answers.get(section.id)
            if answer is None:
                continue
            if section.type == "single-select":
                if isinstance(answer, str) and answer in counters[section.id]:
                    counters[section.id][answer].votes += 1
            elif section.type == "multi-select":
                if not isinstance(answer, list):
                    continue
                # dict.fromkeys: a vote counts at most once per option
                for choice in dict.fromkeys(a for a in answer if isinstance(a, str)):
                    if choice in counters[section.id]:
                        counters[section.id][choice].votes += 1
            else:
                if isinstance(answer, str) and answer.strip():
                    responses[section.id].append(
                        TextResponse(response=answer.strip(), timestamp=vote.timestamp)
                    )

    results: List[SectionTally] = []
    for section in sections:
        if section.type == "text-input":
            results.append(
                SectionTally(
                    id=section.id, label=section.label, type=section.type, responses=responses[section.id]
                )
            )
        else:
            # sorted() is stable, so ties stay in definition order
            ordered = sorted(counters[section.id].values(), key=lambda o: o.votes, reverse=True)
            results.append(SectionTally(id=section.id, label=section.label, type=section.type, options=ordered))
    return TallyResult(sections=results, total_votes=total)


__all__ = ["OptionTally", "TextResponse", "SectionTally", "TallyResult", "tally"]
