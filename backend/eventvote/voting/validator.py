"""
Check a submitted answer map against a voting session's sections.

Sections are checked in definition order and the first failing one aborts the
submission with a message naming its label. Answers for section ids the
session does not define are dropped from the returned map.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from eventvote.core.errors import ValidationFailed
from eventvote.models import Section


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return len(value) == 0
    return False


def _check_single(section: Section, answer: Any) -> str:
    if not isinstance(answer, str) or answer not in section.option_names():
        raise ValidationFailed(f'Please select a valid option for "{section.label}"')
    return answer


def _check_multi(section: Section, answer: Any) -> list:
    if not isinstance(answer, list) or not all(isinstance(a, str) for a in answer):
        raise ValidationFailed(f'"{section.label}" expects a list of options')
    low, high = section.selection_bounds()
    if not low <= len(answer) <= high:
        if low == high:
            raise ValidationFailed(f'Please select exactly {low} option(s) for "{section.label}"')
        raise ValidationFailed(f'Please select {low}-{high} options for "{section.label}"')
    if len(set(answer)) != len(answer):
        raise ValidationFailed(f'Duplicate option selected for "{section.label}"')
    valid = set(section.option_names())
    for choice in answer:
        if choice not in valid:
            raise ValidationFailed(f'Invalid option "{choice}" selected for "{section.label}"')
    return list(answer)


def _check_text(section: Section, answer: Any) -> str:
    if not isinstance(answer, str):
        raise ValidationFailed(f'"{section.label}" expects a text answer')
    return answer.strip()


def validate_answers(sections: Sequence[Section], answers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Validate ``answers`` against ``sections`` and return the cleaned answer map.

    Raises ``ValidationFailed`` for the first section that does not pass.
    Blank answers to optional sections are left out of the result.
    """
    if answers is None or not isinstance(answers, Mapping):
        raise ValidationFailed("Invalid votes data")

    cleaned: Dict[str, Any] = {}
    for section in sections:
        answer = answers.get(section.id)
        if _is_blank(answer):
            if section.required:
                if section.type == "text-input":
                    raise ValidationFailed(f'Please fill in "{section.label}"')
                raise ValidationFailed(f'Please make a selection for "{section.label}"')
            continue

        if section.type == "single-select":
            cleaned[section.id] = _check_single(section, answer)
        elif section.type == "multi-select":
            cleaned[section.id] = _check_multi(section, answer)
        else:
            cleaned[section.id] = _check_text(section, answer)
    return cleaned


__all__ = ["validate_answers"]
