import pytest

from eventvote.core.errors import ValidationFailed
from eventvote.models import Section
from eventvote.voting import validate_answers


def _sections():
    return [
        Section(
            id="host",
            label="Host",
            type="single-select",
            required=True,
            options=[{"name": "A"}, {"name": "B"}],
        ),
        Section(
            id="singers",
            label="Singers",
            type="multi-select",
            required=True,
            options=[{"name": "S1"}, {"name": "S2"}, {"name": "S3"}],
            minSelections=1,
            maxSelections=2,
        ),
        Section(id="wish", label="Wish", type="text-input", required=True),
        Section(id="comment", label="Comment", type="text-input"),
    ]


def _valid():
    return {"host": "A", "singers": ["S1"], "wish": "More confetti"}


def test_valid_submission_passes_and_drops_unknown_sections():
    answers = dict(_valid(), extra="ignored")
    cleaned = validate_answers(_sections(), answers)
    assert cleaned == {"host": "A", "singers": ["S1"], "wish": "More confetti"}


@pytest.mark.parametrize("missing, label", [("host", "Host"), ("singers", "Singers"), ("wish", "Wish")])
def test_missing_required_section_names_it(missing, label):
    answers = _valid()
    del answers[missing]
    with pytest.raises(ValidationFailed, match=label):
        validate_answers(_sections(), answers)


def test_blank_required_text_rejected():
    answers = dict(_valid(), wish="   ")
    with pytest.raises(ValidationFailed, match="Wish"):
        validate_answers(_sections(), answers)


@pytest.mark.parametrize("choices, ok", [([], False), (["S1"], True), (["S1", "S2"], True), (["S1", "S2", "S3"], False)])
def test_multi_select_bounds(choices, ok):
    answers = dict(_valid(), singers=choices)
    if ok:
        assert validate_answers(_sections(), answers)["singers"] == choices
    else:
        with pytest.raises(ValidationFailed, match="Singers"):
            validate_answers(_sections(), answers)


def test_unknown_single_option_rejected():
    with pytest.raises(ValidationFailed, match="Host"):
        validate_answers(_sections(), dict(_valid(), host="Z"))


def test_unknown_multi_option_rejected():
    with pytest.raises(ValidationFailed, match="Singers"):
        validate_answers(_sections(), dict(_valid(), singers=["S1", "nope"]))


def test_duplicate_multi_option_rejected():
    with pytest.raises(ValidationFailed, match="Duplicate"):
        validate_answers(_sections(), dict(_valid(), singers=["S1", "S1"]))


def test_wrong_answer_shape_rejected():
    with pytest.raises(ValidationFailed, match="Singers"):
        validate_answers(_sections(), dict(_valid(), singers="S1"))
    with pytest.raises(ValidationFailed, match="Host"):
        validate_answers(_sections(), dict(_valid(), host=["A"]))


def test_first_failing_section_wins():
    with pytest.raises(ValidationFailed, match="Host"):
        validate_answers(_sections(), {"host": "Z", "singers": []})


def test_optional_text_is_trimmed_and_blank_dropped():
    cleaned = validate_answers(_sections(), dict(_valid(), comment="  great!  "))
    assert cleaned["comment"] == "great!"
    cleaned = validate_answers(_sections(), dict(_valid(), comment="   "))
    assert "comment" not in cleaned


def test_optional_multi_select_defaults():
    sections = [
        Section(id="extras", label="Extras", type="multi-select", options=[{"name": "X"}, {"name": "Y"}]),
    ]
    assert validate_answers(sections, {}) == {}
    assert validate_answers(sections, {"extras": []}) == {}
    assert validate_answers(sections, {"extras": ["X", "Y"]}) == {"extras": ["X", "Y"]}


def test_non_mapping_answers_rejected():
    with pytest.raises(ValidationFailed):
        validate_answers(_sections(), None)


@pytest.mark.parametrize(
    "section",
    [
        {"id": "s", "label": "S", "type": "single-select", "options": []},
        {"id": "s", "label": "S", "type": "text-input", "options": [{"name": "A"}]},
        {"id": "s", "label": "S", "type": "single-select", "options": [{"name": "A"}, {"name": "A"}]},
        {
            "id": "s",
            "label": "S",
            "type": "multi-select",
            "options": [{"name": "A"}, {"name": "B"}],
            "minSelections": 2,
            "maxSelections": 1,
        },
        {"id": "s", "label": "S", "type": "multi-select", "options": [{"name": "A"}], "minSelections": 2},
    ],
)
def test_invalid_section_definitions(section):
    with pytest.raises(ValueError):
        Section.model_validate(section)
