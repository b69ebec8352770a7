"""Tests for lesson question authoring (F5)."""

import pytest

from examquiz.core.content import create_lesson, create_unit, create_word
from examquiz.core.lesson_questions import (
    LessonQuestionValidationError,
    add_lesson_question,
    clean_payload,
    default_content,
    edit_lesson_question,
    list_lesson_questions,
    remove_lesson_question,
    reorder_lesson_questions,
    sync_possible_answers,
    validate_content,
)
from examquiz.utils.validators import NotFoundError


def _invalid(type, content, message):
    with pytest.raises(LessonQuestionValidationError, match=message):
        validate_content(type, content)


class TestSelectImage:
    def test_valid(self):
        validate_content("select_image", {"options": ["1", "2", "3", "4"], "correct": 2})

    def test_needs_four_options(self):
        _invalid("select_image", {"options": ["1", "2", "3"], "correct": 0},
                 "exactly 4 word options")

    def test_blank_option(self):
        _invalid("select_image", {"options": ["1", "", "3", "4"], "correct": 0},
                 "exactly 4 word options")

    def test_correct_in_range(self):
        _invalid("select_image", {"options": ["1", "2", "3", "4"], "correct": 4},
                 "between 0 and 3")

    def test_correct_not_bool(self):
        _invalid("select_image", {"options": ["1", "2", "3", "4"], "correct": True},
                 "between 0 and 3")


class TestTranslate:
    def test_valid_with_empty_slots(self):
        validate_content("translate", {
            "sentence": ["1", "2"],
            "options": ["1", "2", "3", "", "", ""],
            "direction": "from_english",
        })

    def test_needs_sentence(self):
        _invalid("translate", {"sentence": ["", ""], "options": [""] * 6,
                               "direction": "to_english"},
                 "At least one word is required for the sentence")

    def test_needs_six_slots(self):
        _invalid("translate", {"sentence": ["1"], "options": ["1"] * 5,
                               "direction": "to_english"},
                 "exactly 6 possible answers")

    def test_needs_direction(self):
        _invalid("translate", {"sentence": ["1"], "options": ["1"] * 6},
                 "Translation direction is required")


class TestListeningTypes:
    def test_tap_needs_words(self):
        _invalid("tap_what_you_hear", {"options": [""], "possibleAnswers": [""] * 6},
                 "At least one word is required")

    def test_tap_needs_six_possible_answers(self):
        _invalid("tap_what_you_hear", {"options": ["1"], "possibleAnswers": ["1"]},
                 "exactly 6 possible answers")

    def test_type_needs_words(self):
        _invalid("type_what_you_hear", {"options": []}, "At least one word is required")

    def test_type_valid(self):
        validate_content("type_what_you_hear", {"options": ["7"]})


class TestBlankTypes:
    @pytest.mark.parametrize("type", ["fill_in_blank", "complete_translation"])
    def test_valid(self, type):
        validate_content(type, {"options": ["1", "2", "3"], "blankIndex": 2})

    def test_needs_blank(self):
        _invalid("fill_in_blank", {"options": ["1", "2"]}, "Must select a word to omit")

    def test_blank_must_be_an_option(self):
        _invalid("complete_translation", {"options": ["1", "2", ""], "blankIndex": 2},
                 "Omitted word must be one of the options")


class TestMatchPairs:
    def test_valid(self):
        validate_content("match_pairs", {"options": ["1", "2", "3", "4"], "matchType": "audio"})

    def test_needs_four(self):
        _invalid("match_pairs", {"options": ["1", "2", "3"]}, "exactly 4 options")

    def test_needs_different_words(self):
        _invalid("match_pairs", {"options": ["1", "2", "2", "4"]}, "4 different words")

    def test_match_type(self):
        _invalid("match_pairs", {"options": ["1", "2", "3", "4"], "matchType": "video"},
                 "Match type must be")


class TestCleanPayload:
    """Tests for preparing content for storage."""

    def test_unknown_type(self):
        with pytest.raises(LessonQuestionValidationError, match="Unknown question type"):
            clean_payload("essay", {})

    def test_sets_type_and_drops_empty_slots(self):
        cleaned = clean_payload("translate", {
            "sentence": ["1", "", "2"],
            "options": ["1", "2", "", "3", "", ""],
            "direction": "to_english",
        })
        assert cleaned["type"] == "translate"
        assert cleaned["sentence"] == ["1", "2"]
        assert cleaned["options"] == ["1", "2", "3"]

    def test_blank_slots_count_before_they_are_dropped(self):
        """Six slots with blanks pass; the stored content loses the blanks."""
        cleaned = clean_payload("tap_what_you_hear", {
            "options": ["1"],
            "possibleAnswers": ["1", "2", "", "", "", ""],
        })
        assert cleaned["possibleAnswers"] == ["1", "2"]

        with pytest.raises(LessonQuestionValidationError, match="exactly 6 possible answers"):
            clean_payload("tap_what_you_hear", {"options": ["1"], "possibleAnswers": ["1", "2"]})

    def test_match_type_defaults_to_text(self):
        cleaned = clean_payload("match_pairs", {"options": ["1", "2", "3", "4"]})
        assert cleaned["matchType"] == "text"

    def test_select_image_keeps_slots(self):
        cleaned = clean_payload("select_image", {"options": ["1", "2", "3", "4"], "correct": 1})
        assert cleaned["options"] == ["1", "2", "3", "4"]


class TestSyncPossibleAnswers:
    def test_sentence_words_first(self):
        assert sync_possible_answers(["1", "2"], ["3", "1", "", ""]) == ["1", "2", "3", "", "", ""]

    def test_no_duplicates(self):
        assert sync_possible_answers(["1", "1"], ["1"]) == ["1", "", "", "", "", ""]

    def test_cut_to_slots(self):
        words = [str(i) for i in range(8)]
        assert sync_possible_answers(words, []) == ["0", "1", "2", "3", "4", "5"]


class TestDefaultContent:
    def test_translate(self):
        content = default_content("translate")
        assert content["type"] == "translate"
        assert content["options"] == [""] * 6
        assert content["direction"] == "from_english"

    def test_match_pairs(self):
        assert default_content("match_pairs")["matchType"] == "text"

    def test_unknown(self):
        with pytest.raises(LessonQuestionValidationError):
            default_content("essay")


@pytest.fixture
def lesson(db):
    unit = create_unit("Greetings", ["zu"])
    return create_lesson(unit.id, "Saying hello")


@pytest.fixture
def words(db):
    return [str(create_word({"en": w, "zu": w.upper()}).id) for w in ("hello", "bye", "yes", "no")]


class TestLessonQuestionService:
    """Tests for storing questions in a lesson."""

    def test_add_appends(self, lesson, words):
        first = add_lesson_question(lesson.id, "match_pairs", {"options": words})
        second = add_lesson_question(lesson.id, "type_what_you_hear", {"options": words[:1]})

        assert (first.question_order, second.question_order) == (0, 1)
        assert first.content["type"] == "match_pairs"
        assert [q.id for q in list_lesson_questions(lesson.id)] == [first.id, second.id]

    def test_unknown_word_ids(self, lesson, words):
        with pytest.raises(LessonQuestionValidationError, match="Unknown word ids: 999"):
            add_lesson_question(lesson.id, "type_what_you_hear", {"options": ["999"]})

    def test_unknown_lesson(self, db):
        with pytest.raises(NotFoundError, match="Lesson not found"):
            add_lesson_question(42, "type_what_you_hear", {"options": ["1"]})

    def test_edit_keeps_position(self, lesson, words):
        add_lesson_question(lesson.id, "type_what_you_hear", {"options": words[:1]})
        second = add_lesson_question(lesson.id, "type_what_you_hear", {"options": words[1:2]})

        edited = edit_lesson_question(
            lesson.id, second.id, "select_image", {"options": words, "correct": 3}
        )

        assert edited.type == "select_image"
        assert edited.question_order == 1
        assert edited.content["correct"] == 3

    def test_edit_unknown(self, lesson):
        with pytest.raises(NotFoundError, match="Question not found"):
            edit_lesson_question(lesson.id, 999, "type_what_you_hear", {"options": ["1"]})

    def test_remove(self, lesson, words):
        question = add_lesson_question(lesson.id, "type_what_you_hear", {"options": words[:1]})
        remove_lesson_question(lesson.id, question.id)
        assert list_lesson_questions(lesson.id) == []

        with pytest.raises(NotFoundError):
            remove_lesson_question(lesson.id, question.id)

    def test_reorder(self, lesson, words):
        ids = [
            add_lesson_question(lesson.id, "type_what_you_hear", {"options": [w]}).id
            for w in words[:3]
        ]

        reordered = reorder_lesson_questions(lesson.id, list(reversed(ids)))

        assert [q.id for q in reordered] == list(reversed(ids))
        assert [q.question_order for q in reordered] == [0, 1, 2]

    def test_reorder_must_list_every_question(self, lesson, words):
        ids = [
            add_lesson_question(lesson.id, "type_what_you_hear", {"options": [w]}).id
            for w in words[:2]
        ]
        with pytest.raises(LessonQuestionValidationError):
            reorder_lesson_questions(lesson.id, ids[:1])
        with pytest.raises(LessonQuestionValidationError):
            reorder_lesson_questions(lesson.id, [ids[0], ids[0]])
