import pytest

from structgen.domain.codec.tag_codec import extract_tag_content
from structgen.domain.streaming.field_extractor import FieldStreamExtractor, FieldUpdate


def _stream(text, chunk_size):
    extractor = FieldStreamExtractor()
    updates = []
    for start in range(0, len(text), chunk_size):
        updates.extend(extractor.feed(text[start:start + chunk_size]))
    updates.extend(extractor.finish())
    return extractor, updates


def _joined(updates, field):
    return "".join(update.value for update in updates if update.field == field)


RESPONSE = (
    "<analysis><step1>Look at the map</step1>\n<step2>Find the capital\nof France</step2></analysis>"
    "<answer>Paris</answer><status>ok</status>"
)


class TestFieldStreamExtractor:

    def test_words_and_whitespace_are_separate_updates(self):
        _, updates = _stream("<answer>Paris is nice</answer>", 1)
        assert updates == [
            FieldUpdate("answer", "Paris"),
            FieldUpdate("answer", " "),
            FieldUpdate("answer", "is"),
            FieldUpdate("answer", " "),
            FieldUpdate("answer", "nice"),
        ]

    def test_nested_paths_are_joined(self):
        _, updates = _stream(RESPONSE, 1)
        fields = {update.field for update in updates}
        assert {"analysis_step1", "analysis_step2", "answer", "status"} <= fields

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 1000])
    @pytest.mark.parametrize("field,tag", [
        ("analysis_step1", "step1"),
        ("analysis_step2", "step2"),
        ("answer", "answer"),
        ("status", "status"),
    ])
    def test_concatenation_matches_raw_inner_text(self, chunk_size, field, tag):
        _, updates = _stream(RESPONSE, chunk_size)
        assert _joined(updates, field) == extract_tag_content(RESPONSE, tag)

    def test_text_outside_tags_only_reaches_full_response(self):
        extractor, updates = _stream("Sure! <answer>yes</answer> done", 4)
        assert updates == [FieldUpdate("answer", "yes")]
        assert extractor.full_response == "Sure! <answer>yes</answer> done"

    def test_word_split_across_chunks(self):
        extractor = FieldStreamExtractor()
        assert extractor.feed("<answer>Par") == []
        assert extractor.feed("is") == []
        assert extractor.feed(" ") == [FieldUpdate("answer", "Paris"), FieldUpdate("answer", " ")]

    def test_finish_flushes_unterminated_word(self):
        extractor = FieldStreamExtractor()
        extractor.feed("<answer>Paris")
        assert extractor.finish() == [FieldUpdate("answer", "Paris")]
        assert extractor.finish() == []

    def test_stray_closing_tag_is_ignored(self):
        _, updates = _stream("</oops><answer>x</answer>", 1)
        assert updates == [FieldUpdate("answer", "x")]

    def test_current_path_tracks_nesting(self):
        extractor = FieldStreamExtractor()
        extractor.feed("<a>")
        assert extractor.current_path == "a"
        extractor.feed("<b>")
        assert extractor.current_path == "a_b"
        extractor.feed("</b></a>")
        assert extractor.current_path == ""
