"""
Unit tests for the streaming record readers
"""

import json

import pytest
from core.exceptions import ExtractionError, ParseError
from ingestion.reader import RecordReaderFactory, read_json_array, read_jsonl


class TestJsonlReader:
    """Test line-delimited JSON reading"""

    def test_reads_one_record_per_line_skipping_blanks(self, tmp_path):
        path = tmp_path / "articles.jsonl"
        path.write_text('{"title": "A"}\n\n   \n{"title": "B"}\n', encoding="utf-8")

        records = list(read_jsonl(path))

        assert records == [{"title": "A"}, {"title": "B"}]

    def test_malformed_line_raises_parse_error_with_line(self, tmp_path):
        path = tmp_path / "broken.jsonl"
        path.write_text('{"title": "A"}\n{"title": \n{"title": "C"}\n', encoding="utf-8")

        reader = read_jsonl(path)
        assert next(reader) == {"title": "A"}

        with pytest.raises(ParseError) as exc_info:
            next(reader)

        assert exc_info.value.line == '{"title":'
        assert "Invalid JSON on line" in exc_info.value.message

    def test_non_object_line_is_rejected(self, tmp_path):
        path = tmp_path / "scalars.jsonl"
        path.write_text("42\n", encoding="utf-8")

        with pytest.raises(ParseError):
            list(read_jsonl(path))

    def test_reader_is_single_pass(self, tmp_path):
        path = tmp_path / "articles.jsonl"
        path.write_text('{"n": 1}\n{"n": 2}\n', encoding="utf-8")

        reader = read_jsonl(path)

        assert len(list(reader)) == 2
        assert list(reader) == []

    def test_missing_file_raises_extraction_error(self, tmp_path):
        with pytest.raises(ExtractionError) as exc_info:
            next(read_jsonl(tmp_path / "missing.jsonl"))

        assert not isinstance(exc_info.value, ParseError)


class TestJsonArrayReader:
    """Test streaming of top-level JSON arrays"""

    def test_streams_array_elements(self, tmp_path):
        path = tmp_path / "articles.json"
        data = [{"title": "A", "rating": 4.5}, {"title": "B", "tags": ["x", "y"]}]
        path.write_text(json.dumps(data), encoding="utf-8")

        records = list(read_json_array(path))

        assert records == data
        assert isinstance(records[0]["rating"], float)

    def test_nested_objects_are_kept(self, tmp_path):
        path = tmp_path / "nested.json"
        data = [{"images": [{"src": "https://example.com/a.jpg", "title": "A"}]}]
        path.write_text(json.dumps(data), encoding="utf-8")

        assert list(read_json_array(path)) == data

    def test_malformed_array_raises_parse_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('[{"title": "A"}, {"title": ]', encoding="utf-8")

        with pytest.raises(ParseError):
            list(read_json_array(path))

    def test_non_object_element_is_rejected(self, tmp_path):
        path = tmp_path / "mixed.json"
        path.write_text('[{"title": "A"}, "oops"]', encoding="utf-8")

        with pytest.raises(ParseError):
            list(read_json_array(path))

    def test_empty_array(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")

        assert list(read_json_array(path)) == []


class TestRecordReaderFactory:
    """Test reader selection by extension"""

    @pytest.mark.parametrize("name", ["data.jsonl", "DATA.JSONL", "data.ndjson"])
    def test_line_delimited_extensions(self, tmp_path, name):
        path = tmp_path / name
        path.write_text('{"n": 1}\n{"n": 2}\n', encoding="utf-8")

        assert list(RecordReaderFactory().create(str(path))) == [{"n": 1}, {"n": 2}]

    def test_other_extensions_are_read_as_array(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('[{"n": 1}]', encoding="utf-8")

        assert list(RecordReaderFactory().create(str(path))) == [{"n": 1}]

    def test_each_call_returns_a_fresh_reader(self, tmp_path):
        path = tmp_path / "data.jsonl"
        path.write_text('{"n": 1}\n', encoding="utf-8")
        factory = RecordReaderFactory()

        assert list(factory.create(str(path))) == [{"n": 1}]
        assert list(factory.create(str(path))) == [{"n": 1}]
