"""Tests for tool output classification."""

from fb_rescue.models.templates import DEFAULT_ERROR_HEURISTICS, DEFAULT_SUCCESS_MARKERS
from fb_rescue.recovery.classifier import is_failure, matches


def test_literal_heuristic_is_case_insensitive():
    assert is_failure("gbak: ERROR: unavailable database", ["error"], [])


def test_clean_output_is_success():
    assert not is_failure("gbak:writing data for table CUSTOMERS", ["error", "corrupt"], [])


def test_pattern_heuristic():
    assert matches("Statement failed, SQLSTATE = 08001", r"/sqlstate\s*=\s*08/")
    assert not matches("all fine", r"/sqlstate\s*=/")


def test_invalid_pattern_falls_back_to_literal():
    assert matches("weird /[unclosed/ text", "/[unclosed/")
    assert not matches("nothing here", "/[unclosed/")


def test_success_marker_dominates_failure_heuristic():
    output = (
        "gbak: WARNING: error in blob, skipped\n"
        "gbak:closing file, committing, and finishing. 4096 bytes written"
    )
    assert not is_failure(output, DEFAULT_ERROR_HEURISTICS, DEFAULT_SUCCESS_MARKERS)


def test_failure_without_marker():
    output = "gbak: ERROR: database file appears corrupt ()"
    assert is_failure(output, DEFAULT_ERROR_HEURISTICS, DEFAULT_SUCCESS_MARKERS)


def test_marker_as_pattern():
    assert not is_failure("error ... DONE OK", ["error"], ["/done\\s+ok/"])


def test_empty_heuristics_never_fail():
    assert not is_failure("error everywhere", [], [])
    assert not matches("anything", "")
