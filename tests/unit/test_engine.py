"""
Unit tests for the comparison engine.

Covers row classification, ordering, duplicate keys, header handling,
observer notifications and configuration errors.
"""

import csv
from unittest.mock import patch

import pytest

from csv_comparator.comparison.engine import CsvComparator, compare
from csv_comparator.comparison.errors import ConfigurationError, RowArityError
from csv_comparator.comparison.models import CellDifference, ComparisonSource
from csv_comparator.comparison.observer import ComparisonObserver
from csv_comparator.comparison.options import ComparisonOptions, ParserSettings, ResultOptions
from csv_comparator.utils.correlation import get_correlation_id

HEADER = ["id", "val"]


class EventRecorder(ComparisonObserver):
    """Records every event the engine emits."""

    def __init__(self):
        self.events = []

    def comparison_started(self, source, options):
        self.events.append(("started",))

    def row_kept(self, row, headers, options):
        self.events.append(("kept", row))

    def row_deleted(self, row, headers, options):
        self.events.append(("deleted", row))

    def row_inserted(self, row, headers, options):
        self.events.append(("inserted", row))

    def row_modified(self, row, headers, options, diffs):
        self.events.append(("modified", row, list(diffs)))

    def comparison_finished(self, source, options, result):
        self.events.append(("finished", result))


@pytest.fixture
def options():
    return ComparisonOptions(identity_column=0, encoding="utf-8")


@pytest.fixture
def make_source(write_csv):
    def _make(expected_rows, actual_rows, **kwargs):
        return ComparisonSource(
            expected=write_csv("expected.csv", expected_rows, **kwargs),
            actual=write_csv("actual.csv", actual_rows, **kwargs),
        )
    return _make


class TestScenarios:
    """Test the basic classification scenarios."""

    def test_identical_files(self, make_source, options):
        """Test that identical rows are kept and nothing differs."""
        source = make_source([HEADER, ["1", "x"]], [HEADER, ["1", "x"]])

        result = compare(source, options)

        assert result.rows_kept == (("1", "x"),)
        assert result.rows_deleted == ()
        assert result.rows_inserted == ()
        assert result.rows_modified == ()
        assert result.is_different is False

    def test_inserted_row(self, make_source, options):
        """Test that an actual row without an expected counterpart is inserted."""
        source = make_source([HEADER], [HEADER, ["2", "y"]])

        result = compare(source, options)

        assert result.rows_inserted == (("2", "y"),)
        assert result.is_inserted is True
        assert result.is_deleted is False
        assert result.is_modified is False

    def test_deleted_row(self, make_source, options):
        """Test that an unmatched expected row is deleted."""
        source = make_source([HEADER, ["3", "z"]], [HEADER])

        result = compare(source, options)

        assert result.rows_deleted == (("3", "z"),)
        assert result.is_deleted is True
        assert result.is_inserted is False

    def test_modified_row(self, make_source, options):
        """Test that a changed row is modified and reports the changed cell."""
        source = make_source(
            [["id", "col2"], ["4", "old"]],
            [["id", "col2"], ["4", "new"]],
        )
        recorder = EventRecorder()

        result = compare(source, options, recorder)

        assert result.rows_modified == (("4", "new"),)
        assert result.is_modified is True
        modified = [e for e in recorder.events if e[0] == "modified"]
        assert modified == [
            ("modified", ("4", "new"), [CellDifference(column="col2", expected="old", actual="new")])
        ]

    def test_both_files_empty(self, make_source, options):
        """Test comparing two header-only files."""
        source = make_source([HEADER], [HEADER])

        result = compare(source, options)

        assert result.is_different is False
        assert result.rows_kept == ()

    def test_mixed_changes(self, make_source, options):
        """Test a dataset with every kind of change."""
        source = make_source(
            [HEADER, ["1", "a"], ["2", "b"], ["3", "c"]],
            [HEADER, ["2", "B"], ["4", "d"], ["1", "a"]],
        )

        result = compare(source, options)

        assert result.rows_kept == (("1", "a"),)
        assert result.rows_modified == (("2", "B"),)
        assert result.rows_inserted == (("4", "d"),)
        assert result.rows_deleted == (("3", "c"),)
        assert result.is_different is True


class TestProperties:
    """Test invariants of the classification."""

    @pytest.fixture
    def datasets(self):
        expected = [HEADER] + [[str(i), f"v{i}"] for i in range(20)]
        actual = [HEADER] + [
            [str(i), f"v{i}" if i % 3 else f"changed{i}"]
            for i in range(10, 30)
        ]
        return expected, actual

    def test_partition(self, make_source, options, datasets):
        """Test that every row lands in exactly one classification."""
        expected, actual = datasets
        result = compare(make_source(expected, actual), options)

        expected_keys = {row[0] for row in expected[1:]}
        actual_keys = {row[0] for row in actual[1:]}

        kept = {row[0] for row in result.rows_kept}
        modified = {row[0] for row in result.rows_modified}
        deleted = {row[0] for row in result.rows_deleted}
        inserted = {row[0] for row in result.rows_inserted}

        assert kept | modified | deleted == expected_keys
        assert kept | modified | inserted == actual_keys
        assert not kept & modified
        assert not kept & deleted
        assert not modified & deleted
        assert not inserted & (kept | modified | deleted)
        total = (len(result.rows_kept) + len(result.rows_modified)
                 + len(result.rows_deleted) + len(result.rows_inserted))
        assert total == len(expected_keys | actual_keys)

    def test_is_different_law(self, make_source, options, datasets):
        """Test is_different against the row sequences."""
        expected, actual = datasets
        result = compare(make_source(expected, actual), options)

        assert result.is_different == (result.is_deleted or result.is_inserted or result.is_modified)
        assert result.is_different == bool(result.rows_deleted or result.rows_inserted or result.rows_modified)

    def test_order_preservation(self, make_source, options):
        """Test that kept/inserted/modified follow actual order and deleted follows expected order."""
        source = make_source(
            [HEADER, ["9", "a"], ["5", "b"], ["7", "c"], ["1", "d"], ["3", "e"], ["8", "f"]],
            [HEADER, ["8", "F"], ["6", "x"], ["3", "e"], ["2", "y"], ["1", "D"], ["9", "a"]],
        )

        result = compare(source, options)

        assert [r[0] for r in result.rows_kept] == ["3", "9"]
        assert [r[0] for r in result.rows_modified] == ["8", "1"]
        assert [r[0] for r in result.rows_inserted] == ["6", "2"]
        assert [r[0] for r in result.rows_deleted] == ["5", "7"]

    def test_matching_uses_identity_column_only(self, make_source):
        """Test that rows match on the identity column even if all else differs."""
        source = make_source(
            [["a", "key", "b"], ["x", "k1", "y"]],
            [["a", "key", "b"], ["p", "k1", "q"]],
        )

        result = compare(source, ComparisonOptions(identity_column=1, encoding="utf-8"))

        assert result.rows_modified == (("p", "k1", "q"),)
        assert result.rows_inserted == ()
        assert result.rows_deleted == ()

    def test_identity_values_compared_as_strings(self, make_source, options):
        """Test that '1' and '01' are different identities."""
        source = make_source([HEADER, ["1", "a"]], [HEADER, ["01", "a"]])

        result = compare(source, options)

        assert result.rows_deleted == (("1", "a"),)
        assert result.rows_inserted == (("01", "a"),)

    def test_diff_completeness(self, make_source, options):
        """Test that diffs list exactly the differing columns, in header order."""
        header = ["id", "a", "b", "c", "d"]
        source = make_source(
            [header, ["1", "a1", "b1", "c1", "d1"]],
            [header, ["1", "A1", "b1", "C1", "d1"]],
        )
        recorder = EventRecorder()

        compare(source, options, recorder)

        diffs = next(e[2] for e in recorder.events if e[0] == "modified")
        assert [(d.column, d.expected, d.actual) for d in diffs] == [
            ("a", "a1", "A1"),
            ("c", "c1", "C1"),
        ]


class TestDuplicateKeys:
    """Test last-write-wins for duplicate identity keys."""

    def test_later_expected_row_wins(self, make_source, options):
        """Test that only the later duplicate participates in matching."""
        source = make_source(
            [HEADER, ["1", "first"], ["1", "second"]],
            [HEADER, ["1", "second"]],
        )

        result = compare(source, options)

        assert result.rows_kept == (("1", "second"),)
        assert result.rows_deleted == ()
        assert result.is_different is False

    def test_earlier_duplicate_is_not_deleted(self, make_source, options):
        """Test that a shadowed row is neither kept nor deleted."""
        source = make_source(
            [HEADER, ["1", "first"], ["2", "x"], ["1", "second"]],
            [HEADER],
        )

        result = compare(source, options)

        assert result.rows_deleted == (("2", "x"), ("1", "second"))

    def test_duplicate_actual_rows(self, make_source, options):
        """Test that a second actual row with a consumed key is inserted."""
        source = make_source(
            [HEADER, ["1", "a"]],
            [HEADER, ["1", "a"], ["1", "a"]],
        )

        result = compare(source, options)

        assert result.rows_kept == (("1", "a"),)
        assert result.rows_inserted == (("1", "a"),)


class TestHeaders:
    """Test header extraction."""

    def test_headers_in_result(self, make_source, options):
        """Test that the expected header row is reported."""
        source = make_source([HEADER, ["1", "x"]], [HEADER, ["1", "x"]])

        assert compare(source, options).headers == ("id", "val")

    def test_header_only_expected_has_no_headers(self, make_source, options):
        """Test that fewer than two expected rows yields empty headers."""
        source = make_source([HEADER], [HEADER, ["2", "y"]])

        result = compare(source, options)

        assert result.headers == ()
        assert result.rows_inserted == (("2", "y"),)

    def test_header_extraction_disabled(self, make_source):
        """Test that all rows are data when header extraction is disabled."""
        source = make_source([["1", "x"], ["2", "y"]], [["1", "x"], ["2", "z"]])
        options = ComparisonOptions(
            encoding="utf-8",
            parser=ParserSettings(header_extraction_enabled=False),
        )
        recorder = EventRecorder()

        result = compare(source, options, recorder)

        assert result.headers == ()
        assert result.rows_kept == (("1", "x"),)
        diffs = next(e[2] for e in recorder.events if e[0] == "modified")
        assert diffs == [CellDifference(column="1", expected="y", actual="z")]

    def test_selected_columns(self, make_source):
        """Test that unselected columns are ignored."""
        header = ["id", "name", "updated_at"]
        source = make_source(
            [header, ["1", "alice", "2024-01-01"]],
            [header, ["1", "alice", "2024-06-01"]],
        )
        options = ComparisonOptions(
            encoding="utf-8",
            parser=ParserSettings(selected_columns=("id", "name")),
        )

        result = compare(source, options)

        assert result.headers == ("id", "name")
        assert result.rows_kept == (("1", "alice"),)
        assert result.is_different is False

    def test_semicolon_delimiter(self, make_source):
        """Test comparing files with a custom delimiter."""
        source = make_source(
            [HEADER, ["1", "a,b"]],
            [HEADER, ["1", "a,c"]],
            delimiter=";",
        )
        options = ComparisonOptions(encoding="utf-8", parser=ParserSettings(delimiter=";"))

        result = compare(source, options)

        assert result.rows_modified == (("1", "a,c"),)


class TestObserverNotifications:
    """Test the order and content of observer events."""

    def test_event_order(self, make_source, options):
        """Test started, row events in actual order, deletions, finished."""
        source = make_source(
            [HEADER, ["1", "a"], ["2", "b"], ["3", "c"]],
            [HEADER, ["2", "b"], ["4", "d"], ["1", "A"]],
        )
        recorder = EventRecorder()

        result = compare(source, options, recorder)

        kinds = [e[0] for e in recorder.events]
        assert kinds == ["started", "kept", "inserted", "modified", "deleted", "finished"]
        assert recorder.events[-1][1] is result

    def test_observer_sees_headers_and_options(self, make_source, options):
        """Test that row events carry the headers and options."""
        seen = []

        class HeaderObserver(ComparisonObserver):
            def row_kept(self, row, headers, opts):
                seen.append((headers, opts))

        source = make_source([HEADER, ["1", "a"]], [HEADER, ["1", "a"]])
        compare(source, options, HeaderObserver())

        assert seen == [(("id", "val"), options)]

    def test_observer_exception_propagates(self, make_source, options):
        """Test that an exception raised by an observer fails the run."""
        class Failing(ComparisonObserver):
            def row_inserted(self, row, headers, opts):
                raise RuntimeError("observer failed")

        source = make_source([HEADER], [HEADER, ["1", "a"]])

        with pytest.raises(RuntimeError, match="observer failed"):
            compare(source, options, Failing())

    def test_runs_inside_correlation_context(self, make_source, options):
        """Test that observers see a correlation ID during the run."""
        ids = []

        class IdObserver(ComparisonObserver):
            def comparison_started(self, source, opts):
                ids.append(get_correlation_id())

        compare(make_source([HEADER], [HEADER]), options, IdObserver())

        assert ids[0] is not None
        assert get_correlation_id() is None


class TestConfigurationErrors:
    """Test failures surfaced to the caller."""

    def test_missing_source(self, options):
        with pytest.raises(ConfigurationError, match="source"):
            CsvComparator(None, options)

    def test_missing_options(self, make_source):
        with pytest.raises(ConfigurationError, match="options"):
            CsvComparator(make_source([HEADER], [HEADER]), None)

    def test_invalid_observer(self, make_source, options):
        with pytest.raises(ConfigurationError, match="observer"):
            CsvComparator(make_source([HEADER], [HEADER]), options, observer=object())

    def test_identity_column_beyond_header(self, make_source):
        """Test that an identity column outside the header fails before reading data."""
        source = make_source([HEADER, ["1", "a"]], [HEADER, ["1", "a"]])
        options = ComparisonOptions(identity_column=5, encoding="utf-8")

        with patch("csv_comparator.comparison.engine.CsvRowReader.read_all") as read_all:
            with pytest.raises(ConfigurationError, match="out of range"):
                compare(source, options)
            read_all.assert_not_called()

    def test_identity_column_beyond_row_without_headers(self, make_source):
        """Test that a short row is a configuration error when there is no header."""
        source = make_source([["1", "a"]], [["1", "a"]])
        options = ComparisonOptions(
            identity_column=2,
            encoding="utf-8",
            parser=ParserSettings(header_extraction_enabled=False),
        )

        with pytest.raises(ConfigurationError):
            compare(source, options)

    def test_short_actual_row(self, make_source, options):
        """Test that an actual row without the identity column fails the run."""
        source = make_source(
            [["id", "k", "v"], ["1", "a", "b"]],
            [["id", "k", "v"], ["x"]],
        )
        options = ComparisonOptions(identity_column=1, encoding="utf-8")

        with pytest.raises(ConfigurationError, match="row 0"):
            compare(source, options)

    def test_arity_mismatch(self, make_source, options):
        """Test that matched rows of different width fail the run."""
        source = make_source([HEADER, ["1", "a"]], [HEADER, ["1", "a", "extra"]])

        with pytest.raises(RowArityError):
            compare(source, options)

    def test_no_finished_event_on_failure(self, make_source, options):
        """Test that a failed run never reports a result."""
        source = make_source([HEADER, ["1", "a"]], [HEADER, ["1", "a", "extra"]])
        recorder = EventRecorder()

        with pytest.raises(RowArityError):
            compare(source, options, recorder)

        assert "finished" not in [e[0] for e in recorder.events]

    def test_missing_file(self, tmp_path, write_csv, options):
        """Test that a missing file raises OSError."""
        source = ComparisonSource(
            expected=write_csv("expected.csv", [HEADER]),
            actual=tmp_path / "missing.csv",
        )

        with pytest.raises(OSError):
            compare(source, options)

    def test_parse_error_propagates(self, tmp_path, write_csv, options):
        """Test that malformed input reaches the caller as csv.Error."""
        actual = tmp_path / "actual.csv"
        actual.write_text('id,val\n1,"x"y\n', encoding="utf-8")
        source = ComparisonSource(expected=write_csv("expected.csv", [HEADER]), actual=actual)

        with pytest.raises(csv.Error):
            compare(source, options)


class TestEncodingAndOutput:
    """Test encoding resolution and the result directory."""

    def test_encoding_detected_when_not_overridden(self, make_source):
        """Test that each file's encoding is resolved when there is no override."""
        source = make_source([HEADER, ["1", "a"]], [HEADER, ["1", "a"]])

        with patch(
            "csv_comparator.comparison.engine.resolve_encoding",
            return_value="utf-8"
        ) as resolve:
            compare(source, ComparisonOptions())

        resolve.assert_any_call(source.expected, None)
        resolve.assert_any_call(source.actual, None)

    def test_encoding_override(self, write_csv):
        """Test comparing latin-1 files with an explicit encoding."""
        source = ComparisonSource(
            expected=write_csv("e.csv", [HEADER, ["1", "café"]], encoding="latin-1"),
            actual=write_csv("a.csv", [HEADER, ["1", "cafe"]], encoding="latin-1"),
        )

        result = compare(source, ComparisonOptions(encoding="latin-1"))

        assert result.rows_modified == (("1", "cafe"),)

    def test_result_directory_created(self, tmp_path, make_source):
        """Test that the result location is created before comparing."""
        location = tmp_path / "results" / "nested"
        options = ComparisonOptions(encoding="utf-8", result=ResultOptions(location=location))

        compare(make_source([HEADER], [HEADER]), options)

        assert location.is_dir()

    def test_result_directory_exists_when_comparison_starts(self, tmp_path, make_source):
        """Test that observers can write into the result location from the first event."""
        location = tmp_path / "out" / "nested"
        options = ComparisonOptions(encoding="utf-8", result=ResultOptions(location=location))

        class ReportWriter(ComparisonObserver):
            def comparison_started(self, source, opts):
                self.report = open(opts.result.location / "report.txt", "w", encoding="utf-8")

            def row_inserted(self, row, headers, opts):
                self.report.write(",".join(row) + "\n")

            def comparison_finished(self, source, opts, result):
                self.report.close()

        compare(make_source([HEADER], [HEADER, ["2", "y"]]), options, ReportWriter())

        assert (location / "report.txt").read_text(encoding="utf-8") == "2,y\n"

    def test_independent_runs(self, make_source, options):
        """Test that two runs of the same comparator do not share state."""
        source = make_source([HEADER, ["1", "a"]], [HEADER, ["2", "b"]])
        comparator = CsvComparator(source, options)

        first = comparator.compare()
        second = comparator.compare()

        assert first == second
        assert first is not second
