from scrubber.database.models import FieldMapping
from scrubber.detection.models import PiiCategory, PiiCounts
from scrubber.processor.models import FilterReason, RunStatistics, build_content


class TestPiiCounts:
    def test_increment_by_category(self) -> None:
        counts = PiiCounts()
        counts.increment(PiiCategory.PERSON)
        counts.increment(PiiCategory.PERSON)
        counts.increment(PiiCategory.ADDRESS)
        assert counts.as_dict() == {
            "names": 2,
            "emails": 0,
            "phones": 0,
            "companies": 0,
            "addresses": 1,
        }

    def test_add_and_total(self) -> None:
        total = PiiCounts(emails=1)
        total.add(PiiCounts(emails=2, phones=1))
        assert total.emails == 3
        assert total.total() == 4


class TestRunStatistics:
    def test_filter_breakdown_keys(self) -> None:
        stats = RunStatistics()
        stats.record_filter(FilterReason.STATUS)
        stats.record_filter(FilterReason.STATUS)
        stats.record_filter(FilterReason.DATE_RANGE)
        assert stats.as_dict()["filter_breakdown"] == {
            "min_length": 0,
            "min_characters": 0,
            "status": 2,
            "date_range": 1,
        }

    def test_errors_are_capped(self) -> None:
        stats = RunStatistics(max_errors=2)
        for row in range(1, 6):
            stats.record_error(row, "bad row")
        assert stats.as_dict()["errors"] == [
            {"row": 1, "message": "bad row"},
            {"row": 2, "message": "bad row"},
        ]

    def test_blob_shape(self) -> None:
        assert set(RunStatistics().as_dict()) == {"pii_counts", "filter_breakdown", "errors"}


class TestContent:
    def test_build_content(self) -> None:
        assert build_content("agent", "Hello", {"ticket_id": "1"}) == {
            "messages": [{"role": "agent", "content": "Hello"}],
            "metadata": {"ticket_id": "1"},
        }


class TestRecords:
    def test_field_mapping_lookup(self) -> None:
        mapping = FieldMapping(columns={"message_content": "body", "status": "state"})
        assert mapping.message_column == "body"
        assert mapping.column_for("status") == "state"
        assert mapping.column_for("subject") is None
