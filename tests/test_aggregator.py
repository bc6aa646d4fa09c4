from kmrl_docs.ingestion.aggregator import summarize
from kmrl_docs.models import FileMetadata


def test_summarize_empty_batch():
    summary = summarize({})

    assert summary.total_files == 0
    assert summary.departments_detected == []
    assert summary.all_tags == []
    assert summary.date_range.earliest is None
    assert summary.date_range.latest is None


def test_summarize_collects_distinct_values_and_date_bounds():
    metadata = {
        "a.pdf": FileMetadata(title="A", date="2024-03-15", department="Finance", tags=["budget", "audit"]),
        "b.pdf": FileMetadata(title="B", date="2023-11-02", department="", tags=["audit", "tender"]),
        "c.pdf": FileMetadata(title="C", date="2024-01-20", department="Finance", tags=[]),
    }

    summary = summarize(metadata)

    assert summary.total_files == 3
    assert summary.departments_detected == ["Finance"]
    assert summary.all_tags == ["budget", "audit", "tender"]
    assert summary.date_range.earliest == "2023-11-02"
    assert summary.date_range.latest == "2024-03-15"


def test_summarize_accepts_plain_mappings():
    summary = summarize({"x.txt": {"title": "X", "date": None, "department": "HR", "tags": None}})

    assert summary.total_files == 1
    assert summary.departments_detected == ["HR"]
    assert summary.all_tags == []
    assert summary.date_range.earliest is None
