from kmrl_docs.ingestion.validator import MAX_FILE_SIZE_BYTES, FileValidator, RejectionReason
from kmrl_docs.models import RawFile


def make_file(name, mime_type, size_bytes=1024):
    return RawFile(name=name, mime_type=mime_type, size_bytes=size_bytes, last_modified_ms=0)


def test_mixed_batch_keeps_supported_files_in_order():
    files = [
        make_file("a.pdf", "application/pdf", 2 * 1024 * 1024),
        make_file("b.png", "image/png", 1024 * 1024),
        make_file("c.zip", "application/zip", 1024 * 1024),
    ]
    rejected = []

    accepted = FileValidator().validate(files, on_reject=rejected.append)

    assert [file.name for file in accepted] == ["a.pdf", "b.png"]
    assert len(rejected) == 1
    assert rejected[0].file_name == "c.zip"
    assert rejected[0].reason is RejectionReason.UNSUPPORTED_TYPE
    assert rejected[0].message == "File type not supported: c.zip"


def test_size_ceiling_is_inclusive():
    validator = FileValidator()

    at_limit = make_file("limit.pdf", "application/pdf", MAX_FILE_SIZE_BYTES)
    over_limit = make_file("big.pdf", "application/pdf", MAX_FILE_SIZE_BYTES + 1)

    assert validator.check(at_limit) is None
    rejection = validator.check(over_limit)
    assert rejection.reason is RejectionReason.TOO_LARGE
    assert rejection.message == "File too large: big.pdf (max 50MB)"


def test_file_failing_both_checks_reports_type():
    rejection = FileValidator().check(make_file("huge.exe", "application/x-msdownload", MAX_FILE_SIZE_BYTES * 2))

    assert rejection.reason is RejectionReason.UNSUPPORTED_TYPE


def test_empty_batch():
    result = FileValidator().screen([])

    assert result.accepted == []
    assert result.rejections == []


def test_rejection_as_dict():
    rejection = FileValidator().check(make_file("c.zip", "application/zip"))

    assert rejection.as_dict() == {
        "file_name": "c.zip",
        "reason": "unsupported_type",
        "message": "File type not supported: c.zip",
    }
