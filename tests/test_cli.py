import pytest

from kmrl_docs import cli
from kmrl_docs.core.config import Settings
from kmrl_docs.ingestion.connectors import DocumentConnectors
from kmrl_docs.ingestion.pipeline import IngestionOrchestrator
from kmrl_docs.ingestion.store import DocumentStore, MemoryStoreBackend


class StubConnector:
    connector_id = "hr-portal"

    async def fetch_documents(self):
        return [{"id": "ext-7", "title": "Payroll Calendar", "department": "Finance", "date": "2024-01-02", "source": "HR Portal"}]


@pytest.fixture
def orchestrator(monkeypatch):
    orchestrator = IngestionOrchestrator(
        store=DocumentStore(MemoryStoreBackend()),
        extractor=None,
        connectors=DocumentConnectors([StubConnector()]),
        settings=Settings(),
    )
    monkeypatch.setattr(cli, "get_orchestrator", lambda: orchestrator)
    return orchestrator


def test_sync_then_list(orchestrator, capsys):
    cli.main(["sync", "hr-portal"])
    cli.main(["list"])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "ext-7\tfinancial\tPayroll Calendar"
    assert lines[1] == "ext-7\tapproved\tfinancial\tPayroll Calendar"


def test_sync_unknown_connector_exits(orchestrator):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync", "jira"])

    assert excinfo.value.code == 1


def test_serve_is_default_command(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "run_server", lambda host, port: calls.append((host, port)))

    cli.main([])
    cli.main(["serve", "--port", "9000"])

    assert calls == [(None, None), (None, 9000)]
