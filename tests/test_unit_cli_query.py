"""
Unit tests for the listdata-query CLI.

Tests cover:
- Running a request file against a records file
- Defaults when no request is given
- Engine rejections reported on stderr with exit code 1
- Unreadable or malformed input files (exit code 2)
"""

import json

import pytest

from cli import query


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch):
    """Keep the CLI from replacing pytest's logging handlers."""
    monkeypatch.setattr(query, "configure_structured_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(query, "init_telemetry", lambda: None)


@pytest.fixture
def records_file(tmp_path, fruit_records):
    path = tmp_path / "records.json"
    path.write_text(json.dumps(fruit_records), encoding="utf-8")
    return path


def _write(tmp_path, name, payload):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


class TestQueryCommand:
    """Tests for cli.query.main."""

    @pytest.mark.anyio
    async def test_runs_request(self, tmp_path, records_file, capsys):
        request = _write(
            tmp_path,
            "request.json",
            {
                "pagination": {"page": 1, "limit": 2},
                "filters": {"filters": [{"field": "active", "operator": "EQUALS", "value": True}]},
                "sort": {"fields": [{"field": "name", "direction": "DESC"}]},
            },
        )

        exit_code = query.main([str(records_file), "--request", request])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert [item["name"] for item in output["items"]] == ["Elm", "Cherry"]
        assert output["pagination"]["total_items"] == 3
        assert output["pagination"]["has_next"] is True

    @pytest.mark.anyio
    async def test_without_request_returns_first_page(self, records_file, capsys):
        assert query.main([str(records_file)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert len(output["items"]) == 5
        assert output["search_results"] == []

    @pytest.mark.anyio
    async def test_search_request(self, tmp_path, records_file, capsys):
        request = _write(tmp_path, "request.json", {"search": {"query": "ap"}})
        assert query.main([str(records_file), "-r", request]) == 0
        output = json.loads(capsys.readouterr().out)
        assert [item["name"] for item in output["items"]] == ["Apple"]
        assert output["search_results"][0]["highlights"] == ["<mark>Ap</mark>ple"]

    @pytest.mark.anyio
    async def test_rejected_request(self, tmp_path, records_file, capsys):
        request = _write(
            tmp_path,
            "request.json",
            {"filters": {"filters": [{"field": "id", "operator": "BETWEEN", "value": [1, 2, 3]}]}},
        )

        assert query.main([str(records_file), "--request", request]) == 1
        captured = capsys.readouterr()
        error = json.loads(captured.err)
        assert captured.out == ""
        assert error["error"] == "ConfigurationError"
        assert error["status_code"] == 400
        assert error["details"]["path"] == "$.filters[0]"

    @pytest.mark.anyio
    async def test_missing_records_file(self, tmp_path):
        assert query.main([str(tmp_path / "missing.json")]) == 2

    @pytest.mark.anyio
    async def test_records_must_be_an_array(self, tmp_path):
        records = _write(tmp_path, "records.json", {"id": 1})
        assert query.main([records]) == 2

    @pytest.mark.anyio
    async def test_request_must_be_an_object(self, tmp_path, records_file):
        request = _write(tmp_path, "request.json", [1, 2])
        assert query.main([str(records_file), "--request", request]) == 2
