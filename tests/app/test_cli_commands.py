from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from exam_harvester.app import AppState, app
from exam_harvester.engine.models import HarvestResult, QuestionRecord, RunSummary
from exam_harvester.errors import DiscoveryError


class StubPipeline:
    def __init__(self, config, result: HarvestResult | None = None, error: Exception | None = None) -> None:
        self.config = config
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str, bool, str | None]] = []
        self.closed = False

    def run(self, provider: str, exam_filter: str = "", use_cache: bool = True, token: str | None = None):
        self.calls.append((provider, exam_filter, use_cache, token))
        if self.error is not None:
            raise self.error
        return self.result

    def list_exams(self, provider: str) -> list[str]:
        return [f"https://exams.example/exams/{provider}/saa-c03/"]

    def close(self) -> None:
        self.closed = True


def live_result(count: int = 2) -> HarvestResult:
    records = [
        QuestionRecord(
            title=f"Question {n}",
            content=f"Body {n}",
            choices=("A. yes", "B. no"),
            answer="A",
            timestamp="2024-01-01",
            link=f"https://exams.example/d/question-{n}",
        )
        for n in range(1, count + 1)
    ]
    summary = RunSummary(
        provider="amazon",
        exam_filter="saa-c03",
        origin="live",
        pages=1,
        discovered_links=count,
        unique_links=count,
        scheduled=count + 1,
        produced=count,
    )
    return HarvestResult(records=records, summary=summary)


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, harvest_config):
    config = harvest_config(output={"path": str(tmp_path / "exam.md"), "links_path": str(tmp_path / "links.txt")})
    saved: list = []
    repository = SimpleNamespace(
        locator=SimpleNamespace(logs_dir=tmp_path),
        save=lambda cfg: saved.append(cfg) or tmp_path / "harvester_config.yaml",
    )
    state = AppState(repository=repository, config=config)
    pipelines: list[StubPipeline] = []
    env = SimpleNamespace(state=state, pipelines=pipelines, saved=saved, tmp_path=tmp_path, result=live_result(), error=None)

    def fake_build_pipeline(effective_config, show_progress: bool) -> StubPipeline:
        pipeline = StubPipeline(effective_config, env.result, env.error)
        pipelines.append(pipeline)
        return pipeline

    monkeypatch.setattr("exam_harvester.app.build_state", lambda *args, **kwargs: state)
    monkeypatch.setattr("exam_harvester.app.build_pipeline", fake_build_pipeline)
    return env


def test_run_writes_document_and_summary(cli_env) -> None:
    result = CliRunner().invoke(app, ["run", "amazon", "-s", "saa-c03", "-t", "tkn"])
    assert result.exit_code == 0, result.stdout
    assert "Harvest summary" in result.stdout

    document = (cli_env.tmp_path / "exam.md").read_text(encoding="utf-8")
    assert "## Question 1" in document
    assert "## Question 2" in document
    pipeline = cli_env.pipelines[0]
    assert pipeline.calls == [("amazon", "saa-c03", True, "tkn")]
    assert pipeline.closed


def test_run_applies_overrides(cli_env) -> None:
    result = CliRunner().invoke(
        app,
        [
            "run",
            "amazon",
            "-s",
            "saa-c03",
            "--type",
            "html",
            "--save-links",
            "--no-cache",
            "--fetch-workers",
            "7",
            "--rps",
            "2.5",
            "--quiet",
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert "Harvest summary" not in result.stdout
    assert (cli_env.tmp_path / "exam.html").exists()
    assert (cli_env.tmp_path / "links.txt").read_text(encoding="utf-8").splitlines() == [
        "https://exams.example/d/question-1",
        "https://exams.example/d/question-2",
    ]
    pipeline = cli_env.pipelines[0]
    assert pipeline.config.concurrency.fetch == 7
    assert pipeline.config.rate_limit.requests_per_second == 2.5
    assert pipeline.calls[0][2] is False


def test_run_rejects_invalid_override(cli_env) -> None:
    result = CliRunner().invoke(app, ["run", "amazon", "--rps", "0"])
    assert result.exit_code == 2
    assert cli_env.pipelines == []


def test_run_exits_on_discovery_error(cli_env) -> None:
    cli_env.error = DiscoveryError("Cannot determine page count for provider 'nobody'")
    result = CliRunner().invoke(app, ["run", "nobody", "-s", "x"])
    assert result.exit_code == 1
    assert "Cannot determine page count" in result.stdout
    assert cli_env.pipelines[0].closed


def test_run_with_no_results_writes_nothing(cli_env) -> None:
    cli_env.result = live_result(count=0)
    result = CliRunner().invoke(app, ["run", "amazon", "-s", "az-900"])
    assert result.exit_code == 1
    assert "No questions found" in result.stdout
    assert not (cli_env.tmp_path / "exam.md").exists()


def test_exams_lists_provider_exams(cli_env) -> None:
    result = CliRunner().invoke(app, ["exams", "amazon"])
    assert result.exit_code == 0, result.stdout
    assert "https://exams.example/exams/amazon/saa-c03/" in result.stdout


def test_config_show_and_init(cli_env) -> None:
    runner = CliRunner()
    shown = runner.invoke(app, ["config", "show"])
    assert shown.exit_code == 0, shown.stdout
    assert "base_url: https://exams.example" in shown.stdout

    init = runner.invoke(app, ["config", "init"])
    assert init.exit_code == 0, init.stdout
    assert cli_env.saved == [cli_env.state.config]


def test_log_show_tails_harvest_log(cli_env) -> None:
    (cli_env.tmp_path / "harvester.log").write_text("first\nsecond\nthird\n", encoding="utf-8")
    result = CliRunner().invoke(app, ["log", "show", "--tail", "2"])
    assert result.exit_code == 0, result.stdout
    assert "second" in result.stdout
    assert "third" in result.stdout
    assert "first" not in result.stdout


def test_run_renders_pdf_with_boolean_flags(cli_env) -> None:
    result = CliRunner().invoke(app, ["--verbose", "run", "amazon", "-s", "saa-c03", "--type", "pdf", "-c", "--quiet"])
    assert result.exit_code == 0, result.stdout
    written = cli_env.tmp_path / "exam.pdf"
    assert written.read_bytes().startswith(b"%PDF")
    assert "exam.pdf" in result.stdout.replace("\n", "")
    assert cli_env.pipelines[0].config.output.include_comments is True


def test_log_show_errors_flag_reads_error_log(cli_env) -> None:
    (cli_env.tmp_path / "harvester.log").write_text("routine\n", encoding="utf-8")
    (cli_env.tmp_path / "error.log").write_text("boom\n", encoding="utf-8")
    result = CliRunner().invoke(app, ["log", "show", "--errors"])
    assert result.exit_code == 0, result.stdout
    assert "boom" in result.stdout
    assert "routine" not in result.stdout
