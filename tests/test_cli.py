import json
from pathlib import Path

import pytest

from arcstory.core.config import RuntimeConfig
from arcstory.data.paths import get_sample_project_path
from arcstory.data.repositories import ProjectRepository
from arcstory.presentation.cli import app
from arcstory.services.story_service import StoryService
from tests.helpers.project_builder import ProjectBuilder


@pytest.fixture(autouse=True)
def _no_log_handlers(monkeypatch) -> None:
    monkeypatch.setattr(app, "configure_logging", lambda level: None)


def _scripted_inputs(*answers: str):
    queue = list(answers)
    prompts: list[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return queue.pop(0)

    return fake_input, prompts


def _sample_service() -> StoryService:
    project = ProjectRepository(get_sample_project_path()).load()
    return StoryService(project, config=RuntimeConfig(seed=1))


def test_story_loop_plays_to_the_end() -> None:
    fake_input, prompts = _scripted_inputs("1", "1", "3", "1", "2", "n")
    output: list[str] = []

    visited = app.run_story_loop(_sample_service(), input_fn=fake_input, output_fn=output.append)

    assert visited == ["el_start", "el_forest", "el_start", "el_shop", "el_start", "el_gate"]
    assert prompts[-1] == "Play again? (y/n): "
    assert "~ The End ~" in output


def test_story_loop_handles_back_restart_and_bad_input() -> None:
    fake_input, _ = _scripted_inputs("b", "9", "x", "1", "b", "r", "q")
    output: list[str] = []
    service = _sample_service()

    visited = app.run_story_loop(service, input_fn=fake_input, output_fn=output.append)

    assert visited == ["el_start", "el_forest", "el_start", "el_start"]
    assert "There is no previous element to go back to." in output
    assert output.count(app._HELP) == 2
    assert service.get_variable("has_key") is False


def test_story_loop_play_again_restarts() -> None:
    project = ProjectBuilder().element("start", "Fin.").build()
    fake_input, _ = _scripted_inputs("y", "n")
    visited = app.run_story_loop(StoryService(project), input_fn=fake_input, output_fn=lambda line: None)
    assert visited == ["start", "start"]


def test_main_validate_sample(capsys) -> None:
    assert app.main([str(get_sample_project_path()), "--validate"]) == 0
    assert "0 issue(s), 0 error(s)." in capsys.readouterr().out


def test_main_validate_reports_errors(tmp_path: Path, capsys) -> None:
    path = tmp_path / "bad.json"
    path.write_text(
        json.dumps(
            {
                "startingElement": "e1",
                "elements": {"e1": {"outputs": ["c_missing"]}},
            }
        ),
        encoding="utf-8",
    )
    assert app.main([str(path), "--validate"]) == 1
    out = capsys.readouterr().out
    assert "MISSING_CONNECTION_REF" in out
    assert "1 issue(s), 1 error(s)." in out


def test_main_reports_load_errors(tmp_path: Path, capsys) -> None:
    assert app.main([str(tmp_path / "absent.json")]) == 1
    assert "Could not load project" in capsys.readouterr().out


def test_main_quits_cleanly(monkeypatch, capsys) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt="": "q")
    assert app.main(["--seed", "3", "--config", "/nonexistent/arcstory.json"]) == 0
    out = capsys.readouterr().out
    assert "== The Crossroads ==" in out
    assert out.rstrip().endswith("Goodbye!")


def test_main_handles_end_of_input(monkeypatch, capsys) -> None:
    def raise_eof(prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", raise_eof)
    assert app.main([str(get_sample_project_path())]) == 0
    assert "Goodbye!" in capsys.readouterr().out
