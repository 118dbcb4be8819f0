from arcstory.data.paths import get_sample_project_path
from arcstory.data.repositories import ProjectRepository
from arcstory.services.story_graph_validator import format_issue, validate_project
from tests.helpers.project_builder import ProjectBuilder


def _codes(issues) -> list[str]:
    return [issue.code for issue in issues]


def test_sample_project_is_clean() -> None:
    project = ProjectRepository(get_sample_project_path()).load()
    issues = validate_project(project)
    assert issues == [], "\n".join(format_issue(issue) for issue in issues)


def test_missing_start() -> None:
    project = ProjectBuilder(start="ghost").element("start").build()
    assert "MISSING_START" in _codes(validate_project(project))


def test_missing_references_are_errors() -> None:
    project = (
        ProjectBuilder()
        .element("start", outputs=["c_missing", "c_bad", "c_br", "c_jump"])
        .link("c_bad", "start", "nowhere")
        .link("c_br", "start", "br")
        .branch("br", "cond_missing", "cond_dangling")
        .condition("cond_dangling", "true", "c_gone")
        .jumper("j", "ghost")
        .link("c_jump", "start", "j")
        .build()
    )
    issues = validate_project(project)
    errors = {issue.code for issue in issues if issue.severity == "ERROR"}
    assert errors == {
        "MISSING_CONNECTION_REF",
        "MISSING_TARGET",
        "MISSING_CONDITION_REF",
        "MISSING_CONDITION_OUTPUT",
        "MISSING_JUMPER_TARGET",
    }


def test_else_must_be_last() -> None:
    project = (
        ProjectBuilder()
        .element("start", outputs=["c_in"])
        .element("a")
        .link("c_in", "start", "br")
        .branch("br", "k_else", "k_if")
        .condition("k_else", None, "c_a")
        .condition("k_if", "true", "c_a")
        .link("c_a", "br", "a")
        .build()
    )
    issues = validate_project(project)
    assert _codes(issues) == ["ELSE_NOT_LAST"]
    assert issues[0].context == {"branch_id": "br", "condition_id": "k_else"}


def test_empty_branch_and_source_mismatch_are_warnings() -> None:
    project = (
        ProjectBuilder()
        .element("start", outputs=["c_in", "c_other"])
        .element("other")
        .link("c_in", "start", "br")
        .link("c_other", "elsewhere", "other")
        .branch("br")
        .build()
    )
    issues = validate_project(project)
    assert sorted(_codes(issues)) == ["CONNECTION_SOURCE_MISMATCH", "EMPTY_BRANCH"]
    assert all(issue.severity == "WARN" for issue in issues)


def test_branch_cycles_are_reported_once() -> None:
    project = (
        ProjectBuilder()
        .element("start", outputs=["c_in"])
        .link("c_in", "start", "b1")
        .branch("b1", "k1")
        .condition("k1", "true", "c_12")
        .link("c_12", "b1", "b2")
        .branch("b2", "k2")
        .condition("k2", "true", "c_21")
        .link("c_21", "b2", "b1")
        .build()
    )
    issues = [issue for issue in validate_project(project) if issue.code == "BRANCH_CYCLE"]
    assert len(issues) == 1
    assert issues[0].context["cycle"] == "b1 -> b2 -> b1"


def test_unreachable_elements_are_warnings() -> None:
    project = (
        ProjectBuilder()
        .element("start", outputs=["c_a"])
        .element("a")
        .element("island")
        .link("c_a", "start", "a")
        .build()
    )
    issues = validate_project(project)
    assert _codes(issues) == ["UNREACHABLE_NODE"]
    assert issues[0].context == {"element_id": "island"}


def test_script_problems_are_reported_with_location() -> None:
    project = (
        ProjectBuilder()
        .element("start", "Hello\nif gold >\nendif\n{1 +}", outputs=["c_in"])
        .element("a")
        .link("c_in", "start", "br", "Go {")
        .branch("br", "k")
        .condition("k", "gold ==", "c_a")
        .link("c_a", "br", "a")
        .build()
    )
    issues = validate_project(project)
    located = [(issue.code, issue.context) for issue in issues]
    assert ("PARSE_ERROR", {"source_id": "start", "line": "2"}) in located
    assert ("PARSE_ERROR", {"source_id": "start", "line": "4"}) in located
    assert ("PARSE_ERROR", {"condition_id": "k"}) in located
    assert validate_project(project, check_scripts=False) == []


def test_format_issue() -> None:
    project = ProjectBuilder(start="ghost").build()
    text = format_issue(validate_project(project)[0])
    assert text == "[ERROR] MISSING_START: Project has no valid starting element. (referenced_id=ghost)"
