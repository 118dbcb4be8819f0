import pytest

from arcstory.domain.state import StoryState
from arcstory.script.interpreter import ScriptInterpreter
from arcstory.services.choice_resolver import Choice, ChoiceResolver
from arcstory.services.errors import CyclicGraphError
from tests.helpers.project_builder import ProjectBuilder


def _resolver(builder: ProjectBuilder, **kwargs) -> ChoiceResolver:
    project = builder.build()
    state = StoryState.from_initial_values(project.initial_values(), seed=1)
    return ChoiceResolver(project, ScriptInterpreter(state), **kwargs)


def _branch_project(outer_label: str, inner_label: str) -> ProjectBuilder:
    return (
        ProjectBuilder()
        .element("start", outputs=["c_in"])
        .element("end")
        .link("c_in", "start", "br", outer_label)
        .branch("br", "cond")
        .condition("cond", "true", "c_out")
        .link("c_out", "br", "end", inner_label)
    )


@pytest.mark.parametrize(
    ("outer", "inner", "expected"),
    [
        ("Fallback", "Go", "Go"),
        ("Fallback", "", "Fallback"),
        ("", "", "Continue"),
        ("  ", "\n", "Continue"),
    ],
)
def test_label_precedence(outer: str, inner: str, expected: str) -> None:
    resolver = _resolver(_branch_project(outer, inner))
    choices = resolver.resolve_choices("start")
    assert [choice.label for choice in choices] == [expected]
    assert choices[0].target_node_id == "end"
    assert choices[0].branch_id == "br"
    assert choices[0].connection_id == "c_in"


def test_default_label_is_configurable() -> None:
    resolver = _resolver(_branch_project("", ""), default_label="Next")
    assert resolver.resolve_choices("start")[0].label == "Next"


def test_direct_element_and_jumper_targets() -> None:
    builder = (
        ProjectBuilder()
        .element("start", outputs=["c_a", "c_j"])
        .element("a")
        .element("far")
        .jumper("j", "far")
        .link("c_a", "start", "a", "To A")
        .link("c_j", "start", "j", "Jump")
    )
    choices = _resolver(builder).resolve_choices("start")
    assert choices == [
        Choice(label="To A", raw_label="To A", target_node_id="a", branch_id=None, connection_id="c_a"),
        Choice(label="Jump", raw_label="Jump", target_node_id="far", branch_id=None, connection_id="c_j"),
    ]


def test_branch_with_no_matching_condition_produces_no_choice() -> None:
    builder = (
        ProjectBuilder()
        .element("start", outputs=["c_dead", "c_live"])
        .element("end")
        .link("c_dead", "start", "br", "Hidden")
        .branch("br", "cond")
        .condition("cond", "false", "c_out")
        .link("c_out", "br", "end")
        .link("c_live", "start", "end", "Visible")
    )
    assert [choice.label for choice in _resolver(builder).resolve_choices("start")] == ["Visible"]


def test_first_true_condition_wins_and_else_catches_the_rest() -> None:
    builder = (
        ProjectBuilder()
        .variable("gold", 3)
        .element("start", outputs=["c_in"])
        .element("rich")
        .element("modest")
        .element("poor")
        .link("c_in", "start", "br", "Shop")
        .branch("br", "c_rich", "c_modest", "c_else")
        .condition("c_rich", "gold > 10", "c_to_rich")
        .condition("c_modest", "gold > 1", "c_to_modest")
        .condition("c_else", None, "c_to_poor")
        .link("c_to_rich", "br", "rich")
        .link("c_to_modest", "br", "modest")
        .link("c_to_poor", "br", "poor")
    )
    resolver = _resolver(builder)
    assert resolver.resolve_choices("start")[0].target_node_id == "modest"
    resolver._interpreter.state.variables["gold"] = 0
    assert resolver.resolve_choices("start")[0].target_node_id == "poor"


def test_choices_keep_output_order() -> None:
    builder = ProjectBuilder().element("start", outputs=["c3", "c1", "c2"])
    for connection_id in ("c1", "c2", "c3"):
        builder.element(connection_id.upper()).link(connection_id, "start", connection_id.upper(), connection_id)
    labels = [choice.label for choice in _resolver(builder).resolve_choices("start")]
    assert labels == ["c3", "c1", "c2"]


def test_nested_branches_inherit_labels_hop_by_hop() -> None:
    builder = (
        ProjectBuilder()
        .element("start", outputs=["c_in"])
        .element("end")
        .link("c_in", "start", "outer", "Outer")
        .branch("outer", "cond_outer")
        .condition("cond_outer", "true", "c_mid")
        .link("c_mid", "outer", "inner", "")
        .branch("inner", "cond_inner")
        .condition("cond_inner", "true", "c_out")
        .link("c_out", "inner", "end", "")
    )
    choice = _resolver(builder).resolve_choices("start")[0]
    assert choice.label == "Outer"
    assert choice.branch_id == "outer"
    assert choice.target_node_id == "end"


def test_branch_cycle_raises() -> None:
    builder = (
        ProjectBuilder()
        .element("start", outputs=["c_in"])
        .link("c_in", "start", "b1", "Loop")
        .branch("b1", "k1")
        .condition("k1", "true", "c_12")
        .link("c_12", "b1", "b2")
        .branch("b2", "k2")
        .condition("k2", "true", "c_21")
        .link("c_21", "b2", "b1")
    )
    with pytest.raises(CyclicGraphError) as excinfo:
        _resolver(builder).resolve_choices("start")
    assert excinfo.value.chain == ("b1", "b2", "b1")


def test_long_branch_chain_hits_the_depth_cap() -> None:
    builder = ProjectBuilder().element("start", outputs=["c0"]).element("end")
    builder.link("c0", "start", "b0", "Deep")
    for index in range(5):
        builder.branch(f"b{index}", f"k{index}")
        builder.condition(f"k{index}", None, f"c{index + 1}")
        target = f"b{index + 1}" if index < 4 else "end"
        builder.link(f"c{index + 1}", f"b{index}", target)
    assert _resolver(builder, max_depth=8).resolve_choices("start")[0].target_node_id == "end"
    with pytest.raises(CyclicGraphError):
        _resolver(builder, max_depth=3).resolve_choices("start")


def test_terminal_element_has_no_choices() -> None:
    assert _resolver(ProjectBuilder().element("start")).resolve_choices("start") == []


def test_dangling_targets_are_skipped() -> None:
    builder = (
        ProjectBuilder()
        .element("start", outputs=["c_missing", "c_nowhere", "c_jump"])
        .jumper("j", "ghost")
        .link("c_nowhere", "start", "nowhere", "Nowhere")
        .link("c_jump", "start", "j", "Jump")
    )
    assert _resolver(builder).resolve_choices("start") == []


def test_labels_render_for_display_only() -> None:
    builder = (
        ProjectBuilder()
        .variable("gold", 4)
        .element("start", outputs=["c_buy"])
        .element("shop")
        .link("c_buy", "start", "shop", "Pay {gold} coins\ngold -= 4")
    )
    resolver = _resolver(builder)
    choice = resolver.resolve_choices("start")[0]
    assert choice.label == "Pay 4 coins"
    assert choice.raw_label == "Pay {gold} coins\ngold -= 4"
    assert resolver._interpreter.state.variables["gold"] == 4


def test_conditions_see_visits_of_the_element_being_resolved() -> None:
    builder = (
        ProjectBuilder()
        .element("start", outputs=["c_in"])
        .element("again")
        .element("first")
        .link("c_in", "start", "br", "Look around")
        .branch("br", "k_again", "k_first")
        .condition("k_again", "visits() > 1", "c_again")
        .condition("k_first", None, "c_first")
        .link("c_again", "br", "again")
        .link("c_first", "br", "first")
    )
    resolver = _resolver(builder)
    state = resolver._interpreter.state
    state.visits["start"] = 1
    assert resolver.resolve_choices("start")[0].target_node_id == "first"
    state.visits["start"] = 2
    assert resolver.resolve_choices("start")[0].target_node_id == "again"
    assert state.current_element_id is None
