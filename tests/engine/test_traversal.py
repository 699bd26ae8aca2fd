"""
Tests for the traversal engine.

Tests cover:
- start node resolution and empty trees
- terminal detection
- visible choices
- taking choices, stepping back and restarting
- dangling references
"""

from treeplayer.core.engine import traversal
from treeplayer.core.models import END_NODE_ID, DecisionTree, PlayStatus, TraversalState, TreeNode


def _tree(nodes, root="") -> DecisionTree:
    return DecisionTree.model_validate({"id": "t", "title": "T", "root_node_id": root, "nodes": nodes})


def _question(node_id, *choices) -> dict:
    return {"id": node_id, "title": node_id, "kind": "question", "choices": list(choices)}


def _choice(choice_id, target=None, conditions=None, set_variable=None) -> dict:
    data = {"id": choice_id, "label": choice_id, "next_node_id": target, "conditions": conditions or []}
    if set_variable:
        data["set_variable"] = set_variable
    return data


class TestInitialize:
    """Tests for start node resolution."""

    def test_starts_at_root(self, scenario_tree):
        state = traversal.initialize(scenario_tree)

        assert state.current_node_id == "Q1"
        assert state.history == ()
        assert state.variables == {}
        assert state.visited_nodes == frozenset()

    def test_dangling_root_falls_back_to_first_node(self):
        tree = _tree([_question("A", _choice("go", "B")), _question("B")], root="missing")
        assert traversal.initialize(tree).current_node_id == "A"

    def test_blank_root_falls_back_to_first_node(self):
        tree = _tree([_question("A", _choice("go", "B")), _question("B")])
        assert traversal.initialize(tree).current_node_id == "A"

    def test_root_not_first(self):
        tree = _tree([_question("A", _choice("go", "B")), _question("B")], root="B")
        assert traversal.initialize(tree).current_node_id == "B"

    def test_empty_tree(self):
        tree = _tree([], root="Q1")
        state = traversal.initialize(tree)

        assert state.current_node_id == ""
        assert traversal.status(tree, state) is PlayStatus.EMPTY_TREE
        assert traversal.current_node(tree, state) is None
        assert traversal.visible_choices(tree, state) == []
        assert traversal.apply_choice(tree, state, "anything") is state


class TestIsTerminal:
    """Tests for terminal detection."""

    def test_missing_node_is_not_terminal(self):
        assert traversal.is_terminal(None) is False

    def test_explicit_end_flag(self):
        node = TreeNode(id="n", kind="question", is_end=True, choices=[_choice("go", "other")])
        assert traversal.is_terminal(node)

    def test_terminal_kind(self):
        node = TreeNode(id="n", kind="terminal", choices=[_choice("go", "other")])
        assert traversal.is_terminal(node)

    def test_legacy_image_node_is_terminal(self):
        node = TreeNode.model_validate({"id": "n", "type": "image", "choices": [_choice("go", "other")]})
        assert node.kind == "terminal"
        assert traversal.is_terminal(node)

    def test_question_without_usable_edge(self):
        node = TreeNode(id="n", kind="question", choices=[_choice("stop"), _choice("blank", "   ")])
        assert traversal.is_terminal(node)

    def test_question_with_edge(self):
        node = TreeNode(id="n", kind="question", choices=[_choice("stop"), _choice("go", "other")])
        assert not traversal.is_terminal(node)


class TestScenarios:
    """End-to-end walks over the two-node scenario tree."""

    def test_yes_sets_variable_and_finishes_on_edgeless_node(self, scenario_tree):
        state = traversal.apply_choice(scenario_tree, traversal.initialize(scenario_tree), "yes-id")

        assert state.current_node_id == "Q2"
        assert state.variables["age"] == "adult"
        assert state.history == ("Q1",)
        assert traversal.is_finished(scenario_tree, state)
        assert traversal.status(scenario_tree, state) is PlayStatus.FINISHED

    def test_no_ends_on_sentinel(self, scenario_tree):
        state = traversal.apply_choice(scenario_tree, traversal.initialize(scenario_tree), "no-id")

        assert state.current_node_id == END_NODE_ID
        assert traversal.is_finished(scenario_tree, state)
        assert state.history == ("Q1",)
        assert traversal.current_node(scenario_tree, state) is None

    def test_variable_condition_unlocks_choice_on_later_node(self):
        adult = {"id": "c", "kind": "variable", "variable_name": "age", "operator": "equals", "value": "adult"}
        tree = _tree(
            [
                _question(
                    "Q1",
                    _choice("grown-up", "Q3", set_variable={"name": "age", "value": "adult"}),
                    _choice("vip", "Q2", conditions=[adult]),
                ),
                _question("Q3", _choice("perk", "Q2", conditions=[adult]), _choice("leave", "Q2")),
                {"id": "Q2", "title": "Done", "kind": "terminal"},
            ],
            root="Q1",
        )
        state = traversal.initialize(tree)
        assert [c.id for c in traversal.visible_choices(tree, state)] == ["grown-up"]

        state = traversal.apply_choice(tree, state, "grown-up")
        assert [c.id for c in traversal.visible_choices(tree, state)] == ["perk", "leave"]

    def test_node_visited_only_after_leaving(self):
        seen_q1 = {"id": "c", "kind": "node_visited", "target_node_id": "Q1", "operator": "exists"}
        tree = _tree(
            [
                _question("Q1", _choice("again", "Q1", conditions=[seen_q1]), _choice("next", "Q2")),
                _question("Q2", _choice("return", "Q1")),
            ],
            root="Q1",
        )
        state = traversal.initialize(tree)
        assert [c.id for c in traversal.visible_choices(tree, state)] == ["next"]

        state = traversal.apply_choice(tree, state, "next")
        state = traversal.apply_choice(tree, state, "return")
        assert state.current_node_id == "Q1"
        assert [c.id for c in traversal.visible_choices(tree, state)] == ["again", "next"]


class TestApplyChoice:
    """Tests for taking a choice."""

    def test_unknown_choice_is_noop(self, scenario_tree):
        state = traversal.initialize(scenario_tree)
        assert traversal.apply_choice(scenario_tree, state, "maybe") is state

    def test_finished_state_is_noop(self, scenario_tree):
        state = traversal.apply_choice(scenario_tree, traversal.initialize(scenario_tree), "no-id")
        assert traversal.apply_choice(scenario_tree, state, "yes-id") is state

    def test_choice_of_another_node_is_noop(self):
        tree = _tree([_question("A", _choice("go", "B")), _question("B", _choice("on", "C")), _question("C")])
        state = traversal.initialize(tree)
        assert traversal.apply_choice(tree, state, "on") is state

    def test_hidden_choice_can_still_be_taken_by_id(self):
        hidden = {"id": "c", "kind": "variable", "variable_name": "x", "operator": "exists"}
        tree = _tree([_question("A", _choice("secret", "B", conditions=[hidden])), _question("B")])
        state = traversal.initialize(tree)

        assert traversal.visible_choices(tree, state) == []
        assert traversal.apply_choice(tree, state, "secret").current_node_id == "B"

    def test_target_is_trimmed(self):
        tree = _tree([_question("A", _choice("go", "  B ")), _question("B")])
        state = traversal.apply_choice(tree, traversal.initialize(tree), "go")
        assert state.current_node_id == "B"

    def test_does_not_mutate_previous_state(self, scenario_tree):
        start = traversal.initialize(scenario_tree)
        traversal.apply_choice(scenario_tree, start, "yes-id")

        assert start.current_node_id == "Q1"
        assert start.variables == {}
        assert start.history == ()
        assert start.visited_nodes == frozenset()

    def test_states_do_not_share_variables(self, scenario_tree):
        start = traversal.initialize(scenario_tree)
        after = traversal.apply_choice(scenario_tree, start, "yes-id")
        back = traversal.step_back(after)

        assert back.variables is not after.variables
        back.variables["age"] = "child"
        assert after.variables == {"age": "adult"}

    def test_states_are_hashable(self, scenario_tree):
        start = traversal.initialize(scenario_tree)
        after = traversal.apply_choice(scenario_tree, start, "yes-id")
        same = TraversalState(
            current_node_id=after.current_node_id,
            history=after.history,
            variables=dict(after.variables),
            visited_nodes=after.visited_nodes,
        )

        assert hash(after) == hash(same)
        assert len({start, after, same}) == 2

    def test_revisits_keep_single_visited_entry(self):
        tree = _tree([_question("A", _choice("loop", "A"), _choice("out", "B")), _question("B")])
        state = traversal.initialize(tree)
        state = traversal.apply_choice(tree, state, "loop")
        state = traversal.apply_choice(tree, state, "loop")

        assert state.history == ("A", "A")
        assert state.visited_nodes == frozenset({"A"})

    def test_variable_overwrite(self):
        tree = _tree(
            [
                _question("A", _choice("first", "B", set_variable={"name": "pick", "value": "a"})),
                _question("B", _choice("second", "C", set_variable={"name": "pick", "value": "b"})),
                _question("C"),
            ]
        )
        state = traversal.initialize(tree)
        state = traversal.apply_choice(tree, state, "first")
        state = traversal.apply_choice(tree, state, "second")
        assert state.variables == {"pick": "b"}

    def test_dangling_target_reports_missing_node(self):
        tree = _tree([_question("A", _choice("go", "ghost"))])
        state = traversal.apply_choice(tree, traversal.initialize(tree), "go")

        assert state.current_node_id == "ghost"
        assert not traversal.is_finished(tree, state)
        assert traversal.status(tree, state) is PlayStatus.NODE_NOT_FOUND
        assert traversal.visible_choices(tree, state) == []
        assert traversal.apply_choice(tree, state, "go") is state
        assert traversal.step_back(state).current_node_id == "A"


class TestStepBackAndRestart:
    def test_step_back_restores_position_but_keeps_effects(self, scenario_tree):
        start = traversal.initialize(scenario_tree)
        moved = traversal.apply_choice(scenario_tree, start, "yes-id")
        back = traversal.step_back(moved)

        assert back.current_node_id == start.current_node_id
        assert len(back.history) == len(start.history)
        assert back.variables == moved.variables == {"age": "adult"}
        assert back.visited_nodes == moved.visited_nodes == frozenset({"Q1"})

    def test_step_back_from_sentinel(self, scenario_tree):
        ended = traversal.apply_choice(scenario_tree, traversal.initialize(scenario_tree), "no-id")
        back = traversal.step_back(ended)

        assert back.current_node_id == "Q1"
        assert not traversal.is_finished(scenario_tree, back)

    def test_step_back_without_history_is_noop(self):
        state = TraversalState(current_node_id="Q1")
        assert traversal.step_back(state) is state

    def test_restart_is_idempotent(self, scenario_tree):
        moved = traversal.apply_choice(scenario_tree, traversal.initialize(scenario_tree), "yes-id")
        once = traversal.restart(scenario_tree)
        twice = traversal.restart(scenario_tree)

        assert once == twice
        assert once == traversal.initialize(scenario_tree)
        assert once != moved


class TestVisibleChoices:
    def test_finished_states_have_no_choices(self, scenario_tree):
        for choice_id in ("yes-id", "no-id"):
            state = traversal.apply_choice(scenario_tree, traversal.initialize(scenario_tree), choice_id)
            assert traversal.visible_choices(scenario_tree, state) == []

    def test_terminal_node_with_choices_shows_none(self):
        tree = _tree([{"id": "A", "kind": "question", "is_end": True, "choices": [_choice("go", "B")]}, _question("B")])
        assert traversal.visible_choices(tree, traversal.initialize(tree)) == []

    def test_order_preserved(self):
        tree = _tree([_question("A", _choice("c", "B"), _choice("a", "B"), _choice("b")), _question("B")])
        assert [c.id for c in traversal.visible_choices(tree, traversal.initialize(tree))] == ["c", "a", "b"]
