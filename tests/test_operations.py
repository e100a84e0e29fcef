"""Tests for the FIFO operation queue and the "expand all" step."""

import pytest

from treegridlib.core import LoadingState, Row, TreeModel
from treegridlib.operations import (
    ExpandAllState,
    Operation,
    OperationQueue,
    expand_all_step,
)
from treegridlib.reconcile import merge_children, promote_requested


def count_to(limit):
    """Step function that counts up and finishes at ``limit``."""
    def step(op):
        if op.state >= limit:
            return op.mark_done()
        return op.update_state(op.state + 1)
    return step


class TestOperation:
    def test_mark_done_returns_new_operation(self):
        op = Operation(id=1, state="s", step=lambda o: o)
        done = op.mark_done()
        assert done.is_done and not op.is_done
        assert done.id == op.id and done.state == op.state

    def test_update_state_keeps_identity(self):
        op = Operation(id=3, state={"n": 1}, step=lambda o: o)
        updated = op.update_state({"n": 2})
        assert updated.id == 3
        assert updated.state == {"n": 2}
        assert op.state == {"n": 1}


class TestOperationQueue:
    def test_ids_increase(self):
        queue = OperationQueue()
        first = queue.enqueue(0, count_to(1))
        second = queue.enqueue(0, count_to(1))
        assert second.id == first.id + 1

    def test_queues_number_independently(self):
        a, b = OperationQueue(), OperationQueue()
        assert a.enqueue(0, count_to(1)).id == 0
        assert a.enqueue(0, count_to(1)).id == 1
        assert b.enqueue(0, count_to(1)).id == 0

    def test_empty_queue_does_nothing(self):
        queue = OperationQueue()
        assert queue.advance() is False
        assert queue.head is None

    def test_only_head_advances(self):
        queue = OperationQueue()
        queue.enqueue(0, count_to(2))
        queue.enqueue(10, count_to(12))

        queue.advance()
        first, second = queue.operations()
        assert first.state == 1
        assert second.state == 10

    def test_fifo_processing(self):
        queue = OperationQueue()
        first = queue.enqueue(0, count_to(1))
        second = queue.enqueue(5, count_to(6))

        queue.advance()           # first: 0 -> 1
        queue.advance()           # first: marked done
        assert queue.head.id == first.id and queue.head.is_done
        queue.advance()           # first dequeued
        assert queue.head.id == second.id
        assert queue.head.state == 5

        queue.advance()           # second: 5 -> 6
        queue.advance()           # second: done
        queue.advance()           # second dequeued
        assert len(queue) == 0
        assert not queue

    def test_advance_reports_unchanged_step(self):
        queue = OperationQueue()
        queue.enqueue("waiting", lambda op: op)
        assert queue.advance() is False
        assert len(queue) == 1


@pytest.fixture
def tree():
    """root -> a (expandable), b (expandable), c (leaf)"""
    return TreeModel.from_rows([
        Row("a", expandable=True),
        Row("b", expandable=True),
        Row("c"),
    ])


def start(model, now=0.0):
    state = ExpandAllState(frozenset([model.root_id]), now)
    return Operation(id=0, state=state, step=lambda o: o)


class TestExpandAllStep:
    def test_requests_every_expandable_not_loaded_node(self, tree):
        op, model = expand_all_step(start(tree), tree, now=0.1)

        assert not op.is_done
        assert op.state.loading_ids == {"a", "b"}
        assert model.get("a").loading_state == LoadingState.LOAD_REQUESTED
        assert model.get("b").loading_state == LoadingState.LOAD_REQUESTED
        assert model.get("c").loading_state == LoadingState.NOT_LOADED
        assert model.version == tree.version + 1

    def test_does_not_expand_by_default(self, tree):
        _, model = expand_all_step(start(tree), tree, now=0.1)
        assert not model.get("a").is_expanded

    def test_expand_flag_sets_is_expanded(self, tree):
        _, model = expand_all_step(start(tree), tree, now=0.1, expand=True)
        assert model.get("a").is_expanded and model.get("b").is_expanded
        assert not model.get("c").is_expanded

    def test_expand_flag_respects_later_collapse(self, tree):
        op, model = expand_all_step(start(tree), tree, now=0.1, expand=True)
        model, _ = promote_requested(model)
        model = merge_children(model, "a", [Row("a1", expandable=True)])
        model = model.upsert(model.get("a").with_expanded(False))

        op, model = expand_all_step(op, model, now=0.2, expand=True)

        assert not model.get("a").is_expanded
        # Nodes reached for the first time are still expanded
        assert model.get("a1").is_expanded
        assert op.state.expanded_ids == {"a", "b", "a1"}

    def test_waits_while_loading(self, tree):
        op, model = expand_all_step(start(tree), tree, now=0.1)
        model, _ = promote_requested(model)

        again, same = expand_all_step(op, model, now=0.2)
        assert again.state.loading_ids == {"a", "b"}
        assert same is model
        assert not again.is_done

    def test_finishes_when_frontier_exhausted(self, tree):
        op, model = expand_all_step(start(tree), tree, now=0.1)
        model, _ = promote_requested(model)
        model = merge_children(model, "a", [Row("a1", expandable=True), Row("a2")])
        model = merge_children(model, "b", [])

        # Next level is discovered
        op, model = expand_all_step(op, model, now=0.2)
        assert op.state.loading_ids == {"a1"}
        assert model.get("a1").loading_state == LoadingState.LOAD_REQUESTED

        model, _ = promote_requested(model)
        model = merge_children(model, "a1", [Row("a1x")])

        op, model = expand_all_step(op, model, now=0.3)
        assert op.is_done

    def test_done_when_nothing_to_load(self):
        model = TreeModel.from_rows([Row("leaf")])
        op, same = expand_all_step(start(model), model, now=0.1)
        assert op.is_done
        assert same is model

    def test_empty_awaiting_set_marks_done(self, tree):
        op = Operation(id=0, state=ExpandAllState(frozenset(), 0.0), step=lambda o: o)
        done, _ = expand_all_step(op, tree, now=0.0)
        assert done.is_done

    def test_gives_up_after_budget(self, tree):
        """A child stuck in LOADING must not keep the operation alive."""
        op, model = expand_all_step(start(tree, now=100.0), tree, now=100.1)
        model, _ = promote_requested(model)
        model = merge_children(model, "b", [])

        op, model = expand_all_step(op, model, now=104.9)
        assert not op.is_done
        assert op.state.loading_ids == {"a"}

        op, model = expand_all_step(op, model, now=105.2)
        assert op.is_done
        assert model.get("a").loading_state == LoadingState.LOADING

    def test_custom_budget(self, tree):
        op, model = expand_all_step(start(tree, now=0.0), tree, now=0.1, budget=0.5)
        op, _ = expand_all_step(op, model, now=0.6, budget=0.5)
        assert op.is_done

    def test_no_requests_without_fetch(self, tree):
        op, model = expand_all_step(start(tree), tree, now=0.1, can_fetch=False)
        assert op.is_done
        assert model.get("a").loading_state == LoadingState.NOT_LOADED
