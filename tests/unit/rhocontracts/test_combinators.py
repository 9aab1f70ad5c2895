"""Tests for and/or/optional and the cyclic placeholders."""

import pytest

import rhocontracts as c
from rhocontracts import ContractError, ContractLibraryError


# ---------------------------------------------------------------------------
# and
# ---------------------------------------------------------------------------


class TestAnd:
    def test_all_branches_must_pass(self):
        """and_ passes only when every branch passes."""
        positive_number = c.and_(c.number, c.pred(lambda v: v > 0))
        positive_number.check(3)
        with pytest.raises(ContractError):
            positive_number.check("x")

    def test_failure_names_the_branch(self):
        """The failing branch is reported by position."""
        with pytest.raises(ContractError, match="for the 2nd branch of the `and` contract") as exc_info:
            c.and_(c.number, c.pred(lambda v: v > 0)).check(-1)
        assert "Expected unnamed-pred, but got -1" in str(exc_info.value)

    def test_silent_and_hides_the_branch(self):
        """silent_and reports the failure without a branch marker."""
        with pytest.raises(ContractError) as exc_info:
            c.silent_and(c.number, c.pred(lambda v: v > 0)).check(-1)
        assert "branch" not in str(exc_info.value)

    def test_first_failure_wins(self):
        with pytest.raises(ContractError, match="Expected number"):
            c.and_(c.number, c.string).check(None)

    def test_cannot_wrap(self):
        """An and-contract over a wrapping contract cannot produce a proxy."""
        with pytest.raises(ContractLibraryError, match="Cannot wrap an `and` contract"):
            c.and_(c.fn(), c.any_function).wrap(lambda: 1)

    def test_refuses_mapping_literals(self):
        """Combinators do not silently turn dict literals into object contracts."""
        with pytest.raises(ContractLibraryError, match="Cannot promote"):
            c.and_({"x": c.number})


# ---------------------------------------------------------------------------
# or
# ---------------------------------------------------------------------------


class TestOr:
    def test_first_matching_branch_passes(self):
        contract = c.or_(c.string, c.value(6))
        assert contract.check("asd") == "asd"
        assert contract.check(6) == 6

    def test_failure_lists_every_branch(self):
        """When no branch passes the message enumerates all of them."""
        with pytest.raises(ContractError) as exc_info:
            c.or_(c.string, c.value(6)).check(0)
        message = str(exc_info.value)
        assert "none of the contracts passed" in message
        assert " - c.string" in message
        assert " - c.value(6)" in message
        assert "[1] --" in message
        assert "[2] --" in message

    def test_at_most_one_wrapping_branch(self):
        """Two wrapping alternatives are refused at construction time."""
        with pytest.raises(ContractLibraryError, match="at most one") as exc_info:
            c.or_(c.fn(), c.fn())
        assert exc_info.value.message.startswith("or: ")

    def test_wrapping_branch_is_tried_last(self):
        """A wrapping alternative wraps only values no plain branch accepted."""
        contract = c.or_(c.string, c.fn(c.number))
        assert contract.wrap("s") == "s"

        wrapped = contract.wrap(lambda x: x)
        assert wrapped(1) == 1
        with pytest.raises(ContractError, match="1st argument"):
            wrapped("one")

    def test_library_errors_are_not_alternatives(self):
        """Library misuse inside a branch propagates instead of failing the branch."""
        unclosed = c.forward_ref()
        with pytest.raises(ContractLibraryError, match="before being closed"):
            c.or_(unclosed, c.number).check(1)


# ---------------------------------------------------------------------------
# cyclic / forward_ref
# ---------------------------------------------------------------------------


def _tree_contract():
    tree = c.cyclic(False)
    tree.close_cycle(c.object({"value": c.number, "children": c.optional(c.array(tree))}))
    return tree


class TestCyclic:
    def test_recursive_structure(self):
        """A cyclic contract can describe a recursive data type."""
        tree = _tree_contract()
        tree.check({"value": 1, "children": [{"value": 2, "children": [{"value": 3}]}]})

    def test_recursive_failure(self):
        tree = _tree_contract()
        with pytest.raises(ContractError, match="Expected number, but got 'x'") as exc_info:
            tree.check({"value": 1, "children": [{"value": "x"}]})
        assert "at position .children[0]" in str(exc_info.value)

    def test_rendering_stops_at_the_cycle(self):
        assert "(...)" in str(_tree_contract())

    def test_needs_wrapping_mismatch(self):
        """Closing with a contract of another wrapping kind is library misuse."""
        with pytest.raises(ContractLibraryError, match="needs_wrapping"):
            c.cyclic(True).close_cycle(c.number)
        with pytest.raises(ContractLibraryError, match="needs_wrapping"):
            c.cyclic(False).close_cycle(c.fn())

    def test_use_before_close(self):
        with pytest.raises(ContractLibraryError, match="before being closed"):
            c.cyclic(False).check(1)

    def test_closed_placeholder_exposes_target_attributes(self):
        """Attributes of the target are reachable through the placeholder."""
        point = c.cyclic(False)
        point.close_cycle(c.object({"x": c.number}))
        assert list(point.field_contracts) == ["x"]
        assert point.contract_name == "object"


class TestForwardRef:
    def test_reference_defined_later(self):
        ref = c.forward_ref()
        pair = c.object({"next": c.optional(ref)})
        ref.set_ref(c.object({"v": c.number}))

        pair.check({"next": {"v": 1}})
        pair.check({"next": None})
        with pytest.raises(ContractError, match="Expected number"):
            pair.check({"next": {"v": "x"}})

    def test_optional_target(self):
        """An optional target lets None through the placeholder."""
        ref = c.forward_ref()
        ref.set_ref(c.number.optional())
        ref.check(None)
        with pytest.raises(ContractError):
            ref.check("x")
