"""Tests for the battle rule and the depleting policy."""

import pytest

from skirmish.battle.rules import (
    InventoryGuardViolation,
    MatchConfig,
    Outcome,
    RuleSet,
    apply_outcome,
    check_commit,
    resolve,
)
from skirmish.battle.units import Inventory


class TestResolve:
    def test_formula_for_all_pairs(self):
        for mine in range(3):
            for theirs in range(3):
                assert resolve(mine, theirs) == (3 + theirs - mine) % 3

    def test_reflexive_draw(self):
        for unit in range(3):
            assert resolve(unit, unit) == Outcome.DRAW

    def test_cyclic_dominance(self):
        for unit in range(3):
            assert resolve(unit, (unit + 1) % 3) == Outcome.WIN
            assert resolve(unit, (unit + 2) % 3) == Outcome.LOSS

    def test_antisymmetric(self):
        """One side's win is always the other side's loss."""
        flip = {Outcome.DRAW: Outcome.DRAW, Outcome.WIN: Outcome.LOSS,
                Outcome.LOSS: Outcome.WIN}
        for mine in range(3):
            for theirs in range(3):
                assert resolve(theirs, mine) == flip[resolve(mine, theirs)]

    def test_labels(self):
        assert Outcome.DRAW.label == "Draw"
        assert Outcome.WIN.label == "Success!"
        assert Outcome.LOSS.label == "Failure :-("


class TestApplyOutcome:
    def test_win_depletes_peer_only(self):
        mine, theirs = Inventory((5, 5, 5)), Inventory((5, 5, 5))
        apply_outcome(resolve(0, 1), 0, 1, mine, theirs)
        assert theirs.total() == 14
        assert theirs[1] == 4
        assert mine.total() == 15

    def test_loss_depletes_mine_only(self):
        mine, theirs = Inventory((5, 5, 5)), Inventory((5, 5, 5))
        apply_outcome(resolve(1, 0), 1, 0, mine, theirs)
        assert mine == (5, 4, 5)
        assert theirs.total() == 15

    def test_draw_changes_nothing(self):
        mine, theirs = Inventory((5, 5, 5)), Inventory((5, 5, 5))
        apply_outcome(resolve(2, 2), 2, 2, mine, theirs)
        assert mine.total() == 15
        assert theirs.total() == 15


class TestGuard:
    def test_available_unit_passes(self):
        check_commit(Inventory((1, 0, 0)), 0, "We")

    def test_exhausted_unit_violates(self):
        with pytest.raises(InventoryGuardViolation):
            check_commit(Inventory((1, 0, 0)), 1, "We")

    def test_violation_is_an_assertion(self):
        assert issubclass(InventoryGuardViolation, AssertionError)


class TestMatchConfig:
    def test_defaults(self):
        config = MatchConfig()
        assert config.rules == RuleSet.FIXED_COUNT
        assert config.rounds == 100
        assert config.max_draws == 20
        assert config.tie_is_failure

    def test_depleting_negotiates_by_default(self):
        config = MatchConfig.depleting((10, 10, 10))
        assert config.rules == RuleSet.DEPLETING
        assert config.negotiate_units
        assert config.starting_units == (10, 10, 10)

    def test_depleting_negotiation_can_be_off(self):
        assert not MatchConfig.depleting(negotiate_units=False).negotiate_units

    def test_fixed_count(self):
        config = MatchConfig.fixed_count(7)
        assert config.rounds == 7
        assert not config.negotiate_units

    @pytest.mark.parametrize("kwargs", [
        {"starting_units": (-1, 0, 0)},
        {"starting_units": (1, 1)},
        {"rounds": -1},
        {"max_draws": 0},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            MatchConfig(**kwargs)
