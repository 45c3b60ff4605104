"""
Tests for StockPositionAggregator.

Covers the fold rules: running quantity per (product, batch, location),
last-inflow cost basis, per-effect location filtering, and dropping of
non-positive positions after the fold.
"""

from decimal import Decimal
from uuid import uuid4

from stock_engines.aggregator import StockPositionAggregator
from stock_kernel.domain.dtos import Effect
from stock_kernel.domain.values import Location, LocationFilter

GODOWN = Location.godown()
MR_1 = Location.mr("1")
MR_2 = Location.mr("2")


class TestAggregator:
    def setup_method(self):
        self.aggregator = StockPositionAggregator()
        self.product_id = uuid4()
        self.batch_id = uuid4()
        self._seq = 0

    def _effect(self, location, delta, cost="5.00", batch_id=None) -> Effect:
        self._seq += 1
        return Effect(
            product_id=self.product_id,
            batch_id=batch_id or self.batch_id,
            location=location,
            quantity_delta=delta,
            cost_per_unit=Decimal(cost),
            is_inflow=delta > 0,
            transaction_seq=self._seq,
        )

    def _only(self, positions, location):
        matches = [p for p in positions.values() if p.location == location]
        assert len(matches) == 1
        return matches[0]

    def test_running_quantity_and_value(self):
        positions = self.aggregator.aggregate([
            self._effect(GODOWN, 100),
            self._effect(GODOWN, -40),
            self._effect(MR_1, 40),
        ])
        godown = self._only(positions, GODOWN)
        assert godown.current_quantity == 60
        assert godown.total_value == Decimal("300.00")
        mr = self._only(positions, MR_1)
        assert mr.current_quantity == 40
        assert mr.total_value == Decimal("200.00")

    def test_last_inflow_cost_wins(self):
        positions = self.aggregator.aggregate([
            self._effect(GODOWN, 10, "5.00"),
            self._effect(GODOWN, 10, "6.00"),
        ])
        godown = self._only(positions, GODOWN)
        assert godown.current_quantity == 20
        assert godown.cost_per_unit == Decimal("6.00")
        assert godown.total_value == Decimal("120.00")

    def test_outflow_does_not_change_cost(self):
        positions = self.aggregator.aggregate([
            self._effect(GODOWN, 10, "5.00"),
            self._effect(GODOWN, -2, "9.99"),
        ])
        assert self._only(positions, GODOWN).cost_per_unit == Decimal("5.00")

    def test_position_created_by_outflow_takes_its_cost(self):
        positions = self.aggregator.aggregate([
            self._effect(GODOWN, -5, "3.00"),
            self._effect(GODOWN, 8, "3.00"),
        ])
        godown = self._only(positions, GODOWN)
        assert godown.current_quantity == 3
        assert godown.cost_per_unit == Decimal("3.00")

    def test_negative_mid_fold_is_not_clamped(self):
        """An early outflow is netted against a later inflow."""
        positions = self.aggregator.aggregate([
            self._effect(MR_1, -10),
            self._effect(MR_1, 25),
        ])
        assert self._only(positions, MR_1).current_quantity == 15

    def test_zero_and_negative_positions_dropped(self):
        result = self.aggregator.fold([
            self._effect(GODOWN, 10),
            self._effect(GODOWN, -10),
            self._effect(MR_1, -3),
            self._effect(MR_2, 1),
        ])
        assert [p.location for p in result.positions.values()] == [MR_2]
        assert result.positions_dropped == 2

    def test_batches_are_separate_positions(self):
        other_batch = uuid4()
        positions = self.aggregator.aggregate([
            self._effect(GODOWN, 10),
            self._effect(GODOWN, 7, batch_id=other_batch),
        ])
        assert sorted(p.current_quantity for p in positions.values()) == [7, 10]

    def test_output_in_creation_order(self):
        positions = self.aggregator.aggregate([
            self._effect(MR_2, 1),
            self._effect(GODOWN, 1),
            self._effect(MR_1, 1),
        ])
        assert [p.location for p in positions.values()] == [MR_2, GODOWN, MR_1]

    def test_empty(self):
        result = self.aggregator.fold([])
        assert result.positions == {}
        assert result.effects_applied == 0


class TestAggregatorLocationFilter:
    """The filter is applied per effect, inside the fold."""

    def setup_method(self):
        self.aggregator = StockPositionAggregator()
        product_id, batch_id = uuid4(), uuid4()

        def effect(location, delta, seq):
            return Effect(
                product_id, batch_id, location, delta, Decimal("5.00"), delta > 0, seq,
            )

        self.effects = [
            effect(GODOWN, 100, 1),
            effect(GODOWN, -40, 2),
            effect(MR_1, 40, 2),
            effect(GODOWN, -10, 3),
            effect(MR_2, 10, 3),
            effect(MR_1, -5, 4),
        ]

    def test_godown_only(self):
        result = self.aggregator.fold(self.effects, LocationFilter.godown())
        assert [p.location for p in result.positions.values()] == [GODOWN]
        assert next(iter(result.positions.values())).current_quantity == 50
        assert result.effects_applied == 3
        assert result.effects_filtered == 3

    def test_any_mr(self):
        positions = self.aggregator.aggregate(self.effects, LocationFilter.any_mr())
        quantities = {p.location: p.current_quantity for p in positions.values()}
        assert quantities == {MR_1: 35, MR_2: 10}

    def test_single_mr(self):
        positions = self.aggregator.aggregate(self.effects, LocationFilter.mr("2"))
        assert [(p.location, p.current_quantity) for p in positions.values()] == [(MR_2, 10)]

    def test_filtered_positions_match_unfiltered_subset(self):
        everything = self.aggregator.aggregate(self.effects)
        godown_only = self.aggregator.aggregate(self.effects, LocationFilter.godown())
        for key, position in godown_only.items():
            assert everything[key] == position

    def test_fold_logs_counts(self, captured_logs):
        self.aggregator.fold(self.effects, LocationFilter.godown())
        (record,) = [r for r in captured_logs() if r["message"] == "effects_folded"]
        assert record["location_filter"] == "GODOWN"
        assert record["effects_filtered"] == 3
