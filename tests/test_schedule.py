import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from equitysim import (
    Grant,
    MarketState,
    TaxPolicy,
    SimulationInput,
    ScheduleBuilder,
    VestingCurve,
    PeriodUnit,
    InvalidInput,
    build_schedule,
)


def make_inputs(**grant_overrides):
    grant_kwargs = dict(
        total_units=48000,
        exercise_price=1000,
        vesting_length_periods=4,
        cliff_periods=1,
        curve=VestingCurve.LINEAR,
    )
    grant_kwargs.update(grant_overrides)
    grant = Grant(**grant_kwargs)
    market = MarketState(base_price=5000, annual_growth_rate=0.20, outstanding_shares=10_000_000)
    policy = TaxPolicy(qualified=True, holding_period_years=2)
    return grant, market, policy


class TestScheduleRows(unittest.TestCase):

    def test_should_produce_one_row_per_period_up_to_vesting_length(self):
        # Precondition
        grant, market, policy = make_inputs()

        # Under test
        result = build_schedule(grant, market, policy, elapsed_periods=2)

        # Postconditions
        self.assertEqual(result.horizon_periods, 4)
        self.assertEqual([row.period_index for row in result.schedule], [1, 2, 3, 4])
        self.assertEqual([row.is_cliff_period for row in result.schedule], [True, False, False, False])

    def test_should_extend_schedule_to_elapsed_given_elapsed_past_vesting(self):
        grant, market, policy = make_inputs()
        result = build_schedule(grant, market, policy, elapsed_periods=6)
        self.assertEqual(len(result.schedule), 6)
        self.assertEqual(result.schedule[-1].newly_vested_units, 0)

    def test_should_vest_linearly_with_newly_vested_deltas(self):
        grant, market, policy = make_inputs()

        # Under test
        result = build_schedule(grant, market, policy, elapsed_periods=4)

        # Postconditions
        cumulative = [row.cumulative_vested_units for row in result.schedule]
        newly = [row.newly_vested_units for row in result.schedule]
        self.assertEqual(cumulative[0], 0)
        self.assertAlmostEqual(cumulative[1], 16000, places=6)
        self.assertAlmostEqual(cumulative[2], 32000, places=6)
        self.assertEqual(cumulative[3], 48000)
        self.assertAlmostEqual(sum(newly), 48000, places=6)

    def test_should_price_each_period_with_compound_growth(self):
        grant, market, policy = make_inputs()
        result = build_schedule(grant, market, policy, elapsed_periods=0)

        for row in result.schedule:
            with self.subTest(period=row.period_index):
                self.assertAlmostEqual(row.price_at_period, 5000 * 1.2 ** row.period_index, places=6)
                self.assertAlmostEqual(row.period_value, row.newly_vested_units * row.price_at_period, places=6)

    def test_should_keep_invariants_given_every_curve(self):
        for curve in VestingCurve:
            with self.subTest(curve=curve):
                grant, market, policy = make_inputs(curve=curve, cliff_periods=2, vesting_length_periods=5)
                result = build_schedule(grant, market, policy, elapsed_periods=3)

                previous = 0.0
                for row in result.schedule:
                    self.assertGreaterEqual(row.newly_vested_units, 0)
                    self.assertGreaterEqual(row.cumulative_vested_units, previous)
                    self.assertLessEqual(row.cumulative_vested_units, grant.total_units)
                    self.assertGreaterEqual(row.period_value, 0)
                    previous = row.cumulative_vested_units
                self.assertEqual(result.schedule[-1].cumulative_vested_units, grant.total_units)


class TestSnapshotReturns(unittest.TestCase):

    def test_should_compute_current_and_future_returns(self):
        # Precondition: 2 of 4 years, linear, 1-year cliff
        grant, market, policy = make_inputs()

        # Under test
        result = build_schedule(grant, market, policy, elapsed_periods=2)

        # Postconditions
        current_price = 5000 * 1.2 ** 2
        future_price = 5000 * 1.2 ** 4
        self.assertAlmostEqual(result.current_price, current_price, places=6)
        self.assertAlmostEqual(result.future_price, future_price, places=6)
        self.assertAlmostEqual(result.vested_units, 16000, places=6)
        self.assertEqual(result.horizon_vested_units, 48000)
        self.assertAlmostEqual(result.current_return, (current_price - 1000) * 16000, places=2)
        self.assertAlmostEqual(result.future_return, (future_price - 1000) * 48000, places=2)
        self.assertAlmostEqual(result.exercise_cost, 1000 * 16000, places=4)
        self.assertAlmostEqual(result.total_current_value, current_price * 16000, places=2)
        self.assertAlmostEqual(result.total_future_value, future_price * 48000, places=2)
        self.assertAlmostEqual(result.sale_gain, (future_price - current_price) * 16000, places=2)

    def test_should_tax_exercise_and_sale_gains(self):
        grant, market, policy = make_inputs()

        # Under test
        result = build_schedule(grant, market, policy, elapsed_periods=2)

        # Postconditions: qualified and held 2 years -> capital gains only
        gross = result.exercise_gain + result.sale_gain
        self.assertEqual(result.exercise_gain, result.current_return)
        self.assertEqual(result.tax.exercise_tax, 0)
        self.assertAlmostEqual(result.tax.total_tax, gross * 0.20315, places=2)
        self.assertAlmostEqual(result.tax.net_after_tax, gross - result.tax.total_tax, places=6)

    def test_should_return_zero_gain_given_underwater_grant(self):
        # Precondition: exercise price far above any projected price
        grant, market, policy = make_inputs(exercise_price=1_000_000)

        # Under test
        result = build_schedule(grant, market, policy, elapsed_periods=4)

        # Postconditions
        self.assertEqual(result.current_return, 0)
        self.assertEqual(result.future_return, 0)
        self.assertEqual(result.tax.total_tax, 0)

    def test_should_report_progress_summary(self):
        grant, market, policy = make_inputs()
        result = build_schedule(grant, market, policy, elapsed_periods=3)

        self.assertAlmostEqual(result.vested_percentage, 200 / 3, places=6)
        self.assertAlmostEqual(result.remaining_units, 16000, places=6)
        self.assertEqual(result.remaining_periods, 1)
        self.assertAlmostEqual(result.granted_percentage, 0.48, places=12)


class TestMonthlyPeriods(unittest.TestCase):

    def test_should_count_vesting_in_months_and_price_in_years(self):
        # Precondition: 48-month schedule with a 12-month cliff
        grant = Grant(
            total_units=4800,
            exercise_price=10,
            vesting_length_periods=48,
            cliff_periods=12,
            period_unit=PeriodUnit.MONTH,
        )
        market = MarketState(base_price=100, annual_growth_rate=0.20, outstanding_shares=1_000_000)
        policy = TaxPolicy(qualified=False, holding_period_years=0)

        # Under test
        result = build_schedule(grant, market, policy, elapsed_periods=30)

        # Postconditions
        self.assertEqual(len(result.schedule), 48)
        self.assertEqual(result.schedule[11].cumulative_vested_units, 0)
        self.assertTrue(result.schedule[11].is_cliff_period)
        self.assertFalse(result.schedule[12].is_cliff_period)
        self.assertAlmostEqual(result.vested_units, 2400, places=6)
        self.assertAlmostEqual(result.schedule[11].price_at_period, 120, places=6)
        self.assertAlmostEqual(result.future_price, 100 * 1.2 ** 4, places=6)


class TestDegenerateCliff(unittest.TestCase):

    def test_should_vest_everything_at_cliff_given_cliff_equal_to_vesting_length(self):
        # Precondition
        grant, market, policy = make_inputs(cliff_periods=4)

        # Under test
        with self.assertLogs("equitysim.schedule", level="WARNING"):
            result = build_schedule(grant, market, policy, elapsed_periods=4)

        # Postconditions
        newly = [row.newly_vested_units for row in result.schedule]
        self.assertEqual(newly, [0, 0, 0, 48000])
        self.assertTrue(all(row.is_cliff_period for row in result.schedule))


class TestScheduleValidation(unittest.TestCase):

    def assertInvalidField(self, field, build):
        with self.assertRaises(InvalidInput) as ctx:
            build()
        self.assertEqual(ctx.exception.field, field)

    def test_should_identify_offending_field(self):
        cases = [
            ("total_units", lambda: Grant(-1, 1000, 4, 1)),
            ("exercise_price", lambda: Grant(100, float("nan"), 4, 1)),
            ("vesting_length_periods", lambda: Grant(100, 1000, 0, 0)),
            ("cliff_periods", lambda: Grant(100, 1000, 4, 5)),
            ("curve", lambda: Grant(100, 1000, 4, 1, curve="exponential")),
            ("period_unit", lambda: Grant(100, 1000, 4, 1, period_unit="week")),
            ("base_price", lambda: MarketState(0, 0.1, 1000)),
            ("annual_growth_rate", lambda: MarketState(100, -2, 1000)),
            ("outstanding_shares", lambda: MarketState(100, 0.1, 0)),
            ("qualified", lambda: TaxPolicy(qualified="yes", holding_period_years=2)),
            ("holding_period_years", lambda: TaxPolicy(qualified=True, holding_period_years=-1)),
        ]
        for field, build in cases:
            with self.subTest(field=field):
                self.assertInvalidField(field, build)

    def test_should_reject_negative_elapsed_periods(self):
        grant, market, policy = make_inputs()
        self.assertInvalidField("elapsed_periods", lambda: build_schedule(grant, market, policy, -1))

    def test_should_reject_boolean_as_integer(self):
        self.assertInvalidField("vesting_length_periods", lambda: make_inputs(vesting_length_periods=True))

    def test_should_reject_arguments_of_the_wrong_type(self):
        grant, market, policy = make_inputs()
        self.assertInvalidField("market", lambda: build_schedule(grant, None, policy, 2))

    def test_should_validate_before_any_computation(self):
        # Precondition: valid grant, market and policy, invalid query point
        grant, market, policy = make_inputs()

        # Under test
        with mock.patch("equitysim.schedule.vested_units") as vested_mock:
            with self.assertRaises(InvalidInput):
                build_schedule(grant, market, policy, -2)

        # Postcondition
        vested_mock.assert_not_called()

    def test_should_raise_invalid_input_given_growth_that_overflows_price(self):
        # Precondition: a finite but absurd growth rate
        grant, _, policy = make_inputs()
        market = MarketState(base_price=10, annual_growth_rate=1e100, outstanding_shares=1000)

        # Under test
        with self.assertRaises(InvalidInput) as ctx:
            build_schedule(grant, market, policy, 4)

        # Postcondition
        self.assertEqual(ctx.exception.field, "annual_growth_rate")


class TestTotalLoss(unittest.TestCase):

    def test_should_price_every_later_period_at_zero_given_minus_one_growth(self):
        # Precondition
        grant, _, policy = make_inputs()
        market = MarketState(base_price=5000, annual_growth_rate=-1, outstanding_shares=10_000_000)

        # Under test
        result = build_schedule(grant, market, policy, 0)

        # Postconditions
        self.assertEqual(result.current_price, 5000)
        self.assertEqual([row.price_at_period for row in result.schedule], [0, 0, 0, 0])
        self.assertEqual(result.future_return, 0)
        self.assertEqual(result.tax.total_tax, 0)


class TestPurity(unittest.TestCase):

    def test_should_return_identical_results_given_identical_inputs(self):
        grant, market, policy = make_inputs(curve=VestingCurve.FRONTLOADED)

        # Under test
        first = build_schedule(grant, market, policy, 3)
        second = build_schedule(grant, market, policy, 3)

        # Postcondition
        self.assertEqual(first, second)

    def test_should_give_same_results_when_run_concurrently(self):
        # Precondition
        builder = ScheduleBuilder()
        inputs = [make_inputs(curve=curve) for curve in VestingCurve] * 4
        expected = [builder.build(g, m, p, 2) for g, m, p in inputs]

        # Under test
        with ThreadPoolExecutor(max_workers=4) as pool:
            actual = list(pool.map(lambda args: builder.build(*args, 2), inputs))

        # Postcondition
        self.assertEqual(actual, expected)

    def test_should_not_allow_result_mutation(self):
        grant, market, policy = make_inputs()
        result = build_schedule(grant, market, policy, 2)
        with self.assertRaises(AttributeError):
            result.vested_units = 0


class TestDefaultInputs(unittest.TestCase):

    def test_should_run_simulator_defaults(self):
        # Precondition: 50bn -> 100bn market cap over 4 years, 50,000 units at 1,000
        sim_input = SimulationInput.from_defaults()

        # Under test
        result = ScheduleBuilder().run(sim_input)

        # Postconditions
        self.assertAlmostEqual(sim_input.market.base_price, 5000, places=9)
        self.assertEqual(result.vested_units, 50000)
        self.assertAlmostEqual(result.future_price, 10000, places=6)
        self.assertAlmostEqual(result.current_return, 9000 * 50000, delta=0.01)
        self.assertAlmostEqual(result.granted_percentage, 0.5, places=12)
        self.assertAlmostEqual(result.tax.total_tax, 450_000_000 * 0.20315, delta=0.01)

    def test_should_apply_overrides(self):
        sim_input = SimulationInput.from_defaults(curve="cliff-heavy", elapsed_periods=1, tax_regime="non-qualified")

        result = ScheduleBuilder().run(sim_input)

        self.assertEqual(result.grant.curve, VestingCurve.CLIFF_HEAVY)
        self.assertEqual(result.vested_units, 12500)
        self.assertFalse(result.tax_policy.qualified)

    def test_should_reject_unknown_override(self):
        with self.assertRaises(InvalidInput) as ctx:
            SimulationInput.from_defaults(strike=5)
        self.assertEqual(ctx.exception.field, "strike")

    def test_should_name_caller_fields_given_bad_overrides(self):
        cases = [
            ("elapsed_periods", {"elapsed_periods": -1}),
            ("current_market_cap", {"current_market_cap": 0}),
            ("future_market_cap", {"future_market_cap": -5}),
            ("outstanding_shares", {"outstanding_shares": 2.5}),
        ]
        for field, overrides in cases:
            with self.subTest(field=field):
                with self.assertRaises(InvalidInput) as ctx:
                    SimulationInput.from_defaults(**overrides)
                self.assertEqual(ctx.exception.field, field)


if __name__ == '__main__':
    unittest.main()
