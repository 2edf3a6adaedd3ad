import random
import unittest

from modules.slot_machine import (DISTRIBUTION, REWARDS, Bet, Grid, ReelDistribution, Roller, Symbol, parse_bet,
                                  resolve_reward, wager_token)


class TestReelDistribution(unittest.TestCase):

    def test_reel_totals(self):
        self.assertEqual(DISTRIBUTION.total_weight(0), 23)
        self.assertEqual(DISTRIBUTION.total_weight(1), 23)
        self.assertEqual(DISTRIBUTION.total_weight(2), 23)

    def test_first_reel_is_more_generous(self):
        self.assertGreater(DISTRIBUTION.weights_for(0)[Symbol.BAR], DISTRIBUTION.weights_for(1)[Symbol.BAR])
        self.assertGreater(DISTRIBUTION.weights_for(0)[Symbol.CHERRY], DISTRIBUTION.weights_for(2)[Symbol.CHERRY])

    def test_rejects_empty_reel(self):
        with self.assertRaises(ValueError):
            ReelDistribution([{Symbol.CHERRY: 1}, {}, {Symbol.CHERRY: 1}])

    def test_rejects_zero_weight(self):
        with self.assertRaises(ValueError):
            ReelDistribution([{Symbol.CHERRY: 1}, {Symbol.CHERRY: 0}, {Symbol.CHERRY: 1}])

    def test_rejects_wrong_reel_count(self):
        with self.assertRaises(ValueError):
            ReelDistribution([{Symbol.CHERRY: 1}])


class TestRewardTable(unittest.TestCase):

    def test_sorted_by_descending_count(self):
        counts = [rule.count for rule in REWARDS]
        self.assertEqual(counts, sorted(counts, reverse=True))

    def test_declaration_order_kept_for_equal_counts(self):
        self.assertEqual([rule.multiplier for rule in REWARDS], [80, 40, 20, 5, 2])


class TestRoller(unittest.TestCase):

    def test_spin_shape(self):
        grid = Roller(rng=random.Random(7)).spin()
        self.assertEqual(len(grid.rows), 3)
        for row in grid.rows:
            self.assertEqual(len(row), 3)
            for symbol in row:
                self.assertIsInstance(symbol, Symbol)
        self.assertEqual(grid.payline, grid.rows[1])

    def test_columns_only_hold_their_reel_symbols(self):
        only_sevens = ReelDistribution([{Symbol.SEVEN: 1}, {Symbol.BAR: 2}, {Symbol.CHERRY: 5}])
        grid = Roller(only_sevens, rng=random.Random(1)).spin()
        for row in grid.rows:
            self.assertEqual(row, (Symbol.SEVEN, Symbol.BAR, Symbol.CHERRY))

    def test_draws_converge_to_weights(self):
        roller = Roller(rng=random.Random(12345))
        samples = 100000
        for reel in range(3):
            counts = {symbol: 0 for symbol in Symbol}
            for _ in range(samples):
                counts[roller.draw(reel)] += 1

            total = DISTRIBUTION.total_weight(reel)
            for symbol, weight in DISTRIBUTION.weights_for(reel).items():
                expected = weight / total
                observed = counts[symbol] / samples
                self.assertAlmostEqual(observed, expected, delta=0.01,
                                       msg="reel {} symbol {}".format(reel, symbol.name))


class TestResolveReward(unittest.TestCase):

    def test_three_sevens(self):
        rule = resolve_reward([Symbol.SEVEN, Symbol.SEVEN, Symbol.SEVEN])
        self.assertEqual(rule.symbol, Symbol.SEVEN)
        self.assertEqual(rule.multiplier, 80)

    def test_three_bars(self):
        self.assertEqual(resolve_reward([Symbol.BAR, Symbol.BAR, Symbol.BAR]).multiplier, 40)

    def test_two_cherries_beat_one(self):
        rule = resolve_reward([Symbol.CHERRY, Symbol.CHERRY, Symbol.BAR])
        self.assertEqual(rule.count, 2)
        self.assertEqual(rule.multiplier, 5)

    def test_three_cherries(self):
        self.assertEqual(resolve_reward([Symbol.CHERRY] * 3).multiplier, 20)

    def test_single_cherry_anywhere(self):
        self.assertEqual(resolve_reward([Symbol.FILLER_A, Symbol.SEVEN, Symbol.CHERRY]).multiplier, 2)

    def test_fillers_pay_nothing(self):
        self.assertIsNone(resolve_reward([Symbol.FILLER_A, Symbol.FILLER_B, Symbol.FILLER_C]))

    def test_two_sevens_pay_nothing(self):
        self.assertIsNone(resolve_reward([Symbol.SEVEN, Symbol.SEVEN, Symbol.BAR]))

    def test_only_payline_is_used(self):
        grid = Grid((
            (Symbol.SEVEN, Symbol.SEVEN, Symbol.SEVEN),
            (Symbol.FILLER_A, Symbol.FILLER_B, Symbol.FILLER_C),
            (Symbol.BAR, Symbol.BAR, Symbol.BAR),
        ))
        self.assertIsNone(resolve_reward(grid.payline))


class TestParseBet(unittest.TestCase):

    def test_no_args_is_info(self):
        self.assertEqual(parse_bet([], 500), Bet(0, True))

    def test_amount(self):
        self.assertEqual(parse_bet(["50"], 500), Bet(50, False))

    def test_all(self):
        self.assertEqual(parse_bet(["all"], 500), Bet(500, False))
        self.assertEqual(parse_bet(["ALL"], 500), Bet(500, False))

    def test_zero_falls_back_to_info(self):
        self.assertEqual(parse_bet(["0"], 500), Bet(0, True))

    def test_junk_falls_back_to_info(self):
        self.assertEqual(parse_bet(["lots", "-5"], 500), Bet(0, True))

    def test_first_valid_token_wins(self):
        self.assertEqual(parse_bet(["please", "20", "all"], 500), Bet(20, False))
        self.assertEqual(parse_bet(["all", "20"], 500), Bet(500, False))

    def test_leading_digits(self):
        self.assertEqual(parse_bet(["+30credits"], 500), Bet(30, False))

    def test_amount_above_balance_is_still_parsed(self):
        self.assertEqual(parse_bet(["900"], 500), Bet(900, False))

    def test_wager_token(self):
        self.assertIsNone(wager_token([]))
        self.assertIsNone(wager_token(["0", "x"]))
        self.assertEqual(wager_token(["All"]), "all")
        self.assertEqual(wager_token(["x", "007"]), "007")


if __name__ == '__main__':
    unittest.main()
