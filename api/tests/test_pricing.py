"""
Tests for the group pricing resolver.
"""
import unittest

from tripsantai.models.destination import PriceTier
from tripsantai.services import pricing

TIERS = [
    {"minPeople": 2, "price": 1200000},
    {"minPeople": 5, "price": 1100000},
    {"minPeople": 9, "price": 1000000},
]


class ResolvePriceTestCase(unittest.TestCase):

    def test_highest_qualifying_tier_wins(self):
        self.assertEqual(pricing.resolve_price_per_person(TIERS, 5), 1100000)
        self.assertEqual(pricing.total_price(TIERS, 5), 5500000)

    def test_between_tiers_uses_lower_threshold(self):
        self.assertEqual(pricing.resolve_price_per_person(TIERS, 4), 1200000)
        self.assertEqual(pricing.resolve_price_per_person(TIERS, 8), 1100000)
        self.assertEqual(pricing.resolve_price_per_person(TIERS, 30), 1000000)

    def test_no_qualifying_tier_falls_back_to_cheapest(self):
        self.assertEqual(pricing.resolve_price_per_person(TIERS, 1), 1000000)

    def test_tier_order_does_not_matter(self):
        shuffled = [TIERS[2], TIERS[0], TIERS[1]]
        for n in range(1, 12):
            self.assertEqual(
                pricing.resolve_price_per_person(shuffled, n),
                pricing.resolve_price_per_person(TIERS, n),
            )

    def test_empty_tiers_price_to_zero(self):
        self.assertEqual(pricing.normalize_tiers([]), [PriceTier(min_people=1, price=0)])
        self.assertEqual(pricing.normalize_tiers(None), [PriceTier(min_people=1, price=0)])
        self.assertEqual(pricing.total_price([], 4), 0)

    def test_normalize_accepts_snake_case_and_bad_prices(self):
        tiers = pricing.normalize_tiers([{"min_people": 3, "price": "750000"}, {"minPeople": 1, "price": None}])
        self.assertEqual(tiers[0], PriceTier(min_people=3, price=750000.0))
        self.assertEqual(tiers[1], PriceTier(min_people=1, price=0))

    def test_total_is_price_times_participants(self):
        for n in (2, 5, 9, 13):
            self.assertEqual(
                pricing.total_price(TIERS, n),
                pricing.resolve_price_per_person(TIERS, n) * n,
            )


class DiscountTestCase(unittest.TestCase):

    def test_discount_against_most_expensive_tier(self):
        self.assertEqual(pricing.discount_percent(TIERS, 1100000), 8)
        self.assertEqual(pricing.discount_percent(TIERS, 1000000), 17)

    def test_no_discount_at_base_price(self):
        self.assertEqual(pricing.discount_percent(TIERS, 1200000), 0)

    def test_no_discount_when_all_prices_zero(self):
        self.assertEqual(pricing.discount_percent([], 0), 0)

    def test_quote_bundles_values(self):
        quote = pricing.quote(TIERS, 9)
        self.assertEqual(quote.participants, 9)
        self.assertEqual(quote.price_per_person, 1000000)
        self.assertEqual(quote.total_price, 9000000)
        self.assertEqual(quote.discount_percent, 17)


if __name__ == "__main__":
    unittest.main()
