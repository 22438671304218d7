"""
Tests for the order lifecycle.
"""
from datetime import date, datetime, timezone
import unittest

from tripsantai.models.destination import Destination, PriceTier
from tripsantai.models.order import Order, OrderStatus, PaymentStatus
from tripsantai.services import order_state
from tripsantai.services.order_state import OrderStateConflict, OrderValidationError

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_destination(min_people=2):
    return Destination(
        id=7,
        title="Bromo Sunrise",
        min_people=min_people,
        price_tiers=[
            PriceTier(min_people=2, price=1200000),
            PriceTier(min_people=5, price=1100000),
            PriceTier(min_people=9, price=1000000),
        ],
    )


def make_order(total=1000000, status=OrderStatus.AWAITING_PAYMENT, **kwargs):
    return Order(
        id=1,
        customer_name="Budi Santoso",
        customer_phone="08123456789",
        destination_id=7,
        destination_title="Bromo Sunrise",
        participants=2,
        order_date=NOW,
        total_price=total,
        status=status,
        **kwargs,
    )


class CreateOrderTestCase(unittest.TestCase):

    def test_new_order_is_priced_from_tiers(self):
        order = order_state.create_order(make_destination(), "Budi", "0812", 5, now=NOW)
        self.assertEqual(order.status, OrderStatus.NEW)
        self.assertEqual(order.total_price, 5500000)
        self.assertIsNone(order.payment_status)
        self.assertEqual(order.payment_history, ())
        self.assertEqual(order.id, int(NOW.timestamp() * 1000))

    def test_minimum_participants_accepted(self):
        order = order_state.create_order(make_destination(min_people=2), "Budi", "0812", 2, now=NOW)
        self.assertEqual(order.participants, 2)

    def test_below_minimum_rejected(self):
        with self.assertRaises(OrderValidationError) as ctx:
            order_state.create_order(make_destination(min_people=2), "Budi", "0812", 1, now=NOW)
        self.assertIn("below minimum participants", ctx.exception.reason)

    def test_customer_details_required(self):
        with self.assertRaises(OrderValidationError):
            order_state.create_order(make_destination(), "  ", "0812", 2)
        with self.assertRaises(OrderValidationError):
            order_state.create_order(make_destination(), "Budi", "", 2)


class TransitionTestCase(unittest.TestCase):

    def test_contact_moves_new_to_awaiting_payment(self):
        order = order_state.contact_customer(make_order(status=OrderStatus.NEW))
        self.assertEqual(order.status, OrderStatus.AWAITING_PAYMENT)

    def test_contact_only_from_new(self):
        with self.assertRaises(OrderStateConflict):
            order_state.contact_customer(make_order())

    def test_new_order_cannot_take_payment(self):
        with self.assertRaises(OrderStateConflict):
            order_state.record_payment(make_order(status=OrderStatus.NEW), 100000)

    def test_cancel_from_any_open_status(self):
        for status in (OrderStatus.NEW, OrderStatus.AWAITING_PAYMENT, OrderStatus.READY_TO_DEPART):
            cancelled = order_state.cancel(make_order(status=status))
            self.assertEqual(cancelled.status, OrderStatus.CANCELLED)

    def test_terminal_orders_reject_everything(self):
        for status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            order = make_order(status=status)
            with self.assertRaises(OrderStateConflict):
                order_state.record_payment(order, 1000)
            with self.assertRaises(OrderStateConflict):
                order_state.edit_participants(order, make_destination(), 3)
            with self.assertRaises(OrderStateConflict):
                order_state.edit_departure_date(order, date(2025, 5, 1))
            with self.assertRaises(OrderStateConflict):
                order_state.cancel(order)


class PaymentTestCase(unittest.TestCase):

    def test_down_payment_then_settlement(self):
        order = order_state.record_payment(make_order(), 400000, now=NOW)
        self.assertEqual(order.payment_status, PaymentStatus.PARTIALLY_PAID)
        self.assertEqual(order.status, OrderStatus.AWAITING_PAYMENT)
        self.assertEqual(order_state.remaining_balance(order), 600000)

        order = order_state.record_payment(order, 600000, now=NOW)
        self.assertEqual(order.payment_status, PaymentStatus.PAID_IN_FULL)
        self.assertEqual(order.status, OrderStatus.READY_TO_DEPART)
        self.assertEqual(order_state.remaining_balance(order), 0)
        self.assertEqual(len(order.payment_history), 2)

    def test_overpayment_rejected_and_history_unchanged(self):
        original = order_state.record_payment(make_order(), 400000, now=NOW)
        with self.assertRaises(OrderValidationError) as ctx:
            order_state.record_payment(original, 600001)
        self.assertEqual(ctx.exception.reason, "exceeds remaining balance")
        self.assertEqual(len(original.payment_history), 1)
        self.assertEqual(order_state.total_paid(original), 400000)

    def test_amount_must_be_positive(self):
        for amount in (0, -5000):
            with self.assertRaises(OrderValidationError) as ctx:
                order_state.record_payment(make_order(), amount)
            self.assertEqual(ctx.exception.reason, "amount must be positive")

    def test_non_finite_amount_rejected(self):
        order = make_order()
        for amount in (float("nan"), float("inf"), float("-inf")):
            with self.assertRaises(OrderValidationError) as ctx:
                order_state.record_payment(order, amount)
            self.assertEqual(ctx.exception.reason, "amount must be positive")
        self.assertEqual(order.payment_history, ())

        # a rejected amount leaves later overpayment checks intact
        with self.assertRaises(OrderValidationError):
            order_state.record_payment(order, 10 ** 12)

    def test_payment_notes_and_date_recorded(self):
        order = order_state.record_payment(make_order(), 250000, notes="Transfer BCA", now=NOW)
        record = order.payment_history[0]
        self.assertEqual(record.amount, 250000)
        self.assertEqual(record.notes, "Transfer BCA")
        self.assertEqual(record.date, NOW)

    def test_replay_is_deterministic(self):
        first = order_state.replay_payments(make_order(), [100000, 200000, 700000])
        second = order_state.replay_payments(make_order(), [100000, 200000, 700000])
        self.assertEqual(first, second)
        self.assertEqual(first.status, OrderStatus.READY_TO_DEPART)


class CompleteTestCase(unittest.TestCase):

    def test_complete_requires_full_payment(self):
        partly = order_state.record_payment(make_order(), 400000)
        self.assertFalse(order_state.can_complete(partly))
        with self.assertRaises(OrderStateConflict):
            order_state.mark_complete(partly)

    def test_complete_after_settlement(self):
        paid = order_state.record_payment(make_order(), 1000000)
        self.assertTrue(order_state.can_complete(paid))
        done = order_state.mark_complete(paid)
        self.assertEqual(done.status, OrderStatus.COMPLETED)
        self.assertTrue(order_state.is_terminal(done.status))


class EditTestCase(unittest.TestCase):

    def test_edit_participants_reprices(self):
        order = order_state.edit_participants(make_order(total=2400000), make_destination(), 5)
        self.assertEqual(order.participants, 5)
        self.assertEqual(order.total_price, 5500000)
        self.assertIsNone(order.payment_status)

    def test_edit_participants_respects_minimum(self):
        destination = make_destination(min_people=3)
        accepted = order_state.edit_participants(make_order(), destination, 3)
        self.assertEqual(accepted.participants, 3)
        with self.assertRaises(OrderValidationError):
            order_state.edit_participants(make_order(), destination, 2)

    def test_larger_group_reopens_paid_order(self):
        paid = order_state.record_payment(make_order(total=2400000), 2400000)
        self.assertEqual(paid.status, OrderStatus.READY_TO_DEPART)

        edited = order_state.edit_participants(paid, make_destination(), 5)
        self.assertEqual(edited.total_price, 5500000)
        self.assertEqual(edited.payment_status, PaymentStatus.PARTIALLY_PAID)
        self.assertEqual(edited.status, OrderStatus.AWAITING_PAYMENT)
        self.assertEqual(order_state.remaining_balance(edited), 3100000)

    def test_smaller_group_leaves_credit_and_blocks_payments(self):
        paid = order_state.record_payment(make_order(total=5500000), 5500000)
        edited = order_state.edit_participants(paid, make_destination(), 2)
        self.assertEqual(edited.total_price, 2400000)
        self.assertEqual(edited.payment_status, PaymentStatus.PAID_IN_FULL)
        self.assertEqual(edited.status, OrderStatus.READY_TO_DEPART)
        self.assertEqual(order_state.remaining_balance(edited), -3100000)

        for amount in (1, 100000):
            with self.assertRaises(OrderValidationError) as ctx:
                order_state.record_payment(edited, amount)
            self.assertEqual(ctx.exception.reason, "exceeds remaining balance")
        self.assertTrue(order_state.can_complete(edited))

    def test_edit_departure_date(self):
        order = order_state.edit_departure_date(make_order(), date(2025, 6, 14))
        self.assertEqual(order.departure_date, date(2025, 6, 14))
        cleared = order_state.edit_departure_date(order, None)
        self.assertIsNone(cleared.departure_date)


if __name__ == "__main__":
    unittest.main()
