"""
Tests for the camelCase <-> column field tables.
"""
from dataclasses import replace
from datetime import date, datetime, timezone
import unittest

from tripsantai.models.order import OrderStatus, PaymentRecord, PaymentStatus
from tripsantai.models.destination import PriceTier
from tripsantai.services.field_mapping import (
    APP_SETTINGS_FIELDS,
    DESTINATION_FIELDS,
    ORDER_FIELDS,
    UnknownFieldError,
    changed_columns,
    destination_from_row,
    order_from_row,
    order_to_row,
)

from tests.fakes import destination_row


class FieldMapTestCase(unittest.TestCase):

    def test_payload_keys_become_columns(self):
        row = DESTINATION_FIELDS.to_row({"title": "Bromo", "shortDescription": "x", "minPeople": 2})
        self.assertEqual(row, {"title": "Bromo", "shortdescription": "x", "minpeople": 2})

    def test_column_names_pass_through(self):
        row = ORDER_FIELDS.to_row({"customer_name": "Budi", "totalPrice": 10})
        self.assertEqual(row, {"customer_name": "Budi", "total_price": 10})

    def test_unknown_keys_rejected(self):
        with self.assertRaises(UnknownFieldError) as ctx:
            APP_SETTINGS_FIELDS.to_row({"brandName": "Tripsantai", "brandname2": "x", "evil": 1})
        self.assertEqual(ctx.exception.keys, ["brandname2", "evil"])

    def test_transient_keys_skipped(self):
        row = DESTINATION_FIELDS.to_row({"title": "Bromo", "removedPublicIds": ["a"]})
        self.assertEqual(row, {"title": "Bromo"})

    def test_row_to_payload_drops_unmapped_columns(self):
        payload = APP_SETTINGS_FIELDS.from_row({"id": 1, "brandname": "Tripsantai", "internal_flag": True})
        self.assertEqual(payload, {"id": 1, "brandName": "Tripsantai"})


class OrderRowTestCase(unittest.TestCase):

    def setUp(self):
        self.row = {
            "id": 1712000000000,
            "customer_name": "Budi",
            "customer_phone": "08123",
            "destination_id": 7,
            "destination_title": "Bromo Sunrise",
            "participants": 2,
            "order_date": "2025-03-01T09:30:00Z",
            "departure_date": "2025-04-10",
            "total_price": 2400000,
            "status": "Menunggu Pembayaran",
            "payment_status": "DP",
            "payment_history": [{"amount": 400000, "date": "2025-03-02T10:00:00+00:00", "notes": "DP"}],
            "notes": None,
        }

    def test_order_from_row(self):
        order = order_from_row(self.row)
        self.assertEqual(order.status, OrderStatus.AWAITING_PAYMENT)
        self.assertEqual(order.payment_status, PaymentStatus.PARTIALLY_PAID)
        self.assertEqual(order.order_date, datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc))
        self.assertEqual(order.departure_date, date(2025, 4, 10))
        self.assertEqual(order.payment_history[0].amount, 400000)

    def test_missing_payment_fields_stay_empty(self):
        self.row.update(status="Baru", payment_status=None, payment_history=None)
        order = order_from_row(self.row)
        self.assertIsNone(order.payment_status)
        self.assertEqual(order.payment_history, ())
        self.assertIsNone(order_to_row(order)["payment_history"])

    def test_changed_columns_only_lists_differences(self):
        before = order_from_row(self.row)
        after = replace(
            before,
            payment_history=before.payment_history + (
                PaymentRecord(amount=2000000, date=datetime(2025, 3, 5, tzinfo=timezone.utc)),
            ),
            payment_status=PaymentStatus.PAID_IN_FULL,
            status=OrderStatus.READY_TO_DEPART,
        )
        patch = changed_columns(before, after)
        self.assertEqual(set(patch), {"payment_history", "payment_status", "status"})
        self.assertEqual(patch["status"], "Siap Jalan")
        self.assertEqual(patch["payment_status"], "Lunas")

    def test_no_change_gives_empty_patch(self):
        order = order_from_row(self.row)
        self.assertEqual(changed_columns(order, order), {})


class DestinationRowTestCase(unittest.TestCase):

    def test_destination_from_row(self):
        destination = destination_from_row(destination_row())
        self.assertEqual(destination.id, 7)
        self.assertEqual(destination.min_people, 2)
        self.assertEqual(destination.price_tiers[0], PriceTier(min_people=2, price=1200000))
        self.assertEqual(destination.image_public_id, "destinations/bromo")
        self.assertEqual(destination.extra["shortDescription"], "Sunrise jeep tour")

    def test_destination_without_tiers_gets_default(self):
        destination = destination_from_row(destination_row(pricetiers=None, minpeople=None))
        self.assertEqual(destination.price_tiers, [PriceTier(min_people=1, price=0)])
        self.assertEqual(destination.min_people, 1)


if __name__ == "__main__":
    unittest.main()
