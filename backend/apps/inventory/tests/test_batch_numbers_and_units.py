from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from apps.inventory.batch_numbers import BatchKey, BatchKind, next_free_key, normalize_code
from apps.inventory.exceptions import UnitMismatchError
from apps.inventory.units import convert, default_milk_density, normalize_unit, quantize


class BatchKeyTests(SimpleTestCase):
    def test_production_key_renders_code_and_day(self):
        key = BatchKey.production("curd", date(2026, 3, 2))

        self.assertEqual(key.render(), "B-CURD-20260302")
        self.assertEqual(key.with_sequence(3).render(), "B-CURD-20260302-3")

    def test_parse_returns_structured_key(self):
        key = BatchKey.parse("CARRYOVER-SET_CURD-20260302-2")

        self.assertEqual(key.kind, BatchKind.CARRYOVER)
        self.assertEqual(key.code, "SET_CURD")
        self.assertEqual(key.day, date(2026, 3, 2))
        self.assertEqual(key.sequence, 2)
        self.assertEqual(key.render(), BatchKey.carryover("set curd", date(2026, 3, 2)).with_sequence(2).render())

    def test_parse_rejects_free_text(self):
        self.assertIsNone(BatchKey.parse("manual lot 7"))
        self.assertIsNone(BatchKey.parse(""))

    def test_normalize_code_collapses_separators(self):
        self.assertEqual(normalize_code("Set Curd 1L"), "SET_CURD_1L")
        self.assertEqual(normalize_code("  "), "ITEM")

    def test_next_free_key_appends_first_unused_sequence(self):
        key = BatchKey.production("CURD", date(2026, 3, 2))

        self.assertEqual(next_free_key(key, set()), key)
        self.assertEqual(
            next_free_key(key, {"B-CURD-20260302", "B-CURD-20260302-2"}).render(),
            "B-CURD-20260302-3",
        )


class UnitConversionTests(SimpleTestCase):
    def test_aliases_are_normalized(self):
        self.assertEqual(normalize_unit(" Liters "), "l")
        self.assertEqual(normalize_unit("pcs"), "pc")
        self.assertEqual(normalize_unit(None), "")

    def test_same_dimension_conversion(self):
        self.assertEqual(convert(Decimal("500"), "ml", "l"), Decimal("0.5"))
        self.assertEqual(convert(Decimal("1.25"), "kg", "g"), Decimal("1250"))

    def test_volume_to_mass_requires_density(self):
        with self.assertRaises(UnitMismatchError):
            convert(Decimal("2"), "l", "kg")

        self.assertEqual(convert(Decimal("2"), "l", "kg", Decimal("1")), Decimal("2"))
        self.assertEqual(convert(Decimal("500"), "g", "l", Decimal("1")), Decimal("0.5"))

    def test_unknown_units_only_convert_to_themselves(self):
        self.assertEqual(convert(Decimal("3"), "tray", "tray"), Decimal("3"))
        with self.assertRaises(UnitMismatchError):
            convert(Decimal("3"), "tray", "pc")

    def test_quantize_rounds_to_three_places(self):
        self.assertEqual(str(quantize(Decimal("1.23456"))), "1.235")

    @override_settings(DAIRY_MILK_DENSITY_KG_PER_LITER="1.03")
    def test_milk_density_comes_from_settings(self):
        self.assertEqual(default_milk_density(), Decimal("1.03"))
