#!/usr/bin/env python3
"""Splitting model replies into visible text and the order block."""
import unittest

from orderchat.app.postprocess import Postprocessor, find_balanced_object

MARKER = "FINAL_ORDER_JSON:"


class TestFindBalancedObject(unittest.TestCase):

    def test_braces_inside_strings_are_ignored(self):
        text = 'x {"name": "A}na", "items": {"a": 1}} tail'
        begin, end = find_balanced_object(text)
        self.assertEqual(text[begin:end], '{"name": "A}na", "items": {"a": 1}}')

    def test_unterminated_object(self):
        self.assertIsNone(find_balanced_object('{"a": {"b": 1}'))

    def test_no_object(self):
        self.assertIsNone(find_balanced_object("no braces here"))


class TestPostprocessor(unittest.TestCase):

    def setUp(self):
        self.parser = Postprocessor(marker=MARKER)

    def test_plain_reply_has_no_payload(self):
        turn = self.parser.parse("Bok! Koji je vaš broj telefona?")
        self.assertFalse(turn.marker_found)
        self.assertIsNone(turn.payload)
        self.assertEqual(turn.reply, "Bok! Koji je vaš broj telefona?")

    def test_payload_is_extracted_and_stripped(self):
        raw = (
            "Hvala Ana, narudžba je zabilježena!\n"
            'FINAL_ORDER_JSON: {"phone": "+38560000001", "pin": "1234", "name": "Ana", '
            '"pickup_time": "08:30", "items": {"burek_sir": 2}, "total": 10}'
        )
        turn = self.parser.parse(raw)
        self.assertTrue(turn.has_payload)
        self.assertEqual(turn.reply, "Hvala Ana, narudžba je zabilježena!")
        self.assertEqual(turn.payload.items, {"burek_sir": 2})
        self.assertEqual(turn.payload.pin, "1234")
        self.assertNotIn(MARKER, turn.reply)

    def test_text_after_the_object_is_kept(self):
        raw = 'Evo.\nFINAL_ORDER_JSON: {"phone": "1", "pin": "2", "items": {}}\nVidimo se!'
        turn = self.parser.parse(raw)
        self.assertEqual(turn.reply, "Evo.\n\nVidimo se!")

    def test_code_fence_around_block_is_removed(self):
        raw = 'Super!\n```json\nFINAL_ORDER_JSON: {"phone": "1", "pin": "2", "items": {"a": 1}}\n```'
        turn = self.parser.parse(raw)
        self.assertEqual(turn.reply, "Super!")
        self.assertTrue(turn.has_payload)

    def test_numeric_fields_are_coerced(self):
        raw = 'ok FINAL_ORDER_JSON: {"phone": 38560000001, "pin": 1234, "items": {"burek_sir": "2", "x": 0}}'
        turn = self.parser.parse(raw)
        self.assertEqual(turn.payload.phone, "38560000001")
        self.assertEqual(turn.payload.pin, "1234")
        self.assertEqual(turn.payload.items, {"burek_sir": 2})

    def test_invalid_json_is_a_soft_failure(self):
        raw = "Hvala! FINAL_ORDER_JSON: {phone: +385, pin: 1234,}"
        with self.assertLogs("orderchat", level="WARNING"):
            turn = self.parser.parse(raw)
        self.assertTrue(turn.marker_found)
        self.assertIsNone(turn.payload)
        self.assertEqual(turn.error, "invalid json")
        self.assertEqual(turn.reply, "Hvala!")

    def test_unterminated_block_is_stripped(self):
        raw = 'Hvala! FINAL_ORDER_JSON: {"phone": "1", "items": {"a": 1}'
        with self.assertLogs("orderchat", level="WARNING"):
            turn = self.parser.parse(raw)
        self.assertIsNone(turn.payload)
        self.assertEqual(turn.reply, "Hvala!")

    def test_items_must_be_a_mapping(self):
        raw = 'ok FINAL_ORDER_JSON: {"phone": "1", "pin": "2", "items": ["burek_sir"]}'
        with self.assertLogs("orderchat", level="WARNING"):
            turn = self.parser.parse(raw)
        self.assertIsNone(turn.payload)
        self.assertEqual(turn.error, "invalid payload")
        self.assertEqual(turn.invalid_fields, ("items",))

    def test_fractional_quantity_is_rejected(self):
        raw = 'ok FINAL_ORDER_JSON: {"items": {"burek_sir": 1.5}}'
        with self.assertLogs("orderchat", level="WARNING"):
            turn = self.parser.parse(raw)
        self.assertIsNone(turn.payload)


if __name__ == "__main__":
    unittest.main()
