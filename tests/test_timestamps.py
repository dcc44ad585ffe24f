import unittest
from datetime import datetime, timedelta, timezone

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from moviegraph.errors import CoercionError
from moviegraph.timestamps import format_instant, parse_instant

class TestInstantFormatting(unittest.TestCase):

    def test_round_trip_for_boundary_instants(self):
        instants = [
            datetime(1970, 1, 1, tzinfo=timezone.utc),
            datetime(9999, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc),
            datetime(1, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 2, 29, 13, 7, 1, 250000, tzinfo=timezone.utc),
            datetime(2001, 9, 9, 1, 46, 40, 1, tzinfo=timezone.utc),
        ]
        for instant in instants:
            with self.subTest(instant=instant):
                self.assertEqual(parse_instant(format_instant(instant)), instant)

    def test_serializes_as_utc_with_z_suffix(self):
        self.assertEqual(format_instant(datetime(1970, 1, 1, tzinfo=timezone.utc)), "1970-01-01T00:00:00Z")
        self.assertEqual(
            format_instant(datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)),
            "2024-05-01T12:00:00.250000Z",
        )

    def test_other_offsets_are_normalised_to_utc(self):
        plus_two = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(format_instant(plus_two), "2024-05-01T12:00:00Z")
        self.assertEqual(parse_instant("2024-05-01T14:00:00+02:00"), datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))

    def test_naive_datetime_is_treated_as_utc(self):
        self.assertEqual(format_instant(datetime(2020, 1, 2, 3, 4, 5)), "2020-01-02T03:04:05Z")

    def test_parses_millis_and_truncates_nanos(self):
        self.assertEqual(parse_instant("2007-12-03T10:15:30.12Z").microsecond, 120000)
        self.assertEqual(parse_instant("2007-12-03T10:15:30.123456789Z").microsecond, 123456)

    def test_rejects_malformed_text(self):
        for text in ["", "yesterday", "2024-05-01", "2024-05-01T12:00:00", "2024-13-01T00:00:00Z", "2024-05-01 12:00:00Z"]:
            with self.subTest(text=text):
                with self.assertRaises(CoercionError):
                    parse_instant(text)

    def test_rejects_non_strings(self):
        for value in [0, 1.5, None, datetime.now(timezone.utc)]:
            with self.subTest(value=value):
                with self.assertRaises(CoercionError):
                    parse_instant(value)
        with self.assertRaises(CoercionError):
            format_instant("2024-05-01T12:00:00Z")


if __name__ == '__main__':
    unittest.main()
