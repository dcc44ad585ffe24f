import io
import json
import unittest

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from moviegraph.logger import get_logger

class TestJsonLogger(unittest.TestCase):

    def test_records_are_json_with_extra_fields(self):
        # --- Arrange ---
        logger = get_logger("moviegraph.tests.logger")
        stream = io.StringIO()
        logger.handlers[0].setStream(stream)

        # --- Act ---
        logger.warning("Review added", extra={"movie": "Top Gun", "review_id": 7})

        # --- Assert ---
        record = json.loads(stream.getvalue())
        self.assertEqual(record["message"], "Review added")
        self.assertEqual(record["levelname"], "WARNING")
        self.assertEqual(record["name"], "moviegraph.tests.logger")
        self.assertEqual((record["movie"], record["review_id"]), ("Top Gun", 7))

    def test_handlers_are_not_duplicated(self):
        first = get_logger("moviegraph.tests.repeat")
        second = get_logger("moviegraph.tests.repeat")

        self.assertIs(first, second)
        self.assertEqual(len(second.handlers), 1)


if __name__ == '__main__':
    unittest.main()
