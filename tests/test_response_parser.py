import json
import unittest

from social_analyzer.response_parser import (
    ParseTier,
    SuggestionRecord,
    parse,
    parse_suggestions,
)


class TestParseSuggestions(unittest.TestCase):
    def test_array_embedded_in_prose(self):
        raw = 'Here you go: [{"title":"A","body":"B","platform":"X"}] thanks'

        result = parse_suggestions(raw)

        self.assertEqual(result.tier, ParseTier.EMBEDDED_ARRAY)
        self.assertEqual(result.records, [SuggestionRecord(title="A", body="B", platform="X")])
        self.assertTrue(result.structured)

    def test_five_records_in_order(self):
        tips = [
            {"title": f"T{i}", "body": f"B{i}", "platform": p}
            for i, p in enumerate(["Instagram", "LinkedIn", "Twitter", "Facebook", "TikTok"])
        ]
        raw = "```json\n" + json.dumps(tips, indent=2) + "\n```"

        records = parse(raw)

        self.assertEqual([r.to_dict() for r in records], tips)

    def test_records_pass_through_without_validation(self):
        raw = '[{"title": "Only a title"}, {"title": 3, "body": ["x"], "platform": "Mastodon"}]'

        records = parse(raw)

        self.assertEqual(records[0], SuggestionRecord(title="Only a title", body=None))
        self.assertEqual(records[0].to_dict(), {"title": "Only a title", "body": None})
        self.assertEqual(records[1].platform, "Mastodon")
        self.assertEqual(records[1].body, ["x"])

    def test_array_inside_object(self):
        raw = '{"tips": [{"title": "A", "body": "B", "platform": "X"}]}'
        result = parse_suggestions(raw)
        self.assertEqual(result.tier, ParseTier.EMBEDDED_ARRAY)
        self.assertEqual(len(result.records), 1)

    def test_line_salvage(self):
        result = parse_suggestions("not json at all\nLine two\n\nLine three")

        self.assertEqual(result.tier, ParseTier.LINE_SALVAGE)
        self.assertEqual(
            [r.to_dict() for r in result.records],
            [
                {"title": "Tip 1", "body": "not json at all", "platform": "General"},
                {"title": "Tip 2", "body": "Line two", "platform": "General"},
                {"title": "Tip 3", "body": "Line three", "platform": "General"},
            ],
        )

    def test_line_salvage_keeps_first_five_lines(self):
        raw = "\n".join(f"line {i}" for i in range(1, 8))

        records = parse(raw)

        self.assertEqual(len(records), 5)
        self.assertEqual([r.body for r in records], [f"line {i}" for i in range(1, 6)])
        self.assertEqual(records[-1].title, "Tip 5")

    def test_whitespace_only_lines_are_skipped(self):
        records = parse("   \nfirst\n\t\n  second  ")
        self.assertEqual([r.body for r in records], ["first", "  second  "])

    def test_broken_json_falls_back_to_lines(self):
        raw = '[\n{"title": "A", "body": "unterminated\n]'

        result = parse_suggestions(raw)

        self.assertEqual(result.tier, ParseTier.LINE_SALVAGE)
        self.assertEqual(result.records[0].body, "[")
        self.assertEqual(len(result.records), 3)

    def test_array_of_strings_becomes_untitled_records(self):
        result = parse_suggestions('Tips: ["Post reels", "Go live"]')

        self.assertEqual(result.tier, ParseTier.EMBEDDED_ARRAY)
        self.assertEqual(
            result.records,
            [
                SuggestionRecord(title=None, body="Post reels"),
                SuggestionRecord(title=None, body="Go live"),
            ],
        )

    def test_mixed_objects_and_strings(self):
        records = parse('[{"title": "A", "body": "B", "platform": "X"}, "Go live"]')
        self.assertEqual([r.body for r in records], ["B", "Go live"])
        self.assertEqual(records[1].to_dict(), {"title": None, "body": "Go live"})

    def test_array_of_numbers_is_not_structured(self):
        result = parse_suggestions("[1, 2, 3]")
        self.assertEqual(result.tier, ParseTier.LINE_SALVAGE)
        self.assertEqual(result.records[0].body, "[1, 2, 3]")

    def test_empty_response(self):
        for raw in ("", "\n \n"):
            result = parse_suggestions(raw)
            self.assertEqual(result.tier, ParseTier.EMPTY)
            self.assertEqual(result.records, [])
            self.assertFalse(result.structured)


if __name__ == "__main__":
    unittest.main()
