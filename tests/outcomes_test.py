from __future__ import annotations

import unittest

from strategy_cli.runtime.outcomes import (
    EUROPEAN_WHEEL,
    Outcome,
    color_of,
    event_numbers,
    matches_event,
    normalize_history,
    normalize_outcome,
    wheel_distance,
    wheel_neighbors,
    wheel_opposite,
    window,
)


class OutcomeNormalizationTests(unittest.TestCase):
    def test_numbers_and_numeric_strings_become_number_outcomes(self) -> None:
        self.assertEqual(normalize_outcome(7), Outcome(kind="number", value=7))
        self.assertEqual(normalize_outcome(12.0), Outcome(kind="number", value=12))
        self.assertEqual(normalize_outcome(" 0 "), Outcome(kind="number", value=0))

    def test_color_aliases_become_tokens(self) -> None:
        self.assertEqual(normalize_outcome("Red"), Outcome(kind="token", value="vermelho"))
        self.assertEqual(normalize_outcome("preto"), Outcome(kind="token", value="preto"))
        self.assertEqual(normalize_outcome("green"), Outcome(kind="token", value="zero"))

    def test_invalid_values_are_dropped(self) -> None:
        for raw in (None, True, 37, -1, 2.5, "", "99"):
            with self.subTest(raw=raw):
                self.assertIsNone(normalize_outcome(raw))

    def test_history_string_is_split_on_commas(self) -> None:
        history = normalize_history("3, vermelho,,40,12")
        self.assertEqual([item.as_raw() for item in history], [3, "vermelho", 12])

    def test_non_sequence_history_is_empty(self) -> None:
        self.assertEqual(normalize_history(None), [])
        self.assertEqual(normalize_history({"history": [1]}), [])

    def test_unicode_digits_stay_tokens(self) -> None:
        self.assertEqual(normalize_outcome("\u00b2"), Outcome(kind="token", value="\u00b2"))
        self.assertEqual(normalize_outcome("\u0663"), Outcome(kind="token", value="\u0663"))
        history = normalize_history(["\u00b2", 15])
        self.assertEqual([item.as_raw() for item in history], ["\u00b2", 15])
        self.assertFalse(matches_event(Outcome(kind="number", value=2), "numero:\u00b2"))
        self.assertEqual(event_numbers("numero:\u00b2"), [])


class WindowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.history = normalize_history([1, 2, 3, 4])

    def test_window_takes_most_recent_items(self) -> None:
        self.assertEqual([item.value for item in window(self.history, 2)], [3, 4])

    def test_window_clamps_to_history_length(self) -> None:
        self.assertEqual(len(window(self.history, 50)), 4)

    def test_zero_window_is_empty(self) -> None:
        self.assertEqual(window(self.history, 0), [])

    def test_none_window_is_full_history(self) -> None:
        self.assertEqual(len(window(self.history, None)), 4)


class EventAndWheelTests(unittest.TestCase):
    def test_colors(self) -> None:
        self.assertEqual(color_of(normalize_outcome(1)), "vermelho")
        self.assertEqual(color_of(normalize_outcome(2)), "preto")
        self.assertEqual(color_of(normalize_outcome(0)), "zero")
        self.assertIsNone(color_of(normalize_outcome("x")))

    def test_parity_events_exclude_zero(self) -> None:
        self.assertFalse(matches_event(normalize_outcome(0), "par"))
        self.assertTrue(matches_event(normalize_outcome(8), "par"))
        self.assertTrue(matches_event(normalize_outcome(9), "impar"))
        self.assertNotIn(0, event_numbers("par"))
        self.assertEqual(len(event_numbers("par")), 18)

    def test_numbered_event(self) -> None:
        self.assertTrue(matches_event(normalize_outcome(17), "numero:17"))
        self.assertEqual(event_numbers("numero:17"), [17])

    def test_token_equality_for_unknown_events(self) -> None:
        self.assertTrue(matches_event(normalize_outcome("azul"), "azul"))
        self.assertEqual(event_numbers("azul"), [])

    def test_wheel_geometry(self) -> None:
        self.assertEqual(len(EUROPEAN_WHEEL), 37)
        self.assertEqual(wheel_distance(0, 26), 1)
        self.assertEqual(wheel_opposite(15), 24)
        self.assertEqual(wheel_neighbors(0, 1, include_zero=True), [0, 32, 26])
        self.assertEqual(wheel_neighbors(0, 1, include_zero=False), [32, 26])


if __name__ == "__main__":
    unittest.main()
