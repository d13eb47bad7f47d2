import itertools
import pathlib
import sys
import unittest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from cabinet_core import (
    BudgetTier,
    Configuration,
    ListeningLevel,
    LoadType,
    MusicalStyle,
    PrimaryUse,
    compute_electronics,
    compute_geometry,
)
from cabinet_core.config import VOICE_COUNT_CHOICES
from cabinet_core.electronics import (
    format_frequency,
    format_impedance,
    format_power,
    format_sensitivity,
    format_slope,
    parse_frequency,
    parse_impedance,
    parse_power,
    parse_sensitivity,
    parse_slope,
)


class ElectronicsCalculatorTest(unittest.TestCase):
    def test_default_two_way(self) -> None:
        electronics = compute_electronics(Configuration())
        self.assertEqual(electronics.crossover_frequencies_hz, (3000.0,))
        self.assertEqual(electronics.filter_slope_db_per_oct, 12)
        self.assertEqual(electronics.filter_order, 2)
        self.assertEqual(electronics.nominal_impedance_ohm, 8)
        self.assertEqual(electronics.impedance_range_ohm, (6.4, 9.6))
        self.assertEqual(electronics.admissible_power_w, 150.0)
        self.assertEqual(electronics.peak_power_w, 300.0)
        self.assertAlmostEqual(electronics.sensitivity_db, 89.0)
        self.assertAlmostEqual(electronics.enclosure_corner_hz, 55.3)
        self.assertIsNone(electronics.secondary_tuning_hz)

    def test_four_way_lowers_impedance_and_steepens_slope(self) -> None:
        electronics = compute_electronics(Configuration(voice_count=4))
        self.assertEqual(electronics.crossover_frequencies_hz, (250.0, 1000.0, 3000.0))
        self.assertEqual(electronics.filter_slope_db_per_oct, 18)
        self.assertEqual(electronics.nominal_impedance_ohm, 6)
        self.assertAlmostEqual(electronics.sensitivity_db, 90.0)

    def test_impedance_floor(self) -> None:
        electronics = compute_electronics(Configuration(impedance_ohm=4, voice_count=3))
        self.assertEqual(electronics.nominal_impedance_ohm, 4)

    def test_bass_heavy_lowers_crossovers(self) -> None:
        electronics = compute_electronics(Configuration(voice_count=3, musical_style=MusicalStyle.BASS_HEAVY))
        self.assertEqual(electronics.crossover_frequencies_hz, (400.0, 2400.0))

    def test_single_way_has_no_crossover(self) -> None:
        electronics = compute_electronics(Configuration(voice_count=1))
        self.assertEqual(electronics.crossover_frequencies_hz, ())
        self.assertEqual(electronics.crossover_labels, [])

    def test_premium_choices_use_steepest_slope(self) -> None:
        self.assertEqual(compute_electronics(Configuration(budget_tier=BudgetTier.HIGH)).filter_slope_db_per_oct, 24)
        self.assertEqual(compute_electronics(Configuration(musical_style=MusicalStyle.HIFI)).filter_slope_db_per_oct, 24)

    def test_manual_values_in_advanced_mode(self) -> None:
        config = Configuration(
            voice_count=3,
            advanced_mode_enabled=True,
            manual_crossover_frequencies_hz=(500.0, 4000.0),
            filter_slope_db_per_oct=6,
            quality_factor=1.0,
        )
        electronics = compute_electronics(config)
        self.assertEqual(electronics.crossover_frequencies_hz, (500.0, 4000.0))
        self.assertEqual(electronics.filter_slope_db_per_oct, 6)
        self.assertEqual(electronics.quality_factor, 1.0)

    def test_advanced_values_ignored_in_simple_mode(self) -> None:
        config = Configuration(manual_crossover_frequencies_hz=(1800.0,), filter_slope_db_per_oct=24, quality_factor=1.1)
        electronics = compute_electronics(config)
        self.assertEqual(electronics.crossover_frequencies_hz, (3000.0,))
        self.assertEqual(electronics.filter_slope_db_per_oct, 12)
        self.assertAlmostEqual(electronics.quality_factor, 0.707)

    def test_power_follows_listening_level(self) -> None:
        low = compute_electronics(Configuration(listening_level=ListeningLevel.LOW))
        high = compute_electronics(Configuration(listening_level=ListeningLevel.HIGH))
        self.assertEqual(low.admissible_power_w, 120.0)
        self.assertEqual(high.admissible_power_w, 180.0)
        self.assertEqual(high.peak_power_w, 360.0)

    def test_sensitivity_adjustments_are_clamped(self) -> None:
        studio = compute_electronics(Configuration(listening_level=ListeningLevel.LOW, primary_use=PrimaryUse.STUDIO))
        self.assertAlmostEqual(studio.sensitivity_db, 86.5)
        loud = compute_electronics(
            Configuration(listening_level=ListeningLevel.HIGH, voice_count=4, primary_use=PrimaryUse.HOME_THEATER)
        )
        self.assertAlmostEqual(loud.sensitivity_db, 92.5)
        for config in (Configuration(voice_count=1), Configuration(voice_count=4)):
            value = compute_electronics(config).sensitivity_db
            self.assertGreaterEqual(value, 85.0)
            self.assertLessEqual(value, 95.0)

    def test_sealed_corner_uses_box_resonance(self) -> None:
        config = Configuration(load_type=LoadType.SEALED)
        geometry = compute_geometry(config)
        electronics = compute_electronics(config, geometry)
        self.assertEqual(electronics.enclosure_corner_hz, geometry.box_resonance_hz)

    def test_double_reflex_carries_secondary_tuning(self) -> None:
        electronics = compute_electronics(Configuration(load_type=LoadType.DOUBLE_BASS_REFLEX))
        self.assertIsNotNone(electronics.secondary_tuning_hz)
        assert electronics.secondary_tuning_hz is not None
        self.assertGreater(electronics.secondary_tuning_hz, electronics.enclosure_corner_hz)


class ElectronicsPropertiesTest(unittest.TestCase):
    def test_crossovers_have_one_point_per_boundary_in_ascending_order(self) -> None:
        for voices, style, advanced in itertools.product(VOICE_COUNT_CHOICES, MusicalStyle, (False, True)):
            config = Configuration(voice_count=voices, musical_style=style, advanced_mode_enabled=advanced)
            crossovers = compute_electronics(config).crossover_frequencies_hz
            with self.subTest(voices=voices, style=style, advanced=advanced):
                self.assertEqual(len(crossovers), voices - 1)
                self.assertTrue(all(low < high for low, high in zip(crossovers, crossovers[1:])))
                self.assertTrue(all(20.0 <= freq <= 20000.0 for freq in crossovers))


class ElectronicsLabelTest(unittest.TestCase):
    def test_labels_of_default_configuration(self) -> None:
        electronics = compute_electronics(Configuration())
        self.assertEqual(electronics.filter_slope_label, "12 dB/octave")
        self.assertEqual(electronics.impedance_label, "8 Ω nominal")
        self.assertEqual(electronics.admissible_power_label, "150 W RMS")
        self.assertEqual(electronics.peak_power_label, "300 W peak")
        self.assertEqual(electronics.sensitivity_label, "89.0 dB")
        self.assertEqual(electronics.crossover_labels, ["3000 Hz"])

        data = electronics.to_dict()
        self.assertEqual(data["filter_slope_label"], "12 dB/octave")
        self.assertEqual(data["impedance_range_ohm"], [6.4, 9.6])

    def test_labels_parse_back_to_numbers(self) -> None:
        self.assertEqual(parse_slope(format_slope(18)), 18)
        self.assertEqual(parse_impedance(format_impedance(6)), 6.0)
        self.assertEqual(parse_power(format_power(225.0)), 225.0)
        self.assertEqual(parse_power(format_power(450.0, kind="peak")), 450.0)
        self.assertEqual(parse_sensitivity(format_sensitivity(90.5)), 90.5)
        self.assertEqual(parse_frequency(format_frequency(2400.0)), 2400.0)

    def test_labels_keep_full_precision(self) -> None:
        config = Configuration(
            voice_count=3,
            advanced_mode_enabled=True,
            manual_crossover_frequencies_hz=(523.25, 12345.67),
        )
        electronics = compute_electronics(config)
        self.assertEqual(electronics.crossover_labels, ["523.25 Hz", "12345.67 Hz"])
        self.assertEqual([parse_frequency(label) for label in electronics.crossover_labels], [523.25, 12345.67])
        self.assertEqual(format_frequency(43.1), "43.1 Hz")
        self.assertEqual(parse_impedance(format_impedance(6.25)), 6.25)
        self.assertEqual(parse_power(format_power(187.125)), 187.125)

    def test_parsers_accept_common_spellings(self) -> None:
        self.assertEqual(parse_slope("24 dB/oct"), 24)
        self.assertEqual(parse_impedance("4 ohms"), 4.0)
        self.assertEqual(parse_frequency("2.5 kHz"), 2500.0)

    def test_parsers_reject_garbage(self) -> None:
        for parser, label in (
            (parse_slope, "steep"),
            (parse_impedance, "8 volts"),
            (parse_power, "lots"),
            (parse_sensitivity, "loud"),
            (parse_frequency, "3000"),
        ):
            with self.subTest(parser=parser.__name__):
                with self.assertRaises(ValueError):
                    parser(label)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
