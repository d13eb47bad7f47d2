import itertools
import math
import pathlib
import sys
import unittest
from unittest import mock

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from cabinet_core import (
    Configuration,
    ConfigurationError,
    LoadType,
    MusicalStyle,
    NumericDomainError,
    ResponseCurve,
    WallDistance,
    compute_electronics,
    frequency_sweep,
    global_response_db,
    log_frequency_axis,
    voice_response_db,
)
from cabinet_core.acoustics import response as response_module
from cabinet_core.acoustics.enclosure import (
    bass_reflex_term_db,
    double_bass_reflex_term_db,
    enclosure_term_db,
    room_gain_db,
    sealed_term_db,
)
from cabinet_core.acoustics.filters import crossover_term_db, filter_order, high_pass_db, low_pass_db
from cabinet_core.acoustics.response import Band, evaluate_frequency, frequency_band


class CrossoverFilterTest(unittest.TestCase):
    def test_second_order_is_three_db_down_at_cutoff(self) -> None:
        self.assertAlmostEqual(low_pass_db(1000.0, 1000.0, 2, 0.707), -3.01, delta=0.05)
        self.assertAlmostEqual(high_pass_db(1000.0, 1000.0, 2, 0.707), -3.01, delta=0.05)

    def test_odd_order_adds_first_order_section(self) -> None:
        self.assertAlmostEqual(low_pass_db(1000.0, 1000.0, 3, 0.707), -6.02, delta=0.05)
        self.assertAlmostEqual(high_pass_db(1000.0, 1000.0, 1, 0.707), -3.01, delta=0.01)

    def test_rolloff_is_monotonic_outside_passband(self) -> None:
        low_pass = [low_pass_db(freq, 1000.0, 4, 0.707) for freq in (2000.0, 4000.0, 8000.0, 16000.0)]
        high_pass = [high_pass_db(freq, 1000.0, 4, 0.707) for freq in (500.0, 250.0, 125.0, 62.5)]
        self.assertEqual(low_pass, sorted(low_pass, reverse=True))
        self.assertEqual(high_pass, sorted(high_pass, reverse=True))
        # 24 dB/octave well past the cutoff.
        self.assertAlmostEqual(low_pass[-2] - low_pass[-1], 24.0, delta=0.5)

    def test_high_q_peaks_below_cutoff(self) -> None:
        self.assertAlmostEqual(low_pass_db(900.0, 1000.0, 2, 1.2), 2.23, delta=0.01)
        self.assertLess(low_pass_db(900.0, 1000.0, 2, 0.5), 0.0)

    def test_filter_order_from_slope(self) -> None:
        self.assertEqual(filter_order(6), 1)
        self.assertEqual(filter_order(24), 4)
        for slope in (10, 0, -6):
            with self.assertRaises(ConfigurationError):
                filter_order(slope)

    def test_network_terms_by_voice_position(self) -> None:
        self.assertEqual(crossover_term_db(1000.0, 0, (), 2, 0.707), 0.0)
        crossovers = (500.0, 3000.0)
        self.assertEqual(crossover_term_db(100.0, 0, crossovers, 2, 0.707), low_pass_db(100.0, 500.0, 2, 0.707))
        self.assertEqual(
            crossover_term_db(10000.0, 2, crossovers, 2, 0.707), high_pass_db(10000.0, 3000.0, 2, 0.707)
        )
        center = math.sqrt(500.0 * 3000.0)
        self.assertAlmostEqual(
            crossover_term_db(center, 1, crossovers, 2, 0.707),
            high_pass_db(center, 500.0, 2, 0.707) + low_pass_db(center, 3000.0, 2, 0.707),
        )


class EnclosureTermTest(unittest.TestCase):
    def test_rolloff_below_corner_without_bump(self) -> None:
        self.assertAlmostEqual(sealed_term_db(25.0, 50.0, 0.5), -12.0 * math.log10(2.0))
        self.assertAlmostEqual(bass_reflex_term_db(25.0, 50.0, 0.5), -12.0 * math.log10(2.0))
        self.assertAlmostEqual(
            double_bass_reflex_term_db(25.0, 50.0, 0.5),
            6.0 * math.log10(0.5) + 6.0 * math.log10(25.0 / 70.0),
        )

    def test_bump_at_corner_follows_q(self) -> None:
        self.assertAlmostEqual(sealed_term_db(50.0, 50.0, 0.707), 2.0 * 0.207)
        self.assertAlmostEqual(bass_reflex_term_db(50.0, 50.0, 1.2), 2.1)
        self.assertEqual(bass_reflex_term_db(500.0, 50.0, 0.5), 0.0)

    def test_explicit_secondary_tuning_is_used(self) -> None:
        implicit = double_bass_reflex_term_db(30.0, 40.0, 0.5)
        explicit = double_bass_reflex_term_db(30.0, 40.0, 0.5, 80.0)
        self.assertLess(explicit, implicit)

    def test_dispatch_by_load_type(self) -> None:
        self.assertEqual(enclosure_term_db(30.0, LoadType.SEALED, 50.0, 0.6), sealed_term_db(30.0, 50.0, 0.6))
        self.assertEqual(
            enclosure_term_db(30.0, LoadType.BASS_REFLEX, 50.0, 0.6), bass_reflex_term_db(30.0, 50.0, 0.6)
        )

    def test_room_gain(self) -> None:
        near = room_gain_db(40.0, WallDistance.NEAR)
        far = room_gain_db(40.0, WallDistance.FAR)
        self.assertAlmostEqual(near - far, 1.8)
        self.assertEqual(room_gain_db(100.0, WallDistance.NEAR), 0.0)
        self.assertEqual(room_gain_db(5000.0, WallDistance.MEDIUM), 0.0)


class BandCorrectionTest(unittest.TestCase):
    def test_band_boundaries(self) -> None:
        self.assertIs(frequency_band(199.9), Band.BASS)
        self.assertIs(frequency_band(200.0), Band.MID)
        self.assertIs(frequency_band(2000.0), Band.MID)
        self.assertIs(frequency_band(2000.1), Band.TREBLE)

    def test_style_correction_applies_to_the_owning_band(self) -> None:
        neutral = Configuration()
        electronic = Configuration(musical_style=MusicalStyle.ELECTRONIC)
        electronics = compute_electronics(neutral)
        bass_shift = voice_response_db(50.0, 0, electronic, electronics) - voice_response_db(
            50.0, 0, neutral, electronics
        )
        treble_shift = voice_response_db(8000.0, 1, electronic, electronics) - voice_response_db(
            8000.0, 1, neutral, electronics
        )
        self.assertAlmostEqual(bass_shift, 4.0)
        self.assertAlmostEqual(treble_shift, 3.0)

    def test_unknown_style_is_flat(self) -> None:
        config = Configuration.from_dict({"musical_style": "polka"})
        electronics = compute_electronics(config)
        self.assertEqual(
            voice_response_db(1000.0, 0, config, electronics),
            voice_response_db(1000.0, 0, Configuration(), electronics),
        )


class VoiceResponseTest(unittest.TestCase):
    def setUp(self) -> None:
        self.config = Configuration()
        self.electronics = compute_electronics(self.config)

    def test_invalid_frequency_is_rejected(self) -> None:
        for value in (0.0, -10.0, float("nan"), float("inf"), "100", None, True):
            with self.subTest(value=value):
                with self.assertRaises(ConfigurationError):
                    voice_response_db(value, 0, self.config, self.electronics)  # type: ignore[arg-type]

    def test_invalid_voice_index(self) -> None:
        with self.assertRaises(IndexError):
            voice_response_db(1000.0, 2, self.config, self.electronics)
        with self.assertRaises(IndexError):
            voice_response_db(1000.0, -1, self.config, self.electronics)

    def test_deep_stopband_is_clamped(self) -> None:
        config = Configuration(
            voice_count=4,
            advanced_mode_enabled=True,
            filter_slope_db_per_oct=24,
            manual_crossover_frequencies_hz=(),
        )
        electronics = compute_electronics(config)
        self.assertEqual(voice_response_db(20.0, 3, config, electronics), 49.0)

    def test_filter_failure_falls_back_to_floor(self) -> None:
        with mock.patch.object(
            response_module, "crossover_term_db", side_effect=NumericDomainError("low_pass_db", "overflow")
        ):
            with self.assertLogs("cabinet_core.acoustics.response", level="WARNING"):
                level = voice_response_db(5000.0, 1, self.config, self.electronics)
        self.assertEqual(level, 49.0)

    def test_enclosure_failure_is_ignored(self) -> None:
        expected = voice_response_db(1000.0, 0, self.config, self.electronics)
        with mock.patch.object(
            response_module, "enclosure_term_db", side_effect=NumericDomainError("enclosure_term_db", "nan")
        ):
            with self.assertLogs("cabinet_core.acoustics.response", level="WARNING"):
                level = voice_response_db(1000.0, 0, self.config, self.electronics)
        # The enclosure contribution is negligible this far above tuning.
        self.assertAlmostEqual(level, expected, delta=0.01)

    def test_quality_factor_reaches_filters_and_enclosure(self) -> None:
        def electronics_for(q: float):
            config = Configuration(
                advanced_mode_enabled=True,
                manual_crossover_frequencies_hz=(3000.0,),
                quality_factor=q,
            )
            return config, compute_electronics(config)

        sharp_config, sharp = electronics_for(1.2)
        soft_config, soft = electronics_for(0.5)

        self.assertAlmostEqual(voice_response_db(3000.0, 1, sharp_config, sharp), 90.58, delta=0.01)
        self.assertAlmostEqual(voice_response_db(3000.0, 1, soft_config, soft), 82.98, delta=0.01)

        tuning = sharp.enclosure_corner_hz
        self.assertEqual(tuning, soft.enclosure_corner_hz)
        bass_gap = voice_response_db(tuning, 0, sharp_config, sharp) - voice_response_db(
            tuning, 0, soft_config, soft
        )
        self.assertAlmostEqual(bass_gap, 2.1, delta=0.05)


class GlobalResponseTest(unittest.TestCase):
    def test_equal_voices_add_six_db(self) -> None:
        self.assertAlmostEqual(global_response_db(1000.0, [89.0, 89.0]), 95.0206, places=3)

    def test_single_voice_is_unchanged(self) -> None:
        self.assertAlmostEqual(global_response_db(1000.0, [84.5]), 84.5)

    def test_total_is_clamped(self) -> None:
        self.assertEqual(global_response_db(1000.0, [89.0] * 5), 99.0)

    def test_empty_voice_list_is_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            global_response_db(1000.0, [])

    def test_non_finite_voices_are_dropped(self) -> None:
        with self.assertLogs("cabinet_core.acoustics.response", level="WARNING"):
            level = global_response_db(1000.0, [89.0, float("nan")])
        self.assertAlmostEqual(level, 89.0)

        with self.assertLogs("cabinet_core.acoustics.response", level="WARNING"):
            level = global_response_db(1000.0, [float("inf"), float("nan")])
        self.assertEqual(level, 49.0)


class SweepTest(unittest.TestCase):
    def test_log_axis(self) -> None:
        axis = log_frequency_axis(20.0, 20000.0, 4)
        self.assertEqual(len(axis), 4)
        for actual, expected in zip(axis, (20.0, 200.0, 2000.0, 20000.0), strict=True):
            self.assertAlmostEqual(actual, expected, places=6)
        self.assertEqual(axis[-1], 20000.0)
        self.assertEqual(log_frequency_axis(100.0, 1000.0, 1), [100.0])
        self.assertEqual(len(log_frequency_axis()), 121)

    def test_log_axis_rejects_bad_bounds(self) -> None:
        with self.assertRaises(ConfigurationError):
            log_frequency_axis(1000.0, 100.0, 10)
        with self.assertRaises(ConfigurationError):
            log_frequency_axis(0.0, 100.0, 10)
        with self.assertRaises(ConfigurationError):
            log_frequency_axis(20.0, 100.0, 0)

    def test_threaded_sweep_matches_inline_sweep(self) -> None:
        config = Configuration(voice_count=3)
        electronics = compute_electronics(config)
        freqs = [5000.0, 50.0, 800.0, 20.0, 12000.0, 300.0]
        inline = frequency_sweep(freqs, config, electronics)
        threaded = frequency_sweep(freqs, config, electronics, workers=4)
        self.assertEqual(inline, threaded)
        self.assertEqual(list(threaded.frequency_hz), freqs)
        self.assertEqual(threaded.voice_count, 3)

    def test_sample_matches_curve_column(self) -> None:
        config = Configuration()
        electronics = compute_electronics(config)
        curve = frequency_sweep([100.0, 1000.0], config, electronics)
        sample = evaluate_frequency(1000.0, config, electronics)
        self.assertEqual(curve.samples()[1], sample)

    def test_sweep_rejects_bad_frequency(self) -> None:
        config = Configuration()
        electronics = compute_electronics(config)
        with self.assertRaises(ConfigurationError):
            frequency_sweep([100.0, -1.0], config, electronics)

    def test_levels_stay_finite_and_bounded(self) -> None:
        freqs = log_frequency_axis(20.0, 20000.0, 31)
        for voices, load, style in itertools.product((1, 2, 3, 4), LoadType, MusicalStyle):
            config = Configuration(voice_count=voices, load_type=load, musical_style=style)
            curve = frequency_sweep(freqs, config, compute_electronics(config))
            with self.subTest(voices=voices, load=load, style=style):
                self.assertEqual(curve.voice_count, voices)
                for level in itertools.chain(curve.global_db, *curve.per_voice_db):
                    self.assertTrue(math.isfinite(level))
                    self.assertGreaterEqual(level, 49.0)
                    self.assertLessEqual(level, 99.0)


class CurveSummaryTest(unittest.TestCase):
    def test_summary_of_synthetic_curve(self) -> None:
        curve = ResponseCurve(
            frequency_hz=(100.0, 1000.0, 10000.0),
            per_voice_db=((80.0, 89.0, 89.0),),
            global_db=(80.0, 89.0, 89.0),
        )
        summary = curve.summary()
        self.assertEqual(summary.reference_db, 89.0)
        assert summary.f3_low_hz is not None
        self.assertAlmostEqual(summary.f3_low_hz, 10 ** (8.0 / 3.0), places=6)
        self.assertEqual(summary.f3_high_hz, 10000.0)
        self.assertEqual(summary.peak_frequency_hz, 1000.0)
        self.assertEqual(summary.min_db, 80.0)
        self.assertEqual(summary.min_frequency_hz, 100.0)
        self.assertEqual(summary.ripple_db, 0.0)

    def test_summary_of_simulated_curve(self) -> None:
        config = Configuration()
        curve = frequency_sweep(log_frequency_axis(), config, compute_electronics(config))
        summary = curve.summary()
        self.assertIsNotNone(summary.f3_low_hz)
        self.assertIsNotNone(summary.ripple_db)
        self.assertLessEqual(summary.peak_db, 99.0)
        self.assertEqual(set(summary.to_dict()), {
            "reference_db",
            "f3_low_hz",
            "f3_high_hz",
            "peak_db",
            "peak_frequency_hz",
            "min_db",
            "min_frequency_hz",
            "ripple_db",
        })

    def test_empty_curve_cannot_be_summarised(self) -> None:
        curve = ResponseCurve.from_samples([])
        self.assertEqual(curve.voice_count, 0)
        with self.assertRaises(ConfigurationError):
            curve.summary()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
