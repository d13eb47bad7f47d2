"""Export the simulated frequency response of a configuration to CSV or JSON."""

from __future__ import annotations

import argparse
import csv
import json
import sys
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve()
PYTHON_ROOT = SCRIPT_PATH.parent.parent
PROJECT_ROOT = PYTHON_ROOT.parent

for candidate in (PROJECT_ROOT, PYTHON_ROOT):
    if str(candidate) not in sys.path:
        sys.path.insert(0, str(candidate))

from cabinet_core import (  # noqa: E402
    BudgetTier,
    Configuration,
    ConfigurationError,
    EnclosureShape,
    ListeningLevel,
    LoadType,
    PrimaryUse,
    ResponseCurve,
    WallDistance,
    log_frequency_axis,
    recommend,
    response_curve,
)


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:  # pragma: no cover - argparse formats message
        raise argparse.ArgumentTypeError(str(exc)) from exc
    if parsed <= 0:
        msg = f"expected a positive value, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return parsed


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:  # pragma: no cover - argparse formats message
        raise argparse.ArgumentTypeError(str(exc)) from exc
    if parsed <= 0:
        msg = f"expected a positive integer, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return parsed


def _frequency_list(value: str) -> list[float]:
    return [_positive_float(part) for part in value.split(",") if part.strip()]


def _choices(enum_cls: type) -> tuple[str, ...]:
    return tuple(member.value for member in enum_cls)


def _configuration_from_args(args: argparse.Namespace) -> Configuration:
    data: dict[str, object] = {
        "impedance_ohm": args.impedance,
        "amplifier_power_w": args.power,
        "voice_count": args.voices,
        "listening_level": args.listening_level,
        "musical_style": args.style,
        "enclosure_shape": args.shape,
        "budget_tier": args.budget,
        "wall_distance": args.wall_distance,
        "primary_use": args.use,
        "load_type": args.load,
    }
    if args.advanced:
        data["advanced_mode_enabled"] = True
        data["filter_slope_db_per_oct"] = args.slope
        data["quality_factor"] = args.q
        data["manual_crossover_frequencies_hz"] = args.crossovers or []
        data["vent_tuning_frequency_hz"] = args.tuning
    return Configuration.from_dict(data)


def _export_csv(path: Path, curve: ResponseCurve) -> None:
    header = ["frequency_hz", "global_db"] + [f"voice_{idx + 1}_db" for idx in range(curve.voice_count)]
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(header)
        for sample in curve.samples():
            writer.writerow([sample.frequency_hz, sample.global_db, *sample.per_voice_db])


def _export_json(
    path: Path,
    *,
    metadata: Mapping[str, object],
    curve: ResponseCurve,
    summary: Mapping[str, object],
    pretty: bool,
) -> None:
    payload = {
        "metadata": metadata,
        **curve.to_dict(),
        "summary": summary,
    }
    indent = 2 if pretty else None
    path.write_text(json.dumps(payload, indent=indent), encoding="utf-8")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export the simulated per-voice and global response of a loudspeaker configuration.",
    )
    parser.add_argument("--output", type=Path, required=True, help="Destination file path.")
    parser.add_argument(
        "--format",
        choices=("csv", "json"),
        default="csv",
        help="Output format (default: %(default)s).",
    )
    parser.add_argument("--impedance", type=int, choices=(4, 8, 12, 16), default=8, help="Nominal impedance (ohms).")
    parser.add_argument("--power", type=_positive_float, default=100.0, help="Amplifier power in watts.")
    parser.add_argument("--voices", type=int, choices=(1, 2, 3, 4), default=2, help="Number of ways.")
    parser.add_argument(
        "--listening-level",
        choices=_choices(ListeningLevel),
        default=ListeningLevel.MEDIUM.value,
        help="Typical listening level (default: %(default)s).",
    )
    parser.add_argument(
        "--style",
        default="neutral",
        help="Musical style; unknown styles fall back to neutral (default: %(default)s).",
    )
    parser.add_argument(
        "--shape",
        choices=_choices(EnclosureShape),
        default=EnclosureShape.BOOKSHELF.value,
        help="Cabinet shape (default: %(default)s).",
    )
    parser.add_argument(
        "--budget",
        choices=_choices(BudgetTier),
        default=BudgetTier.MID.value,
        help="Budget tier (default: %(default)s).",
    )
    parser.add_argument(
        "--wall-distance",
        choices=_choices(WallDistance),
        default=WallDistance.MEDIUM.value,
        help="Distance to the rear wall (default: %(default)s).",
    )
    parser.add_argument(
        "--use",
        choices=_choices(PrimaryUse),
        default=PrimaryUse.MUSIC.value,
        help="Primary use (default: %(default)s).",
    )
    parser.add_argument(
        "--load",
        choices=_choices(LoadType),
        default=LoadType.BASS_REFLEX.value,
        help="Enclosure load type (default: %(default)s).",
    )
    parser.add_argument(
        "--advanced",
        action="store_true",
        help="Honour --slope, --q, --crossovers and --tuning literally.",
    )
    parser.add_argument("--slope", type=int, choices=(6, 12, 18, 24), default=12, help="Filter slope (dB/octave).")
    parser.add_argument("--q", type=_positive_float, default=0.707, help="Filter and tuning Q.")
    parser.add_argument(
        "--crossovers",
        type=_frequency_list,
        default=None,
        help="Comma-separated crossover frequencies in Hz (advanced mode only).",
    )
    parser.add_argument("--tuning", type=_positive_float, default=None, help="Vent tuning override in Hz.")
    parser.add_argument(
        "--freq-start",
        type=_positive_float,
        default=20.0,
        help="Start frequency for the sweep in Hz (default: %(default)s).",
    )
    parser.add_argument(
        "--freq-stop",
        type=_positive_float,
        default=20000.0,
        help="Stop frequency for the sweep in Hz (default: %(default)s).",
    )
    parser.add_argument(
        "--freq-count",
        type=_positive_int,
        default=121,
        help="Number of log-spaced frequency samples (default: %(default)s).",
    )
    parser.add_argument("--workers", type=int, default=0, help="Worker threads for the sweep (0 = inline).")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output with indentation.")
    parser.add_argument("--quiet", action="store_true", help="Suppress human-readable summary output.")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(list(argv) if argv is not None else None)
    if args.freq_stop <= args.freq_start:
        print("error: stop frequency must be greater than start frequency", file=sys.stderr)
        return 2

    try:
        config = _configuration_from_args(args)
        recommendation = recommend(config)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    frequencies = log_frequency_axis(args.freq_start, args.freq_stop, args.freq_count)
    curve = response_curve(config, frequencies, workers=args.workers, recommendation=recommendation)
    summary = curve.summary()

    output_path = args.output
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if args.format == "csv":
        _export_csv(output_path, curve)
    else:
        metadata: dict[str, object] = {
            "configuration": config.to_dict(),
            "crossover_frequencies_hz": list(recommendation.crossover_frequencies_hz),
            "filter_slope": recommendation.filter_slope_label,
            "volume_liters": recommendation.volume_liters,
        }
        _export_json(output_path, metadata=metadata, curve=curve, summary=summary.to_dict(), pretty=args.pretty)

    if not args.quiet:
        print(
            f"Response export ({config.voice_count} way(s), {config.load_type.value}, "
            f"{recommendation.volume_liters:.1f} L)"
        )
        print(f"  Peak: {summary.peak_db:.2f} dB at {summary.peak_frequency_hz:.1f} Hz")
        if summary.f3_low_hz is not None:
            print(f"  -3 dB low edge: {summary.f3_low_hz:.1f} Hz")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
