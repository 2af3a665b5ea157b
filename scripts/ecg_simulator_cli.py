#!/usr/bin/env python3
"""CLI for the ECG synthesis engine: generate a trace or a lead set and summarise it.

Usage examples:
    python scripts/ecg_simulator_cli.py --duration 5 --seed 42
    python scripts/ecg_simulator_cli.py --pathology atrialFibrillation --noise medium
    python scripts/ecg_simulator_cli.py --leads I II III aVR aVL aVF --output out.json
    python scripts/ecg_simulator_cli.py --stream 3 --chunk 1.0 --hrv
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Ensure project root on sys.path
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from config.settings import SOLVER_ACCURACY_PRESETS, Settings, tolerance_for
from src.ecg_system.exceptions import ECGSystemError
from src.ecg_system.schemas import ECGResult, GenerationOptions
from src.simulator.generator import ECGGenerator
from src.simulator.leads import STANDARD_LEADS
from src.simulator.noise import NOISE_PRESETS
from src.simulator.pathology import Pathology

logger = logging.getLogger("ecg_simulator_cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate synthetic ECG traces from the ECGSYN model.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, help="YAML settings file.")
    parser.add_argument("--duration", type=float, help="Seconds to generate.")
    parser.add_argument("--heart-rate", type=float, help="Heart rate in bpm.")
    parser.add_argument("--sampling-rate", type=int, help="Sampling rate in Hz (>= 250).")
    parser.add_argument(
        "--pathology", type=str, default="normal",
        help="Pathology identifier, e.g. " + ", ".join(p.value for p in list(Pathology)[:4]) + ".",
    )
    parser.add_argument(
        "--family", type=str, choices=["enhanced", "baseline"],
        help="Pathology transform family.",
    )
    parser.add_argument(
        "--noise", type=str, default="clean", choices=list(NOISE_PRESETS),
        help="Noise preset (default clean).",
    )
    parser.add_argument(
        "--accuracy", type=str, choices=list(SOLVER_ACCURACY_PRESETS),
        help="Solver accuracy preset.",
    )
    parser.add_argument("--variation", type=float, default=0.0, help="Biological variation strength.")
    parser.add_argument("--warmup", type=float, default=0.0, help="Seconds discarded before output.")
    parser.add_argument(
        "--leads", nargs="+", choices=list(STANDARD_LEADS),
        help="Derive these leads instead of a single trace.",
    )
    parser.add_argument(
        "--lead-strategy", type=str, choices=["scalar", "einthoven"],
        help="Multi-lead derivation strategy.",
    )
    parser.add_argument("--stream", type=int, help="Pull this many streamed chunks.")
    parser.add_argument("--chunk", type=float, default=1.0, help="Chunk duration in seconds.")
    parser.add_argument("--hrv", action="store_true", help="Vary heart rate per streamed chunk.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument("--output", type=str, help="Write results as JSON to this path.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Merge YAML / environment settings with command-line overrides."""
    settings = Settings.from_yaml(args.config) if args.config else Settings.from_env()
    cfg = settings.generator
    if args.sampling_rate is not None:
        cfg.sampling_rate = args.sampling_rate
    if args.duration is not None:
        cfg.duration = args.duration
    if args.heart_rate is not None:
        cfg.heart_rate = args.heart_rate
    if args.accuracy is not None:
        cfg.solver_tolerance = tolerance_for(args.accuracy)
    if args.family is not None:
        cfg.pathology_family = args.family
    if args.lead_strategy is not None:
        cfg.lead_strategy = args.lead_strategy
    if args.seed is not None:
        cfg.seed = args.seed
    if args.verbose:
        settings.log_level = "DEBUG"
    return settings


def summarise(name: str, result: ECGResult) -> str:
    signal = result.signal
    return (
        f"  {name:<6} n={len(result):<6d} t=[{result.time[0]:.3f}, {result.time[-1]:.3f}] s  "
        f"min={signal.min():+.3f} max={signal.max():+.3f} mV  HR={result.metadata.heart_rate:.1f}"
    )


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    try:
        settings = load_settings(args)
    except ECGSystemError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        generator = ECGGenerator.from_settings(settings)
        options = GenerationOptions(
            duration=settings.generator.duration,
            heart_rate=settings.generator.heart_rate,
            pathology=Pathology.parse(args.pathology),
            noise=args.noise,
            solver_tolerance=settings.generator.solver_tolerance,
            variation=args.variation,
            warmup=args.warmup,
        )

        results: dict[str, ECGResult] = {}
        if args.stream:
            stream = generator.generate_stream(
                options, chunk_duration=args.chunk, hrv=args.hrv, duration=None,
            )
            for i in range(args.stream):
                results[f"chunk{i}"] = next(stream)
        elif args.leads:
            results = generator.generate_multi_lead(options, leads=args.leads)
        else:
            results["II"] = generator.generate(options)
    except ECGSystemError as exc:
        logger.error("%s", exc)
        sys.exit(2)

    print(f"{options.pathology.value} @ {generator.sampling_rate} Hz")
    for name, result in results.items():
        print(summarise(name, result))

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump({name: r.to_dict() for name, r in results.items()}, f)
        print(f"\nWrote {len(results)} result(s) to {output_path}")


if __name__ == "__main__":
    main()
