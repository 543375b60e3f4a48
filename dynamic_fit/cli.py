from __future__ import annotations

import argparse
import dataclasses
import logging
import math
from typing import Optional, Sequence

from .latex_gen import PolynomialLatex
from .polynomial import CHEBYSHEV4
from .settings import LOG_LEVELS, TrackerSettings, load_settings
from .trajectory import ArcTrajectory, arc_scenario, format_report, reconstruction_scenario

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="dynamic-fit",
        description="Sliding-window least-squares polynomial tracking",
    )
    p.add_argument("--config", default=None, help="YAML settings file")
    p.add_argument("--log-level", choices=LOG_LEVELS, help="Override settings log_level")
    sub = p.add_subparsers(dest="command", required=True)

    demo = sub.add_parser("demo", help="Run the reconstruction and arc extrapolation scenarios")
    demo.add_argument("--latex", action="store_true", help="Print fitted curves as LaTeX")
    demo.add_argument("--lookahead", type=int, default=4, help="Seconds to extrapolate the arc")

    sub.add_parser("view", help="Open the live tracker window")
    return p.parse_args(argv)


def run_demo(settings: TrackerSettings, *, latex: bool = False, lookahead: int = 4) -> bool:
    arc = ArcTrajectory(settings.radius, math.radians(settings.angular_velocity_deg))
    reports = [
        reconstruction_scenario(11, CHEBYSHEV4),
        arc_scenario(settings.capacity, settings.basis, lookahead=lookahead, trajectory=arc),
    ]
    latex_gen = PolynomialLatex(settings.latex_approx, settings.latex_decimals)
    for report in reports:
        print(format_report(report))
        if latex:
            for state in report.states:
                print("  " + latex_gen.state(state))
        print()
    verdict = all(r.passed for r in reports)
    print(f"Verdict: {'CORRECT' if verdict else 'FAILURE'}")
    return verdict


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings(args.config) if args.config else TrackerSettings()
    if args.log_level:
        settings = dataclasses.replace(settings, log_level=args.log_level)
    logging.basicConfig(
        level=settings.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("settings: %s", settings)

    if args.command == "demo":
        return 0 if run_demo(settings, latex=args.latex, lookahead=args.lookahead) else 1

    # Qt stack is only needed for the window
    from .viewer import main as view_main
    return view_main(settings)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
