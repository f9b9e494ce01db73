"""Headless particle-life runner.

Spawns particles, runs a number of ticks and optionally writes the final
state to JSON.  Control commands can be scheduled at given ticks, e.g.::

    python -m particle_life --ticks 600 --at 300:regenerate_behavior_matrix
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np

from particle_life import config
from particle_life.engine import BACKENDS, INTEGRATIONS, ForceEngine
from particle_life.errors import ParticleLifeError
from particle_life.forces import LAW_PIECEWISE, LAWS
from particle_life.logging_config import setup_logging
from particle_life.persistence import load_state, save_state
from particle_life.state import POLICIES, Command, SimulationState

log = logging.getLogger("particle_life.runner")


def _scheduled(text):
    tick, _, rest = text.partition(":")
    name, _, arg = rest.partition("=")
    try:
        return int(tick), Command(name), (int(arg) if arg else None)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"bad schedule entry {text!r}: {e}") from None


def build_parser():
    p = argparse.ArgumentParser(prog="particle-life", description=__doc__.splitlines()[0])
    p.add_argument("--particles", type=int, default=config.NUM_PARTICLES)
    p.add_argument("--ticks", type=int, default=600)
    p.add_argument("--dt", type=float, default=config.DELTA_TIME)
    p.add_argument("--colors", type=int, nargs=2, metavar=("MIN", "MAX"),
                   default=list(config.COLOR_COUNT_RANGE))
    p.add_argument("--profile", choices=config.PROFILES, default=config.PROFILE_FIXED)
    p.add_argument("--backend", choices=BACKENDS, default=config.BACKEND)
    p.add_argument("--law", choices=LAWS, default=None,
                   help="force law (default: piecewise, or the law stored with --load)")
    p.add_argument("--integration", choices=INTEGRATIONS, default="position")
    p.add_argument("--policy", choices=POLICIES, default="remap")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--at", type=_scheduled, action="append", default=[],
                   metavar="TICK:COMMAND[=N]", help="submit a control command before TICK")
    p.add_argument("--load", type=Path, default=None, help="resume from a saved JSON state")
    p.add_argument("--save", type=Path, default=None, help="write the final state here")
    p.add_argument("--log-level", default=config.LOG_LEVEL)
    p.add_argument("--log-file", type=Path, default=None)
    p.add_argument("--report-every", type=int, default=60)
    return p


def run(args):
    engine_kwargs = {"backend": args.backend, "integration": args.integration}
    if args.load is not None:
        # a saved force law wins unless --law was given
        state = load_state(args.load, law=args.law, **engine_kwargs)
    else:
        engine = ForceEngine(law=args.law or LAW_PIECEWISE, **engine_kwargs)
        state = SimulationState.create(tuple(args.colors), args.profile, args.seed,
                                       engine=engine, palette_policy=args.policy)
        state.spawn(args.particles)

    schedule = {}
    for tick, command, arg in args.at:
        schedule.setdefault(tick, []).append((command, arg))

    t0 = time.perf_counter()
    with state:
        for tick in range(args.ticks):
            for command, arg in schedule.get(tick, ()):
                state.submit(command, arg)
            result = state.step(args.dt)
            if args.report_every and (tick + 1) % args.report_every == 0:
                speed = np.hypot(result.velocities[:, 0], result.velocities[:, 1])
                log.info("tick %d: mean speed %.3f, mean neighbours %.1f",
                         tick + 1, float(speed.mean()) if speed.size else 0.0,
                         float(result.neighbor_counts.mean()) if speed.size else 0.0)
    elapsed = time.perf_counter() - t0
    log.info("%d ticks of %d particles in %.2fs", args.ticks, len(state.particles), elapsed)

    if args.save is not None:
        save_state(state, args.save)
    return state


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging("particle_life", args.log_level, args.log_file)
    try:
        run(args)
    except ParticleLifeError as e:
        log.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
