#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from ropefill.schemas import AutoFillConfig, LevelData
from ropefill.services.autotune import autotune_generate, summarize_result


ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_OUT_DIR = ROOT_DIR / "levels"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate AutoTuned rope levels and write them as level JSON files."
    )
    parser.add_argument("--width", type=int, default=10, help="MapX of every level.")
    parser.add_argument("--height", type=int, default=10, help="MapY of every level.")
    parser.add_argument("--count", type=int, default=5, help="Number of levels to generate.")
    parser.add_argument(
        "--seed",
        type=int,
        default=1,
        help="Seed of the first level; level k uses seed + k * max attempts.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with an auto-fill config (camelCase keys) to start from.",
    )
    parser.add_argument("--out", type=Path, default=DEFAULT_OUT_DIR, help="Output directory.")
    parser.add_argument(
        "--keep-failed",
        action="store_true",
        help="Also write levels whose AutoTune did not converge.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every AutoTune attempt.")
    return parser.parse_args()


def load_config(path: Path | None) -> AutoFillConfig:
    if path is None:
        return AutoFillConfig()
    raw = json.loads(path.read_text(encoding="utf-8"))
    return AutoFillConfig.model_validate(raw)


def write_level(path: Path, level: LevelData) -> None:
    payload = level.model_dump(by_alias=True, mode="json")
    path.write_text(json.dumps(payload, ensure_ascii=False, indent="\t") + "\n", encoding="utf-8")


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    base_config = load_config(args.config)
    level_base = LevelData(MapX=args.width, MapY=args.height)
    args.out.mkdir(parents=True, exist_ok=True)

    written = 0
    for number in range(1, args.count + 1):
        seed = args.seed + (number - 1) * base_config.max_tune_attempts
        config = base_config.model_copy(update={"seed": seed})
        result = autotune_generate(level_base, config)
        status = summarize_result(result)

        mark = "✅" if result.succeeded else "❌"
        diag = result.diagnostics
        print(
            f"Level {number:3d} {mark} | score={result.score:5.1f} | attempts={result.attempts:2d} | "
            f"ropes={diag.n:3d} | movable={diag.initial_movable_count} | "
            f"first_break={diag.first_break_steps:g}"
        )
        if not result.succeeded:
            print(f"  {status.message}")
            for error in result.guard_errors or []:
                print(f"  - {error}")
            if not args.keep_failed:
                continue

        level = level_base.model_copy(update={"ropes": tuple(result.ropes)})
        write_level(args.out / f"level_{number}.json", level)
        written += 1

    print(f"Wrote {written} of {args.count} level file(s) to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
