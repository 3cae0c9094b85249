"""Terminal CLI entrypoint for Stepper Progress."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from stepper.config import settings
from stepper.core.engine import WorkoutSessionEngine
from stepper.core.errors import InvalidCalibration, InvalidGoalInput
from stepper.core.logger import setup_logger
from stepper.core.state import WorkoutSession
from stepper.sensor.step_source import SimulatedStepSource
from stepper.workout.calibration_store import CalibrationStore
from stepper.workout.daily_summary import build_daily_summary
from stepper.workout.duration import format_calories, format_duration
from stepper.workout.goal import parse_target_calories
from stepper.workout.history_store import HistoryStore
from stepper.workout.settings_editor import CalibrationSettingsEditor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stepper Progress terminal workout")
    parser.add_argument(
        "--workout",
        metavar="CALORIES",
        default=None,
        help="Run a simulated workout toward the given calorie target",
    )
    parser.add_argument(
        "--max-seconds",
        type=float,
        default=600.0,
        help="Stop a simulated workout after this many seconds",
    )
    parser.add_argument(
        "--calibrate",
        metavar="CALORIES",
        type=int,
        default=None,
        help="Run a simulated calibration and record the calories burned",
    )
    parser.add_argument(
        "--calibration-seconds",
        type=float,
        default=30.0,
        help="Length of the simulated calibration run",
    )
    parser.add_argument("--history", action="store_true", help="Show today's workouts")
    parser.add_argument(
        "--set-calories-per-step",
        type=float,
        default=None,
        help="Store a calories-per-step factor without calibrating",
    )
    parser.add_argument(
        "--set-daily-goal",
        type=float,
        default=None,
        help="Store the daily calorie goal",
    )
    parser.add_argument(
        "--cadence",
        type=float,
        default=settings.sim_cadence_spm,
        help="Simulated cadence in steps per minute",
    )
    parser.add_argument("--seed", type=int, default=settings.sim_seed, help="Simulation seed")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=settings.data_dir,
        help="Directory holding calibration and history files",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    return parser


def _build_engine(args: argparse.Namespace) -> WorkoutSessionEngine:
    data_dir: Path = args.data_dir
    return WorkoutSessionEngine(
        step_source=SimulatedStepSource(cadence_spm=args.cadence, seed=args.seed),
        calibration_store=CalibrationStore(data_dir / "calibration.json"),
        history_store=HistoryStore(data_dir / "history.jsonl"),
    )


def _print_session_line(engine: WorkoutSessionEngine, session: WorkoutSession) -> None:
    state = "AUTO-PAUSED" if session.is_auto_paused else ("PAUSED" if session.is_paused else "ACTIVE")
    print(
        f"Steps: {session.steps:>5} | "
        f"Calories: {format_calories(round(session.current_calories, 1))}"
        f"/{format_calories(session.target_calories)} kcal "
        f"({session.progress_percentage:.0f}%) | "
        f"Active: {format_duration(engine.get_workout_duration())} | "
        f"ETA: {format_duration(engine.get_estimated_time_to_goal())} | {state}"
    )


async def run_workout(args: argparse.Namespace, target_calories: int) -> int:
    engine = _build_engine(args)
    if engine.needs_calibration:
        print("No calories-per-step factor stored. Run --calibrate first.")
        return 1

    loop = asyncio.get_running_loop()
    started = loop.time()
    await engine.start_workout(target_calories)
    try:
        while loop.time() - started < args.max_seconds:
            await asyncio.sleep(1)
            _print_session_line(engine, engine.session)
            if engine.session.is_goal_achieved:
                print("Goal reached!")
                break
    finally:
        record = await engine.end_workout()
        await engine.close()

    if record is None:
        print("No steps recorded, nothing saved")
        return 0
    print(
        f"Saved workout: {record.session.steps} steps, "
        f"{format_calories(round(record.session.current_calories, 1))} kcal "
        f"in {format_duration(record.duration)}"
    )
    return 0


async def run_calibration(args: argparse.Namespace, total_calories: int) -> int:
    engine = _build_engine(args)
    await engine.start_calibration()
    try:
        await asyncio.sleep(args.calibration_seconds)
        print(f"Calibration steps: {engine.session.steps}")
        calibration = await engine.end_calibration(total_calories)
    except InvalidCalibration as exc:
        print(f"Calibration rejected: {exc}")
        await engine.discard_session()
        return 1
    finally:
        await engine.close()

    print(
        f"Calories per step: {calibration.calories_per_step:.4f} "
        f"({calibration.steps_per_calorie:.1f} steps per kcal)"
    )
    return 0


async def run_history(args: argparse.Namespace) -> int:
    engine = _build_engine(args)
    records = await engine.load_history()
    for record in records:
        session = record.session
        print(
            f"{record.timestamp.astimezone():%H:%M} {session.mode.value:<11} "
            f"{session.steps:>5} steps "
            f"{format_calories(round(session.current_calories, 1)):>6} kcal "
            f"{format_duration(record.duration)}"
        )
    summary = build_daily_summary(records, engine.calibration)
    print(
        f"Today: {format_calories(round(summary.calories, 1))}"
        f"/{format_calories(summary.daily_goal)} kcal "
        f"({summary.progress * 100:.0f}%) over {summary.workouts} workout(s)"
    )
    return 0


async def run_settings(args: argparse.Namespace) -> int:
    editor = CalibrationSettingsEditor(CalibrationStore(args.data_dir / "calibration.json"))
    if args.set_calories_per_step is not None:
        editor.update_calories_per_step(args.set_calories_per_step)
    if args.set_daily_goal is not None:
        editor.update_daily_goal(args.set_daily_goal)
    saved = await editor.save()
    await editor.close()
    if not saved:
        print("Settings could not be saved")
        return 1
    print(
        f"Saved: {editor.calories_per_step:.4f} kcal/step, "
        f"daily goal {format_calories(editor.daily_calories_goal)} kcal"
    )
    return 0


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    setup_logger(level=args.log_level, log_file=settings.log_file)

    if args.set_calories_per_step is not None or args.set_daily_goal is not None:
        return asyncio.run(run_settings(args))
    if args.calibrate is not None:
        return asyncio.run(run_calibration(args, args.calibrate))
    if args.history:
        return asyncio.run(run_history(args))
    if args.workout is not None:
        try:
            target = parse_target_calories(args.workout)
        except InvalidGoalInput as exc:
            print(f"Invalid target: {exc}")
            return 2
        try:
            return asyncio.run(run_workout(args, target))
        except KeyboardInterrupt:
            return 130

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
