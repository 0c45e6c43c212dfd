"""Task Copilot CLI - prioritization and nudges over a task export."""

import json
import logging
import sys
import time
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import click

from .adapters.apscheduler_scheduler import APSchedulerScheduler
from .adapters.json_task_store import JsonTaskStore
from .adapters.log_notifier import LogNotifier
from .config import DATA_DIR, load_settings
from .core import focus_queue as fq
from .core.alerts import collect_alerts, ready_to_fire
from .core.clock import from_epoch_ms, to_epoch_ms
from .core.duration import format_duration
from .core.nudges import NudgeOrchestrator
from .core.priority import describe_breakdown, filter_by_energy, rank_tasks
from .core.settings import UserSettings
from .core.start_poke import start_poke_status
from .core.tasks import EnergyLevel
from .workflows import NudgeEngine

DEFAULT_TASKS_FILE = DATA_DIR / "tasks.json"

file_option = click.option(
    "--file",
    "-f",
    "tasks_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Task export JSON (defaults to $TASKCOPILOT_HOME/data/tasks.json)",
)
at_option = click.option("--at", "at", default=None, help="Evaluate at this ISO datetime instead of now")
json_option = click.option("--json", "as_json", is_flag=True, help="Output as JSON")


def _store(tasks_file: Path | None) -> JsonTaskStore:
    return JsonTaskStore(tasks_file or DEFAULT_TASKS_FILE)


def _now(at: str | None, settings: UserSettings) -> datetime:
    tz = settings.tzinfo
    if not at:
        return datetime.now(tz)
    parsed = datetime.fromisoformat(at)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=tz)


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _fmt_ms(ms: int, settings: UserSettings) -> str:
    return from_epoch_ms(ms, settings.tzinfo).strftime("%Y-%m-%d %H:%M")


@click.group()
@click.version_option(package_name="taskcopilot")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Task Copilot - what to do next, and when to start it."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@file_option
@at_option
@json_option
@click.option(
    "--energy",
    type=click.Choice([e.value for e in EnergyLevel]),
    default=None,
    help="Your current energy level",
)
@click.option(
    "--filter",
    "mode",
    type=click.Choice(["all", "matching", "hide_mismatched"]),
    default="all",
    help="Hide tasks that don't suit your energy",
)
@click.option("--explain", is_flag=True, help="Show what contributed to each score")
def score(tasks_file, at, as_json, energy, mode, explain):
    """Rank active tasks by priority."""
    try:
        settings = load_settings()
        settings.validate()
        now = _now(at, settings)
        tasks = _store(tasks_file).fetch_all()
        user_energy = EnergyLevel(energy) if energy else None
        ranked = rank_tasks(tasks, user_energy, now, settings.tzinfo)
        visible, hidden = filter_by_energy(ranked, user_energy, mode)
    except ValueError as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": r.task.id,
                        "title": r.task.title,
                        "score": r.priority.score,
                        "tier": r.priority.tier.value,
                        "effective_deadline": (
                            r.priority.effective_deadline.isoformat()
                            if r.priority.effective_deadline
                            else None
                        ),
                        "breakdown": asdict(r.priority.breakdown),
                    }
                    for r in visible
                ],
                indent=2,
            )
        )
        return

    if not visible:
        click.echo("No active tasks.")
        return

    for r in visible:
        click.echo(f"{r.priority.score:4} {r.priority.tier.label:8} {r.task.title or r.task.id}")
        if explain:
            for factor, text in describe_breakdown(r.task, user_energy, now).items():
                points = getattr(r.priority.breakdown, factor)
                click.echo(f"       {factor:16} {points:+4}  {text}")
    if hidden:
        click.echo(f"\n({len(hidden)} hidden by energy filter)")


@main.command()
@file_option
@at_option
@json_option
def poke(tasks_file, at, as_json):
    """Show start poke times for active tasks."""
    try:
        settings = load_settings()
        settings.validate()
        now = _now(at, settings)
        tasks = [t for t in _store(tasks_file).fetch_all() if t.is_active]
        rows = [(task, start_poke_status(task, settings, now)) for task in tasks]
    except ValueError as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": task.id,
                        "title": task.title,
                        "enabled": s.enabled,
                        "fire_time": s.poke.fire_time if s.poke else None,
                        "anchor_time": s.poke.anchor_time if s.poke else None,
                        "duration_minutes": s.poke.duration_minutes if s.poke else None,
                        "buffer_minutes": s.poke.buffer_minutes if s.poke else None,
                        "missing": s.missing_reason.value if s.missing_reason else None,
                    }
                    for task, s in rows
                ],
                indent=2,
            )
        )
        return

    if not rows:
        click.echo("No active tasks.")
        return

    for task, s in rows:
        name = task.title or task.id
        if s.poke is None:
            note = f"needs {s.missing_reason.value.removeprefix('no_')}" if s.missing_reason else "-"
            click.echo(f"  {'':16} {name} ({note})")
            continue
        flag = "" if s.enabled else " (off)"
        click.echo(
            f"  {_fmt_ms(s.poke.fire_time, settings):16} {name}"
            f" [{format_duration(s.poke.duration_minutes)} + {s.poke.buffer_minutes:g}m buffer]{flag}"
        )


@main.command()
@file_option
@at_option
@json_option
def nudges(tasks_file, at, as_json):
    """Show which due alerts would surface right now."""
    try:
        settings = load_settings()
        settings.validate()
        now = _now(at, settings)
        tasks = _store(tasks_file).fetch_all()
        alerts = collect_alerts(tasks, settings, now)
        ranked = rank_tasks(tasks, as_of=now, tz=settings.tzinfo, include_deferred=True)
        tiers = {r.task.id: r.priority.tier for r in ranked}
        decisions = NudgeOrchestrator().evaluate(ready_to_fire(alerts, now), now, settings, tiers)
    except ValueError as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "task_id": d.alert.task_id,
                        "type": d.alert.type.value,
                        "fire_time": d.alert.fire_time,
                        "outcome": d.outcome.value,
                        "reason": d.reason.value if d.reason else None,
                    }
                    for d in decisions
                ],
                indent=2,
            )
        )
        return

    if not decisions:
        click.echo("Nothing due.")
        return

    for d in decisions:
        reason = f" ({d.reason.value})" if d.reason else ""
        click.echo(
            f"  {d.outcome.value:20} {d.alert.type.value:13} "
            f"{_fmt_ms(d.alert.fire_time, settings)}  {d.alert.title or d.alert.task_id}{reason}"
        )


@main.command()
@file_option
@click.option("--reload", "reload_minutes", default=5, show_default=True,
              help="Minutes between re-reading the task file")
def run(tasks_file, reload_minutes: int):
    """Run the nudge engine until interrupted."""
    try:
        settings = load_settings()
        settings.validate()
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    store = _store(tasks_file)
    scheduler = APSchedulerScheduler(timezone=settings.timezone)
    engine = NudgeEngine(settings, scheduler, LogNotifier())

    scheduler.start()
    click.echo("Task Copilot nudge engine running. Press Ctrl+C to stop")
    try:
        while True:
            try:
                engine.reschedule(store.fetch_all())
            except ValueError as e:
                click.echo(f"Error: {e}", err=True)
            time.sleep(reload_minutes * 60)
    except KeyboardInterrupt:
        click.echo("\nEngine stopped.")
    finally:
        scheduler.shutdown()


# ============== Focus queue ==============


@main.group(invoke_without_command=True)
@click.pass_context
def queue(ctx):
    """Show or edit the focus queue."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(queue_show)


def _show_queue(q: fq.FocusQueue, titles: dict[str, str], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(q.to_dict(), indent=2))
        return

    elements = fq.build_elements(q.active_items, q.today_line_index)
    if len(elements) == 1:
        click.echo("Focus queue is empty.")
        return

    click.echo("Today")
    for idx, el in enumerate(elements):
        if isinstance(el, fq.LineElement):
            click.echo(f"  {idx:2}  ---------- later ----------")
        else:
            click.echo(f"  {idx:2}  {titles.get(el.item.task_id, el.item.task_id)}")


def _load_queue(tasks_file):
    store = _store(tasks_file)
    titles = {t.id: t.title or t.id for t in store.fetch_all()}
    return store, store.fetch_queue(), titles


@queue.command("show")
@file_option
@json_option
def queue_show(tasks_file=None, as_json: bool = False):
    """Show today's items, the today line, and later items."""
    try:
        _, q, titles = _load_queue(tasks_file)
    except ValueError as e:
        _fail(e)
    _show_queue(q, titles, as_json)


@queue.command("move")
@click.argument("from_index", type=int)
@click.argument("to_index", type=int)
@file_option
@json_option
def queue_move(from_index: int, to_index: int, tasks_file, as_json: bool):
    """Drag the element at FROM_INDEX to drop position TO_INDEX.

    Indices count the today line as an element, as shown by `queue show`.
    """
    try:
        store, q, titles = _load_queue(tasks_file)
        q = fq.move_item(q, from_index, to_index)
        store.save_queue(q)
    except ValueError as e:
        _fail(e)
    _show_queue(q, titles, as_json)


@queue.command("add")
@click.argument("task_id")
@click.option("--today", "for_today", is_flag=True, help="Add above the today line")
@file_option
def queue_add(task_id: str, for_today: bool, tasks_file):
    """Add a task to the focus queue."""
    try:
        store, q, titles = _load_queue(tasks_file)
        if task_id not in titles:
            raise ValueError(f"Unknown task: {task_id}")
        q = fq.add_to_queue(q, task_id, for_today, now_ms=int(time.time() * 1000))
        store.save_queue(q)
    except ValueError as e:
        _fail(e)
    _show_queue(q, titles, False)
    warning = fq.queue_limit_warning(q)
    if warning:
        click.echo(f"\n{warning}")


@queue.command("complete")
@click.argument("task_id")
@file_option
def queue_complete(task_id: str, tasks_file):
    """Mark a task's queue item done."""
    try:
        store, q, titles = _load_queue(tasks_file)
        item = next((i for i in q.active_items if i.task_id == task_id), None)
        if item is None:
            raise ValueError(f"Task not in queue: {task_id}")
        q = fq.complete_item(q, item.id, int(time.time() * 1000))
        store.save_queue(q)
    except ValueError as e:
        _fail(e)
    _show_queue(q, titles, False)


@queue.command("remove")
@click.argument("task_id")
@file_option
def queue_remove(task_id: str, tasks_file):
    """Take a task out of the focus queue."""
    try:
        store, q, titles = _load_queue(tasks_file)
        item = next((i for i in q.active_items if i.task_id == task_id), None)
        if item is None:
            raise ValueError(f"Task not in queue: {task_id}")
        q = fq.remove_from_queue(q, item.id)
        store.save_queue(q)
    except ValueError as e:
        _fail(e)
    _show_queue(q, titles, False)


@queue.command("rollover")
@file_option
@at_option
@json_option
def queue_rollover(tasks_file, at, as_json: bool):
    """Start a new day: flag today items left untouched since yesterday."""
    try:
        settings = load_settings()
        settings.validate()
        now = _now(at, settings)
        store, q, titles = _load_queue(tasks_file)
        q, review = fq.process_rollover(q, to_epoch_ms(now))
        store.save_queue(q)
    except ValueError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([i.to_dict() for i in review], indent=2))
        return

    if not review:
        click.echo("Nothing to review.")
        return

    click.echo("Still on today's list:")
    for i in review:
        times = "time" if i.rollover_count == 1 else "times"
        click.echo(f"  {titles.get(i.task_id, i.task_id)} (rolled over {i.rollover_count} {times})")


@queue.command("seed")
@click.option("--today-count", default=3, show_default=True, help="Items to put above the line")
@file_option
def queue_seed(today_count: int, tasks_file):
    """Replace the queue with active tasks in priority order."""
    try:
        store = _store(tasks_file)
        settings = load_settings()
        settings.validate()
        tasks = store.fetch_all()
        q = fq.seed_queue(tasks, today_count, tz=settings.tzinfo)
        store.save_queue(q)
    except ValueError as e:
        _fail(e)
    _show_queue(q, {t.id: t.title or t.id for t in tasks}, False)


if __name__ == "__main__":
    main()
