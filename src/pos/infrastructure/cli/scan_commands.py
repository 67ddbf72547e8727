"""Keystroke replay: run a recorded key log through the scan classifier.

Each non-blank line of the log is ``offset_ms<TAB>key[<TAB>manual]``.  The
offset is milliseconds since the start of the recording.  ``key`` is a single
character or one of the names in ``KEY_NAMES``; a third column of ``manual``
marks keys typed while the manual entry field had focus.  Lines starting
with ``#`` are comments.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import click

from pos.domain.exceptions import DomainException
from pos.infrastructure import bootstrap
from pos.infrastructure.cli.cart_input import echo_snapshot
from pos.infrastructure.config import Settings
from pos.infrastructure.scheduling import SimulatedScheduler

KEY_NAMES = {"ENTER": "\n", "TAB": "\t", "SPACE": " ", "ESC": "\x1b"}


@dataclass(frozen=True)
class KeyEvent:
    offset_ms: float
    char: str
    manual: bool = False


def parse_key_log(lines: Iterable[str]) -> list[KeyEvent]:
    events: list[KeyEvent] = []
    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip() or line.startswith("#"):
            continue
        fields = line.split("\t")
        if len(fields) < 2:
            raise click.BadParameter(f"Line {line_no}: expected 'offset<TAB>key'.")
        try:
            offset = float(fields[0])
        except ValueError:
            raise click.BadParameter(f"Line {line_no}: invalid offset '{fields[0]}'.")
        key = KEY_NAMES.get(fields[1].upper(), fields[1]) if len(fields[1]) > 1 else fields[1]
        if len(key) != 1:
            raise click.BadParameter(f"Line {line_no}: unknown key '{fields[1]}'.")
        manual = len(fields) > 2 and fields[2].strip().lower() == "manual"
        events.append(KeyEvent(offset, key, manual))
    events.sort(key=lambda e: e.offset_ms)
    return events


@click.command("replay")
@click.option(
    "--file",
    "log_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Key log to replay.",
)
@click.pass_obj
def scan_replay(settings: Settings, log_file: Path) -> None:
    """Replay a key log and show what the classifier committed."""
    with log_file.open(encoding="utf-8") as fh:
        events = parse_key_log(fh)

    scheduler = SimulatedScheduler()
    try:
        session = bootstrap.register_session(settings, scheduler)
        for event in events:
            scheduler.advance_to(event.offset_ms)
            session.key(event.char, manual_entry_active=event.manual)
        scheduler.advance(settings.inactivity_commit_ms)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Committed: {', '.join(session.committed) or '(none)'}")
    if session.not_found:
        click.echo(f"Not found: {', '.join(session.not_found)}")
    echo_snapshot(session.ledger.snapshot())
