"""Schedule translation and system crontab sync.

Maistro does not run its own scheduler.  Enabled schedules are translated to
cron expressions and mirrored into the user's crontab, where each entry is a
tagged comment line followed by the command line::

    # Maistro - Nightly report (nightly-report)
    0 9 * * 1,3 MAISTRO_DATA_DIR=/srv/maistro/data maistro run nightly-report

Crontab sync is opt-in (``MAISTRO_MANAGE_CRONTAB``).  Failures are logged and
never propagate to the caller.
"""

from __future__ import annotations

import asyncio
import shlex
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from maistro.server.models.enums import ScheduleFrequency

if TYPE_CHECKING:
    from collections.abc import Iterable

    from maistro.server.models.config import Configuration, Schedule

WEEKDAYS = {"sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6}


def _parse_time(value: str) -> tuple[int, int] | None:
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.strip().isdigit() or not minutes.strip().isdigit():
        return None
    h, m = int(hours), int(minutes)
    if not (0 <= h <= 23 and 0 <= m <= 59):
        return None
    return h, m


def schedule_to_cron(schedule: Schedule | None) -> str | None:
    """Cron expression for *schedule*, or ``None`` if it cannot be expressed.

    Weekly days map mon..sat to 1..6 and sun to 0; unknown days are dropped.
    """
    if schedule is None:
        return None
    parsed = _parse_time(schedule.time)
    if parsed is None:
        return None
    hours, minutes = parsed

    if schedule.frequency == ScheduleFrequency.DAILY:
        return f"{minutes} {hours} * * *"
    if schedule.frequency == ScheduleFrequency.WEEKLY:
        days = [str(WEEKDAYS[d.lower()]) for d in schedule.days if d.lower() in WEEKDAYS]
        if not days:
            return None
        return f"{minutes} {hours} * * {','.join(days)}"
    if schedule.frequency == ScheduleFrequency.MONTHLY:
        return f"{minutes} {hours} {schedule.day_of_month or 1} * *"
    return None


def entry_comment(config: Configuration) -> str:
    return f"# Maistro - {config.name} ({config.id})"


def strip_entries(crontab: str, config_id: str) -> list[str]:
    """Lines of *crontab* without the tagged entry for *config_id*.

    A tagged comment line is removed together with the line that follows it.
    """
    tag = f"({config_id})"
    lines = crontab.splitlines()
    kept: list[str] = []
    skip_next = False
    for line in lines:
        if skip_next:
            skip_next = False
            continue
        if line.startswith("#") and tag in line:
            skip_next = True
            continue
        kept.append(line)
    return kept


def render_entry(config: Configuration, command: str) -> list[str] | None:
    cron = schedule_to_cron(config.schedule)
    if cron is None:
        return None
    return [entry_comment(config), f"{cron} {command}"]


class CrontabManager:
    """Mirror configuration schedules into the user's crontab."""

    def __init__(self, data_dir: str | Path, *, enabled: bool = True, crontab_bin: str = "crontab") -> None:
        self._data_dir = Path(data_dir)
        self._enabled = enabled
        self._crontab_bin = crontab_bin
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def command_for(self, config_id: str) -> str:
        executable = shutil.which("maistro") or "maistro"
        return " ".join([
            f"MAISTRO_DATA_DIR={shlex.quote(str(self._data_dir))}",
            shlex.quote(executable),
            "run",
            shlex.quote(config_id),
        ])

    async def sync(self, config: Configuration) -> None:
        """Install, replace or remove the entry for *config* to match its schedule."""
        if not self._enabled:
            return
        async with self._lock:
            current = await self._read()
            if current is None:
                return
            lines = strip_entries(current, config.id)
            if config.schedule is not None and config.schedule.enabled:
                entry = render_entry(config, self.command_for(config.id))
                if entry is None:
                    logger.warning("Schedule for {} cannot be expressed as cron; entry removed", config.id)
                else:
                    lines.extend(entry)
            await self._write(lines)

    async def remove(self, config_id: str) -> None:
        if not self._enabled:
            return
        async with self._lock:
            current = await self._read()
            if current is None:
                return
            await self._write(strip_entries(current, config_id))

    async def sync_all(self, configs: Iterable[Configuration]) -> None:
        for config in configs:
            if config.schedule is not None and config.schedule.enabled:
                await self.sync(config)

    # -- crontab I/O -----------------------------------------------------------

    async def _read(self) -> str | None:
        """Current crontab text; empty when the user has none, ``None`` on failure."""
        try:
            process = await asyncio.create_subprocess_exec(
                self._crontab_bin,
                "-l",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError:
            logger.exception("Could not run {} -l", self._crontab_bin)
            return None
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            # "no crontab for <user>" is the normal empty case.
            logger.debug("crontab -l exited {}: {}", process.returncode, stderr.decode(errors="replace").strip())
            return ""
        return stdout.decode("utf-8", errors="replace")

    async def _write(self, lines: list[str]) -> None:
        content = "\n".join(lines).strip("\n")
        if content:
            content += "\n"
        try:
            process = await asyncio.create_subprocess_exec(
                self._crontab_bin,
                "-",
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError:
            logger.exception("Could not run {} -", self._crontab_bin)
            return
        _, stderr = await process.communicate(content.encode("utf-8"))
        if process.returncode != 0:
            logger.error("Installing crontab failed ({}): {}", process.returncode, stderr.decode(errors="replace").strip())
