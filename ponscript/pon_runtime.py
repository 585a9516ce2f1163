"""
A reference host and tick driver for running scripts outside a game
engine: text goes to a list of lines, a handful of built-in commands
(`s`, `wait`, `jump`, `l`, `p`) drive the conductor, and everything else
is recorded for inspection.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, Tuple

from ponscript.pon_conductor import Conductor, ConductorHost
from ponscript.pon_datatypes import Tag, PonError, to_text
from ponscript.pon_resource import Resource

logger = logging.getLogger(__name__)


class ConsoleHost(ConductorHost):
    """Collects text output and executes the built-in playback commands."""

    def __init__(self, resource: Resource, emit: Optional[Callable[[str], None]] = None):
        self.resource = resource
        self.emit = emit
        self.conductor: Optional[Conductor] = None
        self.current_tick = 0
        self.lines: List[str] = []
        self.labels: List[str] = []
        self.commands: List[Tag] = []
        self.errors: List[str] = []
        # (file, label) requested by a cross-file jump; resolved by the Player
        self.pending_jump: Optional[Tuple[str, Optional[str]]] = None
        self._buffer: List[str] = []

    def attach(self, conductor: Conductor) -> None:
        self.conductor = conductor

    def flush(self) -> None:
        if not self._buffer:
            return
        line = "".join(self._buffer)
        self._buffer.clear()
        self.lines.append(line)
        if self.emit is not None:
            self.emit(line)

    # --- ConductorHost ---

    def on_conduct_error(self, messages: List[str]) -> None:
        self.errors.extend(messages)

    def on_label(self, label_name: str) -> None:
        self.labels.append(label_name)

    def on_code(self, code: str, print_flag: bool) -> None:
        result = self.resource.execute(code)
        if print_flag:
            self._buffer.append(to_text(result))

    def on_tag(self, tag: Tag) -> None:
        values = tag.values
        match tag.name:
            case "ch":
                self._buffer.append(str(values.get("text", "")))
            case "br" | "l" | "p":
                self.flush()
            case "s":
                self.flush()
                self.conductor.stop()
            case "wait":
                self.conductor.sleep(self.current_tick, int(float(values.get("time", 0))))
            case "jump":
                label = values.get("label")
                if "file" in values:
                    self.pending_jump = (str(values["file"]), None if label is None else str(label))
                    self.conductor.stop()
                elif label is not None:
                    self.conductor.jump_to_label(str(label))
            case _:
                self.commands.append(tag)


@dataclass
class PlayResult:
    status: Literal['success', 'error', 'incomplete']
    lines: List[str] = field(default_factory=list)
    error_messages: List[str] = field(default_factory=list)
    ticks: int = 0


class Player:
    """Drives a conductor with a clock.

    The clock is virtual by default: each frame advances the tick by
    `tick_ms` without waiting. With `realtime=True` each frame also sleeps
    for `tick_ms` milliseconds.
    """

    def __init__(self, conductor: Conductor, host: ConsoleHost, tick_ms: int = 16, realtime: bool = False):
        self.conductor = conductor
        self.host = host
        self.tick_ms = tick_ms
        self.realtime = realtime
        host.attach(conductor)

    def run_ticks(self, start: int, count: int) -> int:
        """Step `count` frames synchronously from tick `start`; returns the next tick."""
        tick = start
        for _ in range(count):
            self.host.current_tick = tick
            self.conductor.step(tick)
            tick += self.tick_ms
        return tick

    async def play(self, file_path: str, max_ticks: Optional[int] = None) -> PlayResult:
        try:
            await self.conductor.load_script(file_path)
        except PonError as e:
            return self._fail(e, 0)

        self.conductor.start()
        tick = 0
        frames = 0
        while True:
            if self.conductor.status == "stop":
                if self.host.pending_jump is None:
                    break
                try:
                    await self._follow_jump()
                except PonError as e:
                    return self._fail(e, frames)
            if max_ticks is not None and frames >= max_ticks:
                self.host.flush()
                return PlayResult('incomplete', list(self.host.lines), list(self.host.errors), frames)
            self.host.current_tick = tick
            try:
                self.conductor.step(tick)
            except PonError as e:
                return self._fail(e, frames)
            tick += self.tick_ms
            frames += 1
            await asyncio.sleep(self.tick_ms / 1000 if self.realtime else 0)

        self.host.flush()
        return PlayResult('success', list(self.host.lines), list(self.host.errors), frames)

    async def _follow_jump(self) -> None:
        file_path, label = self.host.pending_jump
        self.host.pending_jump = None
        await self.conductor.load_script(file_path)
        if label is not None:
            self.conductor.jump_to_label(label)
        self.conductor.start()

    def _fail(self, error: PonError, frames: int) -> PlayResult:
        logger.debug("playback failed: %s", error)
        self.conductor.stop()
        self.host.flush()
        self.host.on_conduct_error([str(error)])
        return PlayResult('error', list(self.host.lines), list(self.host.errors), frames)


def make_player(base_path: str = "./gamedata", tick_ms: int = 16, realtime: bool = False,
                emit: Optional[Callable[[str], None]] = None) -> Player:
    resource = Resource(base_path)
    host = ConsoleHost(resource, emit=emit)
    conductor = Conductor(resource, host)
    return Player(conductor, host, tick_ms=tick_ms, realtime=realtime)
