"""
The conductor plays a Script forward one tag per clock tick.

An external driver calls `step(tick)` once per frame. The conductor keeps
a small state machine (stop / run / sleep), pulls the next tag from the
current script, rewrites `&expression` values through the resource's
evaluator and hands the result to its host.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Literal, Optional

from ponscript.pon_datatypes import (
    Tag, TagValues, EvalError, LabelNotFoundError, LoadError, PonError, to_text,
    BODY_KEY,
)
from ponscript.pon_script import Script

logger = logging.getLogger(__name__)

Status = Literal["stop", "run", "sleep"]

ENTITY_PREFIX = "&"


class ConductorHost(ABC):
    """The application side of the conductor: receives every dispatched tag."""

    @abstractmethod
    def on_conduct_error(self, messages: List[str]) -> None: raise NotImplementedError
    @abstractmethod
    def on_label(self, label_name: str) -> None: raise NotImplementedError
    @abstractmethod
    def on_code(self, code: str, print_flag: bool) -> None: raise NotImplementedError
    @abstractmethod
    def on_tag(self, tag: Tag) -> None: raise NotImplementedError


class Conductor:
    def __init__(self, resource: Any, host: ConductorHost):
        # `resource` needs `load_script(path)` (async) and `evaluate(expr)`.
        self.resource = resource
        self.host = host
        self.script: Optional[Script] = None
        self.status: Status = "stop"
        self.sleep_start_tick: int = -1
        self.sleep_time: int = -1

    @property
    def is_running(self) -> bool:
        return self.status == "run"

    @property
    def is_sleeping(self) -> bool:
        return self.status == "sleep"

    async def load_script(self, file_path: str) -> Script:
        """Load a script and make it current. The old script stays on failure."""
        try:
            script = await self.resource.load_script(file_path)
        except LoadError:
            raise
        except PonError as e:
            raise LoadError(file_path, e) from e
        self.script = script
        logger.debug("Conductor loaded %s (%d tags).", file_path, len(script))
        return script

    def set_script(self, script: Script) -> None:
        self.script = script

    def jump_to_label(self, label_name: str) -> None:
        if self.script is None:
            raise LabelNotFoundError(label_name)
        self.script.jump_to_label(label_name)

    def step(self, tick: int) -> None:
        """Advance by at most one tag. Called once per external clock tick."""
        if self.status == "stop":
            return

        # Still asleep: nothing to do. Sleep over: fall through and run.
        if self.status == "sleep":
            elapsed = tick - self.sleep_start_tick
            if elapsed < self.sleep_time:
                return
            self.start()

        tag = self.script.get_next_tag() if self.script is not None else None
        if tag is None:
            self.stop()
            return

        tag = tag.clone()
        self._apply_entities(tag.values)
        if tag.is_label:
            self.host.on_label(tag.values[BODY_KEY])
        elif tag.is_code:
            self.host.on_code(tag.values[BODY_KEY], bool(tag.values.get("print", False)))
        else:
            self.host.on_tag(tag)

    def _apply_entities(self, values: TagValues) -> None:
        for key, value in values.items():
            text = to_text(value)
            if text.startswith(ENTITY_PREFIX) and len(text) >= 2:
                values[key] = to_text(self._evaluate(text[1:]))

    def _evaluate(self, expression: str) -> Any:
        try:
            return self.resource.evaluate(expression)
        except PonError:
            raise
        except Exception as e:
            raise EvalError(expression, e) from e

    def start(self) -> None:
        self.status = "run"
        self.sleep_time = -1
        self.sleep_start_tick = -1
        logger.debug("Conductor start.")

    def stop(self) -> None:
        self.status = "stop"
        logger.debug("Conductor stop.")

    def sleep(self, tick: int, sleep_time: int) -> None:
        self.status = "sleep"
        self.sleep_start_tick = tick
        self.sleep_time = sleep_time
        logger.debug("Conductor sleep. %s", sleep_time)
