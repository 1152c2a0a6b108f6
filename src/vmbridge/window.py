"""Presentation-only window frame state."""

from __future__ import annotations

import asyncio
import logging as py_logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = py_logging.getLogger(__name__)

DEFAULT_FRAME = (50, 50, 900, 700)


class VisibilityAction(str, Enum):
    SHOW = "show"
    HIDE = "hide"


@dataclass
class WindowFrame:
    x: float = DEFAULT_FRAME[0]
    y: float = DEFAULT_FRAME[1]
    width: float = DEFAULT_FRAME[2]
    height: float = DEFAULT_FRAME[3]
    visible: bool = False
    minimized: bool = False
    maximized: bool = False


class WindowController:
    """Tracks where the console window sits and whether it is shown.

    None of this touches the machine; showing or maximizing only schedules a
    terminal re-fit once the new geometry has settled.
    """

    def __init__(self, fit: Callable[[], None], *, fit_delay_seconds: float = 0.1) -> None:
        self.frame = WindowFrame()
        self._fit = fit
        self._fit_delay_seconds = fit_delay_seconds

    def show(self, x: float, y: float, width: float, height: float) -> WindowFrame:
        self.frame.x = x
        self.frame.y = y
        self.frame.width = max(width, 0)
        self.frame.height = max(height, 0)
        self.frame.visible = True
        self.frame.minimized = False
        self.frame.maximized = False
        self._schedule_fit()
        return self.frame

    def hide(self) -> WindowFrame:
        self.frame.visible = False
        return self.frame

    def change_visibility(self, action: VisibilityAction) -> WindowFrame:
        if action == VisibilityAction.SHOW:
            self.frame.visible = True
            return self.frame
        return self.hide()

    def minimize(self) -> WindowFrame:
        if self.frame.visible:
            self.frame.minimized = True
        return self.frame

    def maximize(self) -> WindowFrame:
        if not self.frame.visible:
            return self.frame
        self.frame.x, self.frame.y = DEFAULT_FRAME[0], DEFAULT_FRAME[1]
        self.frame.minimized = False
        self.frame.maximized = True
        self._schedule_fit()
        return self.frame

    def _schedule_fit(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._run_fit()
            return
        loop.call_later(self._fit_delay_seconds, self._run_fit)

    def _run_fit(self) -> None:
        try:
            self._fit()
        except Exception:
            logger.exception("Terminal re-fit failed")
