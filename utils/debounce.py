"""Cancelable timer used for auto-save and search throttling."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

LOGGER = logging.getLogger(__name__)

Action = Callable[[], Union[Awaitable[Any], Any]]
ErrorHandler = Callable[[Exception], Any]


async def invoke(action: Action) -> Any:
	"""Call `action` and await its result if it returns an awaitable."""
	result = action()
	if inspect.isawaitable(result):
		result = await result
	return result


class Debouncer:
	"""Run an action once a quiet window has passed since the last `schedule` call.

	A new `schedule` before the window elapses cancels the pending action and
	restarts the timer, so only the most recently scheduled action runs. An
	action that has already started is never cancelled.

	Usage:
		saver = Debouncer(1.0)
		saver.schedule(store.save_now)   # restarts the 1 s window each call
		await saver.flush()              # run a pending action immediately
	"""

	def __init__(self, delay: float, on_error: Optional[ErrorHandler] = None) -> None:
		self.delay = delay
		self.on_error = on_error
		self._task: Optional[asyncio.Task] = None
		self._action: Optional[Action] = None

	@property
	def pending(self) -> bool:
		"""True while an action is waiting for its quiet window to elapse."""
		return self._task is not None and not self._task.done()

	def schedule(self, action: Action, delay: Optional[float] = None) -> None:
		"""Schedule `action` after `delay` seconds, replacing any pending action.

		Must be called from a running event loop.
		"""
		self.cancel()
		wait = self.delay if delay is None else delay
		self._action = action
		self._task = asyncio.get_running_loop().create_task(self._run_after(action, wait))

	def cancel(self) -> None:
		"""Drop the pending action, if any, without running it."""
		if self._task is not None and not self._task.done():
			self._task.cancel()
		self._task = None
		self._action = None

	async def flush(self) -> None:
		"""Run the pending action now instead of waiting for the timer."""
		action = self._action
		if action is None or not self.pending:
			return
		self.cancel()
		await self._execute(action)

	async def _run_after(self, action: Action, delay: float) -> None:
		await asyncio.sleep(delay)
		# Clear before running so a schedule() issued during the action starts a new timer.
		self._task = None
		self._action = None
		await self._execute(action)

	async def _execute(self, action: Action) -> None:
		try:
			await invoke(action)
		except Exception as exc:
			LOGGER.exception("Debounced action failed")
			if self.on_error is not None:
				await invoke(lambda: self.on_error(exc))
