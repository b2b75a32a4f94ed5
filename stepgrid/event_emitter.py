import logging
import typing


CallbackType = typing.Callable[..., typing.Any]


logger = logging.getLogger(__name__)


class EventEmitter:

	"""
	A single-slot notification registry with synchronous delivery.

	Each event name holds at most one callback. Registering a second callback
	for the same name replaces the first, so a presentation layer owns the slot
	it subscribed to.
	"""

	def __init__ (self) -> None:

		"""
		Initialize an empty event registry.
		"""

		self._listeners: typing.Dict[str, CallbackType] = {}


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Bind a callback to an event name, replacing any previous binding.
		"""

		if event_name in self._listeners:
			logger.debug(f"Replacing listener for {event_name!r}")

		self._listeners[event_name] = callback


	def off (self, event_name: str) -> None:

		"""
		Clear the callback bound to an event name.

		Raises ``ValueError`` if nothing is bound to the event.
		"""

		if event_name not in self._listeners:
			raise ValueError(f"No callback registered for event {event_name!r}")

		del self._listeners[event_name]


	def has_listener (self, event_name: str) -> bool:

		"""Return True when a callback is bound to the event name."""

		return event_name in self._listeners


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call the bound callback immediately, if there is one.
		"""

		callback = self._listeners.get(event_name)

		if callback is None:
			return

		callback(*args, **kwargs)
