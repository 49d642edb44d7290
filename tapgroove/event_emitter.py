import asyncio
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	A subscriber-list event registry.

	Passing ``events`` restricts the emitter to a fixed set of event names so a
	misspelt subscription fails at registration instead of silently never firing.
	"""

	def __init__ (self, events: typing.Optional[typing.Iterable[str]] = None) -> None:

		"""
		Initialize an empty event registry.
		"""

		self._known: typing.Optional[typing.FrozenSet[str]] = frozenset(events) if events is not None else None
		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def _check_name (self, event_name: str) -> None:

		if self._known is not None and event_name not in self._known:
			raise ValueError(f"Unknown event {event_name!r}. Known events: {', '.join(sorted(self._known))}")


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.
		"""

		self._check_name(event_name)

		if asyncio.iscoroutinefunction(callback):
			raise ValueError(f"Async callback registered for {event_name!r}; listeners run synchronously")

		if event_name not in self._listeners:
			self._listeners[event_name] = []

		self._listeners[event_name].append(callback)

	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if event_name not in self._listeners or callback not in self._listeners[event_name]:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for the event, in registration order.
		"""

		self._check_name(event_name)

		for callback in list(self._listeners.get(event_name, [])):
			callback(*args, **kwargs)


	def listener_count (self, event_name: str) -> int:

		"""Number of callbacks registered for an event."""

		return len(self._listeners.get(event_name, []))
