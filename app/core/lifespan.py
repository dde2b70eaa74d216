"""Lifespan management with event-based architecture for robyn-crud-pipeline."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any

from app.core.logger import LogIcon, logger
from app.core.settings import Settings

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]


class State:
    """Application state filled by lifespan events, with attribute access."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __iter__(self):
        return iter(self._data.keys())

    def __repr__(self) -> str:
        return f"State({self._data})"

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def clear(self) -> None:
        self._data.clear()


class BaseEvent[T](ABC):
    """A resource prepared at startup and released at shutdown."""

    name: str

    @abstractmethod
    async def startup(self) -> T:
        """Prepare and return the resource."""
        ...

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Optional cleanup. Override if cleanup is needed."""

    @classmethod
    def has_shutdown(cls) -> bool:
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Runs registered events in order at startup and in reverse at shutdown."""

    def __init__(self, settings: Settings, inject: Callable[..., Any] | None = None) -> None:
        self._settings = settings
        self._inject = inject
        self._events: list[BaseEvent[Any]] = []
        self._started: list[BaseEvent[Any]] = []
        self._state = State()

    def register(self, event: BaseEvent[Any]) -> "Lifespan":
        """Register an event. Returns self for chaining."""
        self._events.append(event)
        return self

    @property
    def state(self) -> State:
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        return list(self._events)

    @property
    def startup(self) -> AsyncHandler:
        async def _startup() -> None:
            logger.info("Starting application lifespan", icon=LogIcon.START, version=self._settings.API_VERSION)

            for event in self._events:
                logger.info(f"Starting event: {event.name}", icon=LogIcon.PROCESSING)
                setattr(self._state, event.name, await event.startup())
                self._started.append(event)
                logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

            if self._inject is not None:
                self._inject(state=self._state)
            logger.info("App state ready", icon=LogIcon.COMPLETE)

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        async def _shutdown() -> None:
            logger.info("Cleaning up app state", icon=LogIcon.TOOL)

            while self._started:
                event = self._started.pop()
                if event.has_shutdown() and event.name in self._state:
                    logger.info(f"Shutting down: {event.name}", icon=LogIcon.PROCESSING)
                    await event.shutdown(getattr(self._state, event.name))
                    logger.info(f"Shutdown complete: {event.name}", icon=LogIcon.SUCCESS)

            self._state.clear()
            logger.info("Cleanup complete", icon=LogIcon.COMPLETE)

        return _shutdown
