"""
RestoreStack - composes named fixture states on top of each other.

    stack.resolve("with_users", lambda: (
        stack.clean(),
        create_users(),
    ))

    stack.resolve("with_orders", lambda: (
        stack.resolve("with_users", build_users),
        create_orders(),
    ))

The first resolve() of a name runs its builder and snapshots the result;
later calls replay the snapshot. A builder must start from a known state
by resolving a parent or calling clean(); otherwise the snapshot would
capture whatever the database happened to contain.
"""

from typing import Callable, Optional

from .errors import InvalidFixtureError
from .snapshot.store import SnapshotStore


Builder = Callable[[], object]


class RestoreCounter:
    """Number of resolve()/clean() entries made through one stack."""

    def __init__(self, value: int = 0):
        self.value = value

    def increment(self) -> int:
        """Increment and return the value before incrementing."""
        before = self.value
        self.value += 1
        return before


class RestoreStack:
    """Replays or builds-and-caches named database states."""

    CLEAN_STATE_NAME = "clean"

    def __init__(
        self,
        store: SnapshotStore,
        counter: Optional[RestoreCounter] = None,
        on_clean: Optional[Callable[[], None]] = None,
        clean_state_name: Optional[str] = None,
    ):
        """
        Initialize restore stack.

        Args:
            store: Snapshot store to replay from and save into
            counter: Restore counter (a fresh one per stack by default)
            on_clean: Resets the database to its baseline (cache reset,
                      schema and seed initialization)
            clean_state_name: Name the clean baseline is cached under
        """
        self.store = store
        self.counter = counter or RestoreCounter()
        self.on_clean = on_clean
        self.clean_state_name = clean_state_name or self.CLEAN_STATE_NAME

    def resolve(self, name: str, builder: Builder) -> bool:
        """
        Bring the database into the state called `name`.

        Args:
            name: State name
            builder: Zero-argument callable producing the state; must call
                     resolve() for a parent state or clean() first

        Returns:
            True if a cached snapshot was replayed, False if built

        Raises:
            InvalidFixtureError: If builder neither resolved a parent nor
                cleaned (nothing is cached in that case)
        """
        self.counter.increment()

        if self.store.restore(name):
            return True

        level = self.counter.value
        builder()

        if self.counter.value == level:
            raise InvalidFixtureError(
                f"restore() callback for '{name}' needs a parent restore or a clean(), "
                "otherwise you will save a dirty database state"
            )

        self.store.capture(name)
        return False

    def clean(self, save_clean_state: bool = True) -> None:
        """
        Reset the database to its clean baseline.

        Args:
            save_clean_state: Cache the baseline so later cleans replay it
        """
        if save_clean_state:
            self.resolve(self.clean_state_name, lambda: self.clean(save_clean_state=False))
            return

        self.counter.increment()
        if self.on_clean is not None:
            self.on_clean()
