"""Reusable buffer pool with scoped bulk release.

Series objects are cached to avoid a heap allocation for every kernel call.
A compiled expression evaluates many kernel operations per call and almost
all of their results are short-lived intermediates, so recycling them keeps
the hot evaluation loop free of allocation churn.

Examples:
    Allocating inside a tracked scope releases everything on exit:

        >>> from taylorkit.pool import Pool
        >>> class Buffer:
        ...     def __init__(self):
        ...         self.data = [0.0]
        ...         self.is_free = False
        ...         self.pool_generation = 0
        >>> pool = Pool(
        ...     Buffer,
        ...     lambda b: b.data.__setitem__(0, 0.0),
        ...     lambda to, src: to.data.__setitem__(0, src.data[0]),
        ... )
        >>> with pool.tracking():
        ...     a = pool.allocate()
        ...     b = pool.allocate()
        >>> pool.num_free
        2
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, Protocol, TypeVar

from taylorkit.logger import taylorkit_logger

__all__ = [
    "Freeable",
    "Pool",
]


class Freeable(Protocol):
    """Protocol every pooled object must satisfy.

    ``is_free`` tells whether the object currently sits on a free list and
    ``pool_generation`` records which shape generation of the pool built it.
    """

    is_free: bool
    pool_generation: int


T = TypeVar("T", bound=Freeable)
R = TypeVar("R")


class Pool(Generic[T]):
    """A free list of reusable buffers plus a stack of tracking scopes.

    An object is either free (on the free list, unreferenced) or in use
    (owned by exactly one computation). The pool never hands out an in-use
    object.

    Attributes:
        num_created: Number of objects built by the pool since creation.
    """

    def __init__(
        self,
        new: Callable[[], T],
        clear: Callable[[T], None],
        copy: Callable[[T, T], None],
    ):
        """Initialises an empty pool.

        Args:
            new: Builds a fresh object of the current shape.
            clear: Resets a recycled object to zeros.
            copy: Copies the contents of its second argument into its first.
        """
        self._new = new
        self._clear = clear
        self._copy = copy
        self._free: list[T] = []
        self._tracked: list[list[T]] = []
        self._generation = 0
        self.num_created = 0

    @property
    def num_free(self) -> int:
        """Number of objects currently available for reuse."""
        return len(self._free)

    @property
    def tracking_depth(self) -> int:
        """Number of tracking scopes currently open."""
        return len(self._tracked)

    def allocate(self) -> T:
        """Returns a zero-cleared object, recycling a free one when possible.

        Returns:
            An in-use object, recorded by the innermost tracking scope if one
            is open.
        """
        if self._free:
            obj = self._free.pop()
            self._clear(obj)
        else:
            obj = self._new()
            obj.pool_generation = self._generation
            self.num_created += 1

        if self._tracked:
            self._tracked[-1].append(obj)

        obj.is_free = False
        return obj

    def allocate_copy(self, src: T) -> T:
        """Allocates an object and copies the contents of ``src`` into it."""
        obj = self.allocate()
        self._copy(obj, src)
        return obj

    def mark_free(self, obj: T) -> None:
        """Returns ``obj`` to the pool.

        The caller gives up ownership: using ``obj`` afterwards is a contract
        violation. Objects built before the last :meth:`forget_free_elements`
        have a stale shape; they are marked free but not recycled.

        Args:
            obj: An in-use object previously handed out by this pool.

        Raises:
            ValueError: If ``obj`` is already free.
        """
        if obj.is_free:
            raise ValueError("mark_free called on an object that is already free.")
        obj.is_free = True
        if obj.pool_generation == self._generation:
            self._free.append(obj)

    def forget_free_elements(self) -> int:
        """Drops every free object and starts a new shape generation.

        In-use objects are left alone so that running computations can
        complete; they are simply not recycled once freed.

        Returns:
            The number of objects dropped.
        """
        dropped = len(self._free)
        self._free = []
        self._generation += 1
        taylorkit_logger.debug(
            "Pool discarded %d free buffers (generation %d).", dropped, self._generation
        )
        return dropped

    def retain(self, obj: T) -> None:
        """Exempts ``obj`` from release by the currently open tracking scopes.

        Args:
            obj: An object allocated inside a tracking scope that must
                outlive it. The caller becomes responsible for freeing it.
        """
        for tracked in self._tracked:
            tracked[:] = [t for t in tracked if t is not obj]

    @contextmanager
    def tracking(self) -> Iterator[list[T]]:
        """Records allocations and frees them when the block exits.

        Scopes nest: an allocation is recorded only by the innermost open
        scope, so an inner scope releases its own intermediates while the
        outer scope keeps going. Release happens on every exit path,
        including exceptions raised inside the block.

        Yields:
            The list recording this scope's allocations.
        """
        tracked: list[T] = []
        self._tracked.append(tracked)
        try:
            yield tracked
        finally:
            if not self._tracked or self._tracked[-1] is not tracked:
                raise RuntimeError("Pool tracking scopes were closed out of order.")
            self._tracked.pop()
            for obj in tracked:
                if not obj.is_free:
                    self.mark_free(obj)

    def track_and_release_allocations(self, body: Callable[[], R]) -> R:
        """Runs ``body`` in a tracking scope and returns its result.

        Every object allocated (directly or transitively) by ``body`` that is
        still in use when it returns is freed, unless it was retained.

        Args:
            body: Zero-argument callable performing the computation.

        Returns:
            Whatever ``body`` returns.
        """
        with self.tracking():
            return body()
