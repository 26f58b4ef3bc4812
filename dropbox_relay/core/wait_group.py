from functools import total_ordering
from numbers import Number


@total_ordering
class WaitGroup:
    """
    Counter of open holders of a shared resource.

    The HTTP client is entered once by the facade and once more by every
    nested ``async with``; it is only closed when the last holder leaves.

    Example:
        ```python
        holders = WaitGroup()

        holders.add()  # client entered
        holders.add()  # nested user entered
        holders.done()
        assert holders == 1  # still open
        ```
    """

    def __init__(self) -> None:
        self._count = 0

    def add(self, n: int = 1) -> None:
        """
        Register ``n`` new holders.

        Raises:
            ValueError: If n is not a strictly positive integer.
        """
        if n <= 0:
            msg = "'n' must be a strictly positive integer."
            raise ValueError(msg)
        self._count += n

    def done(self) -> None:
        """Release one holder. No-op when nothing is held."""
        if self._count > 0:
            self._count -= 1

    @property
    def count(self) -> int:
        return self._count

    def __eq__(self, other: Number) -> bool:
        return self._count == other

    def __lt__(self, other: Number) -> bool:
        return self._count < other

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._count})"
