from typing import List, Sequence, TypeVar

T = TypeVar('T')


def plan_batches(tasks: Sequence[T], batch_size: int) -> List[List[T]]:
    """
    Split ``tasks`` into consecutive batches of at most ``batch_size`` items.

    Order is preserved: concatenating the batches gives back ``tasks``.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}.")
    return [list(tasks[i:i + batch_size]) for i in range(0, len(tasks), batch_size)]
