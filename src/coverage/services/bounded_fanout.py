from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def fan_out(fn: Callable[[T], R], items: Iterable[T], max_workers: int, name: str = "fanout") -> List[R]:
    """
    Runs `fn` over every item on a bounded pool and waits for all of them.
    Results come back in input order. `fn` is expected to catch its own
    errors; an escaping exception is re-raised here.
    """
    items = list(items)
    if not items:
        return []
    workers = max(1, min(int(max_workers), len(items)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name) as executor:
        return list(executor.map(fn, items))
