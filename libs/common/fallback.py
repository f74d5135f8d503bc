from typing import Awaitable, Callable, List, Any, Tuple

async def run_with_fallbacks(steps: List[Tuple[str, Callable[[], Awaitable[Any]]]]):
    """Await each step in order; the first non-None result wins.

    Steps run strictly one after another, never raced. A step that raises or
    returns None is recorded and the next one is tried. Cancellation is not
    swallowed. ``data`` is None when every step missed.
    """
    errors = []
    for name, fn in steps:
        try:
            res = await fn()
            if res is not None:
                return {"source": name, "data": res, "errors": errors}
            errors.append(f"{name}: no result")
        except Exception as e:
            errors.append(f"{name}: {e}")
            continue
    return {"source": "", "data": None, "errors": errors}
