import time


class Stopwatch:
    """Measures wall-clock time since creation. Prints as e.g. '[1.234s]'."""

    def __init__(self):
        self.start_sec: float = time.perf_counter()

    def elapsed_sec(self) -> float:
        return time.perf_counter() - self.start_sec

    def __repr__(self):
        return f'[{self.elapsed_sec():.3f}s]'
