"""
Execution timing utilities.

Backends time their phases (setup, the per-row loop, output
finalization) with a Timer. When work runs on a CUDA device the timer
synchronizes before reading the clock so queued kernels are counted.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating section timer with optional CUDA synchronization.
    
    Usage:
        timer = Timer()
        timer.start()
        
        with timer.section('setup'):
            multiply_t = OrthogonalMultiplier(factor, transpose=True)
            
        with timer.section('rows'):
            for s, r in enumerate(subset):
                ...
            
        timer.stop()
        timer.result()
        # {'total_seconds': 0.05, 'setup': 0.001, 'rows': 0.049}
    """
    
    def __init__(self, sync_cuda: bool = False):
        """
        Args:
            sync_cuda: Synchronize CUDA before each clock reading.
        """
        self._sync_cuda = sync_cuda
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None
        
    def _sync(self) -> None:
        if not self._sync_cuda:
            return
        import torch
        if torch.cuda.is_available():
            torch.cuda.synchronize()
    
    def start(self) -> None:
        """Start the overall clock."""
        self._sync()
        self._start_time = time.perf_counter()
        
    def stop(self) -> None:
        """Stop the overall clock."""
        self._sync()
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time
        
    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """
        Time a named section. Repeated sections with the same name accumulate.
        """
        self._sync()
        begin = time.perf_counter()
        try:
            yield
        finally:
            self._sync()
            self._sections[name] = self._sections.get(name, 0.0) + (time.perf_counter() - begin)
    
    def result(self) -> dict[str, float]:
        """
        Returns:
            Dictionary with 'total_seconds' and every section timing
            
        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._sections}
