"""
Tests for the section Timer.
"""

import pytest

from pyresiduals.core.compute.timing import Timer


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        for _ in range(3):
            with timer.section('rows'):
                pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'rows'}
        assert result['rows'] >= 0.0
        assert result['total_seconds'] >= 0.0

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError, match="before start"):
            Timer().stop()

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()

    def test_section_recorded_on_error(self):
        timer = Timer()
        timer.start()
        with pytest.raises(ValueError):
            with timer.section('setup'):
                raise ValueError("boom")
        timer.stop()
        assert 'setup' in timer.result()
