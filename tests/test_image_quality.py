"""
Unit tests for the local image quality pre-check.
"""
import threading

import pytest

from farmcore.infrastructure.image_quality import BasicImageQualityChecker


@pytest.fixture
def checker() -> BasicImageQualityChecker:
    return BasicImageQualityChecker(min_bytes=1024)


async def test_valid_image(checker, tmp_path):
    image = tmp_path / "leaf.jpg"
    image.write_bytes(b"\xff" * 2048)
    
    report = await checker.check(str(image))
    
    assert report.is_valid is True
    assert report.issues == []


async def test_missing_file(checker, tmp_path):
    report = await checker.check(str(tmp_path / "missing.jpg"))
    
    assert report.is_valid is False
    assert report.issues == ["Image not found"]


async def test_small_unsupported_file_reports_both_issues(checker, tmp_path):
    image = tmp_path / "leaf.gif"
    image.write_bytes(b"GIF89a")
    
    report = await checker.check(str(image))
    
    assert report.is_valid is False
    assert report.issues == ["Unsupported image format", "Resolution too low"]


async def test_check_runs_in_worker_thread(checker, tmp_path, monkeypatch):
    threads = []
    inspect = checker.inspect
    
    def recording_inspect(image_ref):
        threads.append(threading.current_thread())
        return inspect(image_ref)
    
    monkeypatch.setattr(checker, "inspect", recording_inspect)
    
    report = await checker.check(str(tmp_path / "missing.jpg"))
    
    assert report.is_valid is False
    assert threads and threads[0] is not threading.main_thread()
