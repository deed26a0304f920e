"""Pytest configuration for tubemp3 tests."""

import json

import pytest

from tubemp3.config import clear_config_cache
from tubemp3.operations import download


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against YouTube (requires network, ffmpeg)",
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--run-integration"):
        skip = pytest.mark.skip(reason="needs --run-integration flag")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep the user's real config and env out of every test."""
    for var in (
        "TUBEMP3_OUTPUT_DIR",
        "TUBEMP3_FFMPEG",
        "TUBEMP3_DOWNLOADER",
        "TUBEMP3_HTTP_TIMEOUT",
        "TUBEMP3_SUBPROCESS_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)
    base = tmp_path_factory.mktemp("isolated")
    root = base / "tubemp3_root"
    monkeypatch.setenv("TUBEMP3_ROOT", str(root))
    workdir = base / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    clear_config_cache()
    yield root
    clear_config_cache()


@pytest.fixture(autouse=True)
def reset_tool_singletons():
    """Reset the module-level tool singletons between tests."""
    download._ffmpeg = None
    download._yt_dlp = None
    yield
    download._ffmpeg = None
    download._yt_dlp = None


@pytest.fixture()
def make_page():
    """Factory for a minimal watch page embedding ytInitialPlayerResponse."""

    def build(title="Test Song", adaptive_formats=None, formats=None, extra=""):
        streaming = {}
        if adaptive_formats is not None:
            streaming["adaptiveFormats"] = adaptive_formats
        if formats is not None:
            streaming["formats"] = formats
        response = {
            "videoDetails": {"videoId": "AAAAAAAAAAA", "title": title},
            "streamingData": streaming,
        }
        return (
            "<html><head><title>ignored - YouTube</title></head><body>"
            f"<script>var ytInitialPlayerResponse = {json.dumps(response)};</script>"
            f"{extra}</body></html>"
        )

    return build
