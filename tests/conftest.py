"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import twlaw
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


@pytest.fixture
def noisy_executable(tmp_path):
    """
    Shell script that writes 20 MB to stdout, then creates a marker file.

    The marker only appears if the script is allowed to run to completion.
    """
    marker = tmp_path / "finished"
    script = tmp_path / "noisy-tool"
    script.write_text(f"#!/bin/sh\nhead -c 20000000 /dev/zero\ntouch '{marker}'\n", encoding="utf-8")
    script.chmod(0o755)
    return script, marker
