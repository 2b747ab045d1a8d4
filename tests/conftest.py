from __future__ import annotations

import pytest

from campus_paths.settings import settings


@pytest.fixture(autouse=True, scope="session")
def _log_to_tmp(tmp_path_factory: pytest.TempPathFactory) -> None:
    # Keep JSON log files out of the working tree.
    settings.out_dir = str(tmp_path_factory.mktemp("out"))
