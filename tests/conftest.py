"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import patch

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeProcess:
    """Stands in for subprocess.Popen running ffmpeg.

    Reports "running" for ``running_polls`` polls, then exits with
    ``returncode``.  On a successful exit the destination (last argument)
    is created, like ffmpeg would.  ``kill()`` makes the next poll return -9.
    """

    def __init__(self, cmd, returncode=0, running_polls=0, create_output=True):
        self.cmd = cmd
        self.pid = 4242
        self.returncode = None
        self._final = returncode
        self._running_polls = running_polls
        self._create_output = create_output
        self.kill_count = 0

    def poll(self):
        if self.returncode is not None:
            return self.returncode
        if self._running_polls > 0:
            self._running_polls -= 1
            return None
        self.returncode = self._final
        if self._final == 0 and self._create_output:
            Path(self.cmd[-1]).write_bytes(b"clip")
        return self.returncode

    def kill(self):
        self.kill_count += 1
        self.returncode = -9


@pytest.fixture
def sample_csv_path() -> Path:
    return FIXTURES_DIR / "clips.csv"


@pytest.fixture
def sample_settings_path() -> Path:
    return FIXTURES_DIR / "settings.json"


@pytest.fixture
def source_video(tmp_path: Path) -> Path:
    video = tmp_path / "source.mp4"
    video.write_bytes(b"fake video data")
    return video


@pytest.fixture
def write_csv(tmp_path: Path):
    def _write(text: str, name: str = "clips.csv") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def ffmpeg_on_path():
    with patch("clipsplit.ffutil.shutil.which", return_value="/usr/bin/ffmpeg"):
        yield


@pytest.fixture
def fake_popen():
    """Patch Popen; ``fake_popen.processes`` lists every FakeProcess spawned.

    Set ``fake_popen.factory`` to customise how each process behaves.
    """
    spawned: list[FakeProcess] = []

    def _popen(cmd, **kwargs):
        proc = _popen.factory(cmd)
        spawned.append(proc)
        return proc

    _popen.factory = lambda cmd: FakeProcess(cmd)
    _popen.processes = spawned
    with patch("clipsplit.supervisor.subprocess.Popen", side_effect=_popen):
        yield _popen
