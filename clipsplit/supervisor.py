"""Encoder process supervision shared between an export run and a stop request."""

import logging
import subprocess
import threading
import time

from clipsplit.errors import ProcessStartError, ProcessStateError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.12


class RunContext:
    """Caller-owned state for one export run at a time.

    Holds at most one live encoder process plus the stop flag.  Both are only
    touched while holding ``_lock``; the lock is never held across a sleep or
    a process spawn.  The raw ``Popen`` handle never leaves this class.

    Killing the process unregisters it straight away; the killed handle is
    parked until ``wait`` collects its exit code.
    """

    def __init__(self, poll_interval: float = POLL_INTERVAL):
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        self._process: subprocess.Popen | None = None
        self._killed: subprocess.Popen | None = None
        self._stop_requested = False

    @property
    def stop_requested(self) -> bool:
        with self._lock:
            return self._stop_requested

    @property
    def busy(self) -> bool:
        """True while an encoder process is registered and not yet killed."""
        with self._lock:
            return self._process is not None

    def reset(self) -> None:
        """Clear the stop flag at the start of a run."""
        with self._lock:
            self._stop_requested = False

    def request_stop(self) -> None:
        """Ask the current run to stop and kill the in-flight encoder, if any.

        Safe to call repeatedly and when no run is active.
        """
        with self._lock:
            already = self._stop_requested
            self._stop_requested = True
            self._kill_locked()
        if not already:
            logger.info("Stop requested")

    def spawn(self, cmd: list[str]) -> int:
        """Start ``cmd`` and register it as the active process; returns its pid."""
        with self._lock:
            if self._process is not None:
                raise ProcessStateError("Internal error: an ffmpeg process is already running")
            if self._killed is not None:
                raise ProcessStateError("Internal error: stopped ffmpeg process was not waited for")

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise ProcessStartError(f"Failed to start ffmpeg process: {e}") from e

        with self._lock:
            self._process = process
            # A stop that landed while Popen was running found no process to kill.
            if self._stop_requested:
                self._kill_locked()
        logger.debug(f"Spawned ffmpeg pid={process.pid}")
        return process.pid

    def poll(self) -> int | None:
        """Return the exit code of the current process, or None while it runs.

        Falls back to the killed process so ``wait`` can still collect it.
        """
        with self._lock:
            process = self._process or self._killed
            if process is None:
                raise ProcessStateError("Internal error: ffmpeg process missing")
            return process.poll()

    def wait(self) -> int:
        """Poll the active process until it exits, then unregister it.

        The stop flag is checked on every iteration so a stop request is
        honoured even if it raced with the spawn.
        """
        try:
            while True:
                code = self.poll()
                if code is not None:
                    return code
                if self.stop_requested:
                    self.terminate()
                time.sleep(self.poll_interval)
        finally:
            self.clear()

    def terminate(self) -> None:
        """Kill and unregister the active process; no-op when none is registered."""
        with self._lock:
            self._kill_locked()

    def clear(self) -> None:
        with self._lock:
            self._process = None
            self._killed = None

    def _kill_locked(self) -> None:
        process = self._process
        if process is None or process.poll() is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            # Exited between poll() and kill().
            pass
        except OSError as e:
            raise ProcessStateError(f"Failed to stop ffmpeg: {e}") from e
        self._killed = process
        self._process = None
