"""
MPV backend integration over JSON IPC.

One mpv process is started in idle mode with a Unix IPC socket. A single
persistent connection carries both directions: commands are tagged with a
request_id and answered on the same socket, and unsolicited events
(start-file, end-file, idle, property-change) are forwarded to the event loop.
"""

import itertools
import json
import os
import queue
import socket
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from .backend import event_from_mpv
from .exceptions import BackendCommandFailed, BackendStartError

# Seconds to wait for mpv to create its IPC socket
SOCKET_CREATE_TIMEOUT = 5.0


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def default_socket_path() -> str:
    temp_dir = Path(tempfile.gettempdir())
    return str(temp_dir / f"subtune-mpv-{os.getpid()}")


class MpvBackend:
    """PlaybackBackend implementation driving an mpv subprocess.

    Events are posted to ``events`` (the event loop inbox). Replies are matched
    to callers by request_id, so commands may be issued from any thread.
    """

    def __init__(
        self,
        events: "queue.Queue[Any]",
        socket_path: Optional[str] = None,
        volume: int = 50,
        ipc_timeout: float = 2.0,
    ):
        self.events = events
        self.socket_path = socket_path or default_socket_path()
        self.volume = volume
        self.ipc_timeout = ipc_timeout

        self.process: Optional[subprocess.Popen] = None
        self._sock: Optional[socket.socket] = None
        self._reader: Optional[threading.Thread] = None
        self._running = False

        self._request_ids = itertools.count(1)
        self._pending: Dict[int, "queue.Queue[Dict[str, Any]]"] = {}
        self._pending_lock = threading.Lock()
        self._tx_lock = threading.Lock()

    # ---- lifecycle ----

    def start(self) -> None:
        """Start mpv and connect to its IPC socket.

        Raises:
            BackendStartError: mpv is missing, exited early or never opened its socket
        """
        logger.info(f"Starting MPV player with socket: {self.socket_path}")

        if os.path.exists(self.socket_path):
            logger.debug(f"Removing existing socket: {self.socket_path}")
            os.unlink(self.socket_path)

        cmd = [
            "mpv",
            "--idle=yes",
            "--no-video",
            "--audio-display=no",
            "--no-terminal",
            f"--input-ipc-server={self.socket_path}",
            f"--volume={self.volume}",
            "--load-scripts=no",
        ]

        try:
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise BackendStartError(f"Failed to start MPV: {e}") from e

        start_time = time.time()
        while not os.path.exists(self.socket_path):
            if self.process.poll() is not None:
                raise BackendStartError(
                    f"MPV exited during startup (code {self.process.returncode})"
                )
            if time.time() - start_time > SOCKET_CREATE_TIMEOUT:
                self.process.kill()
                raise BackendStartError(
                    f"MPV socket creation timeout after {SOCKET_CREATE_TIMEOUT}s"
                )
            time.sleep(0.1)

        try:
            self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            self._sock.connect(self.socket_path)
        except OSError as e:
            self.process.kill()
            raise BackendStartError(f"MPV socket connection failed: {e}") from e

        self._running = True
        self._reader = threading.Thread(
            target=self._read_loop, name="mpv-ipc-reader", daemon=True
        )
        self._reader.start()

        # Verify the round trip before handing the backend to the player
        try:
            self.get_property("idle-active")
        except BackendCommandFailed as e:
            self.terminate()
            raise BackendStartError(f"MPV socket connection test failed: {e}") from e

        logger.info("MPV started successfully")

    def terminate(self) -> None:
        """Quit mpv and cleanup the socket. Safe to call more than once."""
        if self._running:
            try:
                self._send_line({"command": ["quit"]})
            except OSError:
                pass
        self._running = False

        if self._sock:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._sock.close()
            self._sock = None

        if self.process:
            try:
                self.process.wait(timeout=2.0)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait(timeout=2.0)
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    # ---- protocol helpers ----

    def _send_line(self, payload: Dict[str, Any]) -> None:
        if not self._sock:
            raise OSError("mpv socket not connected")
        line = (json.dumps(payload) + "\n").encode("utf-8")
        with self._tx_lock:
            self._sock.sendall(line)

    def command(self, *args: Any) -> Any:
        """Send a command and wait for its reply.

        Returns:
            The reply's ``data`` field (None for most commands)

        Raises:
            BackendCommandFailed: mpv replied with an error, or did not reply in time
        """
        name = " ".join(str(a) for a in args[:2])
        request_id = next(self._request_ids)
        reply_queue: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=1)

        with self._pending_lock:
            self._pending[request_id] = reply_queue

        try:
            self._send_line({"command": list(args), "request_id": request_id})
            reply = reply_queue.get(timeout=self.ipc_timeout)
        except OSError as e:
            raise BackendCommandFailed(name, f"socket error: {e}") from e
        except queue.Empty:
            raise BackendCommandFailed(
                name, f"no reply within {self.ipc_timeout}s"
            ) from None
        finally:
            with self._pending_lock:
                self._pending.pop(request_id, None)

        error = reply.get("error")
        if error != "success":
            raise BackendCommandFailed(name, str(error))
        return reply.get("data")

    def _read_loop(self) -> None:
        """Read JSON lines, routing replies to callers and events to the inbox."""
        buf = b""
        try:
            while self._running and self._sock:
                try:
                    chunk = self._sock.recv(4096)
                except OSError:
                    break
                if not chunk:
                    break

                buf += chunk
                while b"\n" in buf:
                    line, buf = buf.split(b"\n", 1)
                    line = line.strip()
                    if line:
                        self._dispatch(line)
        finally:
            if self._running:
                logger.warning("MPV IPC connection closed")
            self._fail_pending("connection closed")

    def _dispatch(self, line: bytes) -> None:
        try:
            message = json.loads(line.decode("utf-8", errors="replace"))
        except json.JSONDecodeError:
            logger.debug(f"Ignoring malformed mpv line: {line!r}")
            return
        if not isinstance(message, dict):
            return

        if "event" in message:
            self.events.put(event_from_mpv(message))
            return

        request_id = message.get("request_id")
        with self._pending_lock:
            reply_queue = self._pending.get(request_id)
        if reply_queue is not None:
            reply_queue.put_nowait(message)

    def _fail_pending(self, reason: str) -> None:
        with self._pending_lock:
            waiting = list(self._pending.values())
        for reply_queue in waiting:
            try:
                reply_queue.put_nowait({"error": reason})
            except queue.Full:
                pass

    # ---- PlaybackBackend ----

    def load(self, uri: str) -> None:
        self.command("loadfile", uri, "replace")

    def stop(self) -> None:
        self.command("stop")

    def toggle_pause(self) -> None:
        self.command("cycle", "pause")

    def seek(self, delta_seconds: float) -> None:
        self.command("seek", delta_seconds, "relative")

    def get_property(self, name: str) -> Any:
        return self.command("get_property", name)

    def set_property(self, name: str, value: Any) -> None:
        self.command("set_property", name, value)

    def observe_property(self, name: str) -> None:
        self.command("observe_property", next(self._request_ids), name)
