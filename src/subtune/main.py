"""
Subtune startup, headless mode and shutdown.

Startup order: config, logging, catalog, mpv, favorites, event loop, UI.
Shutdown order: event loop, mpv, UI.
"""

import queue
import threading
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from subtune.context import AppContext
from subtune.core import config as config_module
from subtune.core.console import safe_print
from subtune.core.output import setup_loguru
from subtune.domain.catalog import (
    RemoteCallFailed,
    SubsonicClient,
    entity_to_track,
    resolve_playlist,
)
from subtune.domain.library import Playlist
from subtune.domain.playback import (
    BackendStartError,
    EventLoop,
    Favorites,
    MpvBackend,
    Player,
    PlayerSnapshot,
    ScrobbleScheduler,
    StatusLine,
    check_mpv_available,
)
from subtune.ui.styles.formatting import format_player_status


class StartupError(Exception):
    """Raised when a startup step fails and the program must exit."""

    pass


def load_settings(
    config_path: Optional[Path] = None, log_level: Optional[str] = None
) -> config_module.Config:
    """Load config, validate required properties and initialize logging.

    Raises:
        StartupError: required properties are missing
    """
    cfg = config_module.load_config(config_path)

    missing = cfg.missing_required()
    if missing:
        raise StartupError(
            f"Missing required configuration in {cfg.path}: {', '.join(missing)}"
        )

    if log_level:
        cfg.logging.level = log_level.upper()
    setup_loguru(config_module.get_log_path(cfg), level=cfg.logging.level)
    return cfg


def build_context(cfg: config_module.Config) -> AppContext:
    """Connect to the server, start mpv and wire the playback core.

    Raises:
        StartupError: the catalog or the audio backend is unavailable
    """
    catalog = SubsonicClient(
        cfg.server.host,
        cfg.auth.username,
        cfg.auth.password,
        plaintext=cfg.auth.plaintext,
    )

    try:
        indexes = catalog.get_indexes()
        remote_playlists = catalog.get_playlists()
    except RemoteCallFailed as e:
        raise StartupError(f"Cannot reach server {cfg.server.host}: {e}") from e
    logger.info(
        f"Catalog loaded: {len(indexes)} index groups, {len(remote_playlists)} playlists"
    )

    if not check_mpv_available():
        raise StartupError("mpv not found. Install it with your package manager.")

    inbox: "queue.Queue[Any]" = queue.Queue()
    backend = MpvBackend(
        inbox,
        socket_path=cfg.player.mpv_socket_path,
        volume=cfg.player.volume,
        ipc_timeout=cfg.player.ipc_timeout,
    )
    try:
        backend.start()
    except BackendStartError as e:
        raise StartupError(str(e)) from e

    player = Player(backend)
    favorites = Favorites(catalog)
    try:
        favorites.load()
    except RemoteCallFailed as e:
        logger.warning(f"Could not load starred songs: {e}")

    scheduler = ScrobbleScheduler(inbox)
    event_loop = EventLoop(
        player,
        backend,
        inbox,
        scheduler,
        catalog=catalog,
        scrobble_enabled=cfg.server.scrobble,
    )

    return AppContext(
        config=cfg,
        catalog=catalog,
        backend=backend,
        player=player,
        favorites=favorites,
        scheduler=scheduler,
        event_loop=event_loop,
        inbox=inbox,
        indexes=indexes,
        remote_playlists=remote_playlists,
    )


def run_headless(ctx: AppContext, stop_event: Optional[threading.Event] = None) -> None:
    """Play the first server playlist, printing track changes, until interrupted."""
    if not ctx.remote_playlists:
        safe_print("No playlists on the server.", style="yellow")
        return

    remote, error = resolve_playlist(ctx.catalog, ctx.remote_playlists[0])
    if error:
        safe_print(f"Could not load playlist {remote.name}: {error}", style="red")
        return

    tracks = [entity_to_track(ctx.catalog, entity) for entity in remote.entries]
    index = ctx.player.add_or_replace_playlist(
        Playlist(id=remote.id, name=remote.name, tracks=tracks)
    )

    last_track_id = {"id": None}

    def on_update(snapshot: PlayerSnapshot, status: StatusLine) -> None:
        track = snapshot.current_track
        track_id = track.id if track else None
        if track_id != last_track_id["id"]:
            last_track_id["id"] = track_id
            safe_print(f"{ctx.player.status_text()}  {format_player_status(status)}")

    ctx.event_loop.on_update = on_update
    ctx.player.play_playlist(index)
    safe_print(f"Playing {remote.name} ({len(tracks)} tracks). Ctrl-C to quit.", style="green")

    stop_event = stop_event or threading.Event()
    while not stop_event.wait(0.5):
        pass


def run(
    config_path: Optional[Path] = None,
    log_level: Optional[str] = None,
    headless: bool = False,
) -> int:
    """Run Subtune. Returns the process exit code."""
    try:
        cfg = load_settings(config_path, log_level)
        ctx = build_context(cfg)
    except StartupError as e:
        safe_print(f"❌ {e}", style="bold red")
        return 1

    ctx.event_loop.start()
    try:
        if headless:
            run_headless(ctx)
        else:
            from subtune.ui.app import run_interactive_ui

            run_interactive_ui(ctx)
    except KeyboardInterrupt:
        safe_print("\nInterrupted by user. Cleaning up...", style="yellow")
    finally:
        ctx.shutdown()
        logger.info("Shutdown complete")
    return 0
