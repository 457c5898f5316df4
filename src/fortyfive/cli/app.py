"""Shared Typer app object, global options, logging setup and store utilities."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.logging import RichHandler

from ..core.engine.config_loader import get_data_home, load_program_rules
from ..core.models import UserProfile
from ..core.program_manager import ProgramManager
from ..io.catalog import YamlExerciseCatalog
from ..io.health_log import JsonlHealthLog
from ..io.profile_store import ProfileStore
from ..io.workout_store import JsonWorkoutStore
from . import views

app = typer.Typer(
    name="fortyfive",
    help="45-minute A/B strength program generator and workout tracker.",
    no_args_is_help=True,
)


@dataclass
class AppState:
    """Values of the global options for the current invocation."""

    data_dir: Path | None = None
    verbose: int = 0


state = AppState()


def configure_logging(verbosity: int) -> None:
    """WARNING by default, INFO with -v, DEBUG with -vv."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=views.err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    data_dir: Annotated[
        Optional[Path],
        typer.Option("--data-dir", help="Data directory (default: $FORTYFIVE_HOME or ~/.fortyfive)"),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="-v for info, -vv for debug logging"),
    ] = 0,
) -> None:
    """
    Plan four 45-minute dumbbell workouts a week and log them set by set.
    """
    state.data_dir = data_dir
    state.verbose = verbose
    configure_logging(verbose)


@dataclass
class Stores:
    """File-backed collaborators rooted at one data directory."""

    data_dir: Path
    profiles: ProfileStore
    workouts: JsonWorkoutStore
    catalog: YamlExerciseCatalog
    health_log: JsonlHealthLog


def get_data_dir() -> Path:
    return state.data_dir if state.data_dir is not None else get_data_home()


def get_stores() -> Stores:
    """Build the stores for the selected data directory."""
    data_dir = get_data_dir()
    return Stores(
        data_dir=data_dir,
        profiles=ProfileStore(data_dir),
        workouts=JsonWorkoutStore(data_dir),
        catalog=YamlExerciseCatalog(data_home=data_dir),
        health_log=JsonlHealthLog(data_dir),
    )


def get_manager(stores: Stores) -> ProgramManager:
    """ProgramManager over the stores, with rules from fortyfive.yaml."""
    return ProgramManager(
        stores.catalog,
        stores.workouts,
        stores.profiles,
        stores.profiles,
        recovery=stores.profiles,
        metrics=stores.profiles,
        rules=load_program_rules(stores.data_dir),
    )


def require_profile(stores: Stores) -> UserProfile:
    """Load the profile or exit with an error pointing at ``init``."""
    profile = stores.profiles.load_profile()
    if profile is None:
        views.print_error("No profile found. Run 'fortyfive init' first.")
        raise typer.Exit(1)
    return profile
