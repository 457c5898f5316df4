"""Profile commands: init, equipment, recovery."""

from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.equipment import default_equipment_range
from ...core.errors import FortyFiveError
from ...core.models import BodyMetrics, Equipment, EquipmentType, UserProfile
from ...core.planner import new_id
from ...core.recovery import RecoveryMetrics, calculate_recovery_score, should_warn_before_workout
from ...io.serializers import parse_equipment_list
from .. import views
from ..app import app, get_stores


def _equipment_from_types(types: list[EquipmentType]) -> list[Equipment]:
    items = []
    for equipment_type in types:
        min_kg, max_kg = default_equipment_range(equipment_type)
        items.append(Equipment(id=new_id(), type=equipment_type, min_weight=min_kg, max_weight=max_kg))
    return items


@app.command()
def init(
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Your name"),
    ] = "Athlete",
    age: Annotated[
        Optional[int],
        typer.Option("--age", help="Age in years"),
    ] = None,
    height_cm: Annotated[
        Optional[float],
        typer.Option("--height-cm", help="Height in centimeters"),
    ] = None,
    gender: Annotated[
        Optional[str],
        typer.Option("--gender", help="Gender (optional)"),
    ] = None,
    goal: Annotated[
        str,
        typer.Option("--goal", "-g", help="Primary goal: strength, hypertrophy, endurance"),
    ] = "strength",
    equipment: Annotated[
        str,
        typer.Option("--equipment", "-e", help="Comma-separated equipment, e.g. dumbbells,bench"),
    ] = "dumbbells,bench",
    weight_kg: Annotated[
        Optional[float],
        typer.Option("--weight-kg", "-w", help="Current bodyweight in kg"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an existing profile without prompting"),
    ] = False,
) -> None:
    """
    Create or update your profile and equipment.

    Re-running init keeps your profile id (and so your programs and
    history) unless the profile is replaced with --force.
    """
    stores = get_stores()

    try:
        types = parse_equipment_list(equipment)
        existing = stores.profiles.load_profile()
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if existing is not None and not force:
        if not views.confirm_action(f"Profile '{existing.name}' exists. Update it?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    now = datetime.now()
    try:
        profile = UserProfile(
            id=existing.id if existing is not None else new_id(),
            name=name,
            age=age,
            height_cm=height_cm,
            gender=gender,
            primary_goal=goal,
            created_at=existing.created_at if existing is not None else now,
            updated_at=now,
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        stores.workouts.init()
        stores.profiles.save_profile(profile)
        stores.profiles.save_equipment(_equipment_from_types(types))
        if weight_kg is not None:
            stores.profiles.add_metrics(
                BodyMetrics(id=new_id(), user_id=profile.id, weight_kg=weight_kg, timestamp=now)
            )
    except (FortyFiveError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Profile saved for {profile.name} in {stores.data_dir}")
    views.console.print(f"Equipment: {', '.join(t.display_name for t in types) or 'bodyweight only'}")
    views.console.print("\nNext: run [bold]fortyfive generate[/bold] to create week 1.")


@app.command("equipment")
def equipment_cmd(
    set_: Annotated[
        Optional[str],
        typer.Option("--set", "-s", help="Replace equipment with a comma-separated list"),
    ] = None,
    add: Annotated[
        Optional[str],
        typer.Option("--add", "-a", help="Add comma-separated equipment"),
    ] = None,
    remove: Annotated[
        Optional[str],
        typer.Option("--remove", "-r", help="Remove comma-separated equipment"),
    ] = None,
) -> None:
    """
    Show or change the equipment you own.

    Bodyweight exercises are always available.  Regenerate the week with
    'fortyfive generate --force' after changing equipment.
    """
    stores = get_stores()

    try:
        current = stores.profiles.load_equipment()
        if set_ is not None:
            current = _equipment_from_types(parse_equipment_list(set_))
        if add is not None:
            owned = {item.type for item in current}
            current += _equipment_from_types(
                [t for t in parse_equipment_list(add) if t not in owned]
            )
        if remove is not None:
            dropped = set(parse_equipment_list(remove))
            current = [item for item in current if item.type not in dropped]
        if set_ is not None or add is not None or remove is not None:
            stores.profiles.save_equipment(current)
            views.print_success("Equipment updated.")
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not current:
        views.print_warning("No equipment configured; only bodyweight exercises are available.")
        return
    views.console.print(views.format_equipment_table(current))


@app.command()
def recovery(
    score: Annotated[
        Optional[int],
        typer.Option("--score", help="Recovery score 0-100 from your tracker"),
    ] = None,
    sleep_hours: Annotated[
        Optional[float],
        typer.Option("--sleep", help="Hours slept last night"),
    ] = None,
    hrv_ms: Annotated[
        Optional[float],
        typer.Option("--hrv", help="Heart-rate variability in ms"),
    ] = None,
    resting_hr: Annotated[
        Optional[float],
        typer.Option("--resting-hr", help="Resting heart rate in bpm"),
    ] = None,
    weight_kg: Annotated[
        Optional[float],
        typer.Option("--weight-kg", "-w", help="Today's bodyweight in kg"),
    ] = None,
) -> None:
    """
    Record today's recovery.

    Pass --score directly, or --sleep, --hrv and --resting-hr to compute it.
    Without options the stored score (if recorded in the last 24 h) is shown.
    A stored score adjusts the next generated week.
    """
    stores = get_stores()

    try:
        if weight_kg is not None:
            profile = stores.profiles.load_profile()
            if profile is None:
                views.print_error("No profile found. Run 'fortyfive init' first.")
                raise typer.Exit(1)
            stores.profiles.add_metrics(
                BodyMetrics(id=new_id(), user_id=profile.id, weight_kg=weight_kg, timestamp=datetime.now())
            )

        measured = (sleep_hours, hrv_ms, resting_hr)
        if score is None and any(v is not None for v in measured):
            if any(v is None for v in measured):
                views.print_error("--sleep, --hrv and --resting-hr must be given together")
                raise typer.Exit(1)
            metrics = RecoveryMetrics(sleep_hours=sleep_hours, hrv_ms=hrv_ms, resting_hr=resting_hr)
            score = round(
                calculate_recovery_score(metrics, weight_kg, stores.profiles.average_weight())
            )

        if score is None:
            current = stores.profiles.current_recovery_score()
            if current is None:
                views.print_info("No recovery score recorded in the last 24 hours.")
                return
            views.print_recovery(current)
            return

        stores.profiles.save_recovery_score(score)
    except (FortyFiveError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success("Recovery score saved.")
    views.print_recovery(score)
    if should_warn_before_workout(score):
        views.print_warning("Recovery is low; consider resting today.")
