"""Command line interface for Community Groups."""

import signal
import sys
from pathlib import Path

import click
import yaml

from community_groups.checkpoint import BEST_RESULT_FILE, JsonCheckpointStore, open_store
from community_groups.config import CommunityConfig
from community_groups.errors import ConfigurationError, ResumeMismatchError
from community_groups.history import assignments_of, record_history
from community_groups.members import Role, load_members, save_members
from community_groups.report import (
  DEFAULT_SOUND_FILE,
  ConsoleReporter,
  SoundNotifier,
  export_assignments_csv,
  export_assignments_yaml,
)
from community_groups.search import (
  PROGRESS_EVERY,
  CancellationFlag,
  iteration_cap,
  never,
  search_tracks,
  time_cap,
  any_of,
)
from community_groups.validators import build_tracks


def print_configuration_errors(error: ConfigurationError) -> None:
  for error_type, error_list in error.errors.items():
    click.secho(f"\n{error_type.replace('_', ' ').title()}:", fg="red")
    for message in error_list:
      click.secho(f"  • {message}", fg="red")
  click.secho(f"\n❌ Found {error.count()} configuration errors", fg="red")

def load_community(config_file: Path, members_file: Path):
  """Load configuration and members, and resolve the tracks; exit on any error."""
  config = CommunityConfig()
  try:
    config.load_from_file(config_file)
    members = load_members(members_file)
    tracks = build_tracks(config, members)
  except ConfigurationError as e:
    print_configuration_errors(e)
    sys.exit(1)
  except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
    click.secho(f"Error: {e}", fg="red")
    sys.exit(1)
  return config, members, tracks

def print_resume_error(error: ResumeMismatchError) -> None:
  click.secho(f"Error: {error}", fg="red")
  if error.expected or error.actual:
    click.echo(f"Actual members descriptor: {error.actual}")
    click.echo(f"Expected members descriptor: {error.expected}")

def load_results(checkpoint_file: Path):
  """Load every stored track result; exit when the checkpoint is unreadable."""
  try:
    return open_store(checkpoint_file).load_all()
  except ResumeMismatchError as e:
    print_resume_error(e)
    sys.exit(1)

@click.group()
def cli():
  """Community Groups CLI: balanced group assignments for community tracks."""
  pass

@cli.command()
@click.argument("config_file", type=click.Path(path_type=Path))
@click.argument("members_file", type=click.Path(path_type=Path))
def validate(config_file: Path, members_file: Path):
  """Validate the community configuration against the members."""
  _, members, tracks = load_community(config_file, members_file)

  for track in tracks:
    click.secho(
      f"{track.name}: {len(track.members)} members "
      f"({track.count(Role.DEV)} devs, {track.count(Role.TECHLEAD)} techleads), "
      f"{len(track.groups)} groups",
      fg="blue",
    )
    for group in track.groups:
      animator = f", animated by {group.animator}" if group.animator else ""
      click.echo(f"  - {group.name}: {group.devs_count} devs, {group.techleads_count} techleads{animator}")

  click.secho(f"✅ Configuration is valid ({len(members)} members, {len(tracks)} tracks)", fg="green")

@cli.command()
@click.argument("config_file", type=click.Path(path_type=Path))
@click.argument("members_file", type=click.Path(path_type=Path))
@click.option("--checkpoint", "checkpoint_file", type=click.Path(path_type=Path), default=BEST_RESULT_FILE,
              show_default=True, help="Best result file (.json, or .db/.sqlite for sqlite)")
@click.option("--track", "track_names", multiple=True, help="Only search these tracks")
@click.option("--max-iterations", type=click.IntRange(min=1), help="Stop each track after N iterations")
@click.option("--max-seconds", type=click.FloatRange(min=0), help="Stop each track after S seconds")
@click.option("--seed", type=int, help="Seed of the random generator")
@click.option("--no-dedup", is_flag=True, help="Don't remember footprints of scored assignments")
@click.option("--progress-every", type=click.IntRange(min=1), default=PROGRESS_EVERY, show_default=True,
              help="Report throughput every N iterations")
@click.option("--sound", "sound_file", type=click.Path(path_type=Path), default=DEFAULT_SOUND_FILE,
              show_default=True, help="Sound played when a better result is found")
def search(config_file: Path, members_file: Path, checkpoint_file: Path, track_names: tuple[str, ...],
           max_iterations: int, max_seconds: float, seed: int, no_dedup: bool, progress_every: int,
           sound_file: Path):
  """Search the best groups for each track, until stopped (Ctrl-C)."""
  config, _, tracks = load_community(config_file, members_file)

  if track_names:
    unknown = sorted(set(track_names) - {track.name for track in tracks})
    if unknown:
      click.secho(f"Error: unknown tracks {unknown}", fg="red")
      sys.exit(1)
    tracks = [track for track in tracks if track.name in track_names]

  def stop_predicate():
    predicates = []
    if max_iterations:
      predicates.append(iteration_cap(max_iterations))
    if max_seconds is not None:
      predicates.append(time_cap(max_seconds))
    return any_of(*predicates) if predicates else never

  store = open_store(checkpoint_file)
  reporter = ConsoleReporter(config.reference_year, notifier=SoundNotifier(sound_file))
  cancellation = CancellationFlag()
  previous_handler = signal.signal(signal.SIGINT, cancellation.cancel)
  try:
    results = search_tracks(
      tracks, config, store,
      reporter=reporter,
      should_stop_factory=stop_predicate,
      cancellation=cancellation,
      seed=seed,
      deduplicate=not no_dedup,
      progress_every=progress_every,
    )
  except ResumeMismatchError as e:
    print_resume_error(e)
    sys.exit(1)
  finally:
    signal.signal(signal.SIGINT, previous_handler)

  if cancellation.cancelled:
    click.secho("Search interrupted", fg="yellow")

  for track_name, result in results.items():
    if result is None:
      click.secho(f"{track_name}: nothing found matching constraints !", fg="yellow")
    else:
      click.secho(f"{track_name}: best score {result.score.score} saved to {checkpoint_file}", fg="green")

@cli.command()
@click.argument("checkpoint_file", type=click.Path(exists=True, path_type=Path))
@click.argument("output_file", type=click.Path(path_type=Path))
def export(checkpoint_file: Path, output_file: Path):
  """Export the best assignments to CSV or YAML."""
  results = list(load_results(checkpoint_file).values())
  if not results:
    click.secho(f"No track result found in {checkpoint_file}", fg="yellow")
    sys.exit(1)

  if output_file.suffix.lower() in (".yaml", ".yml"):
    export_assignments_yaml(results, output_file)
  else:
    export_assignments_csv(results, output_file)
  click.secho(f"Exported {len(results)} tracks to {output_file}", fg="green")

@cli.command("record-history")
@click.argument("members_file", type=click.Path(exists=True, path_type=Path))
@click.argument("checkpoint_file", type=click.Path(exists=True, path_type=Path))
@click.option("--output", "output_file", type=click.Path(path_type=Path),
              help="Where to write updated members (defaults to MEMBERS_FILE)")
def record_history_command(members_file: Path, checkpoint_file: Path, output_file: Path):
  """Prepend this cycle's groups to every member's history."""
  members = load_members(members_file)
  assignments = assignments_of(load_results(checkpoint_file).values())
  updated = record_history(members, assignments)

  unassigned = [member.identity for member in members if member.identity not in assignments]
  if unassigned:
    click.secho(f"Members without group this cycle: {unassigned}", fg="yellow")

  output_file = output_file or members_file
  save_members(updated, output_file)
  click.secho(f"Recorded {len(assignments)} assignments into {output_file}", fg="green")

@cli.command()
@click.argument("checkpoint_file", type=click.Path(path_type=Path))
def reset(checkpoint_file: Path):
  """Forget all best results (e.g. after the members changed)."""
  store = open_store(checkpoint_file)
  if isinstance(store, JsonCheckpointStore):
    if checkpoint_file.exists():
      checkpoint_file.unlink()
  else:
    store.reset()
  click.secho(f"Reset best results in {checkpoint_file}", fg="green")

if __name__ == "__main__":
  cli()
