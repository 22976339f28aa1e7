"""CLI for CitySieve.

Commands:
- grid: Preview the candidate lattice for a centre and radius (no network)
- search: Run a full neighbourhood search and write ranked/rejected outputs
- weights: Show the scoring weights derived from a preferences file
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich.table import Table

from . import __version__
from .application.reporting import write_search_outputs
from .application.search import SearchOutcome, next_ring, run_search
from .config import SearchConfig
from .config_file import load_search_config_file
from .domain.geodesy import GeoPoint, format_minutes
from .domain.grid import generate_candidate_areas
from .domain.scoring import dimension_label
from .domain.weights import extract_weights
from .exceptions import CitySieveError, InvalidGeometryError
from .observability.logging import set_log_level
from .profile_file import load_preference_profile
from .protocols import (
    AmenityCounter,
    AreaNameResolver,
    FileSystem,
    PlaceGeocoder,
    PointResolver,
    PostcodeLookup,
    ProgressReporter,
)


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: SearchConfig, build_http_clients: bool) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI.

    The upstream collaborators are None when HTTP clients were not requested.
    """

    fs: FileSystem
    resolver: PointResolver | None = None
    amenity_counter: AmenityCounter | None = None
    postcode_lookup: PostcodeLookup | None = None
    name_resolver: AreaNameResolver | None = None
    geocoder: PlaceGeocoder | None = None
    progress: ProgressReporter | None = None


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: SearchConfig
    deps_builder: DependenciesBuilder
    config_path: Path | None = None

    def build_dependencies(
        self, *, build_http_clients: bool, config: SearchConfig | None = None
    ) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(
            config=config or self.config, build_http_clients=build_http_clients
        )

    def resolve_config(self, fs: FileSystem) -> SearchConfig:
        """Apply the ``--config`` file, if any, over env/default values."""
        if self.config_path is None:
            return self.config
        file_config = load_search_config_file(path=self.config_path, fs=fs)
        return self.config.with_file_overrides(file_config)


class CoordinatePairError(typer.BadParameter):
    """Raised when only one of --lat/--lng is supplied."""

    def __init__(self) -> None:
        super().__init__("Supply both --lat and --lng, or neither.")


class RingOptionsError(typer.BadParameter):
    """Raised when --more is combined with an explicit --inner-km."""

    def __init__(self) -> None:
        super().__init__("--more picks the next ring itself; drop --inner-km or --more.")


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the citysieve entry point.")


DEFAULT_OUTPUT_DIR = Path("data/search")
DEFAULT_GRID_SPACING_KM = 2.0
GRID_PREVIEW_COUNT = 5


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _optional_centre(lat: float | None, lng: float | None) -> GeoPoint | None:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise CoordinatePairError()
    return GeoPoint(lat=lat, lng=lng)


def _fail(exc: Exception) -> typer.Exit:
    rprint(f"[red]✗ {exc}[/red]")
    return typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"citysieve {__version__}")
        raise typer.Exit()


def _results_table(outcome: SearchOutcome) -> Table:
    table = Table(title="Top areas")
    table.add_column("#", justify="right")
    table.add_column("Area")
    table.add_column("Score", justify="right")
    table.add_column("Commute", justify="right")
    table.add_column("Highlights")
    for rank, scored in enumerate(outcome.result.top_results, start=1):
        area = scored.area
        minutes = area.commute_estimate
        commute = format_minutes(minutes) if minutes is not None else "-"
        name = area.name
        if area.id in outcome.unverified_ids:
            name = f"{name} [dim](unverified)[/dim]"
        table.add_row(
            str(rank),
            name,
            f"{scored.score:.1f}",
            commute,
            ", ".join(dimension_label(h) for h in scored.highlights),
        )
    return table


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Find UK neighbourhoods that match your preferences: grid → validate → score",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="TOML config file (schema_version = 1, [search] section)",
            ),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option(
                "--log-level",
                help="Logging level (debug, info, warning, error)",
            ),
        ] = None,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                callback=_version_callback,
                is_eager=True,
                help="Show the version and exit",
            ),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        if log_level is not None:
            try:
                set_log_level(log_level)
            except ValueError as exc:
                raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        ctx.obj = CliContext(
            config=SearchConfig.from_env(),
            deps_builder=deps_builder,
            config_path=config_path,
        )

    @app.command()
    def grid(
        lat: Annotated[float, typer.Option("--lat", help="Centre latitude")],
        lng: Annotated[float, typer.Option("--lng", help="Centre longitude")],
        radius_km: Annotated[
            float,
            typer.Option("--radius-km", "-r", help="Search radius in km"),
        ] = 20.0,
        spacing_km: Annotated[
            float,
            typer.Option("--spacing-km", "-s", help="Distance between neighbouring points"),
        ] = DEFAULT_GRID_SPACING_KM,
        show: Annotated[
            int,
            typer.Option("--show", help="Number of candidate ids to print"),
        ] = GRID_PREVIEW_COUNT,
    ) -> None:
        """Preview the hex grid of candidate points (no network calls)."""
        try:
            candidates = generate_candidate_areas(GeoPoint(lat=lat, lng=lng), radius_km, spacing_km)
        except InvalidGeometryError as exc:
            raise typer.BadParameter(str(exc)) from exc
        rprint(
            f"[green]✓ {len(candidates):,} candidates[/green] within {radius_km:g} km "
            f"at {spacing_km:g} km spacing"
        )
        for candidate in candidates[: max(show, 0)]:
            rprint(f"  {candidate.id}")

    @app.command()
    def search(
        ctx: typer.Context,
        preferences: Annotated[
            Path,
            typer.Option("--preferences", "-p", help="Preferences TOML file"),
        ],
        lat: Annotated[
            float | None,
            typer.Option("--lat", help="Override the search centre latitude"),
        ] = None,
        lng: Annotated[
            float | None,
            typer.Option("--lng", help="Override the search centre longitude"),
        ] = None,
        radius_km: Annotated[
            float | None,
            typer.Option("--radius-km", "-r", help="Search radius in km (default: 20)"),
        ] = None,
        inner_km: Annotated[
            float | None,
            typer.Option("--inner-km", help="Only search beyond this distance (ring search)"),
        ] = None,
        more: Annotated[
            bool,
            typer.Option("--more", help="Search the next 20 km ring beyond --radius-km"),
        ] = False,
        top_n: Annotated[
            int | None,
            typer.Option("--top-n", "-n", help="Number of ranked areas to keep (default: 10)"),
        ] = None,
        out_dir: Annotated[
            Path,
            typer.Option("--output-dir", "-o", help="Directory for output files"),
        ] = DEFAULT_OUTPUT_DIR,
    ) -> None:
        """Run a full search and write ranked, rejected and summary outputs."""
        state = _get_context(ctx)
        centre = _optional_centre(lat, lng)
        if more and inner_km is not None:
            raise RingOptionsError()
        base = state.build_dependencies(build_http_clients=False)
        try:
            config = state.resolve_config(base.fs).with_overrides(
                radius_km=radius_km, top_n=top_n
            )
            profile = load_preference_profile(path=preferences, fs=base.fs)
        except CitySieveError as exc:
            raise _fail(exc) from exc

        if more:
            inner_km, outer_km = next_ring(config.radius_km)
            config = config.with_overrides(radius_km=outer_km)

        deps = state.build_dependencies(build_http_clients=True, config=config)
        try:
            outcome = asyncio.run(
                run_search(
                    profile,
                    config=config,
                    resolver=deps.resolver,
                    amenity_counter=deps.amenity_counter,
                    postcode_lookup=deps.postcode_lookup,
                    name_resolver=deps.name_resolver,
                    geocoder=deps.geocoder,
                    centre=centre,
                    inner_km=inner_km,
                    progress=deps.progress,
                )
            )
        except CitySieveError as exc:
            raise _fail(exc) from exc

        outs = write_search_outputs(outcome, out_dir=out_dir, fs=deps.fs)

        if outcome.densified:
            rprint(
                f"[yellow]Sparse land coverage: grid densified to "
                f"{outcome.spacing_km:.2f} km spacing[/yellow]"
            )
        if outcome.has_results:
            rprint(_results_table(outcome))
        else:
            rprint(
                "[yellow]No areas passed your must-haves. Widen your search: try a larger "
                "--radius-km, --more, a longer commute cap or more area types.[/yellow]"
            )
        if outcome.unverified_ids:
            rprint(
                f"[yellow]{len(outcome.unverified_ids)} candidates could not be checked "
                "against postcode data and may be uninhabited.[/yellow]"
            )

        rprint("[green]✓ Search complete:[/green]")
        for k, v in outs.items():
            rprint(f"  {k}: {v}")

    @app.command()
    def weights(
        ctx: typer.Context,
        preferences: Annotated[
            Path,
            typer.Option("--preferences", "-p", help="Preferences TOML file"),
        ],
    ) -> None:
        """Show the scoring weights extracted from a preferences file."""
        state = _get_context(ctx)
        deps = state.build_dependencies(build_http_clients=False)
        try:
            profile = load_preference_profile(path=preferences, fs=deps.fs)
        except CitySieveError as exc:
            raise _fail(exc) from exc

        table = Table(title="Scoring weights")
        table.add_column("Dimension")
        table.add_column("Weight", justify="right")
        for name, value in extract_weights(profile).as_dict().items():
            table.add_row(name, f"{value:.2f}")
        rprint(table)

    _ = (main, grid, search, weights)

    return app
