"""Command-line entry point.

Run ``huerestore check`` from cron or another scheduler; the other commands
are for registering with the bridge and inspecting what has been recorded.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from huerestore import __version__
from huerestore.api.bridge_client import BridgeClient, bridge_error
from huerestore.config import Settings
from huerestore.errors import BridgeError, StorageError
from huerestore.models.light import LightRecord
from huerestore.repo.snapshot_repository import SnapshotRepository
from huerestore.services.check_service import CheckService
from huerestore.services.normalizer import normalize_lights
from huerestore.utils.logger import configure_logging, dump

logger = logging.getLogger("huerestore.cli")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Monitors, logs and restores Philips Hue light states after a power failure.",
)

LIGHT_TEMPLATE = """
-[{index:2d}]----------------------------------------
 Name:       {name}
 Unique Id:  {uniqueid}
 Model Id:   {modelid}
 Type:       {type}
 SW Version: {swversion}
 Reachable:  {reachable}
 On:         {on}
 Colormode:  {colormode}
 Colortemp:  {ct}
 X, Y:       {x}, {y}
 Hue:        {hue}
 Saturation: {sat}
 Brightness: {bri}
 Effect:     {effect}
 Alert:      {alert}"""


@dataclass
class AppContext:
    settings: Settings
    _repo: Optional[SnapshotRepository] = None

    @property
    def bridge(self) -> BridgeClient:
        return BridgeClient(self.settings)

    @property
    def repo(self) -> SnapshotRepository:
        if self._repo is None:
            self._repo = SnapshotRepository.open(self.settings.db_path)
        return self._repo

    def close(self) -> None:
        if self._repo is not None:
            self._repo.close()
            self._repo = None


def format_light(light: LightRecord) -> str:
    s = light.state
    return LIGHT_TEMPLATE.format(
        index=light.metadata.index,
        name=light.metadata.name,
        uniqueid=light.identity.uniqueid,
        modelid=light.identity.modelid,
        type=light.identity.type,
        swversion=light.metadata.swversion,
        reachable="yes" if s.reachable else "no",
        on="yes" if s.on else "no",
        colormode=s.colormode,
        ct=s.ct,
        x=s.x,
        y=s.y,
        hue=s.hue,
        sat=s.sat,
        bri=s.bri,
        effect=s.effect,
        alert=s.alert,
    )


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _fetch_current(ctx: AppContext) -> dict[str, LightRecord]:
    try:
        raw = ctx.bridge.fetch_lights()
    except BridgeError as e:
        logger.debug("Fetch failed: %r", e)
        _fail(f"Fetching light info from bridge {ctx.settings.bridge_url} failed: {e}")
    return normalize_lights(raw, datetime.now(timezone.utc))


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Be verbose about what happens (writes log to stdout)."),
    debug: bool = typer.Option(False, "-d", "--debug", help="Switch on debugging output. Usually very annoying."),
):
    try:
        settings = Settings.from_env()
    except ValidationError as e:
        _fail(f"Invalid configuration: {e}")

    try:
        settings.home_dir.mkdir(parents=True, exist_ok=True)
        configure_logging(settings.log_path, verbose=verbose, debug=debug)
    except OSError as e:
        _fail(f"Unable to set up storage directory {settings.home_dir}: {e}")

    app_ctx = AppContext(settings=settings)
    ctx.obj = app_ctx
    ctx.call_on_close(app_ctx.close)


def _open_repo(ctx: AppContext) -> SnapshotRepository:
    try:
        return ctx.repo
    except StorageError as e:
        logger.error("%s", e)
        _fail(str(e))


@app.command()
def check(ctx: typer.Context):
    """Check and log the light states, reverting them to a previous state after a power failure."""
    app_ctx: AppContext = ctx.obj
    repo = _open_repo(app_ctx)
    report = CheckService(app_ctx.settings, app_ctx.bridge, repo).run()
    logger.debug("Cycle report:\n%s", dump(report.__dict__))
    if not report.ok:
        raise typer.Exit(code=1)


def reg(ctx: typer.Context):
    """Register the application; push the link button on the bridge first."""
    app_ctx: AppContext = ctx.obj
    url = app_ctx.settings.bridge_url
    try:
        response = app_ctx.bridge.register_app()
    except BridgeError as e:
        logger.error("Registration attempt on bridge %s failed: %s", url, e)
        _fail(f"Registration attempt on bridge {url} failed: {e}")
    logger.debug("Response:\n%s", dump(response))

    error = bridge_error(response)
    if error:
        logger.error("Registration attempt on bridge %s failed: %s", url, error.description)
        _fail(f"Registration attempt on bridge {url} failed: {error.description}")
    logger.info("Successfully registered with bridge %s.", url)
    typer.echo(f"Successfully registered with bridge {url}.")


app.command("reg")(reg)
app.command("auth")(reg)


@app.command()
def unreg(ctx: typer.Context):
    """Un-register this application from the bridge."""
    app_ctx: AppContext = ctx.obj
    url = app_ctx.settings.bridge_url
    try:
        response = app_ctx.bridge.unregister_app()
    except BridgeError as e:
        logger.error("Unregistration attempt from bridge %s failed: %s", url, e)
        _fail(f"Unregistration attempt from bridge {url} failed: {e}")
    logger.debug("Response:\n%s", dump(response))

    error = bridge_error(response)
    if error:
        logger.error("Unregistration attempt from bridge %s failed: %s", url, error.description)
        _fail(f"Unregistration attempt from bridge {url} failed: {error.description}")
    logger.info("Unregistered with bridge %s.", url)
    typer.echo(f"Unregistered with bridge {url}.")


@app.command()
def current(ctx: typer.Context):
    """Show the current state of all lights, according to the bridge."""
    lights = _fetch_current(ctx.obj)
    for light in sorted(lights.values(), key=lambda light: light.index):
        typer.echo(format_light(light))


@app.command()
def previous(ctx: typer.Context):
    """Show the previous state of all lights, according to the database."""
    lights = _open_repo(ctx.obj).get_all_latest()
    for light in sorted(lights.values(), key=lambda light: light.index):
        typer.echo(format_light(light))


@app.command()
def lookup(ctx: typer.Context):
    """Print a lookup table containing light id and name, suitable for use with Splunk, etc."""
    lights = _fetch_current(ctx.obj)
    typer.echo("id,name")
    for light in sorted(lights.values(), key=lambda light: light.index):
        typer.echo(f"{light.index},{light.metadata.name}")


@app.command()
def version():
    """Show the program version."""
    typer.echo(f"Version: {__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
