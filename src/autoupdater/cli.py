import logging
import os

import click
from rich.logging import RichHandler

from .core import AutoUpdater, AutoUpdateError
from .services.config_loader import ConfigLoader

LOG_FORMAT = "%(asctime)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _flag_override(value):
    if value is None:
        return None
    return "true" if value else "false"


def _configure_file_logging(logger: logging.Logger, log_file: str, verbose: bool):
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(file_handler)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Extra config file applied after /etc/auto-update/config and ./config/auto-update.conf.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Simulate updates without changing the system (no root required).",
)
@click.option(
    "--dist-upgrade",
    is_flag=True,
    default=None,
    help="Use apt-get dist-upgrade instead of upgrade.",
)
@click.option("--log-dir", required=False, type=click.Path(), help="Directory for last-run.log")
@click.option("--lock-file", required=False, type=click.Path(), help="Path of the run lock file")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
def main(config, dry_run, dist_upgrade, log_dir, lock_file, verbose):
    """Apply pending apt updates and report the outcome via Signal."""
    logger = logging.getLogger("autoupdater")

    overrides = {
        "DRY_RUN": _flag_override(dry_run),
        "DIST_UPGRADE": _flag_override(dist_upgrade),
        "LOG_DIR": log_dir,
        "LOCK_FILE": lock_file,
    }

    try:
        settings = ConfigLoader(logger=logger).load(config, overrides=overrides)
    except AutoUpdateError as exc:
        raise click.ClickException(str(exc)) from exc

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    try:
        os.makedirs(settings.log_dir, exist_ok=True)
        _configure_file_logging(logger, settings.log_file, verbose)
    except OSError as exc:
        raise click.ClickException(f"Could not open log file {settings.log_file}: {exc}") from exc

    raise SystemExit(AutoUpdater(settings).run())


if __name__ == "__main__":
    main()
