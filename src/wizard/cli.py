from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from typing import Optional

import click

from common.backend import EncryptionBackendClient
from common.log import configure_logging
from state.models import FormFields

from .app import Wizard
from .config import ENV_BASE_URL, WizardConfig


def _fail(wiz: Wizard, fallback: str) -> click.ClickException:
    view = wiz.ctx.view
    msg = view.alerts[-1] if view.alerts else (view.inline_error or fallback)
    return click.ClickException(msg)


async def _run(config: WizardConfig, archive: Path, form: FormFields, *, ask: bool) -> Path:
    async with EncryptionBackendClient(config.base_url) as api:
        wiz = Wizard.from_config(config, api)

        # Step 1: upload
        upload = await wiz.select_file(archive)
        if upload is None:
            raise _fail(wiz, "upload failed")
        click.echo(f"Uploaded {upload.filename} ({upload.size})")
        wiz.next()

        # Step 2: parameters
        wiz.ctx.form = form
        if not wiz.next():
            raise _fail(wiz, "invalid parameters")

        # Step 3: confirmation
        c = wiz.ctx.view.confirmation
        if c is None:
            raise _fail(wiz, "confirmation unavailable")
        click.echo(f"File:         {c.filename}")
        click.echo(f"Packages:     {c.packages}")
        click.echo(f"Mode:         {c.mode}")
        click.echo(f"Exclude:      {c.exclude}")
        click.echo(f"Library jars: {c.libjars}")
        if ask and not click.confirm("Start encryption?", default=True):
            raise click.Abort()
        result = await wiz.start_encryption()
        if result is None:
            raise _fail(wiz, "encryption failed")

        # Step 4: download
        click.echo(f"Encrypted {result.encrypted_filename} ({result.size})")
        saved = await wiz.download()
        if saved is None:
            raise _fail(wiz, "download failed")
        return saved


@click.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--packages", "-p", required=True, help="Packages to encrypt, comma separated")
@click.option("--password", default="", help="Encryption password")
@click.option("--nopwd", is_flag=True, help="No-password mode")
@click.option("--exclude", default="", help="Classes to leave unencrypted, comma separated")
@click.option("--libjars", is_flag=True, help="Also encrypt bundled library jars")
@click.option("--base-url", envvar=ENV_BASE_URL, help="Backend base URL")
@click.option("--out-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Where to save the result")
@click.option("--locale", default=None, help="Message language (en, zh)")
@click.option("--yes", "-y", is_flag=True, help="Do not ask before encrypting")
def cli(
    archive: Path,
    packages: str,
    password: str,
    nopwd: bool,
    exclude: str,
    libjars: bool,
    base_url: Optional[str],
    out_dir: Optional[Path],
    locale: Optional[str],
    yes: bool,
) -> None:
    """Upload ARCHIVE, encrypt it on the backend and download the result."""
    try:
        config = WizardConfig.from_env(base_url=base_url)
    except RuntimeError as e:
        raise click.UsageError(str(e)) from e
    if out_dir is not None:
        config = dataclasses.replace(config, download_dir=str(out_dir))
    if locale:
        config = dataclasses.replace(config, locale=locale)
    configure_logging(config.log_level, json=config.log_json)

    form = FormFields(packages=packages, password=password, exclude=exclude, libjars=libjars, nopwd=nopwd)
    saved = asyncio.run(_run(config, archive, form, ask=not yes))
    click.echo(f"Saved to {saved}")


if __name__ == "__main__":
    cli()
