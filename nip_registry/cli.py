"""
CLI interface dla NIP Registry.

Commands:
- nip-registry lookup - dane firmy po NIP
- nip-registry validate - walidacja NIP (bez wyszukiwania)
- nip-registry providers - stan dostawców
- nip-registry cache-clear - usunięcie wpisu cache
"""

import asyncio
import json
import logging
import sys

import click

from . import __version__
from .config import get_settings
from .core import build_lookup_service
from .exceptions import NIPLookupError
from .validation import format_nip, validate_nip

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="nip-registry")
def cli():
    """
    NIP Registry - dane firmy na podstawie NIP.

    Przyklady uzycia:

    \b
    nip-registry lookup 526-025-02-74
    nip-registry validate "526 025 02 74"
    nip-registry providers
    """
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


@cli.command()
@click.argument("nip")
@click.option("--skip-cache", is_flag=True, help="Pomin odczyt z cache")
@click.option("--no-manual", is_flag=True, help="Bez wyniku do recznego uzupelnienia")
def lookup(nip: str, skip_cache: bool, no_manual: bool):
    """
    Wyszukaj dane firmy po NIP.

    Wynik wypisywany jest jako JSON (camelCase).
    """

    async def run():
        async with build_lookup_service() as service:
            return await service.lookup(nip, skip_cache=skip_cache, allow_manual=not no_manual)

    try:
        result = asyncio.run(run())
    except NIPLookupError as e:
        click.echo(json.dumps({"error": e.code, "message": str(e)}, ensure_ascii=False))
        sys.exit(1)

    click.echo(json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False))
    if result.requires_manual_entry:
        click.secho("[WARN] Brak danych w rejestrach - uzupelnij recznie", fg="yellow", err=True)


@cli.command()
@click.argument("nip")
def validate(nip: str):
    """Sprawdz format i sume kontrolna NIP."""
    result = validate_nip(nip)
    if not result.valid:
        click.secho(f"[FAIL] {result.reason}", fg="red")
        sys.exit(1)

    click.secho(f"[OK] {format_nip(result.normalized)}", fg="green")


@cli.command()
def providers():
    """Stan dostawcow danych (priorytet, dostepnosc)."""

    async def run():
        async with build_lookup_service() as service:
            return await service.get_provider_status()

    for status in asyncio.run(run()):
        flag = "[OK]" if status.available else "[--]"
        click.echo(f"{flag} {status.priority:>3}  {status.name}")


@cli.command("cache-clear")
@click.argument("nip")
def cache_clear(nip: str):
    """
    Usun wpis cache dla NIP.

    Dziala tylko dla trwalego cache (CACHE_BACKEND=sqlite); cache w pamieci
    nie przezywa pojedynczego wywolania CLI.
    """
    if get_settings().cache_backend != "sqlite":
        click.secho(
            "[WARN] CACHE_BACKEND=memory - cache nie jest wspoldzielony miedzy wywolaniami CLI",
            fg="yellow",
            err=True,
        )

    async def run():
        async with build_lookup_service() as service:
            await service.clear_cache(nip)

    asyncio.run(run())
    click.secho(f"[OK] Cache wyczyszczony dla {nip}", fg="green")


if __name__ == "__main__":
    cli()
