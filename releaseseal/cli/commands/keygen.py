"""``releaseseal keygen`` — create a signing identity.

Writes two files next to ``--output``:

* ``{output}.pub.asc`` — the armored public key, safe to publish;
* ``{output}.key`` — the armored private key, sealed with a passphrase.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from releaseseal.bridge import vault
from releaseseal.bridge.crypto_bridge import generate_keypair
from releaseseal.config import config
from releaseseal.core.secrets import SecretHandle
from releaseseal.errors import ReleaseError

console = Console()

PUBLIC_KEY_SUFFIX = ".pub.asc"
PRIVATE_KEY_SUFFIX = ".key"


def keygen_cmd(
    name: str = typer.Option(..., "--name", "-n", help="Identity name."),
    email: str = typer.Option("", "--email", "-e", help="Identity email."),
    comment: str = typer.Option("", "--comment", help="Identity comment."),
    output: Path = typer.Option(
        Path("releaseseal"),
        "--output",
        "-o",
        help="Path prefix for the key files.",
    ),
    passphrase: str = typer.Option(
        ...,
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        envvar="RELEASESEAL_PASSPHRASE",
        help="Passphrase sealing the private key.",
    ),
) -> None:
    """Generate an OpenPGP signing key and seal the private half."""
    public_path = output.with_name(output.name + PUBLIC_KEY_SUFFIX)
    private_path = output.with_name(output.name + PRIVATE_KEY_SUFFIX)

    keypair = generate_keypair(name, comment, email, config.signing_config)
    try:
        with SecretHandle(bytearray(passphrase.encode("utf-8"))) as secret:
            sealed = vault.seal(secret, keypair.private_key, config.vault_config)
    except ReleaseError as exc:
        console.print(f"[bold red]Key generation failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    finally:
        keypair.private_key.destroy()

    try:
        public_path.parent.mkdir(parents=True, exist_ok=True)
        public_path.write_bytes(keypair.public_key)
        private_path.write_bytes(sealed)
    except OSError as exc:
        console.print(f"[bold red]Failed to write key files:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Signing key created[/bold green]",
                "",
                f"[bold]Key ID:[/bold]      {keypair.key_id}",
                f"[bold]Fingerprint:[/bold] {keypair.fingerprint}",
                f"[bold]Public key:[/bold]  {public_path}",
                f"[bold]Private key:[/bold] {private_path}",
                "",
                "[dim]Publish the public key; keep the private key and its passphrase safe.[/dim]",
            ]),
            title="[bold]releaseseal[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    # Plain key id for scripting
    console.print(keypair.key_id, markup=False)
