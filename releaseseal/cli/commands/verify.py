"""``releaseseal verify DIR`` — check a stored release bundle.

Verifies the manifest signature against the signee's public key (fetched
from the signee's identity source, or read from ``--public-key``) and then
every artifact digest.  With ``--github-repo`` a verified bundle is
published as a GitHub release.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from releaseseal.backends.filesystem import FileSystemLoader
from releaseseal.backends.github import GitHubDeployer
from releaseseal.config import config
from releaseseal.core.releaser import LoadFinaliser
from releaseseal.core.signing import Verifier
from releaseseal.errors import IntegrityError, ReleaseError
from releaseseal.identity.signee import GitHubKeyDirectory, PinnedSignee, Signee

console = Console()


def verify_cmd(
    directory: Path = typer.Argument(..., help="Bundle directory written by release."),
    public_key: Path = typer.Option(
        None,
        "--public-key",
        "-k",
        help="Verify against this key file instead of the signee's published key.",
    ),
    github_repo: str = typer.Option(
        None, "--github-repo", help="OWNER/REPO to publish the verified release to."
    ),
    github_token: str = typer.Option(
        None, "--github-token", envvar="GITHUB_TOKEN", help="Token for --github-repo."
    ),
) -> None:
    """Verify a release bundle's signature and digests."""
    deployers = []
    if github_repo:
        owner, _, repository = github_repo.partition("/")
        if not owner or not repository:
            raise typer.BadParameter(f"expected OWNER/REPO, got: {github_repo}")
        if not github_token:
            raise typer.BadParameter("--github-token is required with --github-repo")
        deployers.append(
            GitHubDeployer(
                owner,
                repository,
                github_token,
                endpoint=config.github_api_endpoint,
            )
        )

    verifier = Verifier(config.signing_config)
    try:
        if deployers:
            finaliser = LoadFinaliser(FileSystemLoader(directory), *deployers, verifier=verifier)
            signature, manifest, artifacts = finaliser.load()
        else:
            signature, manifest, artifacts = FileSystemLoader(directory).load()

        if public_key is not None:
            signee: Signee = PinnedSignee.from_file(manifest.signee, public_key)
        else:
            signee = Signee.from_manifest(
                manifest.signee,
                directory=GitHubKeyDirectory(
                    config.github_api_endpoint, timeout=config.lookup_timeout_seconds
                ),
            )

        if deployers:
            identities = finaliser.verify(signee, signature, manifest, artifacts)
            finaliser.deploy(signature, manifest, artifacts)
        else:
            identities = verifier.verify_release(signee, signature, manifest, artifacts)
    except IntegrityError as exc:
        console.print(f"[bold red]Verification failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except (ReleaseError, OSError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2)

    table = Table(title=f"{manifest.name} {manifest.version}")
    table.add_column("Artifact", style="cyan")
    table.add_column("Digests", justify="right")
    table.add_column("Status", justify="center")
    for record in manifest.artifacts:
        table.add_row(record.name, str(len(record.digests)), "[green]OK[/green]")
    console.print(table)

    console.print(f"[bold green]Signed by[/bold green] {manifest.signee.user} ({manifest.signee.key})")
    for identity in identities:
        console.print(f"  {identity}", markup=False)
    if deployers:
        console.print(f"[bold green]Published to[/bold green] github.com/{github_repo}")
