"""``releaseseal release NAME`` — digest, sign and store a release.

Artifacts are given as ``PATH:KIND`` (``--artifact``) and binaries as
``PATH:OS:ARCH`` (``--binary``).  The version is taken from ``--version``
or derived from the git history of ``--branch``.  The signed bundle is
written to ``--output``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from releaseseal.backends.filesystem import FileSystemSaver
from releaseseal.config import config
from releaseseal.core.artifact import Artifact, new_artifact, new_binary_artifact
from releaseseal.core.digest import Digester
from releaseseal.core.releaser import Releaser
from releaseseal.core.secrets import SecretHandle
from releaseseal.core.signing import Signer
from releaseseal.core.version import GitHistoryVersion, ProvidedVersion, Versioner
from releaseseal.errors import ReleaseError
from releaseseal.identity.signatory import Signatory
from releaseseal.identity.signee import Signee
from releaseseal.models.types import Architecture, ArtifactKind, DigestKind, OperatingSystem, SigneeKind

console = Console()


def _parse_artifact(spec: str, project: str) -> Artifact:
    path, sep, kind = spec.rpartition(":")
    if not sep or not path:
        raise typer.BadParameter(f"expected PATH:KIND, got: {spec}")
    try:
        artifact_kind = ArtifactKind(kind)
    except ValueError:
        raise typer.BadParameter(f"unknown artifact kind: {kind}")
    if artifact_kind is ArtifactKind.BINARY:
        raise typer.BadParameter("binaries are passed with --binary PATH:OS:ARCH")
    try:
        with open(path, "rb") as stream:
            return new_artifact(stream, project, artifact_kind)
    except (OSError, ReleaseError) as exc:
        raise typer.BadParameter(f"cannot read artifact: {exc}")


def _parse_binary(spec: str, project: str) -> Artifact:
    parts = spec.rsplit(":", 2)
    if len(parts) != 3 or not parts[0]:
        raise typer.BadParameter(f"expected PATH:OS:ARCH, got: {spec}")
    path, os_name, arch_name = parts
    try:
        os_, arch = OperatingSystem(os_name), Architecture(arch_name)
    except ValueError:
        raise typer.BadParameter(f"unknown platform: {os_name}/{arch_name}")
    try:
        with open(path, "rb") as stream:
            return new_binary_artifact(stream, project, os_, arch)
    except (OSError, ReleaseError) as exc:
        raise typer.BadParameter(f"cannot read binary: {exc}")


def release_cmd(
    name: str = typer.Argument(..., help="Project name."),
    artifact_specs: list[str] = typer.Option(
        None, "--artifact", "-a", help="Artifact as PATH:KIND (repeatable)."
    ),
    binary_specs: list[str] = typer.Option(
        None, "--binary", "-b", help="Binary as PATH:OS:ARCH (repeatable)."
    ),
    version: str = typer.Option(
        None, "--version", help="Release version; derived from git history when omitted."
    ),
    repository: Path = typer.Option(
        Path("."), "--repository", "-r", help="Git working tree to derive the version from."
    ),
    branch: str = typer.Option(None, "--branch", help="Branch to derive the version from."),
    major: int = typer.Option(None, "--major", help="Major version for derived versions."),
    user: str = typer.Option(..., "--user", "-u", help="Signee account name."),
    key_id: str = typer.Option(..., "--key-id", "-k", help="Signee key id."),
    signee_type: SigneeKind = typer.Option(
        SigneeKind.GITHUB, "--signee-type", help="Where the signee's key is published."
    ),
    private_key: Path = typer.Option(
        ..., "--private-key", "-p", help="Sealed private key written by keygen."
    ),
    digest_kinds: list[DigestKind] = typer.Option(
        None, "--digest", "-d", help="Digest kind to record (repeatable)."
    ),
    output: Path = typer.Option(None, "--output", "-o", help="Bundle directory."),
    passphrase: str = typer.Option(
        ...,
        prompt=True,
        hide_input=True,
        envvar="RELEASESEAL_PASSPHRASE",
        help="Passphrase of the private key.",
    ),
) -> None:
    """Create, sign and save a release bundle."""
    artifacts = [_parse_artifact(spec, name) for spec in artifact_specs or []]
    artifacts += [_parse_binary(spec, name) for spec in binary_specs or []]
    if not artifacts:
        raise typer.BadParameter("at least one --artifact or --binary is required")

    versioner: Versioner
    if version:
        try:
            versioner = ProvidedVersion.parse(version)
        except ReleaseError as exc:
            raise typer.BadParameter(str(exc))
    else:
        versioner = GitHistoryVersion(
            repository,
            branch or config.branch,
            config.major if major is None else major,
        )

    target = output or config.storage_dir
    releaser = Releaser(
        name,
        versioner=versioner,
        signer=Signer(config.signing_config),
        savers=[FileSystemSaver(target)],
    )
    releaser.add(Digester(*(digest_kinds or config.digest_kinds)), *artifacts)

    try:
        manifest, digested = releaser.create(Signee(user, key_id, signee_type))
        with SecretHandle(bytearray(passphrase.encode("utf-8"))) as secret:
            signatory = Signatory.from_sealed_file(private_key, secret, config.vault_config)
        with signatory:
            releaser.finalize(signatory, manifest, digested)
    except (ReleaseError, OSError) as exc:
        console.print(f"[bold red]Release failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title=f"{manifest.name} {manifest.version}")
    table.add_column("Artifact", style="cyan")
    table.add_column("Type")
    table.add_column("Digests", style="dim")
    for record in manifest.artifacts:
        table.add_row(
            record.name,
            record.type.value,
            "\n".join(f"{kind.value}:{value}" for kind, value in sorted(record.digests.items())),
        )
    console.print(table)
    console.print(
        Panel(
            "\n".join([
                "[bold green]Release complete![/bold green]",
                "",
                f"[bold]Manifest:[/bold]  {manifest.normalised_name}",
                f"[bold]Signature:[/bold] {manifest.signature_name}",
                f"[bold]Bundle:[/bold]    {target}",
            ]),
            title="[bold]Release[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
