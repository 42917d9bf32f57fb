"""Unit tests for the release signer and verifier."""

from __future__ import annotations

import io
from collections.abc import Callable

import httpx
import pytest

from releaseseal.bridge.crypto_bridge import KeyPair, SigningConfig
from releaseseal.core.artifact import Artifact
from releaseseal.core.digest import Digester
from releaseseal.core.secrets import SecretHandle
from releaseseal.core.signing import Signer, Verifier
from releaseseal.errors import (
    DigestMismatchError,
    IntegrityError,
    KeyNotFoundError,
    MissingArtifactError,
    NilStreamError,
    NoDigestsError,
    SignatureVerificationError,
    SigningError,
    UnsupportedDigestKindError,
)
from releaseseal.identity.signatory import Signatory
from releaseseal.identity.signee import GitHubKeyDirectory, PinnedSignee, Signee
from releaseseal.models.manifest import Manifest
from releaseseal.models.types import DigestKind, SigneeKind


class TestSigner:
    def test_sign_and_verify(self, signatory: Signatory, pinned_signee: PinnedSignee):
        signature = Signer().sign(signatory, b"manifest bytes")
        identities = Verifier().verify_signature(pinned_signee, b"manifest bytes", signature)
        assert identities == ["Test Signer (release) <signer@example.com>"]

    def test_destroyed_key(self, signatory: Signatory):
        signatory.destroy()
        with pytest.raises(SigningError, match="failed to sign data"):
            Signer().sign(signatory, b"x")

    def test_garbage_key(self):
        with pytest.raises(SigningError):
            Signer().sign(Signatory(SecretHandle(b"garbage")), b"x")

    def test_config_threaded(self, signatory: Signatory):
        with pytest.raises(SigningError, match="unsupported signing hash"):
            Signer(SigningConfig(hash="nosuchhash")).sign(signatory, b"x")


class TestVerifySignature:
    def test_resolves_github_signee(
        self, signatory: Signatory, keypair: KeyPair, github_keys_client: httpx.Client
    ):
        signee = Signee(
            "octocat",
            keypair.key_id,
            SigneeKind.GITHUB,
            directory=GitHubKeyDirectory(client=github_keys_client),
        )
        signature = Signer().sign(signatory, b"data")
        assert Verifier().verify_signature(signee, b"data", signature)

    def test_key_lookup_failure_is_wrapped(
        self, signatory: Signatory, github_keys_client: httpx.Client
    ):
        signee = Signee(
            "octocat",
            "0000000000000000",
            SigneeKind.GITHUB,
            directory=GitHubKeyDirectory(client=github_keys_client),
        )
        signature = Signer().sign(signatory, b"data")
        with pytest.raises(SignatureVerificationError, match="failed to fetch signee's public key") as info:
            Verifier().verify_signature(signee, b"data", signature)
        assert isinstance(info.value.__cause__, KeyNotFoundError)

    def test_keybase_signee_fails_verification(self, signatory: Signatory):
        signature = Signer().sign(signatory, b"data")
        with pytest.raises(SignatureVerificationError, match="not implemented"):
            Verifier().verify_signature(Signee("u", "k", SigneeKind.KEYBASE), b"data", signature)

    def test_claimed_key_id_must_match_resolved_key(self, signatory: Signatory, keypair: KeyPair):
        signee = PinnedSignee("octocat", "0000000000000000", SigneeKind.GITHUB, keypair.public_key)
        signature = Signer().sign(signatory, b"data")
        with pytest.raises(
            SignatureVerificationError, match="does not match manifest key 0000000000000000"
        ):
            Verifier().verify_signature(signee, b"data", signature)

    def test_key_id_compared_case_insensitively(self, signatory: Signatory, keypair: KeyPair):
        signee = PinnedSignee("octocat", keypair.key_id.lower(), SigneeKind.GITHUB, keypair.public_key)
        signature = Signer().sign(signatory, b"data")
        assert Verifier().verify_signature(signee, b"data", signature)

    def test_unreadable_resolved_key(self, signatory: Signatory, keypair: KeyPair):
        signee = PinnedSignee("octocat", keypair.key_id, SigneeKind.GITHUB, b"junk")
        signature = Signer().sign(signatory, b"data")
        with pytest.raises(SignatureVerificationError, match="failed to read signee's public key"):
            Verifier().verify_signature(signee, b"data", signature)

    def test_bad_signature_is_wrapped(self, signatory: Signatory, pinned_signee: PinnedSignee):
        signature = Signer().sign(signatory, b"data")
        with pytest.raises(SignatureVerificationError, match="failed to verify signature"):
            Verifier().verify_signature(pinned_signee, b"other", signature)


class TestVerifyDigests:
    def test_all_kinds_match(self, content: bytes, content_digests: dict[str, str]):
        digests = {DigestKind(k): v for k, v in content_digests.items()}
        Verifier().verify_digests(digests, io.BytesIO(content))

    def test_subset_of_kinds(self, content: bytes, content_digests: dict[str, str]):
        Verifier().verify_digests({DigestKind.MD5: content_digests["md5"]}, io.BytesIO(content))

    def test_wrong_digest(self, content: bytes):
        with pytest.raises(DigestMismatchError) as info:
            Verifier().verify_digests({DigestKind.MD5: "736db904ad222b"}, io.BytesIO(content))
        err = info.value
        assert err.kind == "md5"
        assert err.expected == "736db904ad222b"
        assert err.actual == "736db904ad222bf88ee6b8d103fceb8e"
        assert "hash mismatch" in str(err)

    def test_mismatch_names_artifact(self, content: bytes):
        with pytest.raises(DigestMismatchError, match="for artifact: p_v1.0.0.readme"):
            Verifier().verify_digests(
                {DigestKind.SHA1: "00"}, io.BytesIO(content), artifact="p_v1.0.0.readme"
            )

    def test_no_digests(self, content: bytes):
        with pytest.raises(NoDigestsError, match="no digests provided"):
            Verifier().verify_digests({}, io.BytesIO(content))

    def test_nil_reader(self):
        with pytest.raises(NilStreamError):
            Verifier().verify_digests({DigestKind.MD5: "00"}, None)

    def test_unknown_recorded_kind(self, content: bytes):
        with pytest.raises(UnsupportedDigestKindError):
            Verifier().verify_digests({"crc32": "00"}, io.BytesIO(content))

    def test_mismatch_is_integrity_error(self, content: bytes):
        with pytest.raises(IntegrityError):
            Verifier().verify_digests({DigestKind.SHA256: "00"}, io.BytesIO(content))


class TestVerifyRelease:
    @pytest.fixture
    def release(
        self,
        signatory: Signatory,
        keypair: KeyPair,
        make_artifacts: Callable[..., list[Artifact]],
    ) -> tuple[bytes, Manifest, list[Artifact]]:
        artifacts = make_artifacts()
        digester = Digester(DigestKind.SHA256, DigestKind.SHA512)
        for artifact in artifacts:
            artifact.set_digests(digester.digest(artifact.content()))
        manifest = Manifest.build(
            "myproject", "v1.0.0", Signee("octocat", keypair.key_id, SigneeKind.GITHUB), artifacts
        )
        return Signer().sign(signatory, manifest.serialize()), manifest, artifacts

    def test_valid_release(self, release, pinned_signee: PinnedSignee):
        signature, manifest, artifacts = release
        assert Verifier().verify_release(pinned_signee, signature, manifest, artifacts)

    def test_artifact_order_irrelevant(self, release, pinned_signee: PinnedSignee):
        signature, manifest, artifacts = release
        Verifier().verify_release(pinned_signee, signature, manifest, list(reversed(artifacts)))

    def test_missing_artifact(self, release, pinned_signee: PinnedSignee):
        signature, manifest, artifacts = release
        with pytest.raises(MissingArtifactError, match="myproject_v1.0.0-darwin.amd64.bin"):
            Verifier().verify_release(pinned_signee, signature, manifest, artifacts[:1])

    def test_swapped_content(
        self, release, pinned_signee: PinnedSignee, make_artifacts: Callable[..., list[Artifact]]
    ):
        signature, manifest, _ = release
        with pytest.raises(DigestMismatchError, match="myproject_v1.0.0.relnotes"):
            Verifier().verify_release(
                pinned_signee, signature, manifest, make_artifacts(b"other content")
            )

    def test_signature_checked_before_digests(
        self, release, pinned_signee: PinnedSignee, make_artifacts: Callable[..., list[Artifact]]
    ):
        _, manifest, _ = release
        with pytest.raises(SignatureVerificationError):
            Verifier().verify_release(
                pinned_signee, b"bogus", manifest, make_artifacts(b"other content")
            )

    def test_manifest_claiming_other_key_rejected(self, release, keypair: KeyPair, tmp_dir):
        signature, manifest, artifacts = release
        claimed = manifest.signee.model_copy(update={"key": "0000000000000000"})
        public = tmp_dir / "signer.pub.asc"
        public.write_bytes(keypair.public_key)
        with pytest.raises(SignatureVerificationError, match="does not match manifest key"):
            Verifier().verify_release(
                PinnedSignee.from_file(claimed, public), signature, manifest, artifacts
            )
