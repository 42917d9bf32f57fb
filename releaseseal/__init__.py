"""releaseseal: verifiable, versioned release bundles.

  - Multi-digest engine (md5, sha1, sha256, sha512) over a single read
  - Canonical JSON manifest of artifacts, digests and signee
  - OpenPGP detached signatures via PGPy, keys sealed at rest with scrypt
  - Signee public keys resolved from GitHub's gpg_keys API (httpx)
  - Versions derived from git history: v{major}.{merges}.{commits}
  - Fail-fast save/deploy fan-out (filesystem bundles, GitHub releases)
"""

__version__ = "0.1.0"
__description__ = "Release integrity pipeline: digest, manifest, sign, verify"

from releaseseal.core.releaser import LoadFinaliser, Releaser
from releaseseal.cli.app import app as cli

__all__ = ["LoadFinaliser", "Releaser", "cli", "__version__"]
