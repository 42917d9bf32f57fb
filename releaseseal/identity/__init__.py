"""Release identities: who signs (signatory) and who is checked (signee)."""

from releaseseal.identity.signatory import Signatory
from releaseseal.identity.signee import GitHubKeyDirectory, PinnedSignee, Signee

__all__ = ["GitHubKeyDirectory", "PinnedSignee", "Signatory", "Signee"]
