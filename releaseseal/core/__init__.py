"""Release core: artifacts, digests, versions, signing and orchestration."""
