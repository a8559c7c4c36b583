"""Artifact packaging: fetch, verify, lay out and install the OpenCode binary."""
