# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""PoI - Proof-of-Intelligence credentials for AI agents.

Registered agents prove they can still reason by solving short
deterministic puzzles within a deadline. Passing earns a time-limited
credential that must be renewed by further puzzles, carries a reputation
score, and decays when neglected.

Architecture:
  identity
    -> ChallengeGenerator (seed from clock randomness, one of four puzzle families)
    -> off-chain solver
    -> AnswerVerifier (exact keccak-256 match)
    -> credential lifecycle (issue / renew / grace / decay / revoke)
    -> events for status tools and auto-maintenance loops

Entry point: ``poi.credentials.ProofOfIntelligence``
Configuration: ``POI_*`` environment variables (see ``poi.core.config``)
"""

__version__ = "1.0.0"
