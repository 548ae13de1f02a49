"""
Operations Layer

This package provides business logic operations that compose database access
into validated, transactional workflows.

Architecture:
- Database layer: Models, sessions and the match result cascade
- Operations layer: Business rules for players, tournaments, brackets, ranking
- Services layer: Read-only ranked listings

Each operations module focuses on a specific domain:
- PlayerOperations: Player creation, lookup and ranking cache updates
- TournamentOperations: Tournament creation and enrollment
- BracketOperations: Bracket generation, reset and listing
- RankingOperations: The single write path for ranking totals
"""
