from sqlalchemy import (
    Column, Integer, String, DateTime, Date,
    ForeignKey, Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from league.constants import BracketConstants

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite stores datetimes without tzinfo)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TournamentStatus(Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"

class BracketType(Enum):
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"  # Placeholder, not generated
    ROUND_ROBIN = "round_robin"                # Placeholder, not generated

class MatchStatus(Enum):
    PENDING = "pending"
    PLAYED = "played"


class Player(Base):
    __tablename__ = 'players'

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False, index=True)
    document = Column(String(60), nullable=True, unique=True)
    age = Column(Integer, nullable=True)
    category = Column(String(60), nullable=True, index=True)

    # Cache of ranking points earned across all categories
    ranking_score = Column(Integer, nullable=False, default=0)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    ranking_history = relationship(
        "RankingHistory",
        back_populates="player",
        cascade="all, delete-orphan",
        order_by="RankingHistory.id"
    )
    ranking_entries = relationship("RankingEntry", back_populates="player", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('age IS NULL OR age >= 0', name='ck_player_age_non_negative'),
    )

    def __repr__(self):
        return f"<Player(id={self.id}, name='{self.name}', ranking={self.ranking_score})>"


class RankingHistory(Base):
    """Append-only log of ranking deltas for a player"""
    __tablename__ = 'ranking_history'

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey('players.id', ondelete='CASCADE'), nullable=False, index=True)
    recorded_at = Column(DateTime, nullable=False, default=utcnow)
    points = Column(Integer, nullable=False, default=0)
    reason = Column(String(200), nullable=False, default='')

    player = relationship("Player", back_populates="ranking_history")

    def __repr__(self):
        return f"<RankingHistory(player_id={self.player_id}, points={self.points}, reason='{self.reason}')>"


class Tournament(Base):
    __tablename__ = 'tournaments'

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    category = Column(String(60), nullable=False, index=True)
    bracket_type = Column(SQLEnum(BracketType), nullable=False, default=BracketType.SINGLE_ELIMINATION)

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    status = Column(SQLEnum(TournamentStatus), nullable=False, default=TournamentStatus.CREATED, index=True)

    # Final winner record, filled when the final is decided
    winner_player_id = Column(Integer, ForeignKey('players.id'), nullable=True)
    winner_category = Column(String(60), nullable=True)
    finished_at = Column(DateTime, nullable=True)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    enrollments = relationship(
        "TournamentEnrollment",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TournamentEnrollment.position"
    )
    matches = relationship("Match", back_populates="tournament", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('name', 'category', 'start_date', name='uq_tournament_name_category_start'),
        Index('ix_tournament_category_start', 'category', 'start_date'),
        CheckConstraint(
            'end_date IS NULL OR start_date IS NULL OR end_date >= start_date',
            name='ck_tournament_dates'
        ),
    )

    @property
    def enrolled_count(self) -> int:
        return len(self.enrollments)

    @property
    def winner(self) -> Optional[dict]:
        if self.winner_player_id is None:
            return None
        return {
            'player_id': self.winner_player_id,
            'category': self.winner_category,
            'finished_at': self.finished_at,
        }

    def __repr__(self):
        return f"<Tournament(id={self.id}, name='{self.name}', category='{self.category}', status={self.status.value})>"


class TournamentEnrollment(Base):
    """Ordered, duplicate-free membership of a player in a tournament"""
    __tablename__ = 'tournament_enrollments'

    id = Column(Integer, primary_key=True)
    tournament_id = Column(Integer, ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    enrolled_at = Column(DateTime, default=utcnow)

    tournament = relationship("Tournament", back_populates="enrollments")
    player = relationship("Player")

    __table_args__ = (
        UniqueConstraint('tournament_id', 'player_id', name='uq_enrollment_tournament_player'),
    )

    def __repr__(self):
        return f"<TournamentEnrollment(tournament_id={self.tournament_id}, player_id={self.player_id}, position={self.position})>"


class Match(Base):
    __tablename__ = 'matches'

    id = Column(Integer, primary_key=True)
    tournament_id = Column(Integer, ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False, index=True)
    category = Column(String(60), nullable=False, index=True)  # Denormalized from tournament
    round_number = Column(Integer, nullable=False, index=True)
    slot = Column(Integer, nullable=False, index=True)

    # Null means unfilled (later rounds) or a bye (round 1)
    player_a_id = Column(Integer, ForeignKey('players.id'), nullable=True)
    player_b_id = Column(Integer, ForeignKey('players.id'), nullable=True)

    score_a = Column(Integer, nullable=False, default=0)
    score_b = Column(Integer, nullable=False, default=0)

    winner_id = Column(Integer, ForeignKey('players.id'), nullable=True)
    status = Column(SQLEnum(MatchStatus), nullable=False, default=MatchStatus.PENDING)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)

    tournament = relationship("Tournament", back_populates="matches")

    __table_args__ = (
        UniqueConstraint('tournament_id', 'category', 'round_number', 'slot', name='uq_match_bracket_position'),
        CheckConstraint('round_number >= 1', name='ck_match_round_positive'),
        CheckConstraint('slot >= 1', name='ck_match_slot_positive'),
        CheckConstraint('score_a >= 0 AND score_b >= 0', name='ck_match_scores_non_negative'),
    )

    @property
    def is_bye(self) -> bool:
        """Round-1 match with exactly one player"""
        return (
            self.round_number == BracketConstants.FIRST_ROUND
            and (self.player_a_id is None) != (self.player_b_id is None)
        )

    @property
    def is_complete(self) -> bool:
        """Both player slots are filled"""
        return self.player_a_id is not None and self.player_b_id is not None

    def __repr__(self):
        return (
            f"<Match(id={self.id}, tournament_id={self.tournament_id}, round={self.round_number}, "
            f"slot={self.slot}, status={self.status.value})>"
        )


class RankingEntry(Base):
    """Point total of one player in one category"""
    __tablename__ = 'ranking_entries'

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey('players.id', ondelete='CASCADE'), nullable=False, index=True)
    category = Column(String(60), nullable=False, index=True)
    points = Column(Integer, nullable=False, default=0)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    player = relationship("Player", back_populates="ranking_entries")

    __table_args__ = (
        UniqueConstraint('player_id', 'category', name='uq_ranking_player_category'),
        Index('ix_ranking_category_points', 'category', 'points'),
        CheckConstraint('points >= 0', name='ck_ranking_points_non_negative'),
    )

    def __repr__(self):
        return f"<RankingEntry(player_id={self.player_id}, category='{self.category}', points={self.points})>"
