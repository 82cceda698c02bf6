from sqlalchemy.orm import declarative_base
from sqlalchemy import *


Base = declarative_base()

# SQLite only auto-increments INTEGER primary keys
_BigId = BigInteger().with_variant(Integer(), "sqlite")


class Team(Base):
    __tablename__ = 'teams'

    id = Column(_BigId, primary_key=True, autoincrement=True)
    team_name = Column(String(100), unique=True, nullable=False, index=True)


class User(Base):
    __tablename__ = 'users'

    user_id = Column(String(50), primary_key=True)
    username = Column(String(100), nullable=False)
    team_id = Column(_BigId, ForeignKey('teams.id'), nullable=False, index=True)
    is_active = Column(Boolean(), nullable=False, default=True)


class PullRequest(Base):
    __tablename__ = 'pull_requests'

    pull_request_id = Column(String(100), primary_key=True)
    pull_request_name = Column(String(255), nullable=False)
    author_id = Column(String(50), ForeignKey('users.user_id'), nullable=False, index=True)
    status = Column(String(10), nullable=False, default='OPEN', index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    merged_at = Column(DateTime(timezone=True), nullable=True)


class Reviewers(Base):
    __tablename__ = 'pull_request_reviewers'

    pull_request_id = Column(String(100), ForeignKey('pull_requests.pull_request_id'), nullable=False, index=True)
    reviewer_id = Column(String(50), ForeignKey('users.user_id'), nullable=False, index=True)

    __table_args__ = (
        PrimaryKeyConstraint('pull_request_id', 'reviewer_id'),
    )
