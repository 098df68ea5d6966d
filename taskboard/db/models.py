# Import all models here for Alembic to discover them
from taskboard.db.base import Base
from taskboard.models.user import User
from taskboard.models.session import UserSession
from taskboard.models.board import Board, board_collaborators
from taskboard.models.column import Column
from taskboard.models.card import Card, CardCollaborator
from taskboard.models.invitation import Invitation
