from taskboard.models.user import User, Theme
from taskboard.models.session import UserSession
from taskboard.models.board import Board, BoardBackground, BoardIcon, BoardRole, board_collaborators
from taskboard.models.column import Column
from taskboard.models.card import Card, CardCollaborator, CardPriority
from taskboard.models.invitation import Invitation, InvitationStatus
