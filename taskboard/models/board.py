from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
import enum

from taskboard.db.base import Base


class BoardBackground(str, enum.Enum):
    BLOCK = "block"
    ABSTRACT_SPHERES = "abstractSpheres"
    BALLOON_FESTIVAL = "balloonFestival"
    CHERRY_BLOSSOM_TREE = "cherryBlossomTree"
    CLOUDY_SKY = "cloudySky"
    CRESCENT_MOON = "crescentMoon"
    DESERT_ARCH = "desertArch"
    HOT_AIR_BALLOON = "hotAirBalloon"
    MILKY_WAY_CAMP = "milkyWayCamp"
    MOON_ECLIPSE = "moonEclipse"
    PALM_LEAVES = "palmLeaves"
    PINK_FLOWERS = "pinkFlowers"
    ROCKY_COAST = "rockyCoast"
    SAILBOAT = "sailboat"
    TURQUOISE_BAY = "turquoiseBay"
    STARRY_MOUNTAINS = "starryMountains"


class BoardIcon(str, enum.Enum):
    LOADING = "loadingIcon"
    COLORS = "colorsIcon"
    CONTAINER = "containerIcon"
    HEXAGON = "hexagonIcon"
    LIGHTNING = "lightningIcon"
    PROJECT = "projectIcon"
    PUZZLE_PIECE = "puzzlePieceIcon"
    STAR = "starIcon"


# Derived access level of a user on a board, never stored
class BoardRole(enum.Enum):
    OWNER = "owner"
    COLLABORATOR = "collaborator"


# Many-to-many link between boards and the users they are shared with
board_collaborators = Table(
    "board_collaborators",
    Base.metadata,
    Column("board_id", Integer, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Board(Base):
    """Top-level task container owned by a single user"""

    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    background = Column(String(32), nullable=True)
    icon = Column(String(32), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_id])

    # Weak references: removing a user only removes the link row
    collaborators = relationship("User", secondary=board_collaborators, order_by="User.id")

    # Insertion order is the display order
    columns = relationship(
        "Column",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="Column.id",
    )
