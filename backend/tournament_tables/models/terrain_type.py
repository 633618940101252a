from typing import Optional

from sqlmodel import Field, SQLModel


class TerrainType(SQLModel, table=True):
    """Named table layout/theme. Repeat exposure for a player is penalised."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    description: Optional[str] = None
    sort_order: int = Field(default=0)
