from sqlalchemy import Column, Integer, String
from mealcycle.database import Base, JSONDocument


class Recipe(Base):
    """Read-only here: recipes are authored and edited by the recipe service."""
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    image_url = Column(String, nullable=True)

    # Per-serving nutrition vector
    nutrition = Column(
        JSONDocument,
        nullable=True,
        comment="{ kcal, protein_g, carbs_g, fat_g, ..., iron_mg, ... }"
    )
