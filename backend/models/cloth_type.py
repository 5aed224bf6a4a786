from db.database import Base
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class ClothType(Base):
    __tablename__ = "cloth_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Join rows are written only through services.relationship_sync;
    # `subcategories` is the read side.
    subcategory_links = relationship(
        "ClothTypeSubcategory",
        back_populates="cloth_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    subcategories = relationship(
        "Subcategory",
        secondary="cloth_type_subcategory",
        viewonly=True,
        order_by="Subcategory.id",
    )

    def __repr__(self):
        return f"<ClothType(id={self.id}, code='{self.code}', name='{self.name}')>"


class ClothTypeSubcategory(Base):
    __tablename__ = "cloth_type_subcategory"

    id = Column(Integer, primary_key=True, index=True)
    cloth_type_id = Column(
        Integer,
        ForeignKey("cloth_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subcategory_id = Column(
        Integer,
        ForeignKey("subcategories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "cloth_type_id", "subcategory_id", name="uq_cloth_type_subcategory"
        ),
    )

    cloth_type = relationship("ClothType", back_populates="subcategory_links")
    subcategory = relationship("Subcategory")

    def __repr__(self):
        return (
            f"<ClothTypeSubcategory(cloth_type_id={self.cloth_type_id}, "
            f"subcategory_id={self.subcategory_id})>"
        )
