from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()


class CartOrm(Base):
    __tablename__ = "carts"
    id = Column(String(64), primary_key=True)
    full_price = Column(Numeric(12, 2), nullable=False, default=0)
    items = relationship(
        "CartItemOrm",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemOrm.position",
    )


class CartItemOrm(Base):
    __tablename__ = "cart_items"
    cart_id = Column(String(64), ForeignKey("carts.id", ondelete="CASCADE"), primary_key=True)
    product_id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)
    img_url = Column(String(1024), nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)

    cart = relationship("CartOrm", back_populates="items")


def make_engine(database_url: str) -> Engine:
    # sqlite connections are handed across threadpool workers
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        future=True,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)
