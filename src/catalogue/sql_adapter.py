"""SQL-backed catalogue (SQLAlchemy Core).

Stock decrements are issued as a single conditional UPDATE:

    UPDATE products SET stock = stock - :qty
    WHERE id = :id AND stock >= :qty

The statement succeeds for exactly one row or for none; the database's row
locking decides races between concurrent orders.
"""

from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine

from catalogue.port import Catalog, CatalogEntry
from shared.logging import get_logger

logger = get_logger(__name__)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("stock", Integer, nullable=False, default=0),
)


class SqlCatalog(Catalog):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_uri(cls, database_uri: str) -> "SqlCatalog":
        catalog = cls(create_engine(database_uri))
        catalog.create_schema()
        return catalog

    def create_schema(self) -> None:
        metadata.create_all(self._engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    def add_product(self, product_id: str, title: str, price, stock: int) -> None:
        if stock < 0:
            raise ValueError("Stock cannot be negative")
        with self._engine.begin() as conn:
            conn.execute(delete(products).where(products.c.id == str(product_id)))
            conn.execute(
                insert(products).values(
                    id=str(product_id),
                    title=title,
                    price=Decimal(str(price)),
                    stock=int(stock),
                )
            )

    def stock_of(self, product_id: str) -> int | None:
        with self._engine.connect() as conn:
            return conn.execute(select(products.c.stock).where(products.c.id == str(product_id))).scalar_one_or_none()

    def get_many(self, product_ids: list[str]) -> dict[str, CatalogEntry]:
        ids = list(dict.fromkeys(str(p) for p in product_ids))
        if not ids:
            return {}
        with self._engine.connect() as conn:
            rows = conn.execute(select(products).where(products.c.id.in_(ids))).all()
        return {
            row.id: CatalogEntry(
                product_id=row.id,
                title=row.title,
                price=Decimal(str(row.price)),
                stock=row.stock,
            )
            for row in rows
        }

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        statement = (
            update(products)
            .where(products.c.id == str(product_id), products.c.stock >= quantity)
            .values(stock=products.c.stock - quantity)
        )
        with self._engine.begin() as conn:
            result = conn.execute(statement)
        return result.rowcount == 1

    def increment(self, product_id: str, quantity: int) -> bool:
        statement = (
            update(products).where(products.c.id == str(product_id)).values(stock=products.c.stock + quantity)
        )
        with self._engine.begin() as conn:
            result = conn.execute(statement)
        if result.rowcount != 1:
            logger.warning("Stock increment matched no product", product_id=str(product_id), quantity=quantity)
        return result.rowcount == 1
