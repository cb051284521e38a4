import importlib
import logging
from decimal import Decimal

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings

log = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL
engine = create_engine(DATABASE_URL, future=True, echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# model modules that must be imported so Base.metadata knows every table
MODEL_MODULES = [
    "app.models.category",
    "app.models.product",
    "app.models.cart_item",
    "app.models.order",
]

SAMPLE_CATEGORIES = [
    {"name": "Meninas", "color_theme": "pink"},
    {"name": "Meninos", "color_theme": "blue"},
    {"name": "Bebês", "color_theme": "neutral"},
    {"name": "Brinquedos", "color_theme": "neutral"},
]

SAMPLE_PRODUCTS = [
    {
        "name": "Vestido Princesa Rosa",
        "description": "Lindo vestido rosa com detalhes em renda",
        "price": "45.90",
        "image_url": "https://images.pexels.com/photos/8088495/pexels-photo-8088495.jpeg",
        "category": "Meninas",
        "stock_quantity": 15,
        "age_range": "3-8 anos",
    },
    {
        "name": "Camiseta Super Herói",
        "description": "Camiseta azul com estampa de super herói",
        "price": "29.90",
        "image_url": "https://images.pexels.com/photos/8419086/pexels-photo-8419086.jpeg",
        "category": "Meninos",
        "stock_quantity": 20,
        "age_range": "4-10 anos",
    },
    {
        "name": "Body Bebê Unicórnio",
        "description": "Body macio com estampa de unicórnio",
        "price": "19.90",
        "image_url": "https://images.pexels.com/photos/8088134/pexels-photo-8088134.jpeg",
        "category": "Bebês",
        "stock_quantity": 25,
        "age_range": "0-12 meses",
    },
    {
        "name": "Boneca Fashion",
        "description": "Boneca com roupinhas e acessórios",
        "price": "79.90",
        "image_url": "https://images.pexels.com/photos/8088188/pexels-photo-8088188.jpeg",
        "category": "Brinquedos",
        "stock_quantity": 10,
        "age_range": "3-10 anos",
    },
    {
        "name": "Carrinho de Controle",
        "description": "Carrinho azul com controle remoto",
        "price": "89.90",
        "image_url": "https://images.pexels.com/photos/163064/play-stone-network-networked-interactive-163064.jpeg",
        "category": "Brinquedos",
        "stock_quantity": 8,
        "age_range": "5-12 anos",
    },
    {
        "name": "Sapatinho Rosa",
        "description": "Sapatinho confortável para meninas",
        "price": "35.90",
        "image_url": "https://images.pexels.com/photos/8088495/pexels-photo-8088495.jpeg",
        "category": "Meninas",
        "stock_quantity": 12,
        "age_range": "1-5 anos",
    },
]


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # sqlite ignores ON DELETE CASCADE unless asked
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def import_models():
    for mod in MODEL_MODULES:
        importlib.import_module(mod)


def seed_catalogue(session) -> int:
    """
    Insert the sample categories and products if the catalogue is empty.
    Returns the number of products created.
    """
    from app.models.category import Category
    from app.models.product import Product

    if session.query(Product).first():
        return 0

    by_name = {}
    for ent in SAMPLE_CATEGORIES:
        c = session.query(Category).filter(Category.name == ent["name"]).first()
        if not c:
            c = Category(name=ent["name"], color_theme=ent["color_theme"])
            session.add(c)
            session.flush()
        by_name[c.name] = c

    for ent in SAMPLE_PRODUCTS:
        session.add(
            Product(
                name=ent["name"],
                description=ent["description"],
                price=Decimal(ent["price"]),
                image_url=ent["image_url"],
                category_id=by_name[ent["category"]].id,
                stock_quantity=ent["stock_quantity"],
                age_range=ent["age_range"],
            )
        )
    session.commit()
    return len(SAMPLE_PRODUCTS)


def init_db(reset: bool = False, seed: bool = False, bind=None):
    """
    Initialize DB schema.

    Behavior:
      - reset=True drops & recreates every table.
      - seed=True loads the sample catalogue when no products exist yet.
    """
    bind = bind or engine
    import_models()

    if reset:
        log.warning("Resetting database schema on %s", bind.url)
        Base.metadata.drop_all(bind=bind)

    Base.metadata.create_all(bind=bind)
    log.info("Database initialized (%d tables)", len(Base.metadata.tables))

    if seed:
        Session = sessionmaker(bind=bind, autoflush=False)
        with Session() as s:
            created = seed_catalogue(s)
        if created:
            log.info("Seeded %d sample products", created)

