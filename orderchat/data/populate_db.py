from .database import SessionLocal, create_tables
from .menu_store import DEFAULT_CATALOGS, CatalogStore
from .models import Product
from ..utils.logger import get_logger

logger = get_logger(__name__)

def populate_products(db=None, catalogs=None):
    """Copy the built-in catalogs into the products table for projects that have none."""
    catalogs = DEFAULT_CATALOGS if catalogs is None else catalogs
    own_session = db is None
    if own_session:
        # Ensure tables are created
        create_tables()
        db = SessionLocal()
    store = CatalogStore()
    seeded = 0
    try:
        for project_id, rows in catalogs.items():
            if db.query(Product).filter(Product.project_id == project_id).count() > 0:
                logger.info("Project %s already has products. Skipping population.", project_id)
                continue
            for row in rows:
                store.upsert_product(db, project_id, row)
                seeded += 1
        logger.info("Seeded %d products.", seeded)
        return seeded
    except Exception:
        db.rollback()
        logger.exception("Error populating products table")
        raise
    finally:
        if own_session:
            db.close()

if __name__ == "__main__":
    populate_products()
