from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from .database import SessionLocal, engine
from . import models
from .core import security
from .core.config import DEFAULT_TASKS, settings
from .core.logger import logger

def ensure_admin_user(db) -> bool:
    """Create the reserved admin account if missing. Returns True when created."""
    admin_user = db.query(models.User).filter(models.User.username == settings.ADMIN_USERNAME).first()
    if admin_user:
        if not admin_user.is_admin:
            admin_user.is_admin = True
        return False

    logger.info(f"Creating admin user '{settings.ADMIN_USERNAME}' ...")
    admin_user = models.User(
        username=settings.ADMIN_USERNAME,
        hashed_password=security.get_password_hash(settings.ADMIN_PASSWORD),
        phone=settings.ADMIN_PHONE,
        is_admin=True,
    )
    db.add(admin_user)
    db.flush()
    db.add(models.Wallet(user_id=admin_user.id))
    return True

def init_db(seed_tasks: bool = True):
    db = SessionLocal()
    try:
        # 1. Reserved admin account
        ensure_admin_user(db)

        # 2. Starter tasks on an empty task list
        if seed_tasks and db.query(models.Task).count() == 0:
            logger.info("Creating default tasks ...")
            today = date.today().isoformat()
            db.add_all([models.Task(upload_date=today, **t) for t in DEFAULT_TASKS])

        db.commit()
        logger.info("Initialization completed")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Init failed: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    models.Base.metadata.create_all(bind=engine)
    init_db()
