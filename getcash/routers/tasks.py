from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db, get_redis
from .. import models
from ..core import deps
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError
from ..core.logger import logger
from ..schemas import TaskCreate
from ..services import completion
from ..services.wallet_lock import wallet_lock

router = APIRouter(prefix="/tasks", tags=["Tasks"])

def task_to_dict(t: models.Task) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "price": t.price,
        "imageData": t.image_data,
        "category": t.category,
        "status": t.status,
        "uploadDate": t.upload_date,
        "createdAt": t.created_at.isoformat() if t.created_at else None,
    }

# 1. Task list
@router.get("")
def list_tasks(db: Session = Depends(get_db)):
    tasks = db.query(models.Task).order_by(models.Task.created_at.desc(), models.Task.id.desc()).all()
    return [task_to_dict(t) for t in tasks]

@router.get("/date/{upload_date}")
def list_tasks_by_date(upload_date: str, db: Session = Depends(get_db)):
    tasks = db.query(models.Task).filter(models.Task.upload_date == upload_date)\
        .order_by(models.Task.created_at.desc(), models.Task.id.desc()).all()
    return [task_to_dict(t) for t in tasks]

# 2. Completion records (registered before /{task_id} routes)
@router.get("/completed")
def completed_tasks(db: Session = Depends(get_db), user=Depends(deps.get_current_user)):
    return completion.list_completed(db, user.id)

@router.post("/{task_id}/complete")
async def complete_task(task_id: int, db: Session = Depends(get_db), redis_conn=Depends(get_redis),
                        user=Depends(deps.get_current_user)):
    async with wallet_lock(redis_conn, user.id):
        result = completion.complete_task(db, user.id, task_id)
    return result.to_dict()

@router.delete("/{task_id}/complete")
def remove_completed_task(task_id: int, db: Session = Depends(get_db), user=Depends(deps.get_current_user)):
    removed = completion.remove_completion(db, user.id, task_id)
    return {"message": "Completion removed" if removed else "Task was not completed", "removed": removed}

# 3. Admin task management
@router.post("")
def create_task(body: TaskCreate, db: Session = Depends(get_db), admin=Depends(deps.get_current_admin)):
    if not body.title or body.price is None:
        raise ValidationError("Title and price are required")
    if body.price < 0:
        raise ValidationError("Price must not be negative")

    task = models.Task(
        title=body.title,
        price=body.price,
        image_data=body.image_data or "",
        category=body.category or "general",
        upload_date=date.today().isoformat(),
    )
    try:
        db.add(task)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Create task failed: {e}")
        raise PersistenceError("Failed to create task")

    logger.info(f"Admin {admin.id} created task {task.id}: {task.title}")
    return {"message": "Task created successfully", "task": task_to_dict(task)}

@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db), admin=Depends(deps.get_current_admin)):
    task = db.query(models.Task).filter(models.Task.id == task_id).first()
    if not task:
        raise NotFoundError("Task not found")
    try:
        db.query(models.CompletedTask).filter(models.CompletedTask.task_id == task_id).delete(synchronize_session=False)
        db.query(models.TaskReward).filter(models.TaskReward.task_id == task_id).delete(synchronize_session=False)
        db.delete(task)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Delete task {task_id} failed: {e}")
        raise PersistenceError("Failed to delete task")

    logger.info(f"Admin {admin.id} deleted task {task_id}")
    return {"message": "Task deleted successfully", "deleted": True, "taskId": task_id}

@router.delete("")
def delete_all_tasks(db: Session = Depends(get_db), admin=Depends(deps.get_current_admin)):
    try:
        db.query(models.CompletedTask).delete(synchronize_session=False)
        db.query(models.TaskReward).delete(synchronize_session=False)
        count = db.query(models.Task).delete(synchronize_session=False)
        db.add(models.AuditLog(operator_id=admin.id, action="delete_all_tasks", detail=f"Deleted {count} tasks"))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Delete all tasks failed: {e}")
        raise PersistenceError("Failed to delete tasks")

    logger.info(f"Admin {admin.id} deleted all tasks ({count})")
    return {"message": "All tasks deleted successfully", "deleted": count}
