from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db, get_redis
from ..core import deps
from ..schemas import UpgradeJobRequest
from ..services import wallet as wallet_service
from ..services.tariff import tariff_table
from ..services.wallet_lock import wallet_lock

router = APIRouter(tags=["User"])

@router.get("/user/data")
def user_data(db: Session = Depends(get_db), user=Depends(deps.get_current_user)):
    wallet = wallet_service.get_or_create_wallet(db, user.id)
    data = wallet_service.wallet_state(wallet)
    data.update({"username": user.username, "phone": user.phone})
    return data

@router.post("/user/upgrade-job")
async def upgrade_job(body: UpgradeJobRequest, db: Session = Depends(get_db), redis_conn=Depends(get_redis),
                      user=Depends(deps.get_current_user)):
    async with wallet_lock(redis_conn, user.id):
        result = wallet_service.upgrade_job_level(db, user.id, body.target_level, body.investment_amount)
    return {"message": f"Job level upgraded to {result['jobLevel']}", **result}

@router.get("/job-levels")
def job_levels():
    return tariff_table()
