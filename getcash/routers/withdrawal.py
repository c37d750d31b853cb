from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db, get_redis
from ..core import deps
from ..schemas import WithdrawalRequest
from ..services import withdrawal as withdrawal_service
from ..services.wallet_lock import wallet_lock

router = APIRouter(prefix="/withdrawal", tags=["Withdrawal"])

@router.post("/request")
async def request_withdrawal(body: WithdrawalRequest, db: Session = Depends(get_db), redis_conn=Depends(get_redis),
                             user=Depends(deps.get_current_user)):
    async with wallet_lock(redis_conn, user.id):
        result = withdrawal_service.request_withdrawal(
            db, user.id, body.amount, body.phone, body.recipient_name, body.network
        )
    return {"message": "Withdrawal request submitted successfully", **result}

@router.get("/history")
def withdrawal_history(db: Session = Depends(get_db), user=Depends(deps.get_current_user)):
    return withdrawal_service.list_withdrawals(db, user.id)
