from io import BytesIO

import openpyxl
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..database import get_db, get_redis
from .. import models
from ..core import deps
from ..schemas import WalletAdjust
from ..services import wallet as wallet_service
from ..services.wallet_lock import wallet_lock

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("/users")
def admin_users(page: int = 1, keyword: str = "", db: Session = Depends(get_db), admin=Depends(deps.get_current_admin)):
    page_size = 20
    query = db.query(models.User)
    if keyword: query = query.filter(models.User.username.contains(keyword))
    total = query.count()
    users = query.order_by(models.User.id.asc()).offset((max(page, 1) - 1) * page_size).limit(page_size).all()

    items = []
    for u in users:
        wallet = wallet_service.get_or_create_wallet(db, u.id)
        items.append({
            "id": u.id,
            "username": u.username,
            "phone": u.phone,
            "isAdmin": bool(u.is_admin),
            "joinDate": u.created_at.isoformat() if u.created_at else None,
            "tasksCompleted": db.query(models.CompletedTask).filter(models.CompletedTask.user_id == u.id).count(),
            "wallet": wallet_service.wallet_state(wallet),
        })
    return {"total": total, "page": page, "users": items}

@router.post("/users/{user_id}/wallet")
async def admin_adjust_wallet(user_id: int, body: WalletAdjust, db: Session = Depends(get_db),
                              redis_conn=Depends(get_redis), admin=Depends(deps.get_current_admin)):
    async with wallet_lock(redis_conn, user_id):
        wallet = wallet_service.adjust_wallet(db, admin.id, user_id, body.amount, body.reason)
    return {"message": "Wallet adjusted", "wallet": wallet_service.wallet_state(wallet)}

@router.get("/export")
def admin_export(db: Session = Depends(get_db), admin=Depends(deps.get_current_admin)):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Users"
    ws.append(["ID", "Username", "Phone", "Joined", "Job level", "Personal wallet", "Total earnings", "Total withdrawals"])
    for u in db.query(models.User).order_by(models.User.id).all():
        w = wallet_service.get_or_create_wallet(db, u.id)
        ws.append([u.id, u.username, u.phone, u.created_at, w.job_level, w.personal_wallet, w.total_earnings, w.total_withdrawals])

    ws = wb.create_sheet("Withdrawals")
    ws.append(["ID", "User ID", "Amount", "Fee", "Final amount", "Recipient", "Phone", "Network", "Status", "Time"])
    for w in db.query(models.Withdrawal).order_by(models.Withdrawal.id).all():
        ws.append([w.id, w.user_id, w.amount, w.fee, w.final_amount, w.recipient_name, w.phone, w.network, w.status, w.created_at])

    f = BytesIO()
    wb.save(f)
    f.seek(0)
    return Response(content=f.getvalue(), media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", headers={'Content-Disposition': 'attachment; filename="getcash_export.xlsx"'})
